"""Profile image storage on the local filesystem."""

import logging
import os
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from accounts.config import Settings
from accounts.security import random_string
from accounts.validation import decode_image

logger = logging.getLogger("accounts")

FILENAME_LENGTH = 32


class FileStorage:
    """Stores profile images under ``<UPLOAD_DIR>/<PROFILE_DIR>`` with generated names."""

    def __init__(self, settings: Settings) -> None:
        self.upload_dir = Path(settings.UPLOAD_DIR)
        self.profile_dir = Path(settings.profile_directory)

    def profile_image_path(self, filename: str) -> Path | None:
        """Path of a stored image, or None if no such file. Only bare filenames are accepted."""
        if not filename or Path(filename).name != filename:
            return None
        path = self.profile_dir / filename
        return path if path.is_file() else None

    def create_folders(self) -> None:
        """Ensure the upload and profile directories exist."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.profile_dir.mkdir(parents=True, exist_ok=True)

    async def save_profile_image(self, encoded: str) -> str:
        """Decode a base64 image and write it under a fresh name. Returns the filename.

        Raises ValueError if the payload is not valid base64.
        """
        data = decode_image(encoded)
        if data is None:
            raise ValueError("Profile image is not valid base64")
        filename = random_string(FILENAME_LENGTH)
        await run_in_threadpool(self._write, self.profile_dir / filename, data)
        return filename

    async def delete_profile_image(self, filename: str) -> None:
        """Remove a stored image. Failures are logged, never raised."""
        await run_in_threadpool(self._remove, self.profile_dir / filename)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Profile image %s already gone", path.name)
        except OSError as e:
            logger.warning("Could not remove profile image %s: %s", path.name, e)
