"""Stored profile image downloads."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from accounts.dependencies import get_file_storage
from accounts.services.file_storage import FileStorage

router = APIRouter(prefix="/images", tags=["Images"])


@router.get("/{filename}")
async def get_profile_image(filename: str, files: FileStorage = Depends(get_file_storage)) -> FileResponse:
    """Serve a stored profile image by its generated name."""
    path = files.profile_image_path(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(path)
