"""Field rules for registration and profile update payloads.

Each rule returns the message key of the first violation, or ``None``.
Payload checks return an ordered ``{field: message_key}`` mapping that is
empty when everything passes.
"""

import base64
import binascii
import re
from typing import Protocol

USERNAME_MIN = 4
USERNAME_MAX = 32
PASSWORD_MIN = 6

EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]{2,}$"
)
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*\d).*$")

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"


class EmailLookup(Protocol):
    async def email_exists(self, email: str) -> bool: ...


def check_username(username: str | None) -> str | None:
    if username is None:
        return "username_null"
    if not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        return "username_size"
    return None


def check_email_format(email: str | None) -> str | None:
    if email is None:
        return "email_null"
    if not EMAIL_PATTERN.match(email):
        return "email_invalid"
    return None


def check_password(password: str | None) -> str | None:
    if password is None:
        return "password_null"
    if len(password) < PASSWORD_MIN:
        return "password_size"
    if not PASSWORD_PATTERN.match(password):
        return "password_pattern"
    return None


def decode_image(encoded: str) -> bytes | None:
    """Decode a base64 image, tolerating a ``data:...;base64,`` prefix. Returns None if malformed."""
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return None


def check_image(encoded: str | None, max_bytes: int) -> str | None:
    if not encoded:
        return None
    data = decode_image(encoded)
    if data is None:
        return "image_invalid"
    if len(data) > max_bytes:
        return "profile_image_size"
    if not (data.startswith(PNG_SIGNATURE) or data.startswith(JPEG_SIGNATURE)):
        return "unsupported_image_file"
    return None


async def check_registration(
    username: str | None,
    email: str | None,
    password: str | None,
    users: EmailLookup,
) -> dict[str, str]:
    """Validate a registration payload.

    Uniqueness is only looked up once the address is well formed, and is
    reported under the same ``email`` key. The store's unique constraint
    remains the final arbiter for concurrent registrations.
    """
    errors: dict[str, str] = {}

    username_error = check_username(username)
    if username_error:
        errors["username"] = username_error

    email_error = check_email_format(email)
    if email_error is None and await users.email_exists(email):  # type: ignore[arg-type]
        email_error = "email_inuse"
    if email_error:
        errors["email"] = email_error

    password_error = check_password(password)
    if password_error:
        errors["password"] = password_error

    return errors


def check_update(username: str | None, image: str | None, max_image_bytes: int) -> dict[str, str]:
    """Validate a profile update payload."""
    errors: dict[str, str] = {}
    username_error = check_username(username)
    if username_error:
        errors["username"] = username_error
    image_error = check_image(image, max_image_bytes)
    if image_error:
        errors["image"] = image_error
    return errors
