"""User API endpoints."""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from accounts.config import Settings, get_settings
from accounts.dependencies import (
    CurrentUser,
    Pagination,
    get_authenticated_user,
    get_pagination,
    get_translator,
    get_user_service,
    require_user,
)
from accounts.exceptions import ValidationFailed
from accounts.i18n import Translator
from accounts.rate_limit import limiter
from accounts.schemas.user import (
    MessageResponse,
    UserCreateRequest,
    UserPageResponse,
    UserResponse,
    UserUpdateRequest,
)
from accounts.services.user import UserService
from accounts.validation import check_registration, check_update

router = APIRouter(prefix="/api/1.0/users", tags=["Users"])


async def read_update_body(request: Request) -> UserUpdateRequest:
    """Parse the PUT payload. Runs after the owner check, never before it."""
    raw = await request.body()
    if not raw:
        return UserUpdateRequest()
    try:
        data = json.loads(raw)
    except ValueError:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}]
        ) from None
    if data is None:
        return UserUpdateRequest()
    try:
        return UserUpdateRequest.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from None


@router.post("", response_model=MessageResponse)
@limiter.limit("5/minute")
async def register(
    request: Request,
    body: UserCreateRequest,
    service: UserService = Depends(get_user_service),
    translator: Translator = Depends(get_translator),
) -> MessageResponse:
    """Register a new, inactive account and mail its activation token."""
    errors = await check_registration(body.username, body.email, body.password, service.users)
    if errors:
        raise ValidationFailed(errors)

    await service.register(body.username, body.email, body.password)  # type: ignore[arg-type]
    return MessageResponse(message=translator.t("user_create_success"))


@router.post("/token/{token}", response_model=MessageResponse)
async def activate(
    token: str,
    service: UserService = Depends(get_user_service),
    translator: Translator = Depends(get_translator),
) -> MessageResponse:
    """Activate the account holding this token."""
    await service.activate(token)
    return MessageResponse(message=translator.t("account_activation_success"))


@router.get("", response_model=UserPageResponse)
async def list_users(
    pagination: Pagination = Depends(get_pagination),
    user: CurrentUser | None = Depends(get_authenticated_user),
    service: UserService = Depends(get_user_service),
) -> UserPageResponse:
    """List active users page by page. The caller is left out when authenticated."""
    data = await service.get_users(pagination.page, pagination.size, user.id if user else None)
    return UserPageResponse(**data)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, service: UserService = Depends(get_user_service)) -> UserResponse:
    user = await service.get_user(user_id)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    request: Request,
    user_id: str,
    user: CurrentUser | None = Depends(get_authenticated_user),
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> UserResponse:
    """Update the caller's own username and profile image."""
    owner = require_user(user, user_id, "unauthorized_user_update")

    body = await read_update_body(request)
    errors = check_update(body.username, body.image, settings.MAX_IMAGE_SIZE_MB * 1024 * 1024)
    if errors:
        raise ValidationFailed(errors)

    updated = await service.update_user(owner.id, body.username, body.image)  # type: ignore[arg-type]
    return UserResponse.model_validate(updated)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    user: CurrentUser | None = Depends(get_authenticated_user),
    service: UserService = Depends(get_user_service),
    translator: Translator = Depends(get_translator),
) -> MessageResponse:
    """Delete the caller's own account."""
    owner = require_user(user, user_id, "unauthorized_user_delete")
    await service.delete_user(owner.id)
    return MessageResponse(message=translator.t("user_delete_success"))
