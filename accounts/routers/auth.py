"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Request

from accounts.dependencies import get_auth_service, get_bearer_token, get_translator
from accounts.i18n import Translator
from accounts.rate_limit import limiter
from accounts.schemas.auth import LoginRequest, LoginResponse
from accounts.schemas.user import MessageResponse
from accounts.services.auth import AuthService

router = APIRouter(prefix="/api/1.0", tags=["Authentication"])


@router.post("/auth", response_model=LoginResponse)
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Exchange email and password for a session token."""
    result = await auth.login(body.email, body.password)
    return LoginResponse(**result)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    translator: Translator = Depends(get_translator),
) -> MessageResponse:
    """Revoke the presented bearer token."""
    token = get_bearer_token(request)
    if token:
        await auth.logout(token)
    return MessageResponse(message=translator.t("logout_success"))
