"""Accounts - user registration, activation and profile service."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from accounts import __version__
from accounts.config import get_settings
from accounts.database import build_engine, build_session_factory
from accounts.dependencies import get_translator
from accounts.exceptions import AccountsError, ValidationFailed
from accounts.rate_limit import limiter
from accounts.routers import auth_router, images_router, users_router
from accounts.services.auth import run_token_cleanup
from accounts.services.file_storage import FileStorage

# Logging
logger = logging.getLogger("accounts")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    for warning in settings.validate():
        logger.warning(warning)

    FileStorage(settings).create_folders()
    engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.session_factory = build_session_factory(engine)
    cleanup = asyncio.create_task(run_token_cleanup(app.state.session_factory, settings))
    logger.info("Accounts service started (%s)", settings.APP_ENV)

    yield

    cleanup.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup
    await engine.dispose()


app = FastAPI(title="Accounts", version=__version__, lifespan=lifespan)
app.state.limiter = limiter


def error_body(request: Request, message: str, validation_errors: dict[str, str] | None = None) -> dict:
    """Common error payload: where it happened, when (epoch millis) and what."""
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    body = {"path": path, "timestamp": int(time.time() * 1000), "message": message}
    if validation_errors is not None:
        body["validationErrors"] = validation_errors
    return body


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# --- Request size limit middleware ---
class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_image_size_mb: int) -> None:
        super().__init__(app)
        # base64 inflates by 4/3, leave headroom for the rest of the JSON body
        self.max_body_size = max_image_size_mb * 1024 * 1024 * 2 + 64 * 1024

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_size:
            translator = get_translator(request)
            return JSONResponse(status_code=413, content=error_body(request, translator.t("request_too_large")))
        return await call_next(request)


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = ("/api/1.0/users", "/api/1.0/auth", "/api/1.0/logout")

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        method = request.method
        if method in ("POST", "PUT", "DELETE") and path.startswith(self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_image_size_mb=get_settings().MAX_IMAGE_SIZE_MB)
app.add_middleware(AuditLogMiddleware)

# API routers
app.include_router(users_router)
app.include_router(auth_router)
app.include_router(images_router)


# --- Error translation ---
@app.exception_handler(AccountsError)
async def accounts_error_handler(request: Request, exc: AccountsError) -> JSONResponse:
    """Render service errors with a message in the request locale."""
    translator = get_translator(request)
    validation_errors = translator.translate_errors(exc.errors) if isinstance(exc, ValidationFailed) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, translator.t(exc.message_key), validation_errors),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and parameters are reported like field rule violations."""
    translator = get_translator(request)
    errors: dict[str, str] = {}
    for error in exc.errors():
        fields = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        errors.setdefault(fields[-1] if fields else "body", error.get("msg", ""))
    return JSONResponse(status_code=400, content=error_body(request, translator.t("validation_failure"), errors))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded."""
    translator = get_translator(request)
    return JSONResponse(status_code=429, content=error_body(request, translator.t("rate_limited")))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(request, str(exc.detail)))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unhandled becomes a 500 in the common error shape."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = AccountsError()
    translator = get_translator(request)
    return JSONResponse(status_code=error.status_code, content=error_body(request, translator.t(error.message_key)))


# --- Health check ---
@app.get("/api/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "accounts", "version": __version__}
