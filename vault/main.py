"""Entry point for the vault service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import request_id_var, setup_logging
from vault import service_locator
from vault.config import DISCORD_API_BASE_URL, VAULT_HOST, VAULT_PORT
from vault.database import init_database
from vault.exceptions import (
    AuthError,
    FileTooLargeError,
    IncompleteUploadError,
    InvalidSettingsError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    RemoteProtocolError,
    RemoteUnavailableError,
    ScanWindowExceededError,
    VaultError
)
from vault.routes.batch_routes import router as batch_router
from vault.routes.channel_routes import router as channel_router
from vault.routes.file_routes import router as file_router
from vault.routes.history_routes import router as history_router
from vault.routes.settings_routes import router as settings_router
from vault.routes.shared_routes import router as shared_router
from vault.schemas.common import ErrorResponse

logger = setup_logging('vault')
setup_logging('common')

app = FastAPI(
    title="ChannelVault",
    description="Chunked file storage on top of Discord channel attachments",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = request_id_var.set(request_id)

    start_time = time.time()
    logger.info(f"Request started: {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize database and shared components on application startup.
    """
    logger.info("Vault service starting up...")

    init_database()
    logger.info("Database initialized")

    settings = service_locator.get_settings_registry().current()
    logger.info(
        f"Transfer settings v{settings.version}: chunk_size={settings.chunk_size_bytes} "
        f"threshold={settings.chunk_threshold_bytes} concurrency={settings.part_concurrency}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    """
    Release the remote HTTP session on application shutdown.
    """
    logger.info("Vault service shutting down...")
    await service_locator.get_discord_client().close()


def _error_response(request: Request, exc: Exception, status_code: int, code: str, level: str = "warning"):
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    if level == "error":
        logger.error(message, exc_info=True)
    else:
        logger.warning(message)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump()
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, "AUTH_FAILED")


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return _error_response(request, exc, status.HTTP_403_FORBIDDEN, "PERMISSION_DENIED")


@app.exception_handler(ScanWindowExceededError)
async def scan_window_exceeded_handler(request: Request, exc: ScanWindowExceededError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "SCAN_WINDOW_EXCEEDED")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "NOT_FOUND")


@app.exception_handler(IncompleteUploadError)
async def incomplete_upload_handler(request: Request, exc: IncompleteUploadError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "UPLOAD_INCOMPLETE")


@app.exception_handler(FileTooLargeError)
async def file_too_large_handler(request: Request, exc: FileTooLargeError):
    return _error_response(request, exc, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "FILE_TOO_LARGE")


@app.exception_handler(InvalidSettingsError)
async def invalid_settings_handler(request: Request, exc: InvalidSettingsError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_SETTINGS")


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError):
    response = _error_response(request, exc, status.HTTP_429_TOO_MANY_REQUESTS, "RATE_LIMITED")
    if exc.retry_after is not None:
        response.headers["Retry-After"] = str(exc.retry_after)
    return response


@app.exception_handler(RemoteUnavailableError)
async def remote_unavailable_handler(request: Request, exc: RemoteUnavailableError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "REMOTE_UNAVAILABLE", level="error")


@app.exception_handler(RemoteProtocolError)
async def remote_protocol_handler(request: Request, exc: RemoteProtocolError):
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "REMOTE_ERROR", level="error")


@app.exception_handler(VaultError)
async def vault_error_handler(request: Request, exc: VaultError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", level="error")


app.include_router(file_router)
app.include_router(channel_router)
app.include_router(shared_router)
app.include_router(batch_router)
app.include_router(settings_router)
app.include_router(history_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "ChannelVault API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for container healthchecks.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "vault"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint.
    Verifies database connectivity.
    """
    from vault.database import get_db_connection

    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1 FROM files LIMIT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    ready = db_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "database": db_status,
            "remote": DISCORD_API_BASE_URL
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "vault.main:app",
        host=VAULT_HOST,
        port=VAULT_PORT
    )


if __name__ == "__main__":
    main()
