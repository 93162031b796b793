from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from app.api.v1.router import router as v1_router
from app.config import settings
from app.database import SessionLocal
from app.dependencies.storage import get_storage
from app.exceptions import FileAccessError
from app.logging_config import setup_logging
from app.services.drive_mirror import build_drive_mirror
from app.storage.exceptions import (
    BlobNotFoundError,
    FileSizeExceededError,
    StorageError,
    UnsupportedContentTypeError,
)

# Setup application logging
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Drive客戶端只在啟動時建立一次，之後透過get_drive_mirror依賴注入給端點
    app.state.drive_mirror = build_drive_mirror(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        token_uri=settings.GOOGLE_TOKEN_URI,
        storage=get_storage(),
        session_factory=SessionLocal,
    )
    yield
    app.state.drive_mirror = None


# title參數: 設定 API的標題名稱，會顯示在Swagger UI (/docs)與ReDoc (/redoc)
app = FastAPI(title="File Share API", lifespan=lifespan)

# prefix參數設定URL路徑前綴，所有透過v1_router定義的endpoint都會加上這個前綴
app.include_router(v1_router, prefix="/api/v1")


def _error_response(status_code: int, error: str, message: str, data: dict | None = None) -> JSONResponse:
    content = {"success": False, "error": error, "message": message}
    if data:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)


# 服務層拋出的領域例外(NotFound, Forbidden, ...)在這裡統一轉成JSON錯誤格式
@app.exception_handler(FileAccessError)
async def file_access_exception_handler(request: Request, exc: FileAccessError):
    return _error_response(exc.status_code, exc.error, exc.message, exc.data)


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    if isinstance(exc, FileSizeExceededError):
        return _error_response(413, "Payload Too Large", str(exc))
    if isinstance(exc, UnsupportedContentTypeError):
        return _error_response(400, "Bad Request", str(exc))
    if isinstance(exc, BlobNotFoundError):
        logger.error(f"Blob missing: {exc}")
        return _error_response(404, "Not Found", "File not found in the server", {"reason": "gone"})

    logger.error(f"Storage failure: {exc}", exc_info=True)
    return _error_response(503, "Service Unavailable", "File storage is unavailable")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Unwrap the 'detail' field from HTTPException responses."""
    content = exc.detail

    if isinstance(content, dict):
        return JSONResponse(status_code=exc.status_code, content=content)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": "Unauthorized" if exc.status_code == 401 else "Error",
            "message": content,
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}",
        exc_info=True,  # 記錄完整的錯誤堆疊，可以知道錯誤發生在哪裡
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    # Return safe, static message to client (no internal details exposed)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
        },
    )
