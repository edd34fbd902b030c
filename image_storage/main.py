import logging
import mimetypes
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiofiles.os
import aiofiles.tempfile
from fastapi import Depends, FastAPI, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from image_storage.dependencies import get_storage
from image_storage.errors import StorageError
from image_storage.schemas import ErrorDetail, ErrorResponse, ImageUploadResponse
from image_storage.storage.base import ImageFile, StorageBase
from image_storage.url_utils import url_join
from config import get_settings

# Get settings and configure logging before anything else
settings = get_settings()
settings.configure_logging()

# Create logger for this module
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Storage type: {settings.storage_type}")
    logger.info(f"Content path: {settings.content_path}")

    yield

    # Shutdown
    logger.info("Shutting down application")


# Create FastAPI app with settings
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Render storage errors with their own status code."""
    if exc.status_code >= 500:
        logger.error(f"Storage error on {request.url.path}: {exc.message}", exc_info=exc.err)
    else:
        logger.info(f"{exc.error_type} on {request.url.path}: {exc.message}")

    body = ErrorResponse(errors=[ErrorDetail(**exc.to_dict())])
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health")
def health_check() -> dict[str, str]:
    """Simple health-check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": settings.app_version,
    }


@app.get("/config")
def get_config() -> dict[str, Any]:
    """Get current configuration (non-sensitive values only)."""
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "environment": settings.environment,
        "debug": settings.debug,
        "url": settings.url,
        "storage_type": settings.storage_type,
        "static_image_url_prefix": settings.static_image_url_prefix,
        "log_level": settings.log_level,
        "log_json": settings.log_json,
        "max_upload_size": settings.max_upload_size,
    }


@app.post("/images/upload", response_model=ImageUploadResponse)
async def upload_image(
    file: UploadFile,
    storage: StorageBase = Depends(get_storage),
) -> ImageUploadResponse:
    """Upload an image file.

    The upload is copied into the dated target directory under a
    collision-free name; an existing image is never overwritten.

    Args:
        file: The uploaded image file.
        storage: Storage adapter the image is saved with.

    Returns:
        ImageUploadResponse: Response containing the public URL of the image.

    Raises:
        HTTPException: If the file is empty, too large, or cannot be saved.
    """
    content = await file.read()

    if not content:
        raise HTTPException(status_code=400, detail="File cannot be empty")
    if not file.filename:
        raise HTTPException(status_code=400, detail="File must have a name")
    if len(content) > settings.max_upload_size:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds maximum upload size of {settings.max_upload_size} bytes",
        )

    logger.info(f"Processing image: {file.filename}, content length: {len(content)}")

    # The adapter copies from a file on disk, so spool the upload first
    suffix = Path(file.filename).suffix
    async with aiofiles.tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        await tmp.write(content)
        spooled_path = Path(tmp.name)

    try:
        url = await storage.save(
            ImageFile(name=file.filename, path=spooled_path, type=file.content_type)
        )
    except OSError as e:
        logger.error(f"Failed to save image {file.filename}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save image: {str(e)}")
    finally:
        await aiofiles.os.remove(spooled_path)

    logger.info(f"Successfully uploaded image: {file.filename} -> {url}")
    return ImageUploadResponse(url=url)


@app.get("/images/raw/{file_path:path}")
async def read_image(
    file_path: str,
    storage: StorageBase = Depends(get_storage),
) -> Response:
    """Return the raw bytes of a stored image.

    Unlike the static route this reads the whole file into memory, with no
    caching headers.
    """
    content = await storage.read(path=file_path)
    media_type = mimetypes.guess_type(file_path.rstrip("/\\"))[0] or "application/octet-stream"
    return Response(content=content, media_type=media_type)


@app.api_route(
    url_join("/", settings.subdir, settings.static_image_url_prefix, "{file_path:path}"),
    methods=["GET", "HEAD"],
    include_in_schema=False,
)
async def serve_image(
    request: Request,
    storage: StorageBase = Depends(get_storage),
) -> Response:
    """Stream a stored image from disk."""
    handler = storage.serve()
    return await handler(request)
