"""FastAPI application entry point."""

import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from http import HTTPStatus

from fastapi import FastAPI, File, HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.clients.openai_client import OpenAIClient
from app.config import Settings, get_settings
from app.logging_config import clear_request_id, get_logger, set_request_id, setup_logging
from app.models.document import StoredFileInfo
from app.models.error import ErrorResponse
from app.services.ingestion_service import JsonIngestionService
from app.storage.file_storage import (
    FileSystemStorageService,
    StorageError,
    StorageFileNotFoundError,
    initialize_storage,
)
from app.storage.vector_store import RedisVectorStore

# Setup logging configuration
setup_logging()
logger = get_logger(__name__)

# Load and validate configuration at startup
settings = get_settings()

# Global service instance
storage_service: FileSystemStorageService | None = None


def build_storage_service(settings: Settings) -> FileSystemStorageService:
    """Wire the storage service with its Redis ingestion pipeline."""
    openai_client = OpenAIClient(
        api_key=(
            settings.openai_api_key.get_secret_value()
            if settings.openai_api_key
            else ""
        ),
        embedding_model=settings.openai_embedding_model,
    )
    vector_store = RedisVectorStore.from_url(
        settings.redis_url,
        openai_client,
        index_name=settings.redis_index,
        prefix=settings.redis_prefix,
        dimensions=settings.embedding_dimensions,
    )
    return FileSystemStorageService(
        settings.storage_location,
        JsonIngestionService(vector_store),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    global storage_service

    logger.info("Starting JSON Redis Feeder...")
    logger.info(
        f"Configuration: storage_location={settings.storage_location}, "
        f"redis_index={settings.redis_index}, redis_prefix={settings.redis_prefix}"
    )

    storage_service = build_storage_service(settings)
    initialize_storage(storage_service)

    vector_store = storage_service.ingestion_service.vector_store
    await vector_store.initialize()

    logger.info("JSON Redis Feeder started successfully")

    yield

    logger.info("Shutting down JSON Redis Feeder...")

    await vector_store.close()
    await vector_store.embedding_client.close()
    storage_service = None

    logger.info("JSON Redis Feeder shut down successfully")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Stores uploaded JSON files and feeds their records to a Redis vector index",
    lifespan=lifespan,
)


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    """Add request ID tracking and error handling."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    set_request_id(request_id)

    try:
        logger.info(f"Request started: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(
            f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}"
        )
        return response
    except Exception as e:
        logger.error(
            f"Unhandled exception: {str(e)}",
            exc_info=True,
            extra={"path": request.url.path},
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal Server Error",
                detail=str(e),
                timestamp=datetime.now(UTC),
                request_id=request_id,
            ).model_dump(mode="json"),
        )
    finally:
        clear_request_id()


def _error_response(request: Request, status_code: int, error: str, detail: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            detail=detail,
            timestamp=datetime.now(UTC),
            request_id=request_id,
        ).model_dump(mode="json"),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    detail = "; ".join(errors)
    logger.warning(f"Validation error: {detail}", extra={"path": request.url.path})

    return _error_response(
        request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation Error", detail
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP errors raised by endpoints and routing."""
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}", extra={"path": request.url.path}
    )
    response = _error_response(
        request, exc.status_code, HTTPStatus(exc.status_code).phrase, str(exc.detail)
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(StorageFileNotFoundError)
async def storage_file_not_found_handler(request: Request, exc: StorageFileNotFoundError):
    """Handle requests for files that are not stored."""
    logger.warning(f"Stored file not found: {str(exc)}")
    return _error_response(request, status.HTTP_404_NOT_FOUND, "File Not Found", str(exc))


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    """Handle storage errors.

    Rejected uploads map to 400; errors wrapping a filesystem failure map to 500.
    """
    if exc.__cause__ is not None:
        logger.error(f"Storage failure: {str(exc)}: {exc.__cause__}")
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Storage Error",
            f"{exc}: {exc.__cause__}",
        )

    logger.warning(f"Storage request rejected: {str(exc)}")
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "Storage Error", str(exc))


def _require_storage() -> FileSystemStorageService:
    if not storage_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage service not initialized",
        )
    return storage_service


# API Endpoints


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.api_title,
        "version": settings.api_version,
        "storage_location": settings.storage_location,
        "redis_index": settings.redis_index,
    }


@app.post(
    "/api/v1/files",
    response_model=StoredFileInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a JSON file",
    description="Store a JSON file and index its records in the Redis vector store.",
)
async def upload_file(
    file: UploadFile = File(..., description="JSON file to upload"),
) -> StoredFileInfo:
    """Store an uploaded file and feed its records to the vector index.

    If indexing fails the file stays stored and the request fails with 500.
    """
    storage = _require_storage()

    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    file_content = await file.read()

    if len(file_content) > settings.max_file_size:
        max_mb = settings.max_file_size / (1024 * 1024)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size exceeds maximum allowed size ({max_mb:.2f} MB)",
        )

    logger.info(f"Processing upload request for '{file.filename}'")
    result = await storage.store(file.filename, file_content)
    logger.info(f"File '{result.filename}' uploaded successfully")
    return result


@app.get(
    "/api/v1/files",
    response_model=list[str],
    summary="List stored files",
)
async def list_files() -> list[str]:
    """List the names of all stored files."""
    storage = _require_storage()
    files = [path.as_posix() for path in storage.load_all()]
    logger.info(f"Listed {len(files)} stored files")
    return files


@app.get(
    "/api/v1/files/{filename}",
    summary="Download a stored file",
)
async def serve_file(filename: str) -> FileResponse:
    """Send a stored file as an attachment."""
    storage = _require_storage()
    path = storage.load_as_resource(filename)
    return FileResponse(path, filename=path.name)


@app.delete(
    "/api/v1/files",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete all stored files",
)
async def delete_files():
    """Remove every stored file and recreate the empty storage folder.

    Index entries already written to Redis are left in place.
    """
    storage = _require_storage()
    storage.delete_all()
    storage.init()
    logger.info("Deleted all stored files")
    return None
