"""
Noteport FastAPI Application

A REST API server for the Noteport import pipeline.
Provides endpoints for uploading export files and polling import jobs.

The caller's identity is supplied by the upstream auth layer in the
``X-User-Id`` header.
"""

import mimetypes
import posixpath
from contextlib import asynccontextmanager
from pathlib import PurePosixPath

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from noteport.config import Config
from noteport.models.job import ImportJobSnapshot
from noteport.parsers.detector import SUPPORTED_EXTENSIONS
from noteport.services.import_engine import ImportEngine
from noteport.utils.exceptions import (
    ImportJobError,
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
)
from noteport.utils.logger import get_logger, setup_logging
from noteport.utils.timestamps import from_epoch_millis

# Global engine instance
engine: ImportEngine | None = None
logger = get_logger(__name__)


# Pydantic models for API
class JobListResponse(BaseModel):
    """Response model for job listing."""

    jobs: list[ImportJobSnapshot]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    engine_initialized: bool
    note_store: str
    object_storage: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global engine

    # Load configuration from environment or use defaults
    config = Config.from_env()

    # Initialize logging with config
    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info("Starting Noteport server")
    logger.info(
        f"Configuration: Database={config.database.path}, "
        f"Storage={config.storage.backend}, "
        f"Concurrency={config.imports.max_concurrency}"
    )

    engine = ImportEngine(config=config)
    await engine.initialize()
    logger.info("Noteport engine initialized")

    yield

    # Cleanup
    logger.info("Shutting down Noteport server")
    await engine.close()
    engine = None
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="Noteport API",
    description="Import Evernote exports and documents into notebooks",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_engine() -> ImportEngine:
    """Return the running engine or fail with 503."""
    if not engine:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


def get_owner_id(x_user_id: str | None = Header(default=None)) -> str:
    """Owner of the request, as asserted by the auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def is_owned_key(key: str, owner_id: str) -> bool:
    """Whether a storage key is a plain path inside the owner's attachment folder."""
    parts = PurePosixPath(key).parts
    if posixpath.normpath(key) != key or ".." in parts:
        return False
    return key.startswith(f"attachments/{owner_id}/")


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if engine else "initializing",
        engine_initialized=engine is not None,
        note_store=type(engine.store).__name__ if engine else "unknown",
        object_storage=type(engine.storage).__name__ if engine else "unknown",
    )


# Import endpoints
@app.post("/imports", response_model=ImportJobSnapshot, status_code=201)
async def create_import(
    file: UploadFile = File(...),
    notebook_name: str | None = Form(default=None),
    last_modified: int | None = Form(default=None),
    owner_id: str = Depends(get_owner_id),
    import_engine: ImportEngine = Depends(get_engine),
):
    """
    Import an uploaded file.

    Supported formats: Evernote exports (.enex), PDF, DOCX and plain text.
    The import runs to completion inside the request; the returned job
    reports how many notes were imported and why any failed.
    """
    data = await file.read()
    filename = file.filename or ""

    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    max_bytes = import_engine.config.imports.max_upload_bytes
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=413, detail=f"Uploaded file exceeds the {max_bytes} byte limit"
        )

    modified_at = None
    if last_modified is not None:
        try:
            modified_at = from_epoch_millis(last_modified)
        except (OverflowError, OSError, ValueError) as e:
            raise HTTPException(
                status_code=400, detail=f"Invalid last_modified timestamp: {last_modified}"
            ) from e

    try:
        return await import_engine.import_file(
            owner_id=owner_id,
            filename=filename,
            data=data,
            mime_type=file.content_type,
            notebook_name=notebook_name,
            last_modified=modified_at,
        )
    except UnsupportedFormatError as e:
        logger.info(f"Rejected upload {filename!r}: {e.message}")
        raise HTTPException(
            status_code=415,
            detail={"message": e.message, "supported": list(SUPPORTED_EXTENSIONS)},
        ) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except ImportJobError as e:
        logger.error(f"Error importing {filename!r}: {e}")
        raise HTTPException(status_code=500, detail=e.message) from e


@app.get("/imports", response_model=JobListResponse)
async def list_imports(
    limit: int | None = Query(default=None, ge=1, le=100),
    owner_id: str = Depends(get_owner_id),
    import_engine: ImportEngine = Depends(get_engine),
):
    """List the caller's most recent import jobs, newest first."""
    jobs = await import_engine.list_jobs(owner_id, limit=limit)
    return JobListResponse(jobs=jobs)


@app.get("/imports/{job_id}", response_model=ImportJobSnapshot)
async def get_import(
    job_id: str,
    owner_id: str = Depends(get_owner_id),
    import_engine: ImportEngine = Depends(get_engine),
):
    """
    Retrieve an import job with its progress.

    Jobs belonging to other users are reported as not found.
    """
    try:
        return await import_engine.get_job(job_id, owner_id=owner_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e


# Attachment endpoint
@app.get("/files/{key:path}")
async def get_file(
    key: str,
    owner_id: str = Depends(get_owner_id),
    import_engine: ImportEngine = Depends(get_engine),
):
    """Serve a stored attachment owned by the caller."""
    if not is_owned_key(key, owner_id):
        raise HTTPException(status_code=404, detail="File not found")

    try:
        data = await import_engine.storage.get(key)
    except ValidationError as e:
        raise HTTPException(status_code=404, detail="File not found") from e

    if data is None:
        raise HTTPException(status_code=404, detail="File not found")

    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Noteport API",
        "version": "0.1.0",
        "description": "Evernote and document import pipeline",
        "supported_formats": list(SUPPORTED_EXTENSIONS),
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
