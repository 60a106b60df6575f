"""Artifact endpoints.

POST /upload              store a zip archive, respond with a Package.swift
GET  /artifacts/{name}    stream a stored archive back

An upload is either a multipart form with a ``file`` field, or the raw
archive as the request body with the name in ``X-Filename`` or in the
``filename=`` parameter of ``Content-Disposition``.

Rate limiting: POST /upload is throttled per client address via SlowAPI
(``SPMHOST_UPLOAD_RATE_LIMIT``, default 60/minute).
"""

import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from spmhost.artifacts.cleaner import EvictionScheduler
from spmhost.artifacts.dependencies import get_eviction_scheduler, get_storage_config
from spmhost.artifacts.errors import ArtifactNotFoundError, InvalidArtifactError
from spmhost.artifacts.manifest import public_url, render_manifest
from spmhost.artifacts.service import store_upload
from spmhost.artifacts.store import ArtifactStore
from spmhost.core.config import StorageConfig
from spmhost.core.limiter import limiter, upload_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["artifacts"])

DEFAULT_HOST = "localhost:8080"


def _filename_from_headers(request: Request) -> Optional[str]:
    """Recover the upload name for a raw-body upload.

    ``X-Filename`` wins over ``Content-Disposition``. For the latter, the
    value after ``filename=`` is taken up to the next ``;`` with whitespace
    and quotes stripped.
    """
    x_filename = request.headers.get("X-Filename")
    if x_filename:
        return x_filename.strip()

    disposition = request.headers.get("Content-Disposition")
    if disposition and "filename=" in disposition:
        _, _, value = disposition.partition("filename=")
        value = value.split(";", 1)[0].strip().strip('"')
        return value or None

    return None


async def _read_upload(request: Request) -> tuple[str, bytes]:
    """Return (filename, bytes) for either upload style.

    Raises:
        HTTPException 400: If no filename can be determined or the body is empty.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if isinstance(upload, UploadFile) and upload.filename:
            return upload.filename, await upload.read()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be provided in 'file' field or via raw binary with X-Filename header",
        )

    filename = _filename_from_headers(request)
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be provided in 'file' field or via raw binary with X-Filename header",
        )

    body = await request.body()
    if not body:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File content is missing",
        )
    return filename, body


def _check_content_length(request: Request) -> None:
    limit = request.app.state.max_upload_bytes
    declared = request.headers.get("content-length")
    if limit is None or not declared or not declared.isdigit():
        return
    if int(declared) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Upload exceeds the maximum size of {limit} bytes",
        )


def _request_scheme(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-Proto")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return "https" if request.app.state.tls_enabled else "http"


@router.post("/upload", response_class=PlainTextResponse)
@limiter.limit(upload_rate_limit)
async def upload_artifact(
    request: Request,
    config: StorageConfig = Depends(get_storage_config),
    scheduler: EvictionScheduler = Depends(get_eviction_scheduler),
) -> PlainTextResponse:
    """Store an uploaded zip and return a Package.swift that references it."""
    _check_content_length(request)
    filename, data = await _read_upload(request)

    try:
        result = await store_upload(config, filename, data, scheduler=scheduler)
    except InvalidArtifactError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except OSError:
        logger.exception("Failed to store artifact %s", filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store artifact",
        )

    host = request.headers.get("Host") or DEFAULT_HOST
    url = public_url(_request_scheme(request), host, result.stored_filename)

    logger.info(
        "Stored artifact %s (%d bytes, sha256=%s)",
        result.stored_filename, result.size_bytes, result.checksum,
    )
    return PlainTextResponse(render_manifest(result.package_name, url, result.checksum))


@router.get("/artifacts/{filename}")
async def download_artifact(
    filename: str,
    config: StorageConfig = Depends(get_storage_config),
) -> StreamingResponse:
    """Stream a stored artifact without reading it into memory."""
    store = ArtifactStore(config.artifacts_path)
    try:
        chunks, size = await run_in_threadpool(store.open_stream, filename)
    except ArtifactNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Artifact not found")

    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return StreamingResponse(
        chunks,
        media_type=media_type,
        headers={"Content-Length": str(size)},
    )
