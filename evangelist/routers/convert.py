"""PDF conversion endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path

from fastapi import APIRouter, Request, UploadFile
from fastapi.responses import JSONResponse
from starlette.datastructures import FormData

from evangelist.errors import PipelineError, ValidationFailure
from evangelist.models import WorkerResult
from evangelist.pipeline.convert import convert_document
from evangelist.pipeline.rasterize import get_rasterizer
from evangelist.pipeline.upload import upload_all
from evangelist.settings import settings
from evangelist.storage import allocate_job_dir, page_template, remove_dir, save_upload_file
from evangelist.storage_provider import StorageProvider, get_storage_provider
from evangelist.templates import validate_remote_templates

router = APIRouter(tags=["convert"])
logger = logging.getLogger(__name__)

SOURCE_FIELD = "pdf"


def _failures(workers: list[WorkerResult]) -> list[dict[str, object]]:
    return [worker.as_dict() for worker in workers if not worker.ok]


async def _materialize_source(value: str | UploadFile, provider: StorageProvider, job_dir: Path) -> Path:
    """Copy the source PDF into the job's scratch directory."""
    destination = job_dir / "source.pdf"
    if isinstance(value, str):
        key = value.strip()
        if not key:
            raise ValidationFailure(f"The '{SOURCE_FIELD}' key must name a stored PDF.", field=SOURCE_FIELD)
        logger.info("fetching source pdf", extra={"key": key, "path": str(destination)})
        data = await provider.fetch(key)
        await asyncio.to_thread(destination.write_bytes, data)
    else:
        await asyncio.to_thread(save_upload_file, value, destination)
    return destination


@router.post("/convert")
async def convert_pdf(request: Request) -> JSONResponse:
    request_id = str(uuid.uuid4())
    stage = "parse_form"
    timings: dict[str, int] = {"fetch_ms": 0, "convert_ms": 0, "upload_ms": 0}
    form: FormData | None = None

    def _err(status_code: int, detail: str, **extra: object) -> JSONResponse:
        payload: dict[str, object] = {"ok": False, "detail": detail, "request_id": request_id, "stage": stage, **extra}
        return JSONResponse(status_code=status_code, content=payload)

    too_large = f"Form data may not exceed {settings.max_form_bytes} bytes"
    content_length = request.headers.get("content-length", "")
    if content_length.isdigit() and int(content_length) > settings.max_form_bytes:
        return _err(413, too_large)

    try:
        # chunked bodies carry no content-length; measure what actually arrived
        if len(await request.body()) > settings.max_form_bytes:
            return _err(413, too_large)
        form = await request.form()
        fields = {name: form.getlist(name) for name in form.keys()}

        stage = "validate"
        validate_remote_templates(fields)
        sources = fields.get(SOURCE_FIELD)
        if not sources:
            raise ValidationFailure(f"Must specify a PDF to convert in the '{SOURCE_FIELD}' key.", field=SOURCE_FIELD)
        if len(sources) != 1:
            raise ValidationFailure(f"Must specify exactly one PDF in the '{SOURCE_FIELD}' key.", field=SOURCE_FIELD)

        provider = get_storage_provider()
        rasterizer = get_rasterizer()
        job_dir = allocate_job_dir()
        try:
            stage = "fetch_pdf"
            fetch_started = time.perf_counter()
            source_path = await _materialize_source(sources[0], provider, job_dir)
            timings["fetch_ms"] = int((time.perf_counter() - fetch_started) * 1000)

            stage = "convert"
            convert_started = time.perf_counter()
            conversion = await convert_document(rasterizer, source_path, page_template(job_dir), request_id=request_id)
            timings["convert_ms"] = int((time.perf_counter() - convert_started) * 1000)

            stage = "upload"
            upload_started = time.perf_counter()
            uploads = await upload_all(
                provider,
                conversion.job,
                fields,
                request_id=request_id,
                pages=conversion.converted_pages,
            )
            timings["upload_ms"] = int((time.perf_counter() - upload_started) * 1000)
        finally:
            if not settings.keep_scratch:
                await asyncio.to_thread(remove_dir, job_dir)

        result: dict[str, object] = {
            "page_count": conversion.page_count,
            "uploaded_count": len(uploads.uploaded),
            "uploaded": uploads.uploaded,
            "conversion_failures": _failures(conversion.workers),
            "upload_failures": _failures(uploads.workers),
            "timings": timings,
        }
        if not conversion.ok:
            stage = "convert"
            return _err(500, "Conversion failed for some pages; only converted pages were uploaded", **result)
        if not uploads.ok:
            return _err(500, "Upload failed for some pages", **result)

        stage = "done"
        logger.info(
            "conversion finished",
            extra={
                "request_id": request_id,
                "stage": stage,
                "page_count": conversion.page_count,
                "uploaded_count": len(uploads.uploaded),
                "timings": timings,
            },
        )
        return JSONResponse(status_code=200, content={"ok": True, "request_id": request_id, "stage": stage, **result})
    except PipelineError as exc:
        if exc.status_code >= 500:
            logger.error("conversion request failed", extra={"request_id": request_id, "stage": stage, "error": str(exc)})
        return _err(exc.status_code, str(exc))
    except Exception as exc:
        logger.exception("conversion request failed", extra={"request_id": request_id, "stage": stage})
        return _err(500, f"Conversion failed: {type(exc).__name__}: {str(exc)[:300]}")
    finally:
        if form is not None:
            await form.close()
