"""Concurrent upload phase for converted page images."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Collection, Iterator, Mapping, Sequence
from pathlib import Path

from evangelist.errors import IOFailure, PipelineError
from evangelist.models import UPLOAD_ORDER, ConversionJob, PageRange, UploadReport, UploadTarget, WorkerResult
from evangelist.pipeline.join import join_workers
from evangelist.pipeline.partition import plan_ranges
from evangelist.settings import settings
from evangelist.storage_provider import StorageProvider
from evangelist.templates import RemoteTemplates, resolve_template, validate_remote_templates

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"


def upload_targets(job: ConversionJob, templates: RemoteTemplates, page_number: int) -> Iterator[UploadTarget]:
    """Yield the normal, small and large targets of one page, in upload order."""
    for variant in UPLOAD_ORDER:
        yield UploadTarget(
            page_number=page_number,
            variant=variant,
            local_path=job.local_path(page_number, variant),
            remote_path=resolve_template(templates.for_variant(variant), page_number),
        )


def _read_image(path: Path) -> bytes:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise IOFailure(f"Could not read {path}: {exc}", path=str(path)) from exc
    if not data:
        raise IOFailure(f"Image {path} is empty", path=str(path))
    return data


async def upload_page(provider: StorageProvider, target: UploadTarget) -> None:
    """Store one local page image at its remote path as a public JPEG."""
    data = await asyncio.to_thread(_read_image, target.local_path)
    await provider.store(target.remote_path, data, content_type=JPEG_CONTENT_TYPE, public=True)


async def upload_range(
    provider: StorageProvider,
    job: ConversionJob,
    templates: RemoteTemplates,
    page_range: PageRange,
    uploaded: list[str],
    request_id: str | None = None,
    pages: Collection[int] | None = None,
) -> WorkerResult:
    completed: list[int] = []
    for page_number in page_range.pages():
        if pages is not None and page_number not in pages:
            continue
        for target in upload_targets(job, templates, page_number):
            try:
                await upload_page(provider, target)
            except PipelineError as exc:
                logger.warning(
                    "upload worker stopped",
                    extra={
                        "request_id": request_id,
                        "stage": "upload",
                        "range": str(page_range),
                        "page_number": page_number,
                        "variant": target.variant.value,
                        "error": str(exc),
                    },
                )
                return WorkerResult(page_range=page_range, completed=completed, failed_page=page_number, error=str(exc))
            uploaded.append(target.remote_path)
        completed.append(page_number)
    return WorkerResult(page_range=page_range, completed=completed)


async def upload_all(
    provider: StorageProvider,
    job: ConversionJob,
    fields: Mapping[str, Sequence[str]],
    upload_workers: int | None = None,
    request_id: str | None = None,
    pages: Collection[int] | None = None,
) -> UploadReport:
    """Validate the remote templates, then upload every page's three variants.

    Raises ``ValidationFailure`` before any store call when a template field is
    missing, repeated or lacks the page placeholder. When ``pages`` is given,
    only those page numbers are uploaded; the others are skipped.
    """

    templates = validate_remote_templates(fields)
    page_set = None if pages is None else frozenset(pages)
    workers = settings.upload_workers if upload_workers is None else upload_workers
    ranges = plan_ranges(job.page_count, workers)
    report = UploadReport(page_count=job.page_count)

    started = time.perf_counter()
    logger.info(
        "upload phase started",
        extra={"request_id": request_id, "stage": "upload", "page_count": job.page_count, "ranges": [str(r) for r in ranges]},
    )
    report.workers = await join_workers(
        ranges,
        [
            upload_range(provider, job, templates, page_range, report.uploaded, request_id=request_id, pages=page_set)
            for page_range in ranges
        ],
    )
    logger.info(
        "upload phase finished",
        extra={
            "request_id": request_id,
            "stage": "upload",
            "uploaded_count": len(report.uploaded),
            "failed_workers": len(report.failures),
            "upload_ms": int((time.perf_counter() - started) * 1000),
        },
    )
    return report
