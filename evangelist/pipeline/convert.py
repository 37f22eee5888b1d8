"""Concurrent PDF-to-JPEG conversion phase."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from evangelist.errors import IOFailure
from evangelist.models import ConversionJob, ConversionReport, ImageVariant, PageRange, WorkerResult
from evangelist.pipeline.join import join_workers
from evangelist.pipeline.partition import plan_ranges
from evangelist.raster.base import Rasterizer
from evangelist.settings import settings

logger = logging.getLogger(__name__)


async def convert_page(
    rasterizer: Rasterizer,
    job: ConversionJob,
    page_number: int,
    dpi: int,
    small_source: ImageVariant = ImageVariant.NORMAL,
) -> None:
    """Render the large variant of one page, then derive normal and small from it."""

    large_path = job.local_path(page_number, ImageVariant.LARGE)
    normal_path = job.local_path(page_number, ImageVariant.NORMAL)
    small_path = job.local_path(page_number, ImageVariant.SMALL)

    await rasterizer.rasterize_page(job.source_path, page_number, large_path, dpi)

    normal_bound = ImageVariant.NORMAL.max_dimension
    await rasterizer.resize(large_path, normal_bound, normal_bound, normal_path)

    small_bound = ImageVariant.SMALL.max_dimension
    small_from = large_path if small_source is ImageVariant.LARGE else normal_path
    await rasterizer.resize(small_from, small_bound, small_bound, small_path)


async def convert_range(
    rasterizer: Rasterizer,
    job: ConversionJob,
    page_range: PageRange,
    dpi: int,
    small_source: ImageVariant = ImageVariant.NORMAL,
    request_id: str | None = None,
) -> WorkerResult:
    """Convert every page of ``page_range`` in order, stopping at the first failure."""

    completed: list[int] = []
    for page_number in page_range.pages():
        try:
            await convert_page(rasterizer, job, page_number, dpi, small_source)
        except (IOFailure, OSError) as exc:
            logger.warning(
                "convert worker stopped",
                extra={
                    "request_id": request_id,
                    "stage": "convert",
                    "range": str(page_range),
                    "page_number": page_number,
                    "error": str(exc),
                },
            )
            return WorkerResult(page_range=page_range, completed=completed, failed_page=page_number, error=str(exc))
        completed.append(page_number)
    return WorkerResult(page_range=page_range, completed=completed)


async def convert_document(
    rasterizer: Rasterizer,
    source_path: Path,
    jpeg_template: str,
    conversion_workers: int | None = None,
    dpi: int | None = None,
    small_source: ImageVariant | str | None = None,
    request_id: str | None = None,
) -> ConversionReport:
    """Count pages, fan the ranges out to conversion workers and wait for all of them.

    Page counting failures raise ``IOFailure``. Worker failures are collected in
    the returned report.
    """

    workers = settings.conversion_workers if conversion_workers is None else conversion_workers
    dpi = settings.raster_dpi if dpi is None else dpi
    small_variant = ImageVariant(settings.small_source if small_source is None else small_source)

    page_count = await rasterizer.count_pages(source_path)
    job = ConversionJob.create(source_path=source_path, jpeg_template=jpeg_template, page_count=page_count)
    ranges = plan_ranges(page_count, workers)

    started = time.perf_counter()
    logger.info(
        "convert phase started",
        extra={
            "request_id": request_id,
            "stage": "convert",
            "page_count": page_count,
            "ranges": [str(r) for r in ranges],
            "rasterizer": rasterizer.name,
        },
    )
    results = await join_workers(
        ranges,
        [convert_range(rasterizer, job, page_range, dpi, small_variant, request_id=request_id) for page_range in ranges],
    )
    report = ConversionReport(job=job, workers=results)
    logger.info(
        "convert phase finished",
        extra={
            "request_id": request_id,
            "stage": "convert",
            "page_count": page_count,
            "failed_workers": len(report.failures),
            "convert_ms": int((time.perf_counter() - started) * 1000),
        },
    )
    return report
