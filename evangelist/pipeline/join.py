"""Join barrier for a phase of range workers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence

from evangelist.models import PageRange, WorkerResult

logger = logging.getLogger(__name__)


async def join_workers(ranges: Sequence[PageRange], workers: Sequence[Awaitable[WorkerResult]]) -> list[WorkerResult]:
    """Run all workers concurrently and return once every one of them has terminated.

    A worker that raises instead of returning a result is reported as a failed
    range; its siblings keep running.
    """

    outcomes = await asyncio.gather(*workers, return_exceptions=True)
    results: list[WorkerResult] = []
    for page_range, outcome in zip(ranges, outcomes, strict=True):
        if isinstance(outcome, WorkerResult):
            results.append(outcome)
            continue
        if not isinstance(outcome, Exception):
            raise outcome
        logger.error("range worker crashed", exc_info=outcome, extra={"range": str(page_range)})
        results.append(
            WorkerResult(
                page_range=page_range,
                error=f"{type(outcome).__name__}: {outcome}",
            )
        )
    return results
