"""Split a page count into contiguous per-worker ranges."""

from __future__ import annotations

import math

from evangelist.models import PageRange


def plan_ranges(total: int, worker_count: int) -> list[PageRange]:
    """Return at most ``worker_count`` ranges covering ``[1, total]`` without gaps or overlaps.

    Every range holds ``ceil(total / worker_count)`` pages except possibly the
    last one, which is clamped to ``total``.
    """

    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}")
    if total <= 0:
        return []
    per_worker = math.ceil(total / worker_count)
    ranges: list[PageRange] = []
    for first in range(1, total + 1, per_worker):
        ranges.append(PageRange(first=first, last=min(first + per_worker - 1, total)))
    return ranges
