"""Rasterizer capability interfaces."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol

from PIL import Image

from evangelist.errors import IOFailure


class Rasterizer(Protocol):
    """Turns PDF pages into JPEG files and derives smaller copies."""

    name: str

    def available(self) -> bool:
        """Whether the backing program or library can be used on this host."""

    async def count_pages(self, source_path: Path) -> int:
        """Return the number of pages in the document."""

    async def rasterize_page(self, source_path: Path, page_number: int, output_path: Path, dpi: int) -> None:
        """Render one page of the document to a JPEG at ``output_path``."""

    async def resize(self, source_path: Path, max_width: int, max_height: int, output_path: Path) -> None:
        """Write a proportionally scaled copy of ``source_path`` bounded by ``max_width`` x ``max_height``."""


def resize_jpeg(source_path: Path, max_width: int, max_height: int, output_path: Path, jpeg_quality: int = 90) -> tuple[int, int]:
    """Scale an image down to fit the bounding box and save it as JPEG.

    Images already inside the box keep their size. Returns the output dimensions.
    """
    try:
        with Image.open(source_path) as source:
            image = source.convert("RGB")
            image.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            image.save(output_path, format="JPEG", quality=jpeg_quality)
            return image.width, image.height
    except OSError as exc:
        raise IOFailure(f"Could not resize {source_path} to {output_path}: {exc}", path=str(source_path)) from exc


async def resize_jpeg_async(source_path: Path, max_width: int, max_height: int, output_path: Path, jpeg_quality: int = 90) -> None:
    await asyncio.to_thread(resize_jpeg, source_path, max_width, max_height, output_path, jpeg_quality)


def ensure_output(output_path: Path) -> None:
    """Raise if a rendering step did not leave a non-empty file behind."""
    if not output_path.is_file() or output_path.stat().st_size == 0:
        raise IOFailure(f"Rasterizer produced no output at {output_path}", path=str(output_path))
