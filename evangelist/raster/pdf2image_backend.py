"""Optional poppler rasterizer via pdf2image."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from evangelist.errors import IOFailure
from evangelist.raster.base import Rasterizer, ensure_output, resize_jpeg_async


class Pdf2ImageRasterizer(Rasterizer):
    name = "pdf2image"

    def __init__(self, jpeg_quality: int = 90) -> None:
        try:
            from pdf2image import convert_from_path, pdfinfo_from_path  # type: ignore
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(
                "pdf2image is not installed. Install pdf2image and poppler for PDF support."
            ) from exc
        self._convert_from_path = convert_from_path
        self._pdfinfo_from_path = pdfinfo_from_path
        self.jpeg_quality = jpeg_quality

    def available(self) -> bool:
        return shutil.which("pdftoppm") is not None

    def _count_pages(self, source_path: Path) -> int:
        try:
            info = self._pdfinfo_from_path(str(source_path))
            return int(info["Pages"])
        except Exception as exc:  # noqa: BLE001
            raise IOFailure(f"Could not read page count of {source_path}: {exc}", path=str(source_path)) from exc

    def _rasterize_page(self, source_path: Path, page_number: int, output_path: Path, dpi: int) -> None:
        try:
            pages = self._convert_from_path(str(source_path), dpi=dpi, first_page=page_number, last_page=page_number)
        except Exception as exc:  # noqa: BLE001
            raise IOFailure(f"Could not render page {page_number} of {source_path}: {exc}", path=str(source_path)) from exc
        if not pages:
            raise IOFailure(f"Page {page_number} of {source_path} rendered no image", path=str(source_path))

        output_path.parent.mkdir(parents=True, exist_ok=True)
        page = pages[0]
        page.convert("RGB").save(output_path, format="JPEG", quality=self.jpeg_quality)
        page.close()
        ensure_output(output_path)

    async def count_pages(self, source_path: Path) -> int:
        return await asyncio.to_thread(self._count_pages, source_path)

    async def rasterize_page(self, source_path: Path, page_number: int, output_path: Path, dpi: int) -> None:
        await asyncio.to_thread(self._rasterize_page, source_path, page_number, output_path, dpi)

    async def resize(self, source_path: Path, max_width: int, max_height: int, output_path: Path) -> None:
        await resize_jpeg_async(source_path, max_width, max_height, output_path, self.jpeg_quality)
