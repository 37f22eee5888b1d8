from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

pytest.importorskip("pdf2image")

from PIL import Image

from evangelist.errors import IOFailure
from evangelist.raster.pdf2image_backend import Pdf2ImageRasterizer


def test_count_pages_reads_pdfinfo(tmp_path: Path) -> None:
    rasterizer = Pdf2ImageRasterizer()
    rasterizer._pdfinfo_from_path = lambda path: {"Pages": 9, "Title": "exam"}

    assert asyncio.run(rasterizer.count_pages(tmp_path / "doc.pdf")) == 9


def test_count_pages_wraps_poppler_errors(tmp_path: Path) -> None:
    def broken(path):
        raise RuntimeError("Syntax Error: Couldn't read xref table")

    rasterizer = Pdf2ImageRasterizer()
    rasterizer._pdfinfo_from_path = broken

    with pytest.raises(IOFailure):
        asyncio.run(rasterizer.count_pages(tmp_path / "doc.pdf"))


def test_rasterize_page_renders_requested_page_as_jpeg(tmp_path: Path) -> None:
    requested: dict[str, object] = {}

    def fake_convert(path, dpi, first_page, last_page):
        requested.update(dpi=dpi, first_page=first_page, last_page=last_page)
        return [Image.new("RGB", (200, 280), color="white")]

    rasterizer = Pdf2ImageRasterizer(jpeg_quality=80)
    rasterizer._convert_from_path = fake_convert
    output = tmp_path / "pages" / "page3-large.jpg"

    asyncio.run(rasterizer.rasterize_page(tmp_path / "doc.pdf", 3, output, dpi=200))

    assert requested == {"dpi": 200, "first_page": 3, "last_page": 3}
    with Image.open(output) as image:
        assert image.format == "JPEG"
        assert image.size == (200, 280)


def test_rasterize_page_with_no_images_fails(tmp_path: Path) -> None:
    rasterizer = Pdf2ImageRasterizer()
    rasterizer._convert_from_path = lambda *args, **kwargs: []

    with pytest.raises(IOFailure):
        asyncio.run(rasterizer.rasterize_page(tmp_path / "doc.pdf", 1, tmp_path / "page1-large.jpg", dpi=300))
