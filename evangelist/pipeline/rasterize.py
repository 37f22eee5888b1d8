"""Rasterizer factory/dispatcher."""

from evangelist.raster.base import Rasterizer
from evangelist.raster.ghostscript import GhostscriptRasterizer
from evangelist.raster.pdf2image_backend import Pdf2ImageRasterizer
from evangelist.settings import settings


def get_rasterizer(name: str | None = None) -> Rasterizer:
    backend = (name or settings.rasterizer).lower()
    if backend == "ghostscript":
        return GhostscriptRasterizer(binary=settings.gs_binary, jpeg_quality=settings.jpeg_quality)
    if backend == "pdf2image":
        return Pdf2ImageRasterizer(jpeg_quality=settings.jpeg_quality)
    raise ValueError(f"Unknown rasterizer '{backend}'. Use one of: ghostscript, pdf2image")
