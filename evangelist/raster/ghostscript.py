"""Ghostscript-backed rasterizer."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from evangelist.errors import IOFailure
from evangelist.raster.base import Rasterizer, ensure_output, resize_jpeg_async

logger = logging.getLogger(__name__)

_STDERR_LIMIT = 500


def _postscript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return f"({escaped})"


class GhostscriptRasterizer(Rasterizer):
    name = "ghostscript"

    def __init__(self, binary: str = "gs", jpeg_quality: int = 90) -> None:
        self.binary = binary
        self.jpeg_quality = jpeg_quality

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    async def _run(self, args: list[str]) -> bytes:
        logger.debug("ghostscript invocation", extra={"binary": self.binary, "args": args})
        try:
            process = await asyncio.create_subprocess_exec(
                self.binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise IOFailure(f"Could not start {self.binary}: {exc}") from exc

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[:_STDERR_LIMIT]
            raise IOFailure(f"{self.binary} exited with status {process.returncode}: {detail}")
        return stdout

    async def count_pages(self, source_path: Path) -> int:
        program = f"{_postscript_string(str(source_path))} (r) file runpdfbegin pdfpagecount = quit"
        output = await self._run(["-q", "-dNODISPLAY", "-dNOSAFER", "-c", program])
        text = output.decode("utf-8", errors="replace").strip()
        try:
            return int(text, 10)
        except ValueError as exc:
            raise IOFailure(f"Could not read page count of {source_path}: {text[:_STDERR_LIMIT]!r}", path=str(source_path)) from exc

    async def rasterize_page(self, source_path: Path, page_number: int, output_path: Path, dpi: int) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        await self._run(
            [
                "-dNOPAUSE",
                "-dBATCH",
                "-sDEVICE=jpeg",
                f"-dFirstPage={page_number}",
                f"-dLastPage={page_number}",
                f"-sOutputFile={output_path}",
                f"-dJPEGQ={self.jpeg_quality}",
                f"-r{dpi}",
                "-q",
                str(source_path),
            ]
        )
        ensure_output(output_path)

    async def resize(self, source_path: Path, max_width: int, max_height: int, output_path: Path) -> None:
        await resize_jpeg_async(source_path, max_width, max_height, output_path, self.jpeg_quality)
