from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from evangelist.errors import IOFailure
from evangelist.pipeline.rasterize import get_rasterizer
from evangelist.raster import ghostscript
from evangelist.raster.ghostscript import GhostscriptRasterizer


class _FakeProcess:
    def __init__(self, returncode: int, stdout: bytes = b"", stderr: bytes = b"") -> None:
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self) -> tuple[bytes, bytes]:
        return self._stdout, self._stderr


def _patch_exec(monkeypatch, process: _FakeProcess | None = None, error: Exception | None = None, on_call=None) -> list[tuple]:
    calls: list[tuple] = []

    async def fake_exec(*args, **kwargs):
        calls.append(args)
        if error is not None:
            raise error
        if on_call is not None:
            on_call(args)
        return process

    monkeypatch.setattr(ghostscript.asyncio, "create_subprocess_exec", fake_exec)
    return calls


def test_count_pages_parses_trimmed_output(monkeypatch, tmp_path: Path) -> None:
    calls = _patch_exec(monkeypatch, _FakeProcess(0, stdout=b"12\n"))

    count = asyncio.run(GhostscriptRasterizer().count_pages(tmp_path / "doc.pdf"))

    assert count == 12
    args = calls[0]
    assert args[0] == "gs"
    assert "-dNODISPLAY" in args
    assert args[-1] == f"({tmp_path / 'doc.pdf'}) (r) file runpdfbegin pdfpagecount = quit"


def test_count_pages_escapes_parentheses_in_path(monkeypatch, tmp_path: Path) -> None:
    calls = _patch_exec(monkeypatch, _FakeProcess(0, stdout=b"1\n"))

    asyncio.run(GhostscriptRasterizer().count_pages(Path("/tmp/report (final).pdf")))

    assert calls[0][-1].startswith("(/tmp/report \\(final\\).pdf) (r) file")


def test_count_pages_rejects_non_numeric_output(monkeypatch, tmp_path: Path) -> None:
    _patch_exec(monkeypatch, _FakeProcess(0, stdout=b"Error: /undefinedfilename\n"))

    with pytest.raises(IOFailure):
        asyncio.run(GhostscriptRasterizer().count_pages(tmp_path / "doc.pdf"))


def test_nonzero_exit_becomes_io_failure_with_stderr(monkeypatch, tmp_path: Path) -> None:
    _patch_exec(monkeypatch, _FakeProcess(1, stderr=b"Unrecoverable error"))

    with pytest.raises(IOFailure) as excinfo:
        asyncio.run(GhostscriptRasterizer().count_pages(tmp_path / "doc.pdf"))

    assert "status 1" in str(excinfo.value)
    assert "Unrecoverable error" in str(excinfo.value)


def test_missing_binary_becomes_io_failure(monkeypatch, tmp_path: Path) -> None:
    _patch_exec(monkeypatch, error=FileNotFoundError("gs"))

    with pytest.raises(IOFailure):
        asyncio.run(GhostscriptRasterizer().count_pages(tmp_path / "doc.pdf"))


def test_rasterize_page_restricts_to_single_page(monkeypatch, tmp_path: Path) -> None:
    output = tmp_path / "pages" / "page4-large.jpg"
    calls = _patch_exec(monkeypatch, _FakeProcess(0), on_call=lambda args: output.write_bytes(b"\xff\xd8jpeg"))

    asyncio.run(GhostscriptRasterizer(jpeg_quality=85).rasterize_page(tmp_path / "doc.pdf", 4, output, dpi=200))

    args = calls[0]
    assert "-sDEVICE=jpeg" in args
    assert "-dFirstPage=4" in args
    assert "-dLastPage=4" in args
    assert f"-sOutputFile={output}" in args
    assert "-dJPEGQ=85" in args
    assert "-r200" in args
    assert args[-1] == str(tmp_path / "doc.pdf")


def test_rasterize_page_without_output_file_fails(monkeypatch, tmp_path: Path) -> None:
    _patch_exec(monkeypatch, _FakeProcess(0))

    with pytest.raises(IOFailure):
        asyncio.run(GhostscriptRasterizer().rasterize_page(tmp_path / "doc.pdf", 1, tmp_path / "page1-large.jpg", dpi=300))


def test_get_rasterizer_dispatches_by_name(monkeypatch) -> None:
    from evangelist.settings import settings

    monkeypatch.setattr(settings, "gs_binary", "/opt/gs/bin/gs")

    rasterizer = get_rasterizer("ghostscript")

    assert isinstance(rasterizer, GhostscriptRasterizer)
    assert rasterizer.binary == "/opt/gs/bin/gs"
    with pytest.raises(ValueError):
        get_rasterizer("imagemagick")
