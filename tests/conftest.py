from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from PIL import Image

from evangelist.errors import IOFailure, RemoteFailure
from evangelist.raster.base import resize_jpeg


class FakeRasterizer:
    """In-process stand-in for Ghostscript that draws blank pages."""

    name = "fake"

    def __init__(self, page_count: int = 3, fail_pages: tuple[int, ...] = (), fail_count: bool = False, size: tuple[int, int] = (1240, 1754)) -> None:
        self.page_count = page_count
        self.fail_pages = set(fail_pages)
        self.fail_count = fail_count
        self.size = size
        self.calls: list[tuple] = []

    def available(self) -> bool:
        return True

    async def count_pages(self, source_path: Path) -> int:
        self.calls.append(("count", source_path))
        if self.fail_count:
            raise IOFailure(f"Could not read page count of {source_path}", path=str(source_path))
        return self.page_count

    async def rasterize_page(self, source_path: Path, page_number: int, output_path: Path, dpi: int) -> None:
        self.calls.append(("rasterize", page_number, dpi))
        if page_number in self.fail_pages:
            raise IOFailure(f"gs exited with status 1 on page {page_number}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", self.size, color="white").save(output_path, format="JPEG")

    async def resize(self, source_path: Path, max_width: int, max_height: int, output_path: Path) -> None:
        self.calls.append(("resize", source_path.name, max_width, max_height, output_path.name))
        resize_jpeg(source_path, max_width, max_height, output_path)


class MemoryProvider:
    """Object store that keeps everything in a dict."""

    name = "memory"

    def __init__(self, objects: dict[str, bytes] | None = None, fail_keys: tuple[str, ...] = ()) -> None:
        self.objects = dict(objects or {})
        self.fail_keys = set(fail_keys)
        self.stored: dict[str, tuple[bytes, str, bool]] = {}
        self.store_calls: list[str] = []

    async def fetch(self, key: str) -> bytes:
        if key not in self.objects:
            raise RemoteFailure(f"Could not fetch '{key}': NoSuchKey", key=key)
        return self.objects[key]

    async def store(self, key: str, data: bytes, content_type: str, public: bool = False) -> dict[str, str]:
        self.store_calls.append(key)
        if key in self.fail_keys:
            raise RemoteFailure(f"Could not store '{key}': AccessDenied", key=key)
        self.stored[key] = (data, content_type, public)
        return {"key": key}


@pytest.fixture
def fake_rasterizer_cls() -> type[FakeRasterizer]:
    return FakeRasterizer


@pytest.fixture
def memory_provider_cls() -> type[MemoryProvider]:
    return MemoryProvider


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path: Path, monkeypatch) -> None:
    from evangelist.settings import settings
    from evangelist.storage_provider import reset_storage_provider

    monkeypatch.setattr(settings, "data_dir", str(tmp_path / "data"))
    reset_storage_provider()
    yield
    reset_storage_provider()
