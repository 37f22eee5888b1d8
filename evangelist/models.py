"""Data model for conversion jobs and their results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from evangelist.templates import resolve_template, with_suffix


class ImageVariant(str, Enum):
    SMALL = "small"
    NORMAL = "normal"
    LARGE = "large"

    @property
    def max_dimension(self) -> int | None:
        return _MAX_DIMENSIONS[self]

    @property
    def suffix(self) -> str:
        return "" if self is ImageVariant.NORMAL else f"-{self.value}"

    def __str__(self) -> str:
        return self.value


_MAX_DIMENSIONS: dict[ImageVariant, int | None] = {
    ImageVariant.SMALL: 300,
    ImageVariant.NORMAL: 800,
    ImageVariant.LARGE: None,
}

# per-page upload order
UPLOAD_ORDER = (ImageVariant.NORMAL, ImageVariant.SMALL, ImageVariant.LARGE)


@dataclass(frozen=True)
class PageRange:
    """Inclusive span of page numbers assigned to one worker."""

    first: int
    last: int

    def __post_init__(self) -> None:
        if self.first < 1 or self.last < self.first:
            raise ValueError(f"Invalid page range [{self.first}, {self.last}]")

    def pages(self) -> Iterator[int]:
        return iter(range(self.first, self.last + 1))

    def __len__(self) -> int:
        return self.last - self.first + 1

    def __str__(self) -> str:
        return f"[{self.first}, {self.last}]"


def _with_name_suffix(template: str, suffix: str) -> str:
    path = Path(template)
    return str(path.with_name(with_suffix(path.name, suffix)))


@dataclass(frozen=True)
class ConversionJob:
    source_path: Path
    jpeg_template: str
    small_template: str
    large_template: str
    page_count: int

    @classmethod
    def create(cls, source_path: Path, jpeg_template: str, page_count: int) -> "ConversionJob":
        return cls(
            source_path=source_path,
            jpeg_template=jpeg_template,
            small_template=_with_name_suffix(jpeg_template, ImageVariant.SMALL.suffix),
            large_template=_with_name_suffix(jpeg_template, ImageVariant.LARGE.suffix),
            page_count=page_count,
        )

    def template_for(self, variant: ImageVariant) -> str:
        if variant is ImageVariant.SMALL:
            return self.small_template
        if variant is ImageVariant.LARGE:
            return self.large_template
        return self.jpeg_template

    def local_path(self, page_number: int, variant: ImageVariant) -> Path:
        # only the file name carries the placeholder; directories are taken literally
        template = Path(self.template_for(variant))
        return template.with_name(resolve_template(template.name, page_number))


@dataclass(frozen=True)
class UploadTarget:
    page_number: int
    variant: ImageVariant
    local_path: Path
    remote_path: str


@dataclass(frozen=True)
class WorkerResult:
    """What one worker of a phase did with its page range."""

    page_range: PageRange
    completed: list[int] = field(default_factory=list)
    failed_page: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_dict(self) -> dict[str, object]:
        return {
            "first": self.page_range.first,
            "last": self.page_range.last,
            "completed": list(self.completed),
            "failed_page": self.failed_page,
            "error": self.error,
        }


@dataclass
class ConversionReport:
    job: ConversionJob
    workers: list[WorkerResult] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return self.job.page_count

    @property
    def ok(self) -> bool:
        return all(worker.ok for worker in self.workers)

    @property
    def failures(self) -> list[WorkerResult]:
        return [worker for worker in self.workers if not worker.ok]

    @property
    def converted_pages(self) -> list[int]:
        """Pages whose three variants were all written."""
        return sorted(page for worker in self.workers for page in worker.completed)


@dataclass
class UploadReport:
    page_count: int
    workers: list[WorkerResult] = field(default_factory=list)
    uploaded: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(worker.ok for worker in self.workers)

    @property
    def failures(self) -> list[WorkerResult]:
        return [worker for worker in self.workers if not worker.ok]
