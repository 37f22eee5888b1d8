"""Error kinds raised by the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass


class PipelineError(Exception):
    """Base class for failures the HTTP layer knows how to report."""

    status_code = 500


@dataclass
class ValidationFailure(PipelineError):
    """Caller input is missing or malformed; raised before any work begins."""

    message: str
    field: str | None = None

    status_code = 400

    def __str__(self) -> str:
        return self.message


@dataclass
class IOFailure(PipelineError):
    """A local file or external program failed."""

    message: str
    path: str | None = None

    status_code = 500

    def __str__(self) -> str:
        return self.message


@dataclass
class RemoteFailure(PipelineError):
    """The object store rejected a read or a write."""

    message: str
    key: str | None = None

    status_code = 502

    def __str__(self) -> str:
        return self.message
