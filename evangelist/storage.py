"""Filesystem scratch space utilities."""

from __future__ import annotations

import shutil
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from evangelist.settings import settings


def ensure_dir(path: Path) -> Path:
    """Create directory if needed and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_dir(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)


def jobs_dir() -> Path:
    return settings.data_path / "jobs"


def allocate_job_dir() -> Path:
    """Create a fresh scratch directory that no other job shares."""
    return ensure_dir(jobs_dir() / uuid4().hex)


def page_template(job_dir: Path) -> str:
    return str(job_dir / "pages" / "page%d.jpg")


def save_upload_file(upload: UploadFile, destination: Path) -> None:
    """Persist uploaded file to destination path."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("wb") as buffer:
        shutil.copyfileobj(upload.file, buffer)
