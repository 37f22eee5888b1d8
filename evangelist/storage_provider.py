"""Pluggable object storage providers for source documents and page images."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from evangelist.errors import RemoteFailure
from evangelist.settings import settings
from evangelist.storage import ensure_dir

logger = logging.getLogger(__name__)


class StorageProvider(Protocol):
    name: str

    async def fetch(self, key: str) -> bytes:
        """Return the bytes stored under ``key``."""

    async def store(self, key: str, data: bytes, content_type: str, public: bool = False) -> dict[str, str]:
        """Persist bytes and return storage metadata."""


class LocalDiskProvider:
    """Stores objects under data_path/objects for local development."""

    name = "local"

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = ensure_dir(base_dir)

    def _resolve(self, key: str) -> Path:
        clean_key = key.strip("/")
        destination = (self.base_dir / clean_key).resolve()
        if self.base_dir.resolve() not in destination.parents and destination != self.base_dir.resolve():
            raise RemoteFailure(f"Invalid storage key '{key}'", key=key)
        return destination

    async def fetch(self, key: str) -> bytes:
        source = self._resolve(key)
        try:
            return await asyncio.to_thread(source.read_bytes)
        except OSError as exc:
            raise RemoteFailure(f"Could not read object '{key}': {exc}", key=key) from exc

    async def store(self, key: str, data: bytes, content_type: str, public: bool = False) -> dict[str, str]:
        del content_type, public
        destination = self._resolve(key)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(destination.write_bytes, data)
        except OSError as exc:
            raise RemoteFailure(f"Could not write object '{key}': {exc}", key=key) from exc
        return {"key": key, "path": str(destination)}


class S3Provider:
    """S3-compatible object storage provider."""

    name = "s3"

    def __init__(
        self,
        bucket: str,
        access_key_id: str,
        secret_access_key: str,
        endpoint_url: str | None = None,
        region: str | None = None,
    ) -> None:
        self.bucket = bucket
        import boto3

        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    async def fetch(self, key: str) -> bytes:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            response = await asyncio.to_thread(self._client.get_object, Bucket=self.bucket, Key=key)
            body = response["Body"]
            return await asyncio.to_thread(body.read)
        except (BotoCoreError, ClientError) as exc:
            raise RemoteFailure(f"Could not fetch s3://{self.bucket}/{key}: {exc}", key=key) from exc

    async def store(self, key: str, data: bytes, content_type: str, public: bool = False) -> dict[str, str]:
        from botocore.exceptions import BotoCoreError, ClientError

        extra_args: dict[str, str] = {"ACL": "public-read"} if public else {}
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentLength=len(data),
                ContentType=content_type,
                **extra_args,
            )
        except (BotoCoreError, ClientError) as exc:
            raise RemoteFailure(f"Could not store s3://{self.bucket}/{key}: {exc}", key=key) from exc
        return {"key": key, "bucket": self.bucket}


_provider: StorageProvider | None = None


def _create_provider() -> StorageProvider:
    backend = settings.storage_backend.lower().strip()
    if backend == "s3":
        if not settings.s3_bucket or not settings.s3_access_key_id or not settings.s3_secret_access_key:
            raise RuntimeError("S3 storage backend requires S3_BUCKET, AWS_ACCESS_KEY_ID, and AWS_SECRET_ACCESS_KEY")
        logger.info("using s3 storage", extra={"bucket": settings.s3_bucket, "region": settings.s3_region})
        return S3Provider(
            bucket=settings.s3_bucket,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
        )
    return LocalDiskProvider(settings.data_path / "objects")


def get_storage_provider() -> StorageProvider:
    global _provider
    if _provider is None:
        _provider = _create_provider()
    return _provider


def reset_storage_provider() -> None:
    global _provider
    _provider = None
