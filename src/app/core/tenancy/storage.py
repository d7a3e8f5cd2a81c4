"""Per-tenant file storage.

Each tenant gets a namespace holding branding assets and user uploads.
Provisioning talks to the ``StorageBackend`` protocol. ``LocalStorage``
keeps namespaces as directories on the local filesystem and ``S3Storage``
keeps them as key prefixes in an S3 bucket. ``STORAGE_TYPE`` selects one.
"""

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from app.core.constants import STORAGE_SUBDIRECTORIES
from app.core.errors import ProvisioningError


if TYPE_CHECKING:
    from app.config import Settings


logger = structlog.get_logger()


class StorageBackend(Protocol):
    """Storage operations used during provisioning."""

    async def create_namespace(self, slug: str) -> None: ...

    async def write_asset(
        self, slug: str, filename: str, content: bytes, kind: str = "branding"
    ) -> str: ...


def _safe_filename(filename: str) -> str:
    name = Path(filename).name
    if not name or name in {".", ".."}:
        raise ProvisioningError(
            f"Invalid asset filename '{filename}'",
            error_code="invalid_asset",
        )
    return name


def _check_kind(kind: str) -> str:
    if kind not in STORAGE_SUBDIRECTORIES:
        raise ProvisioningError(
            f"Unknown storage area '{kind}'",
            error_code="invalid_asset",
            details={"allowed": list(STORAGE_SUBDIRECTORIES)},
        )
    return kind


class LocalStorage:
    """Filesystem storage rooted at ``base_path/{slug}``.

    Returned URLs are ``{public_base_url}/{slug}/{kind}/{filename}``.
    """

    def __init__(self, base_path: Path | str, public_base_url: str = "/storage") -> None:
        self.base_path = Path(base_path)
        self.public_base_url = public_base_url.rstrip("/")

    def _create_namespace(self, slug: str) -> None:
        root = self.base_path / slug
        for subdirectory in STORAGE_SUBDIRECTORIES:
            (root / subdirectory).mkdir(parents=True, exist_ok=True)

    async def create_namespace(self, slug: str) -> None:
        await asyncio.to_thread(self._create_namespace, slug)
        logger.info("tenant_storage_created", tenant_slug=slug, backend="local")

    async def write_asset(
        self,
        slug: str,
        filename: str,
        content: bytes,
        kind: str = "branding",
    ) -> str:
        name = _safe_filename(filename)
        target = self.base_path / slug / _check_kind(kind) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(target.write_bytes, content)
        return f"{self.public_base_url}/{slug}/{kind}/{name}"


class S3Storage:
    """S3 storage under ``s3://{bucket}/{prefix}/{slug}/``.

    The namespace is a set of ``.keep`` marker objects, one per storage
    area. Returned URLs are the bucket's virtual-hosted object URLs.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        prefix: str = "tenants",
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.prefix = prefix.strip("/")
        self.client = client or boto3.client("s3", region_name=region)

    def _key(self, slug: str, *parts: str) -> str:
        return "/".join(p for p in (self.prefix, slug, *parts) if p)

    async def _put(self, key: str, body: bytes) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object, Bucket=self.bucket, Key=key, Body=body
            )
        except (BotoCoreError, ClientError) as e:
            raise ProvisioningError(
                f"Failed to write s3://{self.bucket}/{key}",
                error_code="storage_error",
                details={"error": str(e)},
            ) from e

    async def create_namespace(self, slug: str) -> None:
        for subdirectory in STORAGE_SUBDIRECTORIES:
            await self._put(self._key(slug, subdirectory, ".keep"), b"")
        logger.info(
            "tenant_storage_created",
            tenant_slug=slug,
            backend="s3",
            bucket=self.bucket,
        )

    async def write_asset(
        self,
        slug: str,
        filename: str,
        content: bytes,
        kind: str = "branding",
    ) -> str:
        key = self._key(slug, _check_kind(kind), _safe_filename(filename))
        await self._put(key, content)
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


def create_storage(settings: "Settings") -> StorageBackend:
    """Build the storage backend selected by ``STORAGE_TYPE``."""
    if settings.storage_type == "s3":
        return S3Storage(
            bucket=settings.storage_s3_bucket,
            region=settings.storage_s3_region,
            prefix=settings.storage_s3_prefix,
        )
    return LocalStorage(settings.storage_local_path, settings.storage_public_base_url)
