"""Tests for tenant storage backends."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from app.core.constants import STORAGE_SUBDIRECTORIES
from app.core.errors import ProvisioningError
from app.core.tenancy.storage import LocalStorage, S3Storage, create_storage


class TestLocalStorage:
    """Tests for LocalStorage."""

    @pytest.mark.asyncio
    async def test_create_namespace(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path)

        await storage.create_namespace("acme")

        for subdirectory in STORAGE_SUBDIRECTORIES:
            assert (tmp_path / "acme" / subdirectory).is_dir()

    @pytest.mark.asyncio
    async def test_create_namespace_is_idempotent(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path)

        await storage.create_namespace("acme")
        await storage.create_namespace("acme")

        assert (tmp_path / "acme" / "branding").is_dir()

    @pytest.mark.asyncio
    async def test_write_asset(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path, public_base_url="/files/")

        url = await storage.write_asset("acme", "logo.png", b"\x89PNG")

        assert url == "/files/acme/branding/logo.png"
        assert (tmp_path / "acme" / "branding" / "logo.png").read_bytes() == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_write_asset_strips_directories(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path)

        url = await storage.write_asset("acme", "../../etc/logo.png", b"x")

        assert url.endswith("/acme/branding/logo.png")
        assert not (tmp_path.parent / "etc").exists()

    @pytest.mark.asyncio
    async def test_write_asset_unknown_area(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path)

        with pytest.raises(ProvisioningError) as exc_info:
            await storage.write_asset("acme", "logo.png", b"x", kind="secrets")

        assert exc_info.value.error_code == "invalid_asset"


class TestS3Storage:
    """Tests for S3Storage with a stubbed client."""

    @pytest.fixture
    def client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def storage(self, client: MagicMock) -> S3Storage:
        return S3Storage("assets", "eu-central-1", prefix="/tenants/", client=client)

    @pytest.mark.asyncio
    async def test_create_namespace_writes_markers(
        self, storage: S3Storage, client: MagicMock
    ) -> None:
        await storage.create_namespace("acme")

        keys = [c.kwargs["Key"] for c in client.put_object.call_args_list]
        assert keys == [f"tenants/acme/{sub}/.keep" for sub in STORAGE_SUBDIRECTORIES]
        assert all(c.kwargs["Bucket"] == "assets" for c in client.put_object.call_args_list)

    @pytest.mark.asyncio
    async def test_write_asset(self, storage: S3Storage, client: MagicMock) -> None:
        url = await storage.write_asset("acme", "../logo.png", b"\x89PNG")

        client.put_object.assert_called_once_with(
            Bucket="assets", Key="tenants/acme/branding/logo.png", Body=b"\x89PNG"
        )
        assert url == (
            "https://assets.s3.eu-central-1.amazonaws.com/tenants/acme/branding/logo.png"
        )

    @pytest.mark.asyncio
    async def test_client_error_becomes_storage_error(
        self, storage: S3Storage, client: MagicMock
    ) -> None:
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )

        with pytest.raises(ProvisioningError) as exc_info:
            await storage.create_namespace("acme")

        assert exc_info.value.error_code == "storage_error"


class TestCreateStorage:
    """Tests for backend selection."""

    def test_local_by_default(self, settings) -> None:
        assert isinstance(create_storage(settings), LocalStorage)

    def test_s3_when_selected(self, settings) -> None:
        settings.storage_type = "s3"
        settings.storage_s3_bucket = "assets"
        settings.storage_s3_region = "eu-central-1"

        with patch("app.core.tenancy.storage.boto3") as boto3:
            storage = create_storage(settings)

        assert isinstance(storage, S3Storage)
        assert storage.bucket == "assets"
        assert storage.prefix == "tenants"
        boto3.client.assert_called_once_with("s3", region_name="eu-central-1")
