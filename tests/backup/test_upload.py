"""Tests for the S3 archive uploader."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from botocore.exceptions import EndpointConnectionError

from pos_recovery.backup.upload import S3Uploader
from pos_recovery.errors import UploadError


def mock_session(s3):
    session = MagicMock()
    session.client.return_value.__aenter__ = AsyncMock(return_value=s3)
    session.client.return_value.__aexit__ = AsyncMock(return_value=False)
    return session


@pytest.mark.asyncio
async def test_upload_under_tenant_prefix(tmp_path):
    archive = tmp_path / "backup-20240101-000000-000000.gz"
    archive.write_bytes(b"archive")
    s3 = MagicMock()
    s3.upload_file = AsyncMock()

    uploader = S3Uploader(bucket="pos-backups", endpoint_url="http://minio:9000", tenant="store-12")
    uploader.session = mock_session(s3)

    key = await uploader.upload(archive)

    assert key == "store-12/backup-20240101-000000-000000.gz"
    s3.upload_file.assert_awaited_once_with(str(archive), "pos-backups", key)
    assert uploader.session.client.call_args[1]["endpoint_url"] == "http://minio:9000"


@pytest.mark.asyncio
async def test_upload_failure(tmp_path):
    archive = tmp_path / "backup-20240101-000000-000000.gz"
    archive.write_bytes(b"archive")

    uploader = S3Uploader(bucket="pos-backups")
    with patch.object(S3Uploader, "_put", AsyncMock(side_effect=EndpointConnectionError(endpoint_url="http://minio:9000"))):
        with pytest.raises(UploadError, match="pos-backups"):
            await uploader.upload(archive)
