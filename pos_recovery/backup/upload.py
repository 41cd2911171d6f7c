"""Optional upload of finished archives to S3-compatible object storage."""

from pathlib import Path
from typing import Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .._utils import logger
from ..errors import UploadError

_TRANSIENT = (BotoCoreError, ClientError, OSError)


class S3Uploader:
    """Upload archives under ``<tenant>/<file name>``."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: str = "us-east-1",
        tenant: str = "default",
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.region = region
        self.tenant = tenant
        self.session = aioboto3.Session()

    def object_key(self, archive: Path) -> str:
        return f"{self.tenant}/{archive.name}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(_TRANSIENT),
        reraise=True,
    )
    async def _put(self, archive: Path, key: str) -> None:
        async with self.session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            region_name=self.region,
        ) as s3:
            await s3.upload_file(str(archive), self.bucket, key)

    async def upload(self, archive: Path) -> str:
        """Upload one archive.

        Returns:
            The object key it was stored under
        """
        key = self.object_key(archive)
        try:
            await self._put(archive, key)
        except _TRANSIENT as e:
            raise UploadError(f"Upload of {archive.name} to s3://{self.bucket}/{key} failed: {e}") from e

        logger.info(f"Uploaded {archive.name} to s3://{self.bucket}/{key}")
        return key
