"""boto3 implementation of ``BlobStoragePort`` for AWS S3 and MinIO.

Keys are chosen by ``DocumentAttachmentManager``: ``put`` overwrites and
``delete`` of an absent key succeeds. Every botocore failure surfaces as the
domain ``StorageError``; retries are the caller's business.
"""

import logging
from typing import Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ...domain.documents.ports.blob_storage_port import BlobStoragePort, UrlMode
from ...domain.errors import StorageError
from .storage_config import StorageConfig

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = frozenset({"404", "NoSuchKey", "NotFound"})

PRESIGN_OPERATIONS = {
    UrlMode.READ: "get_object",
    UrlMode.WRITE: "put_object",
}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


def _translate(operation: str, key: str, error: Union[ClientError, BotoCoreError]) -> StorageError:
    detail = _error_code(error) if isinstance(error, ClientError) else str(error)
    logger.error(f"S3 {operation} failed: key={key}, error={detail}", extra={"key": key, "s3_error": detail})
    return StorageError(f"S3 {operation} failed for {key}: {detail}")


class S3StorageAdapter(BlobStoragePort):
    """Document blob store on one S3-compatible bucket.

    Example:
        storage = S3StorageAdapter.from_config(load_storage_config())
        key = await storage.put("documents/u1/nic-front-1700000000000", data, "image/jpeg")
        url = await storage.signed_url(key, UrlMode.READ, ttl_seconds=604800)
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        """
        Args:
            endpoint_url: MinIO URL, or None to use the AWS regional endpoint

        Raises:
            StorageError: If the boto3 client cannot be created
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except (NoCredentialsError, BotoCoreError, ValueError) as e:
            raise StorageError(f"Cannot create S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        logger.info(f"S3 document store ready: bucket={bucket_name}, endpoint={endpoint_url or 'aws'}")

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3StorageAdapter":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise _translate("upload", key, e)
        logger.info(f"Stored blob {key} ({len(data)} bytes)", extra={"key": key, "size": len(data)})
        return key

    async def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                logger.debug(f"Blob {key} already absent")
                return
            raise _translate("delete", key, e)
        except BotoCoreError as e:
            raise _translate("delete", key, e)
        logger.info(f"Deleted blob {key}", extra={"key": key})

    async def signed_url(self, key: str, mode: UrlMode, ttl_seconds: int) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                PRESIGN_OPERATIONS[mode],
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate("presign", key, e)

    async def exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                return False
            raise _translate("head", key, e)
        except BotoCoreError as e:
            raise _translate("head", key, e)
        return True

    async def verify_bucket_exists(self) -> bool:
        """Fail fast at startup when the bucket is missing or unreachable.

        Raises:
            StorageError: If the bucket does not exist or cannot be reached
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                raise StorageError(f"Bucket '{self.bucket_name}' does not exist; create it or set S3_BUCKET_NAME")
            raise _translate("head_bucket", self.bucket_name, e)
        except BotoCoreError as e:
            raise _translate("head_bucket", self.bucket_name, e)
        return True
