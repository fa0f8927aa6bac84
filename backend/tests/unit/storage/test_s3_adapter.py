"""Unit tests for S3 Storage Adapter using moto

Covers put/delete/exists, signed URLs in both modes, bucket verification and
error translation to ``StorageError``.
"""

import pytest
from moto import mock_aws
import boto3

from passportflow.domain.documents.ports.blob_storage_port import UrlMode
from passportflow.domain.errors import StorageError
from passportflow.infrastructure.storage import (
    S3StorageAdapter,
    StorageConfig,
    validate_storage_config,
)


# Test constants
TEST_BUCKET = "test-passportflow-bucket"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"
TEST_KEY = "documents/applicant-1/nic-front-1700000000000"


def _adapter(bucket_name=TEST_BUCKET):
    return S3StorageAdapter(
        endpoint_url=None,  # AWS S3 (moto mocks this)
        access_key=TEST_ACCESS_KEY,
        secret_key=TEST_SECRET_KEY,
        bucket_name=bucket_name,
        region=TEST_REGION,
    )


@pytest.fixture
def s3_client():
    """Mock S3 environment with the test bucket created"""
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def storage_adapter(s3_client):
    return _adapter()


class TestS3AdapterInitialization:

    def test_adapter_creation_success(self, storage_adapter):
        assert storage_adapter.bucket_name == TEST_BUCKET
        assert storage_adapter.region == TEST_REGION

    def test_from_config(self, s3_client):
        config = StorageConfig(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name=TEST_BUCKET,
            region=TEST_REGION,
        )
        assert S3StorageAdapter.from_config(config).bucket_name == TEST_BUCKET

    def test_config_validation_rejects_blank_bucket(self):
        config = StorageConfig(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name="",
            region=TEST_REGION,
        )
        with pytest.raises(ValueError):
            validate_storage_config(config)


class TestPutAndDelete:

    @pytest.mark.asyncio
    async def test_put_stores_bytes_and_content_type(self, storage_adapter, s3_client):
        key = await storage_adapter.put(TEST_KEY, b"jpeg-bytes", "image/jpeg")

        assert key == TEST_KEY
        stored = s3_client.get_object(Bucket=TEST_BUCKET, Key=TEST_KEY)
        assert stored["Body"].read() == b"jpeg-bytes"
        assert stored["ContentType"] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_put_overwrites_same_key(self, storage_adapter, s3_client):
        await storage_adapter.put(TEST_KEY, b"first", "image/jpeg")
        await storage_adapter.put(TEST_KEY, b"second", "image/jpeg")

        stored = s3_client.get_object(Bucket=TEST_BUCKET, Key=TEST_KEY)
        assert stored["Body"].read() == b"second"

    @pytest.mark.asyncio
    async def test_exists(self, storage_adapter):
        assert await storage_adapter.exists(TEST_KEY) is False
        await storage_adapter.put(TEST_KEY, b"data", "image/jpeg")
        assert await storage_adapter.exists(TEST_KEY) is True

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, storage_adapter):
        await storage_adapter.put(TEST_KEY, b"data", "image/jpeg")

        await storage_adapter.delete(TEST_KEY)
        await storage_adapter.delete(TEST_KEY)

        assert await storage_adapter.exists(TEST_KEY) is False

    @pytest.mark.asyncio
    async def test_put_to_missing_bucket_raises_storage_error(self, s3_client):
        adapter = _adapter(bucket_name="no-such-bucket")
        with pytest.raises(StorageError, match="S3 upload failed"):
            await adapter.put(TEST_KEY, b"data", "image/jpeg")


class TestSignedUrls:

    @pytest.mark.asyncio
    async def test_read_url_names_the_object(self, storage_adapter):
        await storage_adapter.put(TEST_KEY, b"data", "image/jpeg")

        url = await storage_adapter.signed_url(TEST_KEY, UrlMode.READ, ttl_seconds=3600)

        assert TEST_BUCKET in url
        assert TEST_KEY in url

    @pytest.mark.asyncio
    async def test_write_url_differs_from_read_url(self, storage_adapter):
        read_url = await storage_adapter.signed_url(TEST_KEY, UrlMode.READ, ttl_seconds=3600)
        write_url = await storage_adapter.signed_url(TEST_KEY, UrlMode.WRITE, ttl_seconds=3600)

        assert TEST_KEY in write_url
        assert read_url != write_url


class TestBucketVerification:

    @pytest.mark.asyncio
    async def test_existing_bucket(self, storage_adapter):
        assert await storage_adapter.verify_bucket_exists() is True

    @pytest.mark.asyncio
    async def test_missing_bucket(self, s3_client):
        adapter = _adapter(bucket_name="no-such-bucket")
        with pytest.raises(StorageError, match="does not exist"):
            await adapter.verify_bucket_exists()
