"""Blob Storage Port - Domain interface for S3-compatible storage.

This port defines the contract for storing, deleting and signing document
blobs. Adapters implement it for S3, MinIO, or an in-memory store in tests.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from enum import Enum


class UrlMode(str, Enum):
    """Operation a signed URL grants."""
    READ = "read"
    WRITE = "write"


class BlobStoragePort(ABC):
    """Port interface for blob storage operations.

    Key Design Principles:
    - Keys are chosen by the caller; ``put`` and ``delete`` are idempotent by key
    - Failures are raised as ``passportflow.domain.errors.StorageError``
    - Retrieval is only ever handed out as time-limited signed URLs

    Example Usage:
        storage = S3StorageAdapter(...)

        key = await storage.put("documents/u1/nic-front-1700000000000", data, "image/jpeg")
        url = await storage.signed_url(key, UrlMode.READ, ttl_seconds=3600)
        await storage.delete(key)
    """

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store bytes under ``key``, overwriting any existing blob.

        Returns:
            str: The storage key

        Raises:
            StorageError: If upload fails or storage is unavailable
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the blob stored under ``key``.

        Deleting a key that does not exist is not an error.

        Raises:
            StorageError: If deletion fails
        """

    @abstractmethod
    async def signed_url(self, key: str, mode: UrlMode, ttl_seconds: int) -> str:
        """Generate a time-limited URL for reading or writing ``key``.

        Raises:
            StorageError: If URL generation fails
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a blob exists under ``key``."""
