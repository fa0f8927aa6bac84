"""Blob store connection settings.

MinIO in development and AWS S3 in production differ only by
``S3_ENDPOINT_URL``; an empty endpoint selects the AWS regional endpoint.
"""

from dataclasses import dataclass
from typing import Optional

from ...config import Settings, get_settings


@dataclass(frozen=True)
class StorageConfig:
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """Read storage settings and validate them.

    Raises:
        ValueError: If a required value is missing or malformed
    """
    settings = settings or get_settings()
    config = StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    missing = [
        name
        for name in ("access_key", "secret_key", "bucket_name")
        if not getattr(config, name)
    ]
    if missing:
        raise ValueError(f"Storage settings missing: {', '.join(missing)}")

    if config.endpoint_url and not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(f"S3_ENDPOINT_URL must be an http(s) URL, got {config.endpoint_url!r}")

    if not config.endpoint_url and not config.region:
        raise ValueError("S3_REGION is required when S3_ENDPOINT_URL is not set")
