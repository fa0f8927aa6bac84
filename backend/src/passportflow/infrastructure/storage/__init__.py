from .s3_storage_adapter import S3StorageAdapter
from .storage_config import StorageConfig, load_storage_config, validate_storage_config

__all__ = ["S3StorageAdapter", "StorageConfig", "load_storage_config", "validate_storage_config"]
