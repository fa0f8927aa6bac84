from .blob_storage_port import BlobStoragePort, UrlMode

__all__ = ["BlobStoragePort", "UrlMode"]
