"""Blob storage implementations."""

from .fsspec_blob_storage import FsspecBlobStorage

__all__ = ["FsspecBlobStorage"]
