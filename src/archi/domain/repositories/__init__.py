"""Repository and storage interfaces (ports) used by the application layer."""

from .archive_repository import (
    IArchiveFileRepository,
    IArchiveRepository,
    IArchiveTagRepository,
    IQueryableArchiveRepository,
    StoreCapabilities,
)
from .blob_storage import IBlobStorage
from .exceptions import (
    BlobStorageClosedError,
    BlobStorageError,
    RepositoryClosedError,
    RepositoryError,
)

__all__ = [
    "IArchiveRepository",
    "IArchiveFileRepository",
    "IArchiveTagRepository",
    "IQueryableArchiveRepository",
    "StoreCapabilities",
    "IBlobStorage",
    "RepositoryError",
    "RepositoryClosedError",
    "BlobStorageError",
    "BlobStorageClosedError",
]
