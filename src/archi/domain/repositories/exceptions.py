"""
Exceptions raised by repository and storage implementations.
"""


class RepositoryError(Exception):
    """Base exception for archive repository failures."""
    pass


class RepositoryClosedError(RepositoryError):
    """Raised when a closed repository is used."""
    pass


class BlobStorageError(Exception):
    """Base exception for blob storage failures."""
    pass


class BlobStorageClosedError(BlobStorageError):
    """Raised when a closed blob storage is used."""
    pass
