"""
Blob storage interface for archive file contents.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..entities.file import FileDescriptor, StoredFile
from ..entities.result import Maybe


class IBlobStorage(ABC):
    """
    Abstract interface for the backend holding file bytes.

    Files are addressed by name within an optional category. ``prefix``
    returns a handle scoped to a namespace, which is how each archive gets
    its own area of the storage.
    """

    @abstractmethod
    async def create_file(
        self, file: StoredFile, category: Optional[str] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> None:
        """
        Write a file, replacing any file with the same name and category.

        Raises:
            BlobStorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_file(
        self, descriptor: FileDescriptor, category: Optional[str] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[StoredFile]:
        """
        Read a file.

        Returns:
            Maybe containing the file with its content, or nothing if absent

        Raises:
            BlobStorageError: If the read fails for a reason other than absence
        """
        pass

    @abstractmethod
    async def delete_file(
        self, descriptor: FileDescriptor, category: Optional[str] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> bool:
        """
        Delete a file.

        Returns:
            True if the file was deleted, False if it did not exist
        """
        pass

    @abstractmethod
    def prefix(self, namespace: str) -> "IBlobStorage":
        """Return a storage handle scoped to ``namespace``."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the storage. Calling it twice is a no-op."""
        pass
