"""
Repository interfaces for archive persistence.

The base interface is mandatory for every archive store. File associations,
tag associations and querying are optional capabilities: a store opts in by
also implementing the matching interface, and reports what it supports
through ``capabilities()`` once, when it is wired into the application.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional

from ..entities.archive import Archive, ArchiveFilter
from ..entities.file import FileDescriptor
from ..entities.result import Maybe, Result


class IArchiveRepository(ABC):
    """
    Abstract repository interface for archive metadata.

    Every method takes a keyword-only ``cancel_event``; implementations check
    it on entry and raise ``asyncio.CancelledError`` if it is set.
    Archives a store hides (for example soft-deleted ones) are reported as
    absent, exactly like archives that never existed.
    """

    @abstractmethod
    async def find_by_id(
        self, archive_id: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[Archive]:
        """
        Retrieve an archive by its ID.

        Args:
            archive_id: String form of the archive ID

        Returns:
            Maybe containing the archive, or nothing if it is not visible

        Raises:
            RepositoryError: If the retrieval operation fails
        """
        pass

    @abstractmethod
    async def get_id(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        """Return the stable string form of the archive's identity."""
        pass

    @abstractmethod
    async def create(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Persist a new archive, including its staged associations.

        Returns:
            Result of the operation; store-specific failures are reported as errors

        Raises:
            RepositoryError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def update(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Persist the current in-memory state of an existing archive.

        Returns:
            Result of the operation; store-specific failures are reported as errors

        Raises:
            RepositoryError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def delete(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Delete an archive. Whether the record is physically removed is up to the store.

        Raises:
            RepositoryError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the resources held by the store. Calling it twice is a no-op."""
        pass

    def capabilities(self) -> "StoreCapabilities":
        """
        Report the optional capabilities of this store.

        Stores may override this to withhold a capability they implement.
        """
        return StoreCapabilities.detect(self)


class IArchiveFileRepository(ABC):
    """
    Optional capability: file associations.

    Reads reflect the persisted state. ``add_file`` and ``remove_file`` stage
    the change on the archive; it is persisted by the next ``update``.
    """

    @abstractmethod
    async def list_files(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> List[FileDescriptor]:
        """Return the descriptors of all files associated with the archive."""
        pass

    @abstractmethod
    async def find_file_by_name(
        self, archive: Archive, file_name: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[FileDescriptor]:
        """Return the descriptor of the named file, or nothing."""
        pass

    @abstractmethod
    async def add_file(
        self, archive: Archive, descriptor: FileDescriptor,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """Associate a file descriptor with the archive."""
        pass

    @abstractmethod
    async def remove_file(
        self, archive: Archive, descriptor: FileDescriptor,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """Remove the association of a file descriptor from the archive."""
        pass


class IArchiveTagRepository(ABC):
    """
    Optional capability: tag associations.

    Reads reflect the persisted state. ``add_tag`` and ``remove_tag`` stage
    the change on the archive; it is persisted by the next ``update``.
    """

    @abstractmethod
    async def list_tags(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> List[str]:
        """Return the names of all tags associated with the archive."""
        pass

    @abstractmethod
    async def has_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> bool:
        """Check whether the named tag is associated with the archive."""
        pass

    @abstractmethod
    async def add_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """Associate the named tag with the archive."""
        pass

    @abstractmethod
    async def remove_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """Remove the association of the named tag from the archive."""
        pass


class IQueryableArchiveRepository(ABC):
    """Optional capability: lazy, filterable access to the archive collection."""

    @abstractmethod
    def archives(
        self, filters: Optional[ArchiveFilter] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> AsyncIterator[Archive]:
        """
        Iterate over visible archives.

        Args:
            filters: Optional filtering and ordering; all archives oldest first if omitted

        Returns:
            Async iterator yielding archives one at a time
        """
        pass


@dataclass(frozen=True)
class StoreCapabilities:
    """Handles to the optional capabilities of a store, or None where unsupported."""
    files: Optional[IArchiveFileRepository] = None
    tags: Optional[IArchiveTagRepository] = None
    queryable: Optional[IQueryableArchiveRepository] = None

    @classmethod
    def detect(cls, store: IArchiveRepository) -> "StoreCapabilities":
        return cls(
            files=store if isinstance(store, IArchiveFileRepository) else None,
            tags=store if isinstance(store, IArchiveTagRepository) else None,
            queryable=store if isinstance(store, IQueryableArchiveRepository) else None,
        )

    @property
    def supports_files(self) -> bool:
        return self.files is not None

    @property
    def supports_tags(self) -> bool:
        return self.tags is not None

    @property
    def supports_queries(self) -> bool:
        return self.queryable is not None
