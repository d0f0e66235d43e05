"""
Archive Application Service - Orchestrates the archive lifecycle.

This service coordinates the validation pipeline, the archive metadata
repository and the blob storage holding file contents. The repository and
the blob storage share no transaction, so multi-step operations are
sequenced here and partial failures are reported through the returned
Result instead of being hidden.
"""

import asyncio
import logging
import uuid
from typing import AsyncIterator, Iterable, Optional, Union

from ...domain.cancellation import raise_if_cancelled
from ...domain.entities.archive import Archive, ArchiveFilter
from ...domain.entities.file import FileDescriptor, StoredFile
from ...domain.entities.result import Maybe, Result
from ...domain.repositories.archive_repository import (
    IArchiveFileRepository,
    IArchiveRepository,
    IArchiveTagRepository,
    IQueryableArchiveRepository,
    StoreCapabilities,
)
from ...domain.repositories.blob_storage import IBlobStorage
from ..dtos import ArchiveDto, ArchiveListDto, PaginationInfo
from ..error_describer import ErrorDescriber
from ..exceptions import (
    ArchiveManagerClosedError,
    CapabilityUnsupportedError,
    MissingArgumentError,
)
from ..options import ArchiveOptions
from ..validators import IArchiveValidator, ValidationPipeline

logger = logging.getLogger(__name__)


def _require(value, name: str) -> None:
    if value is None:
        raise MissingArgumentError(name)


class ArchiveApplicationService:
    """
    Application service for archive management.

    Owns the archive repository and the blob storage for its whole lifetime
    and closes both when it is closed. Every public operation checks, in
    order, that the service is open, that required arguments are present,
    that the store supports the capability the operation needs, and that
    cancellation has not been requested, before touching either backend.

    Parameters
    ----------
    archive_repository : IArchiveRepository
        Metadata store for archives. Its optional capabilities (files, tags,
        queries) are read once, here.
    blob_storage : IBlobStorage
        Storage for file contents; each archive uses ``prefix(archive_id)``.
    options : ArchiveOptions, optional
        Storage and tag options. Defaults are used if not provided.
    validators : iterable of IArchiveValidator or ValidationPipeline, optional
        Validators run before every persisting operation.
    error_describer : ErrorDescriber, optional
        Source of the business errors returned in Results.

    Notes
    -----
    Tag uniqueness per archive is checked here with a read followed by a
    write. Two concurrent ``add_tag`` calls for the same tag can both pass
    the check; stores that need a hard guarantee must enforce it themselves
    (the SQLAlchemy store does).
    """

    def __init__(
        self,
        archive_repository: IArchiveRepository,
        blob_storage: IBlobStorage,
        options: Optional[ArchiveOptions] = None,
        validators: Optional[Union[ValidationPipeline, Iterable[IArchiveValidator]]] = None,
        error_describer: Optional[ErrorDescriber] = None,
    ):
        _require(archive_repository, "archive_repository")
        _require(blob_storage, "blob_storage")

        self._archive_repo = archive_repository
        self._blob_storage = blob_storage
        self._options = options or ArchiveOptions()
        if isinstance(validators, ValidationPipeline):
            self._validators = validators
        else:
            self._validators = ValidationPipeline(validators)
        self._errors = error_describer or ErrorDescriber()
        self._capabilities = archive_repository.capabilities()
        self._closed = False

        logger.debug(
            "Archive service initialized (files=%s, tags=%s, queries=%s)",
            self._capabilities.supports_files,
            self._capabilities.supports_tags,
            self._capabilities.supports_queries,
        )

    @property
    def options(self) -> ArchiveOptions:
        return self._options

    @property
    def validators(self) -> ValidationPipeline:
        return self._validators

    @property
    def error_describer(self) -> ErrorDescriber:
        return self._errors

    @property
    def capabilities(self) -> StoreCapabilities:
        return self._capabilities

    @property
    def supports_archive_files(self) -> bool:
        return self._capabilities.supports_files

    @property
    def supports_archive_tags(self) -> bool:
        return self._capabilities.supports_tags

    @property
    def supports_queryable_archives(self) -> bool:
        return self._capabilities.supports_queries

    @property
    def closed(self) -> bool:
        return self._closed

    # Archive lifecycle

    async def find_by_id(
        self, archive_id: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[Archive]:
        """
        Find an archive by its ID.

        Returns:
            Maybe containing the archive; nothing if it never existed or was deleted
        """
        self._ensure_open()
        _require(archive_id, "archive_id")
        raise_if_cancelled(cancel_event)

        return await self._archive_repo.find_by_id(archive_id, cancel_event=cancel_event)

    async def get_id(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        self._ensure_open()
        _require(archive, "archive")
        raise_if_cancelled(cancel_event)

        return await self._archive_repo.get_id(archive, cancel_event=cancel_event)

    async def create(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """Validate and create an archive."""
        self._ensure_open()
        _require(archive, "archive")
        raise_if_cancelled(cancel_event)

        result = await self._validate(archive)
        if not result.succeeded:
            logger.info("Archive %s failed validation: %s", archive.id, list(result.error_codes))
            return result

        result = await self._archive_repo.create(archive, cancel_event=cancel_event)
        if result.succeeded:
            logger.info("Created archive %s", archive.id)
        return result

    async def update(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """Validate and persist the current state of an archive."""
        self._ensure_open()
        _require(archive, "archive")
        raise_if_cancelled(cancel_event)

        return await self._persist(archive, cancel_event)

    async def delete(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Validate and delete an archive.

        Files already written to blob storage for the archive are left in
        place; removing them is up to the caller.
        """
        self._ensure_open()
        _require(archive, "archive")
        raise_if_cancelled(cancel_event)

        result = await self._validate(archive)
        if not result.succeeded:
            return result

        result = await self._archive_repo.delete(archive, cancel_event=cancel_event)
        if result.succeeded:
            logger.info("Deleted archive %s", archive.id)
        return result

    def archives(
        self, filters: Optional[ArchiveFilter] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> AsyncIterator[Archive]:
        """
        Iterate lazily over visible archives.

        Raises:
            CapabilityUnsupportedError: If the store is not queryable
        """
        self._ensure_open()
        store = self._query_store()
        raise_if_cancelled(cancel_event)

        return store.archives(filters, cancel_event=cancel_event)

    async def list_archives(
        self,
        filters: Optional[ArchiveFilter] = None,
        page: int = 1,
        page_size: int = 50,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ArchiveListDto:
        """Return one page of archives matching ``filters``."""
        pagination = PaginationInfo(page=page, page_size=page_size)
        archives = []
        total = 0
        async for archive in self.archives(filters, cancel_event=cancel_event):
            if pagination.offset <= total < pagination.offset + page_size:
                archives.append(ArchiveDto.from_entity(archive))
            total += 1

        pagination.total_count = total
        pagination.has_previous = page > 1
        pagination.has_next = pagination.offset + page_size < total
        return ArchiveListDto(archives=archives, pagination=pagination, filters_applied=filters)

    # Files

    def get_files(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> AsyncIterator[StoredFile]:
        """
        Iterate over the contents of the files associated with an archive.

        Descriptors are read from the repository first; contents are then
        fetched from blob storage one at a time. Descriptors whose content is
        missing from blob storage are skipped.

        Raises:
            CapabilityUnsupportedError: If the store does not support files
        """
        self._ensure_open()
        _require(archive, "archive")
        files = self._file_store()
        raise_if_cancelled(cancel_event)

        return self._iter_files(files, archive, cancel_event)

    async def get_file_by_name(
        self, archive: Archive, file_name: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[StoredFile]:
        """Return the content of the named file, or nothing if it is unknown or missing."""
        self._ensure_open()
        _require(archive, "archive")
        _require(file_name, "file_name")
        files = self._file_store()
        raise_if_cancelled(cancel_event)

        descriptor = await files.find_file_by_name(archive, file_name, cancel_event=cancel_event)
        if not descriptor.has_value:
            return Maybe.nothing()

        storage = await self._archive_storage(archive, cancel_event)
        return await storage.get_file(
            descriptor.value, self._options.storage.category, cancel_event=cancel_event
        )

    async def add_file(
        self, archive: Archive, file: StoredFile, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Store a file and associate it with an archive.

        The file is stored under a freshly generated name (keeping its
        extension if configured). The content is written to blob storage
        before the association is recorded. If recording or persisting the
        association fails, the written content is deleted again.
        """
        self._ensure_open()
        _require(archive, "archive")
        _require(file, "file")
        files = self._file_store()
        raise_if_cancelled(cancel_event)

        stored = file.rename(str(uuid.uuid4()), self._options.storage.keep_extension)
        descriptor = stored.to_descriptor()
        storage = await self._archive_storage(archive)
        await storage.create_file(stored, self._options.storage.category)
        logger.debug("Wrote %s for archive %s as %s", file.file_name, archive.id, stored.file_name)

        try:
            result = await files.add_file(archive, descriptor)
        except Exception:
            await self._discard_blob(storage, descriptor)
            raise
        if not result.succeeded:
            await self._discard_blob(storage, descriptor)
            return Result.failed(self._errors.failed_to_create_file(file.file_name), *result.errors)

        try:
            result = await self._persist(archive)
        except Exception:
            await self._rollback_added_file(files, storage, archive, descriptor)
            raise
        if not result.succeeded:
            await self._rollback_added_file(files, storage, archive, descriptor)
            return result

        logger.info("Added file %s to archive %s", stored.file_name, archive.id)
        return result

    async def remove_file(
        self, archive: Archive, descriptor: FileDescriptor,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Delete a file's content and remove its association from an archive.

        The content is deleted first. If removing or persisting the
        association then fails, the association is restored and
        FailedToRemoveFile is reported, but the content is already gone
        and is not restored.
        """
        self._ensure_open()
        _require(archive, "archive")
        _require(descriptor, "descriptor")
        files = self._file_store()
        raise_if_cancelled(cancel_event)

        storage = await self._archive_storage(archive)
        if not await storage.delete_file(descriptor, self._options.storage.category):
            logger.warning(
                "Content of %s was already missing from storage for archive %s",
                descriptor.file_name, archive.id,
            )

        result = await files.remove_file(archive, descriptor)
        if not result.succeeded:
            logger.warning(
                "Removed content of %s but not its association with archive %s",
                descriptor.file_name, archive.id,
            )
            return Result.failed(
                self._errors.failed_to_remove_file(descriptor.file_name), *result.errors
            )

        try:
            result = await self._persist(archive)
        except Exception:
            await files.add_file(archive, descriptor)
            raise
        if not result.succeeded:
            await files.add_file(archive, descriptor)
            logger.warning(
                "Removed content of %s but could not persist removing it from archive %s",
                descriptor.file_name, archive.id,
            )
            return Result.failed(
                self._errors.failed_to_remove_file(descriptor.file_name), *result.errors
            )

        logger.info("Removed file %s from archive %s", descriptor.file_name, archive.id)
        return result

    # Tags

    async def get_tags(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> list:
        """Return the names of the tags associated with an archive."""
        self._ensure_open()
        _require(archive, "archive")
        tags = self._tag_store()
        raise_if_cancelled(cancel_event)

        return await tags.list_tags(archive, cancel_event=cancel_event)

    async def has_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> bool:
        self._ensure_open()
        _require(archive, "archive")
        _require(tag, "tag")
        tags = self._tag_store()
        raise_if_cancelled(cancel_event)

        return await tags.has_tag(archive, tag, cancel_event=cancel_event)

    async def add_tag(
        self, archive: Archive, tag: Optional[str], *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Associate a tag with an archive, unless it is already associated.

        If persisting fails, the tag is unstaged again unless the caller had
        already staged it on the archive.

        Returns:
            Failed result with TagMustNotBeNullOrEmpty, TagInvalid or
            TagAlreadyExist, or the result of persisting the archive
        """
        self._ensure_open()
        _require(archive, "archive")
        tags = self._tag_store()
        raise_if_cancelled(cancel_event)

        if tag is None or not tag.strip():
            return Result.failed(self._errors.tag_must_not_be_null_or_empty())

        if not self._options.tags.is_allowed(tag):
            return Result.failed(self._errors.tag_invalid(tag))

        if await tags.has_tag(archive, tag):
            return Result.failed(self._errors.tag_already_exist(tag))

        staged = not archive.has_tag(tag)
        result = await tags.add_tag(archive, tag)
        if not result.succeeded:
            return result

        try:
            result = await self._persist(archive)
        except Exception:
            if staged:
                await tags.remove_tag(archive, tag)
            raise
        if not result.succeeded:
            if staged:
                await tags.remove_tag(archive, tag)
            return result

        logger.info("Tagged archive %s with %s", archive.id, tag)
        return result

    async def remove_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        """
        Remove a tag from an archive; fails with TagDoesNotExist if it is not associated.

        If persisting fails, the tag is staged on the archive again.
        """
        self._ensure_open()
        _require(archive, "archive")
        _require(tag, "tag")
        tags = self._tag_store()
        raise_if_cancelled(cancel_event)

        if not await tags.has_tag(archive, tag):
            return Result.failed(self._errors.tag_does_not_exist(tag))

        unstaged = archive.has_tag(tag)
        result = await tags.remove_tag(archive, tag)
        if not result.succeeded:
            return result

        try:
            result = await self._persist(archive)
        except Exception:
            if unstaged:
                await tags.add_tag(archive, tag)
            raise
        if not result.succeeded:
            if unstaged:
                await tags.add_tag(archive, tag)
            return result

        logger.info("Removed tag %s from archive %s", tag, archive.id)
        return result

    # Lifecycle

    async def close(self) -> None:
        """Close the repository and the blob storage. Further calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._archive_repo.close()
        finally:
            await self._blob_storage.close()
        logger.debug("Archive service closed")

    async def __aenter__(self) -> "ArchiveApplicationService":
        self._ensure_open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # Helpers

    def _ensure_open(self) -> None:
        if self._closed:
            raise ArchiveManagerClosedError(type(self).__name__)

    def _file_store(self) -> IArchiveFileRepository:
        if self._capabilities.files is None:
            raise CapabilityUnsupportedError("archive files", self._archive_repo)
        return self._capabilities.files

    def _tag_store(self) -> IArchiveTagRepository:
        if self._capabilities.tags is None:
            raise CapabilityUnsupportedError("archive tags", self._archive_repo)
        return self._capabilities.tags

    def _query_store(self) -> IQueryableArchiveRepository:
        if self._capabilities.queryable is None:
            raise CapabilityUnsupportedError("archive queries", self._archive_repo)
        return self._capabilities.queryable

    async def _validate(self, archive: Archive) -> Result:
        return await self._validators.validate(self, archive)

    async def _persist(
        self, archive: Archive, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        result = await self._validate(archive)
        if not result.succeeded:
            logger.info("Archive %s failed validation: %s", archive.id, list(result.error_codes))
            return result
        return await self._archive_repo.update(archive, cancel_event=cancel_event)

    async def _archive_storage(
        self, archive: Archive, cancel_event: Optional[asyncio.Event] = None
    ) -> IBlobStorage:
        archive_id = await self._archive_repo.get_id(archive, cancel_event=cancel_event)
        return self._blob_storage.prefix(archive_id)

    async def _iter_files(
        self, files: IArchiveFileRepository, archive: Archive,
        cancel_event: Optional[asyncio.Event]
    ) -> AsyncIterator[StoredFile]:
        descriptors = await files.list_files(archive, cancel_event=cancel_event)
        storage = await self._archive_storage(archive, cancel_event)
        for descriptor in descriptors:
            content = await storage.get_file(
                descriptor, self._options.storage.category, cancel_event=cancel_event
            )
            if not content.has_value:
                logger.debug("Skipping %s, content missing from storage", descriptor.file_name)
                continue
            yield content.value

    async def _discard_blob(self, storage: IBlobStorage, descriptor: FileDescriptor) -> None:
        if not await storage.delete_file(descriptor, self._options.storage.category):
            logger.warning("Could not discard stored content of %s", descriptor.file_name)

    async def _rollback_added_file(
        self, files: IArchiveFileRepository, storage: IBlobStorage,
        archive: Archive, descriptor: FileDescriptor
    ) -> None:
        await files.remove_file(archive, descriptor)
        await self._discard_blob(storage, descriptor)
