"""
SQLAlchemy-based archive repository implementation.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...application.error_describer import ErrorDescriber
from ...domain.cancellation import raise_if_cancelled
from ...domain.entities.archive import (
    Archive,
    ArchiveFile,
    ArchiveFilter,
    ArchiveTag,
    normalize_archive_id,
)
from ...domain.entities.file import FileDescriptor
from ...domain.entities.result import ArchiError, Maybe, Result
from ...domain.entities.tag import Tag
from ...domain.repositories.archive_repository import (
    IArchiveFileRepository,
    IArchiveRepository,
    IArchiveTagRepository,
    IQueryableArchiveRepository,
)
from ...domain.repositories.exceptions import RepositoryClosedError, RepositoryError
from ..database.config import DatabaseManager
from ..database.models import (
    ArchiveFileModel,
    ArchiveModel,
    ArchiveTagModel,
    FileModel,
    TagModel,
)

logger = logging.getLogger(__name__)

DUPLICATE_ARCHIVE = "DuplicateArchive"
DUPLICATE_TAG = "DuplicateTag"
ARCHIVE_NOT_FOUND = "ArchiveNotFound"
FILE_NOT_ASSOCIATED = "FileNotAssociated"
CONCURRENT_UPDATE = "ConcurrentUpdate"


def _visible():
    """Predicate hiding soft-deleted archives."""
    return ArchiveModel.is_deleted.is_(False)


def _update_conflict(archive_id: str, error: IntegrityError) -> ArchiError:
    """Describe a constraint violation raised while updating an archive."""
    if "tags" in str(error.orig):
        return ArchiError(
            code=DUPLICATE_TAG,
            description=f"A tag of archive '{archive_id}' was stored concurrently.",
        )
    return ArchiError(
        code=CONCURRENT_UPDATE,
        description=f"Archive '{archive_id}' was modified concurrently.",
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAlchemyArchiveRepository(
    IArchiveRepository,
    IArchiveFileRepository,
    IArchiveTagRepository,
    IQueryableArchiveRepository,
):
    """
    SQLAlchemy-based implementation of the archive repository.

    Supports every optional capability. Deleted archives are kept as rows
    flagged ``is_deleted`` and filtered out of every read. Tags are stored
    once per name and shared between archives; the association tables make
    a duplicate file or tag on the same archive a constraint violation,
    which is reported as a failed Result rather than raised.
    """

    def __init__(
        self,
        database: DatabaseManager,
        error_describer: Optional[ErrorDescriber] = None,
        owns_database: bool = True,
        batch_size: int = 100,
    ):
        """
        Initialize the repository.

        Args:
            database: Database manager providing sessions
            error_describer: Source of catalog errors reported by the store
            owns_database: If True, closing the repository closes the database manager
            batch_size: Number of archives fetched per round trip when iterating
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._database = database
        self._errors = error_describer or ErrorDescriber()
        self._owns_database = owns_database
        self._batch_size = batch_size
        self._closed = False

    # Base capability

    async def find_by_id(
        self, archive_id: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[Archive]:
        self._begin(cancel_event)
        try:
            archive_id = normalize_archive_id(archive_id)
        except ValueError:
            logger.debug("Malformed archive ID %r treated as absent", archive_id)
            return Maybe.nothing()

        async with self._database.get_session() as session:
            try:
                model = await self._load(session, archive_id)
            except SQLAlchemyError as e:
                raise RepositoryError(f"Failed to retrieve archive '{archive_id}': {e}") from e

            if model is None:
                return Maybe.nothing()
            return Maybe.just(self._model_to_entity(model))

    async def get_id(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        self._begin(cancel_event)
        return archive.id

    async def create(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)

        async with self._database.get_session() as session:
            try:
                if await session.get(ArchiveModel, archive.id) is not None:
                    return Result.failed(self._duplicate_archive(archive))

                model = ArchiveModel(
                    id=archive.id,
                    description=archive.description,
                    created=_as_utc(archive.created),
                    is_deleted=False,
                    files=[],
                    tags=[],
                )
                session.add(model)
                await self._sync_files(session, model, archive)
                await self._sync_tags(session, model, archive)
                await session.commit()

            except IntegrityError as e:
                await session.rollback()
                logger.warning("Constraint violation creating archive %s: %s", archive.id, e.orig)
                return Result.failed(self._duplicate_archive(archive))
            except SQLAlchemyError as e:
                await session.rollback()
                raise RepositoryError(f"Failed to create archive '{archive.id}': {e}") from e

        logger.debug("Inserted archive %s", archive.id)
        return Result.success()

    async def update(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)

        async with self._database.get_session() as session:
            try:
                model = await self._load(session, archive.id)
                if model is None:
                    return Result.failed(self._not_found(archive))

                # created is fixed at insert time
                model.description = archive.description
                await self._sync_files(session, model, archive)
                await self._sync_tags(session, model, archive)
                await session.commit()

            except IntegrityError as e:
                await session.rollback()
                logger.warning("Constraint violation updating archive %s: %s", archive.id, e.orig)
                return Result.failed(_update_conflict(archive.id, e))
            except SQLAlchemyError as e:
                await session.rollback()
                raise RepositoryError(f"Failed to update archive '{archive.id}': {e}") from e

        logger.debug("Updated archive %s", archive.id)
        return Result.success()

    async def delete(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)

        async with self._database.get_session() as session:
            try:
                model = await self._load(session, archive.id)
                if model is None:
                    return Result.failed(self._not_found(archive))

                model.is_deleted = True
                await session.commit()

            except SQLAlchemyError as e:
                await session.rollback()
                raise RepositoryError(f"Failed to delete archive '{archive.id}': {e}") from e

        logger.debug("Soft-deleted archive %s", archive.id)
        return Result.success()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_database:
            await self._database.close()

    # File capability

    async def list_files(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> List[FileDescriptor]:
        self._begin(cancel_event)

        stmt = (
            select(FileModel)
            .join(ArchiveFileModel, ArchiveFileModel.file_id == FileModel.id)
            .join(ArchiveModel, ArchiveModel.id == ArchiveFileModel.archive_id)
            .where(ArchiveModel.id == archive.id, _visible())
            .order_by(FileModel.file_name)
        )
        async with self._database.get_session() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise RepositoryError(f"Failed to list files of archive '{archive.id}': {e}") from e
            return [self._file_to_descriptor(model) for model in result.scalars().all()]

    async def find_file_by_name(
        self, archive: Archive, file_name: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[FileDescriptor]:
        self._begin(cancel_event)

        stmt = (
            select(FileModel)
            .join(ArchiveFileModel, ArchiveFileModel.file_id == FileModel.id)
            .join(ArchiveModel, ArchiveModel.id == ArchiveFileModel.archive_id)
            .where(ArchiveModel.id == archive.id, _visible(), FileModel.file_name == file_name)
            .limit(1)
        )
        async with self._database.get_session() as session:
            try:
                model = (await session.execute(stmt)).scalar_one_or_none()
            except SQLAlchemyError as e:
                raise RepositoryError(f"Failed to find file '{file_name}': {e}") from e
            if model is None:
                return Maybe.nothing()
            return Maybe.just(self._file_to_descriptor(model))

    async def add_file(
        self, archive: Archive, descriptor: FileDescriptor,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)
        if not any(a.file_id == descriptor.id for a in archive.files):
            archive.add_file(descriptor)
        return Result.success()

    async def remove_file(
        self, archive: Archive, descriptor: FileDescriptor,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)
        if not archive.remove_file(descriptor.file_name):
            return Result.failed(ArchiError(
                code=FILE_NOT_ASSOCIATED,
                description=f"File '{descriptor.file_name}' is not associated with the archive.",
            ))
        return Result.success()

    # Tag capability

    async def list_tags(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> List[str]:
        self._begin(cancel_event)

        stmt = (
            select(TagModel.name)
            .join(ArchiveTagModel, ArchiveTagModel.tag_id == TagModel.id)
            .join(ArchiveModel, ArchiveModel.id == ArchiveTagModel.archive_id)
            .where(ArchiveModel.id == archive.id, _visible())
            .order_by(TagModel.name)
        )
        async with self._database.get_session() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise RepositoryError(f"Failed to list tags of archive '{archive.id}': {e}") from e
            return list(result.scalars().all())

    async def has_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> bool:
        self._begin(cancel_event)

        stmt = (
            select(ArchiveTagModel.tag_id)
            .join(TagModel, TagModel.id == ArchiveTagModel.tag_id)
            .join(ArchiveModel, ArchiveModel.id == ArchiveTagModel.archive_id)
            .where(ArchiveModel.id == archive.id, _visible(), TagModel.name == tag)
            .limit(1)
        )
        async with self._database.get_session() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise RepositoryError(f"Failed to check tag '{tag}': {e}") from e
            return result.scalar_one_or_none() is not None

    async def add_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)
        if tag is None or not tag.strip():
            return Result.failed(self._errors.tag_must_not_be_null_or_empty())
        if not archive.has_tag(tag):
            archive.add_tag(Tag(name=tag))
        return Result.success()

    async def remove_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)
        archive.remove_tag(tag)
        return Result.success()

    # Queryable capability

    def archives(
        self, filters: Optional[ArchiveFilter] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> AsyncIterator[Archive]:
        self._begin(cancel_event)
        return self._iter_archives(filters or ArchiveFilter(), cancel_event)

    async def _iter_archives(
        self, filters: ArchiveFilter, cancel_event: Optional[asyncio.Event]
    ) -> AsyncIterator[Archive]:
        stmt = select(ArchiveModel).where(_visible())

        if filters.created_after is not None:
            stmt = stmt.where(ArchiveModel.created >= _as_utc(filters.created_after))
        if filters.created_before is not None:
            stmt = stmt.where(ArchiveModel.created <= _as_utc(filters.created_before))
        if filters.tags:
            conditions = [
                ArchiveModel.tags.any(ArchiveTagModel.tag.has(TagModel.name == name))
                for name in sorted(filters.tags)
            ]
            stmt = stmt.where(and_(*conditions) if filters.match_all_tags else or_(*conditions))

        if filters.newest_first:
            stmt = stmt.order_by(ArchiveModel.created.desc(), ArchiveModel.id.desc())
        else:
            stmt = stmt.order_by(ArchiveModel.created.asc(), ArchiveModel.id.asc())

        offset = 0
        while True:
            raise_if_cancelled(cancel_event)
            async with self._database.get_session() as session:
                try:
                    result = await session.execute(stmt.offset(offset).limit(self._batch_size))
                except SQLAlchemyError as e:
                    raise RepositoryError(f"Failed to query archives: {e}") from e
                batch = [self._model_to_entity(model) for model in result.scalars().all()]

            for archive in batch:
                yield archive
            if len(batch) < self._batch_size:
                return
            offset += self._batch_size

    # Helpers

    def _begin(self, cancel_event: Optional[asyncio.Event]) -> None:
        if self._closed:
            raise RepositoryClosedError("Archive repository has been closed")
        raise_if_cancelled(cancel_event)

    async def _load(self, session: AsyncSession, archive_id: str) -> Optional[ArchiveModel]:
        stmt = select(ArchiveModel).where(ArchiveModel.id == archive_id, _visible())
        return (await session.execute(stmt)).scalar_one_or_none()

    async def _sync_files(self, session: AsyncSession, model: ArchiveModel, archive: Archive) -> None:
        desired: Dict[str, FileDescriptor] = {a.file_id: a.file for a in archive.files}

        for association in list(model.files):
            if association.file_id not in desired:
                model.files.remove(association)
                await session.delete(association.file)

        existing = {association.file_id for association in model.files}
        for file_id, descriptor in desired.items():
            if file_id in existing:
                continue
            file_model = await session.get(FileModel, file_id)
            if file_model is None:
                file_model = FileModel(
                    id=descriptor.id,
                    file_name=descriptor.file_name,
                    content_type=descriptor.content_type,
                )
                session.add(file_model)
            model.files.append(ArchiveFileModel(file=file_model))

    async def _sync_tags(self, session: AsyncSession, model: ArchiveModel, archive: Archive) -> None:
        desired: Dict[str, Tag] = {}
        for association in archive.tags:
            desired.setdefault(association.tag.name, association.tag)

        for association in list(model.tags):
            if association.tag.name not in desired:
                model.tags.remove(association)

        existing = {association.tag.name for association in model.tags}
        for name, tag in desired.items():
            if name in existing:
                continue
            # tag rows are shared by name
            tag_model = (
                await session.execute(select(TagModel).where(TagModel.name == name))
            ).scalar_one_or_none()
            if tag_model is None:
                tag_model = TagModel(id=tag.id, name=name)
                session.add(tag_model)
            model.tags.append(ArchiveTagModel(tag=tag_model))

    def _model_to_entity(self, model: ArchiveModel) -> Archive:
        return Archive(
            id=model.id,
            description=model.description,
            created=_as_utc(model.created),
            files=[
                ArchiveFile(archive_id=model.id, file=self._file_to_descriptor(a.file))
                for a in model.files
            ],
            tags=[
                ArchiveTag(archive_id=model.id, tag=Tag(name=a.tag.name, id=a.tag.id))
                for a in model.tags
            ],
        )

    @staticmethod
    def _file_to_descriptor(model: FileModel) -> FileDescriptor:
        return FileDescriptor(file_name=model.file_name, content_type=model.content_type, id=model.id)

    @staticmethod
    def _duplicate_archive(archive: Archive) -> ArchiError:
        return ArchiError(code=DUPLICATE_ARCHIVE, description=f"Archive '{archive.id}' already exists.")

    @staticmethod
    def _not_found(archive: Archive) -> ArchiError:
        return ArchiError(code=ARCHIVE_NOT_FOUND, description=f"Archive '{archive.id}' does not exist.")
