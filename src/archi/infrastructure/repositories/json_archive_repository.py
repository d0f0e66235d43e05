"""
JSON-based archive repository implementation.
"""

import asyncio
import json
import os
import threading
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import AsyncIterator, List, Optional

from loguru import logger

from ...application.error_describer import ErrorDescriber
from ...domain.cancellation import raise_if_cancelled
from ...domain.entities.archive import Archive, ArchiveFilter, ArchiveTag, normalize_archive_id
from ...domain.entities.result import ArchiError, Maybe, Result
from ...domain.entities.tag import Tag
from ...domain.repositories.archive_repository import (
    IArchiveRepository,
    IArchiveTagRepository,
    IQueryableArchiveRepository,
)
from ...domain.repositories.exceptions import RepositoryClosedError, RepositoryError


class JsonArchiveRepository(IArchiveRepository, IArchiveTagRepository, IQueryableArchiveRepository):
    """
    JSON file-based implementation of archive repository.

    Provides atomic file operations and thread-safe access to archive metadata
    stored in JSON format. Each archive is stored as an entry in the file,
    keyed by its ID. Deleted archives stay in the file flagged ``is_deleted``.

    File associations are not supported by this store.
    """

    def __init__(self, file_path: Path, error_describer: Optional[ErrorDescriber] = None):
        """
        Initialize the repository with a JSON file path.

        Args:
            file_path: Path to the JSON file for persistence
            error_describer: Source of catalog errors reported by the store
        """
        self._file_path = Path(file_path)
        self._lock = threading.RLock()
        self._errors = error_describer or ErrorDescriber()
        self._closed = False
        self._logger = logger.bind(repository="JsonArchiveRepository")

        self._file_path.parent.mkdir(parents=True, exist_ok=True)

        if not self._file_path.exists():
            self._save_data({})

    # Base capability

    async def find_by_id(
        self, archive_id: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[Archive]:
        self._begin(cancel_event)
        try:
            archive_id = normalize_archive_id(archive_id)
        except ValueError:
            return Maybe.nothing()

        data = await self._run(self._load_data)
        record = data.get(archive_id)
        if record is None or record.get("is_deleted", False):
            return Maybe.nothing()
        return Maybe.just(self._dict_to_entity(record))

    async def get_id(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        self._begin(cancel_event)
        return archive.id

    async def create(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)
        return await self._run(self._create, archive)

    async def update(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)
        return await self._run(self._update, archive)

    async def delete(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> Result:
        self._begin(cancel_event)
        return await self._run(self._delete, archive)

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._logger.debug(f"Closed {self._file_path}")

    # Tag capability

    async def list_tags(
        self, archive: Archive, *, cancel_event: Optional[asyncio.Event] = None
    ) -> List[str]:
        self._begin(cancel_event)
        record = await self._run(self._visible_record, archive.id)
        if record is None:
            return []
        return sorted(tag["name"] for tag in record.get("tags", []))

    async def has_tag(
        self, archive: Archive, tag: str, *, cancel_event: Optional[asyncio.Event] = None
    ) -> bool:
        return tag in await self.list_tags(archive, cancel_event=cancel_event)

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
        data = await self._run(self._load_data)
        archives = [
            self._dict_to_entity(record)
            for record in data.values()
            if not record.get("is_deleted", False)
        ]
        archives.sort(key=lambda a: (a.created, a.id), reverse=filters.newest_first)

        for archive in archives:
            raise_if_cancelled(cancel_event)
            if filters.matches(archive):
                yield archive

    # Synchronous operations, run in the default executor

    def _create(self, archive: Archive) -> Result:
        with self._lock:
            data = self._load_data()
            if archive.id in data:
                return Result.failed(ArchiError(
                    code="DuplicateArchive",
                    description=f"Archive '{archive.id}' already exists.",
                ))
            data[archive.id] = self._entity_to_dict(archive)
            self._save_data(data)

        self._logger.debug(f"Saved archive: {archive.id}")
        return Result.success()

    def _update(self, archive: Archive) -> Result:
        with self._lock:
            data = self._load_data()
            record = data.get(archive.id)
            if record is None or record.get("is_deleted", False):
                return self._not_found(archive)

            updated = self._entity_to_dict(archive)
            # created is fixed at insert time
            updated["created"] = record["created"]
            data[archive.id] = updated
            self._save_data(data)

        self._logger.debug(f"Updated archive: {archive.id}")
        return Result.success()

    def _delete(self, archive: Archive) -> Result:
        with self._lock:
            data = self._load_data()
            record = data.get(archive.id)
            if record is None or record.get("is_deleted", False):
                return self._not_found(archive)

            record["is_deleted"] = True
            self._save_data(data)

        self._logger.debug(f"Deleted archive: {archive.id}")
        return Result.success()

    def _visible_record(self, archive_id: str) -> Optional[dict]:
        with self._lock:
            record = self._load_data().get(archive_id)
        if record is None or record.get("is_deleted", False):
            return None
        return record

    # Helpers

    def _begin(self, cancel_event: Optional[asyncio.Event]) -> None:
        if self._closed:
            raise RepositoryClosedError("Archive repository has been closed")
        raise_if_cancelled(cancel_event)

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    @staticmethod
    def _not_found(archive: Archive) -> Result:
        return Result.failed(ArchiError(
            code="ArchiveNotFound",
            description=f"Archive '{archive.id}' does not exist.",
        ))

    def _load_data(self) -> dict:
        """Load data from the JSON file."""
        with self._lock:
            try:
                if not self._file_path.exists():
                    return {}

                with open(self._file_path, "r", encoding="utf-8") as f:
                    return json.load(f)

            except json.JSONDecodeError as e:
                self._logger.error(f"JSON decode error loading archives: {e}")
                raise RepositoryError(f"Invalid JSON in {self._file_path}: {e}") from e
            except OSError as e:
                raise RepositoryError(f"Failed to load data from {self._file_path}: {e}") from e

    def _save_data(self, data: dict) -> None:
        """Save data to the JSON file atomically."""
        temp_file = self._file_path.with_suffix(".tmp")
        with self._lock:
            try:
                with open(temp_file, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)

                os.replace(temp_file, self._file_path)

            except (OSError, TypeError, ValueError) as e:
                if temp_file.exists():
                    temp_file.unlink()
                self._logger.error(f"Error saving archives: {e}")
                raise RepositoryError(f"Failed to save data to {self._file_path}: {e}") from e

    @staticmethod
    def _entity_to_dict(archive: Archive) -> dict:
        tags = {}
        for association in archive.tags:
            tags.setdefault(association.tag.name, association.tag.id)
        return {
            "id": archive.id,
            "description": archive.description,
            "created": archive.created.astimezone(timezone.utc).isoformat(),
            "is_deleted": False,
            "tags": [{"id": tag_id, "name": name} for name, tag_id in tags.items()],
        }

    @staticmethod
    def _dict_to_entity(data: dict) -> Archive:
        """Convert dictionary data to an Archive entity."""
        try:
            archive_id = data["id"]
            return Archive(
                id=archive_id,
                description=data.get("description"),
                created=datetime.fromisoformat(data["created"]),
                tags=[
                    ArchiveTag(archive_id=archive_id, tag=Tag(name=tag["name"], id=tag["id"]))
                    for tag in data.get("tags", [])
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RepositoryError(f"Failed to convert data to Archive: {e}") from e
