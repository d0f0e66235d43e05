"""
Archive domain entity, its association records and query filter.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Set

from .file import FileDescriptor
from .tag import Tag


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def normalize_archive_id(value) -> str:
    """
    Return the canonical string form of an archive identifier.

    Raises:
        ValueError: If the value is not a UUID or a UUID string
    """
    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str) or not value:
        raise ValueError("Archive ID must be a non-empty string")
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise ValueError(f"Archive ID must be a UUID, got '{value}'")


@dataclass
class ArchiveFile:
    """Association between an archive and a file descriptor."""
    archive_id: str
    file: FileDescriptor

    @property
    def file_id(self) -> str:
        return self.file.id


@dataclass
class ArchiveTag:
    """Association between an archive and a tag."""
    archive_id: str
    tag: Tag

    @property
    def tag_id(self) -> str:
        return self.tag.id


@dataclass
class Archive:
    """
    Domain entity for an archive.

    An archive bundles a description, a creation timestamp and unordered sets
    of file and tag associations. The identifier is assigned at construction
    and cannot be reassigned afterwards.
    """
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: Optional[str] = None
    created: datetime = field(default_factory=utcnow)
    files: List[ArchiveFile] = field(default_factory=list)
    tags: List[ArchiveTag] = field(default_factory=list)

    def __post_init__(self):
        if self.description is not None and not isinstance(self.description, str):
            raise ValueError("Description must be a string if provided")

        if not isinstance(self.created, datetime):
            raise ValueError("Created must be a datetime")

        if self.created.tzinfo is None:
            self.created = self.created.replace(tzinfo=timezone.utc)

        if not isinstance(self.files, list) or not isinstance(self.tags, list):
            raise ValueError("Files and tags must be lists")

    def __setattr__(self, name, value):
        if name == "id":
            if "id" in self.__dict__:
                raise AttributeError("Archive ID cannot be reassigned")
            value = normalize_archive_id(value)
        super().__setattr__(name, value)

    # Tag associations

    def tag_names(self) -> List[str]:
        return [association.tag.name for association in self.tags]

    def has_tag(self, name: str) -> bool:
        return any(association.tag.name == name for association in self.tags)

    def add_tag(self, tag: Tag) -> ArchiveTag:
        """Associate a tag with the archive."""
        association = ArchiveTag(archive_id=self.id, tag=tag)
        self.tags.append(association)
        return association

    def remove_tag(self, name: str) -> bool:
        """Remove the association for the named tag. Returns True if it was present."""
        remaining = [a for a in self.tags if a.tag.name != name]
        removed = len(remaining) != len(self.tags)
        self.tags[:] = remaining
        return removed

    # File associations

    def file_names(self) -> List[str]:
        return [association.file.file_name for association in self.files]

    def find_file(self, file_name: str) -> Optional[FileDescriptor]:
        for association in self.files:
            if association.file.file_name == file_name:
                return association.file
        return None

    def add_file(self, descriptor: FileDescriptor) -> ArchiveFile:
        """Associate a file descriptor with the archive."""
        association = ArchiveFile(archive_id=self.id, file=descriptor)
        self.files.append(association)
        return association

    def remove_file(self, file_name: str) -> bool:
        """Remove the association for the named file. Returns True if it was present."""
        remaining = [a for a in self.files if a.file.file_name != file_name]
        removed = len(remaining) != len(self.files)
        self.files[:] = remaining
        return removed


@dataclass
class ArchiveFilter:
    """Filtering and ordering options for archive queries."""
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    tags: Set[str] = field(default_factory=set)
    match_all_tags: bool = False
    newest_first: bool = False

    def __post_init__(self):
        if not isinstance(self.tags, set):
            raise ValueError("Tags must be a set")

        # naive bounds are taken as UTC so they compare with archive timestamps
        if self.created_after is not None and self.created_after.tzinfo is None:
            self.created_after = self.created_after.replace(tzinfo=timezone.utc)
        if self.created_before is not None and self.created_before.tzinfo is None:
            self.created_before = self.created_before.replace(tzinfo=timezone.utc)

        if (self.created_after is not None and self.created_before is not None
                and self.created_after > self.created_before):
            raise ValueError("created_after must not be later than created_before")

    def matches(self, archive: Archive) -> bool:
        """Check whether an archive passes this filter."""
        if self.created_after is not None and archive.created < self.created_after:
            return False
        if self.created_before is not None and archive.created > self.created_before:
            return False
        if self.tags:
            names = set(archive.tag_names())
            if self.match_all_tags:
                return self.tags.issubset(names)
            return bool(self.tags.intersection(names))
        return True
