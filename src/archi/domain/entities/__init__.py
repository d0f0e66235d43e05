"""Domain entities and value objects."""

from .archive import Archive, ArchiveFile, ArchiveFilter, ArchiveTag
from .file import FileDescriptor, StoredFile
from .result import ArchiError, Maybe, Result
from .tag import Tag

__all__ = [
    "Archive",
    "ArchiveFile",
    "ArchiveFilter",
    "ArchiveTag",
    "FileDescriptor",
    "StoredFile",
    "Tag",
    "ArchiError",
    "Maybe",
    "Result",
]
