"""
Configuration options for the archive service.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_ALLOWED_TAG_CHARACTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass
class ArchiveStorageOptions:
    """Options for how archive files are stored."""
    category: Optional[str] = "archives"  # storage area all archive files are written under
    keep_extension: bool = True

    def __post_init__(self):
        if self.category is not None:
            if not isinstance(self.category, str):
                raise ValueError("Storage category must be a string if provided")
            if "/" in self.category or "\\" in self.category:
                raise ValueError("Storage category must not contain path separators")


@dataclass
class ArchiveTagOptions:
    """Options for tagging archives."""
    # blank disables the allow-list
    allowed_characters: Optional[str] = DEFAULT_ALLOWED_TAG_CHARACTERS

    @property
    def restricts_characters(self) -> bool:
        return bool(self.allowed_characters and self.allowed_characters.strip())

    def is_allowed(self, tag: str) -> bool:
        """Check a tag against the allow-list."""
        if not self.restricts_characters:
            return True
        return all(c in self.allowed_characters for c in tag)


@dataclass
class ArchiveOptions:
    """Options for managing archives."""
    storage: ArchiveStorageOptions = field(default_factory=ArchiveStorageOptions)
    tags: ArchiveTagOptions = field(default_factory=ArchiveTagOptions)

    @classmethod
    def from_env(cls) -> "ArchiveOptions":
        """Create options from environment variables."""
        return cls(
            storage=ArchiveStorageOptions(
                category=os.getenv("ARCHI_STORAGE_CATEGORY", "archives") or None,
                keep_extension=os.getenv("ARCHI_STORAGE_KEEP_EXTENSION", "true").lower() == "true",
            ),
            tags=ArchiveTagOptions(
                allowed_characters=os.getenv(
                    "ARCHI_TAG_ALLOWED_CHARACTERS", DEFAULT_ALLOWED_TAG_CHARACTERS
                ),
            ),
        )
