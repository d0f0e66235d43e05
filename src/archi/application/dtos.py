"""
Data Transfer Objects (DTOs) for the application layer.

These objects define the contracts between the application layer and external clients,
providing a stable interface that can evolve independently of the domain model.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..domain.entities.archive import Archive, ArchiveFilter


@dataclass
class PaginationInfo:
    """Pagination information for list operations."""
    page: int = 1
    page_size: int = 50
    total_count: Optional[int] = None
    has_next: bool = False
    has_previous: bool = False

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be at least 1")
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class FileDto:
    """DTO for a file associated with an archive."""
    id: str
    file_name: str
    content_type: str


@dataclass
class ArchiveDto:
    """DTO for archive data."""
    id: str
    description: Optional[str]
    created: str  # ISO format datetime
    tags: List[str] = field(default_factory=list)
    files: List[FileDto] = field(default_factory=list)

    @classmethod
    def from_entity(cls, archive: Archive) -> "ArchiveDto":
        return cls(
            id=archive.id,
            description=archive.description,
            created=archive.created.isoformat(),
            tags=sorted(archive.tag_names()),
            files=[
                FileDto(id=a.file.id, file_name=a.file.file_name, content_type=a.file.content_type)
                for a in archive.files
            ],
        )


@dataclass
class ArchiveListDto:
    """DTO for paginated archive lists."""
    archives: List[ArchiveDto]
    pagination: PaginationInfo
    filters_applied: Optional[ArchiveFilter] = None
