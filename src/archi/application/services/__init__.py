"""Application services implementing archive use cases."""

from .archive_service import ArchiveApplicationService

__all__ = ["ArchiveApplicationService"]
