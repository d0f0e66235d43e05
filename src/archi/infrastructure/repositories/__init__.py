"""Repository implementations for data persistence."""

from .json_archive_repository import JsonArchiveRepository
from .sqlalchemy_archive_repository import SqlAlchemyArchiveRepository

__all__ = [
    'JsonArchiveRepository',
    'SqlAlchemyArchiveRepository',
]
