"""
Shared fixtures for archive tests.

The SQLAlchemy store runs against an in-memory SQLite database and blob
storage against fsspec's in-memory filesystem. The memory filesystem is
process-global, so every test gets its own root directory.
"""

import uuid

import fsspec
import pytest

from archi.application.options import ArchiveOptions
from archi.application.services.archive_service import ArchiveApplicationService
from archi.domain.entities.archive import Archive
from archi.domain.entities.file import StoredFile
from archi.infrastructure.database.config import DatabaseConfig, DatabaseManager
from archi.infrastructure.repositories.sqlalchemy_archive_repository import SqlAlchemyArchiveRepository
from archi.infrastructure.storage.fsspec_blob_storage import FsspecBlobStorage


@pytest.fixture
async def db_manager():
    """Create a database manager on a fresh in-memory SQLite database."""
    manager = DatabaseManager(DatabaseConfig.from_url("sqlite+aiosqlite:///:memory:"))
    await manager.create_tables()

    yield manager

    await manager.close()


@pytest.fixture
async def repository(db_manager):
    """Create repository instance for testing."""
    return SqlAlchemyArchiveRepository(db_manager, owns_database=False)


@pytest.fixture
def memory_fs():
    return fsspec.filesystem("memory")


@pytest.fixture
def storage_root(memory_fs):
    """Unique root directory in the memory filesystem, removed afterwards."""
    root = f"/archi-test-{uuid.uuid4().hex}"

    yield root

    if memory_fs.exists(root):
        memory_fs.rm(root, recursive=True)


@pytest.fixture
def blob_storage(memory_fs, storage_root):
    return FsspecBlobStorage(fs=memory_fs, root=storage_root)


@pytest.fixture
async def service(repository, blob_storage):
    """Create the archive service over the SQLAlchemy store and memory storage."""
    service = ArchiveApplicationService(repository, blob_storage, options=ArchiveOptions())

    yield service

    await service.close()


@pytest.fixture
def archive():
    return Archive(description="Model output, run 42")


@pytest.fixture
def text_file():
    return StoredFile.from_bytes("report.txt", b"surface temperature: 288K\n")
