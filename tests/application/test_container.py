"""
Tests for the service container.
"""

import pytest

from archi.application.container import ServiceContainer, get_service_container, set_service_container
from archi.application.options import ArchiveOptions
from archi.domain.entities.archive import Archive
from archi.domain.entities.file import StoredFile
from archi.infrastructure.database.config import DatabaseConfig


@pytest.fixture
def container(tmp_path):
    return ServiceContainer(
        database_config=DatabaseConfig.from_url("sqlite+aiosqlite:///:memory:"),
        options=ArchiveOptions(),
        storage_protocol="file",
        storage_path=str(tmp_path / "blobs"),
    )


@pytest.mark.asyncio
class TestServiceContainer:
    """Test wiring of the archive service."""

    async def test_archive_service_is_cached(self, container):
        assert container.archive_service is container.archive_service
        await container.close()

    async def test_end_to_end(self, container, tmp_path):
        """Test a full round trip through the wired service."""
        await container.create_tables()
        service = container.archive_service
        archive = Archive(description="Wired")

        assert (await service.create(archive)).succeeded
        assert (await service.add_tag(archive, "WIRED")).succeeded
        assert (await service.add_file(archive, StoredFile.from_bytes("a.txt", b"abc"))).succeeded

        stored_name = archive.files[0].file.file_name
        assert (tmp_path / "blobs" / archive.id / "archives" / stored_name).read_bytes() == b"abc"

        await container.close()
        assert service.closed

    async def test_global_container(self, container):
        set_service_container(container)
        try:
            assert get_service_container() is container
        finally:
            set_service_container(None)
