"""
Tests for the JSON archive repository.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from archi.application.exceptions import CapabilityUnsupportedError
from archi.application.services.archive_service import ArchiveApplicationService
from archi.domain.entities.archive import Archive, ArchiveFilter
from archi.domain.repositories.exceptions import RepositoryError
from archi.infrastructure.repositories.json_archive_repository import JsonArchiveRepository


@pytest.fixture
def json_path(tmp_path):
    return tmp_path / "store" / "archives.json"


@pytest.fixture
def json_repository(json_path):
    return JsonArchiveRepository(json_path)


@pytest.mark.asyncio
class TestJsonArchiveRepository:
    """Test JSON file persistence."""

    async def test_file_initialized(self, json_repository, json_path):
        assert json.loads(json_path.read_text()) == {}

    async def test_create_and_find(self, json_repository):
        archive = Archive(description="Control run")

        assert (await json_repository.create(archive)).succeeded

        found = await json_repository.find_by_id(archive.id)
        assert found.value.description == "Control run"
        assert found.value.created == archive.created

    async def test_persists_across_instances(self, json_repository, json_path):
        archive = Archive()
        await json_repository.create(archive)

        reopened = JsonArchiveRepository(json_path)

        assert (await reopened.find_by_id(archive.id)).has_value

    async def test_malformed_id(self, json_repository):
        assert not (await json_repository.find_by_id("nope")).has_value

    async def test_update_keeps_created(self, json_repository):
        archive = Archive()
        await json_repository.create(archive)
        original = archive.created
        archive.created = original + timedelta(hours=1)
        archive.description = "Changed"

        await json_repository.update(archive)

        found = (await json_repository.find_by_id(archive.id)).value
        assert found.description == "Changed"
        assert found.created == original

    async def test_soft_delete(self, json_repository, json_path):
        archive = Archive()
        await json_repository.create(archive)

        assert (await json_repository.delete(archive)).succeeded

        assert not (await json_repository.find_by_id(archive.id)).has_value
        assert json.loads(json_path.read_text())[archive.id]["is_deleted"] is True
        assert (await json_repository.delete(archive)).error_codes == ("ArchiveNotFound",)

    async def test_tags(self, json_repository):
        archive = Archive()
        await json_repository.create(archive)
        await json_repository.add_tag(archive, "OCEAN")

        assert not await json_repository.has_tag(archive, "OCEAN")
        await json_repository.update(archive)
        assert await json_repository.list_tags(archive) == ["OCEAN"]

    async def test_query(self, json_repository):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        archives = [Archive(created=start + timedelta(days=i)) for i in range(3)]
        for archive in archives:
            await json_repository.create(archive)
        await json_repository.add_tag(archives[2], "ICE")
        await json_repository.update(archives[2])

        newest = [a.id async for a in json_repository.archives(ArchiveFilter(newest_first=True))]
        tagged = [a.id async for a in json_repository.archives(ArchiveFilter(tags={"ICE"}))]

        assert newest == [a.id for a in reversed(archives)]
        assert tagged == [archives[2].id]

    async def test_corrupt_file(self, json_repository, json_path):
        json_path.write_text("{not json")

        with pytest.raises(RepositoryError):
            await json_repository.find_by_id(str(Archive().id))

    async def test_service_without_file_capability(self, json_repository, blob_storage):
        """Test that the service refuses file operations on the JSON store."""
        service = ArchiveApplicationService(json_repository, blob_storage)
        archive = Archive()
        await service.create(archive)

        assert service.supports_archive_tags
        assert service.supports_queryable_archives
        assert not service.supports_archive_files
        assert (await service.add_tag(archive, "OCEAN")).succeeded
        with pytest.raises(CapabilityUnsupportedError):
            await service.get_file_by_name(archive, "a.txt")
