"""
Unit tests for application DTOs.
"""

from datetime import datetime, timezone

import pytest

from archi.application.dtos import ArchiveDto, PaginationInfo
from archi.domain.entities.archive import Archive
from archi.domain.entities.file import FileDescriptor
from archi.domain.entities.tag import Tag


class TestPaginationInfo:
    """Test pagination validation."""

    def test_offset(self):
        assert PaginationInfo(page=3, page_size=20).offset == 40

    @pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0)])
    def test_invalid_values(self, page, page_size):
        with pytest.raises(ValueError):
            PaginationInfo(page=page, page_size=page_size)


class TestArchiveDto:
    """Test conversion from the entity."""

    def test_from_entity(self):
        archive = Archive(
            description="Historical run",
            created=datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc),
        )
        archive.add_tag(Tag(name="ZETA"))
        archive.add_tag(Tag(name="ALPHA"))
        descriptor = FileDescriptor(file_name="t.nc", content_type="application/x-netcdf")
        archive.add_file(descriptor)

        dto = ArchiveDto.from_entity(archive)

        assert dto.id == archive.id
        assert dto.description == "Historical run"
        assert dto.created == "2024-03-01T08:30:00+00:00"
        assert dto.tags == ["ALPHA", "ZETA"]
        assert len(dto.files) == 1
        assert dto.files[0].id == descriptor.id
        assert dto.files[0].file_name == "t.nc"
