"""
Unit tests for archive, file and tag entities.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from archi.domain.entities.archive import Archive, ArchiveFilter, normalize_archive_id
from archi.domain.entities.file import DEFAULT_CONTENT_TYPE, FileDescriptor, StoredFile
from archi.domain.entities.tag import Tag


class TestArchive:
    """Test the Archive entity."""

    def test_defaults(self):
        archive = Archive()
        assert uuid.UUID(archive.id)
        assert archive.created.tzinfo is not None
        assert archive.files == []
        assert archive.tags == []

    def test_id_is_normalized(self):
        """Test that UUID objects and upper-case strings give the canonical form."""
        value = uuid.uuid4()
        assert Archive(id=value).id == str(value)
        assert Archive(id=str(value).upper()).id == str(value)

    def test_id_cannot_be_reassigned(self):
        archive = Archive()
        with pytest.raises(AttributeError):
            archive.id = str(uuid.uuid4())

    def test_invalid_id_rejected(self):
        with pytest.raises(ValueError):
            Archive(id="archive-1")

    def test_naive_created_is_utc(self):
        archive = Archive(created=datetime(2024, 5, 1, 12, 0))
        assert archive.created.tzinfo == timezone.utc

    def test_tag_associations(self):
        archive = Archive()
        association = archive.add_tag(Tag(name="OCEAN"))

        assert association.archive_id == archive.id
        assert archive.has_tag("OCEAN")
        assert archive.tag_names() == ["OCEAN"]
        assert archive.remove_tag("OCEAN")
        assert not archive.remove_tag("OCEAN")
        assert archive.tags == []

    def test_file_associations(self):
        archive = Archive()
        descriptor = FileDescriptor(file_name="data.nc")
        association = archive.add_file(descriptor)

        assert association.file_id == descriptor.id
        assert archive.find_file("data.nc") == descriptor
        assert archive.find_file("other.nc") is None
        assert archive.remove_file("data.nc")
        assert archive.file_names() == []


class TestNormalizeArchiveId:
    """Test archive ID normalization."""

    @pytest.mark.parametrize("value", ["", None, 42, "not-a-uuid"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            normalize_archive_id(value)


class TestStoredFile:
    """Test StoredFile behaviour."""

    def test_from_bytes_guesses_content_type(self):
        stored = StoredFile.from_bytes("table.csv", b"a,b\n")
        assert stored.content_type == "text/csv"
        assert stored.size == 4

    def test_from_bytes_unknown_type(self):
        stored = StoredFile.from_bytes("blob.unknownext", b"\x00")
        assert stored.content_type == DEFAULT_CONTENT_TYPE

    def test_rename_keeps_extension(self):
        stored = StoredFile.from_bytes("table.csv", b"a,b\n")
        renamed = stored.rename("abc")
        assert renamed.file_name == "abc.csv"
        assert renamed.content == stored.content
        assert renamed.content_type == stored.content_type

    def test_rename_drops_extension(self):
        stored = StoredFile.from_bytes("table.csv", b"a,b\n")
        assert stored.rename("abc", keep_extension=False).file_name == "abc"

    def test_path_separators_rejected(self):
        with pytest.raises(ValueError):
            StoredFile.from_bytes("../escape.txt", b"")

    def test_to_descriptor(self):
        stored = StoredFile.from_bytes("table.csv", b"a,b\n")
        descriptor = stored.to_descriptor()
        assert descriptor.file_name == "table.csv"
        assert descriptor.content_type == "text/csv"
        assert descriptor.extension == ".csv"


class TestTag:
    """Test Tag validation."""

    @pytest.mark.parametrize("name", ["", "  ", None])
    def test_empty_name_rejected(self, name):
        with pytest.raises(ValueError):
            Tag(name=name)


class TestArchiveFilter:
    """Test archive filtering."""

    def _archive(self, days, *tags):
        archive = Archive(created=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(days=days))
        for tag in tags:
            archive.add_tag(Tag(name=tag))
        return archive

    def test_empty_filter_matches_everything(self):
        assert ArchiveFilter().matches(self._archive(0))

    def test_created_bounds_are_inclusive(self):
        archive = self._archive(1)
        assert ArchiveFilter(created_after=archive.created, created_before=archive.created).matches(archive)
        assert not ArchiveFilter(created_after=archive.created + timedelta(seconds=1)).matches(archive)

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            ArchiveFilter(
                created_after=datetime(2024, 2, 1, tzinfo=timezone.utc),
                created_before=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )

    def test_match_any_and_all_tags(self):
        archive = self._archive(0, "OCEAN")
        assert ArchiveFilter(tags={"OCEAN", "ICE"}).matches(archive)
        assert not ArchiveFilter(tags={"OCEAN", "ICE"}, match_all_tags=True).matches(archive)
