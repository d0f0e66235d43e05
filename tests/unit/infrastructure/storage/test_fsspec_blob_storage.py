"""
Tests for the fsspec blob storage on the in-memory filesystem.
"""

import asyncio

import pytest

from archi.domain.entities.file import FileDescriptor, StoredFile
from archi.domain.repositories.exceptions import BlobStorageClosedError
from archi.infrastructure.storage.fsspec_blob_storage import FsspecBlobStorage


@pytest.fixture
def stored():
    return StoredFile.from_bytes("grid.nc", b"\x89HDF\r\n", content_type="application/x-netcdf")


@pytest.mark.asyncio
class TestFsspecBlobStorage:
    """Test reading, writing and deleting blobs."""

    async def test_write_and_read(self, blob_storage, stored, memory_fs, storage_root):
        """Test that a written file can be read back with its descriptor's content type."""
        await blob_storage.create_file(stored, "archives")

        assert memory_fs.exists(f"{storage_root}/archives/grid.nc")
        result = await blob_storage.get_file(stored.to_descriptor(), "archives")
        assert result.has_value
        assert result.value.content == stored.content
        assert result.value.content_type == "application/x-netcdf"

    async def test_write_without_category(self, blob_storage, stored, memory_fs, storage_root):
        await blob_storage.create_file(stored)
        assert memory_fs.exists(f"{storage_root}/grid.nc")

    async def test_overwrite(self, blob_storage, stored):
        """Test that writing the same name again replaces the content."""
        await blob_storage.create_file(stored, "archives")
        await blob_storage.create_file(
            StoredFile.from_bytes("grid.nc", b"new"), "archives"
        )

        result = await blob_storage.get_file(stored.to_descriptor(), "archives")
        assert result.value.content == b"new"

    async def test_missing_file(self, blob_storage):
        """Test that reading an absent file yields nothing."""
        result = await blob_storage.get_file(FileDescriptor(file_name="absent.nc"), "archives")
        assert not result.has_value

    async def test_delete(self, blob_storage, stored):
        await blob_storage.create_file(stored, "archives")

        assert await blob_storage.delete_file(stored.to_descriptor(), "archives")
        assert not await blob_storage.delete_file(stored.to_descriptor(), "archives")
        assert not (await blob_storage.get_file(stored.to_descriptor(), "archives")).has_value

    async def test_prefix_isolates_namespaces(self, blob_storage, stored, memory_fs, storage_root):
        """Test that prefixed handles do not see each other's files."""
        first = blob_storage.prefix("first")
        second = blob_storage.prefix("second")

        await first.create_file(stored, "archives")

        assert memory_fs.exists(f"{storage_root}/first/archives/grid.nc")
        assert (await first.get_file(stored.to_descriptor(), "archives")).has_value
        assert not (await second.get_file(stored.to_descriptor(), "archives")).has_value

    @pytest.mark.parametrize("namespace", ["", "a/b", ".."])
    async def test_invalid_namespace(self, blob_storage, namespace):
        with pytest.raises(ValueError):
            blob_storage.prefix(namespace)

    async def test_invalid_category(self, blob_storage, stored):
        with pytest.raises(ValueError):
            await blob_storage.create_file(stored, "a/b")

    async def test_cancelled_write(self, blob_storage, stored, memory_fs, storage_root):
        """Test that a cancelled write leaves the filesystem untouched."""
        event = asyncio.Event()
        event.set()

        with pytest.raises(asyncio.CancelledError):
            await blob_storage.create_file(stored, "archives", cancel_event=event)

        assert memory_fs.find(storage_root) == []

    async def test_closed_storage(self, blob_storage, stored):
        """Test that closing the storage also closes handles derived from it."""
        scoped = blob_storage.prefix("first")

        await blob_storage.close()
        await blob_storage.close()

        assert scoped.closed
        with pytest.raises(BlobStorageClosedError):
            await blob_storage.create_file(stored)
        with pytest.raises(BlobStorageClosedError):
            await scoped.get_file(stored.to_descriptor())
        with pytest.raises(BlobStorageClosedError):
            blob_storage.prefix("second")

    async def test_local_filesystem(self, tmp_path, stored):
        """Test the default local filesystem backend."""
        storage = FsspecBlobStorage(root=str(tmp_path))

        await storage.prefix("archive").create_file(stored, "archives")

        assert (tmp_path / "archive" / "archives" / "grid.nc").read_bytes() == stored.content
