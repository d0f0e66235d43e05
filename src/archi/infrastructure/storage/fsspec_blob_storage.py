"""
Blob storage backed by an fsspec filesystem.

Any fsspec protocol works (local files, memory, object stores). Scoping is
done with ``DirFileSystem``: the storage root and every ``prefix`` wrap the
filesystem below them, so a prefixed handle cannot address files outside its
namespace.
"""

import asyncio
import logging
import posixpath
from functools import partial
from typing import Any, Dict, Optional

import fsspec
from fsspec.implementations.dirfs import DirFileSystem

from ...domain.cancellation import raise_if_cancelled
from ...domain.entities.file import FileDescriptor, StoredFile
from ...domain.entities.result import Maybe
from ...domain.repositories.blob_storage import IBlobStorage
from ...domain.repositories.exceptions import BlobStorageClosedError, BlobStorageError

logger = logging.getLogger(__name__)


def _check_segment(value: str, what: str) -> str:
    if not value or not isinstance(value, str):
        raise ValueError(f"{what} must be a non-empty string")
    if "/" in value or "\\" in value or value in (".", ".."):
        raise ValueError(f"{what} must be a single path segment, got '{value}'")
    return value


class FsspecBlobStorage(IBlobStorage):
    """
    Blob storage on top of an fsspec filesystem.

    Files live at ``<root>/<namespace...>/<category>/<file name>``. The
    content type is not stored; reads take it from the descriptor.

    Parameters
    ----------
    fs : fsspec.AbstractFileSystem, optional
        Filesystem to use. Created from ``protocol`` and ``storage_options``
        if not given.
    root : str, optional
        Base path inside the filesystem.
    protocol : str, optional
        fsspec protocol used when ``fs`` is not given. Defaults to ``"file"``.
    storage_options : dict, optional
        Options passed to ``fsspec.filesystem``.
    """

    def __init__(
        self,
        fs: Optional[fsspec.AbstractFileSystem] = None,
        root: str = "",
        protocol: str = "file",
        storage_options: Optional[Dict[str, Any]] = None,
    ):
        if fs is None:
            fs = fsspec.filesystem(protocol, **(storage_options or {}))
        if root:
            fs = DirFileSystem(path=root, fs=fs)
        self._fs = fs
        self._parent: Optional["FsspecBlobStorage"] = None
        self._closed = False

    @property
    def fs(self) -> fsspec.AbstractFileSystem:
        return self._fs

    @property
    def closed(self) -> bool:
        if self._closed:
            return True
        return self._parent is not None and self._parent.closed

    def prefix(self, namespace: str) -> "FsspecBlobStorage":
        self._ensure_open()
        _check_segment(namespace, "Namespace")
        scoped = FsspecBlobStorage(fs=DirFileSystem(path=namespace, fs=self._fs))
        scoped._parent = self
        return scoped

    async def create_file(
        self, file: StoredFile, category: Optional[str] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> None:
        self._begin(cancel_event)
        path = self._path(file.file_name, category)
        try:
            await self._run(self._write, path, file.content)
        except OSError as e:
            raise BlobStorageError(f"Failed to write '{path}': {e}") from e
        logger.debug("Wrote %d bytes to %s", file.size, path)

    async def get_file(
        self, descriptor: FileDescriptor, category: Optional[str] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> Maybe[StoredFile]:
        self._begin(cancel_event)
        path = self._path(descriptor.file_name, category)
        try:
            content = await self._run(self._fs.cat_file, path)
        except FileNotFoundError:
            return Maybe.nothing()
        except OSError as e:
            raise BlobStorageError(f"Failed to read '{path}': {e}") from e

        return Maybe.just(StoredFile(
            file_name=descriptor.file_name,
            content_type=descriptor.content_type,
            content=bytes(content),
        ))

    async def delete_file(
        self, descriptor: FileDescriptor, category: Optional[str] = None,
        *, cancel_event: Optional[asyncio.Event] = None
    ) -> bool:
        self._begin(cancel_event)
        path = self._path(descriptor.file_name, category)
        try:
            return await self._run(self._remove, path)
        except OSError as e:
            raise BlobStorageError(f"Failed to delete '{path}': {e}") from e

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            logger.debug("Blob storage closed")

    def _write(self, path: str, content: bytes) -> None:
        parent = posixpath.dirname(path)
        if parent:
            self._fs.makedirs(parent, exist_ok=True)
        self._fs.pipe_file(path, content)

    def _remove(self, path: str) -> bool:
        if not self._fs.exists(path):
            return False
        try:
            self._fs.rm_file(path)
        except FileNotFoundError:
            return False
        return True

    def _path(self, file_name: str, category: Optional[str]) -> str:
        _check_segment(file_name, "File name")
        if category:
            return posixpath.join(_check_segment(category, "Category"), file_name)
        return file_name

    def _ensure_open(self) -> None:
        if self.closed:
            raise BlobStorageClosedError("Blob storage has been closed")

    def _begin(self, cancel_event: Optional[asyncio.Event]) -> None:
        self._ensure_open()
        raise_if_cancelled(cancel_event)

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))
