"""
File-related domain entities and value objects.

A ``FileDescriptor`` is the metadata record kept by the archive repository,
while a ``StoredFile`` carries the actual bytes handed to and returned from
blob storage.
"""

import mimetypes
import posixpath
import uuid
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FileDescriptor:
    """Value object describing a file independently of any archive."""
    file_name: str
    content_type: str = DEFAULT_CONTENT_TYPE
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not self.file_name or not isinstance(self.file_name, str):
            raise ValueError("File name must be a non-empty string")

        if not self.content_type or not isinstance(self.content_type, str):
            raise ValueError("Content type must be a non-empty string")

    @property
    def extension(self) -> str:
        """Extension of the file name including the leading dot, or ''."""
        return posixpath.splitext(self.file_name)[1]


@dataclass(frozen=True)
class StoredFile:
    """A file together with its content."""
    file_name: str
    content_type: str
    content: bytes

    def __post_init__(self):
        if not self.file_name or not isinstance(self.file_name, str):
            raise ValueError("File name must be a non-empty string")

        if "/" in self.file_name or "\\" in self.file_name:
            raise ValueError("File name must not contain path separators")

        if not self.content_type or not isinstance(self.content_type, str):
            raise ValueError("Content type must be a non-empty string")

        if not isinstance(self.content, (bytes, bytearray)):
            raise ValueError("Content must be bytes")

    @classmethod
    def from_bytes(
        cls, file_name: str, content: bytes, content_type: Optional[str] = None
    ) -> "StoredFile":
        """Create a stored file, guessing the content type from the name if omitted."""
        if content_type is None:
            guessed, _ = mimetypes.guess_type(file_name)
            content_type = guessed or DEFAULT_CONTENT_TYPE
        return cls(file_name=file_name, content_type=content_type, content=bytes(content))

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.file_name)[1]

    def rename(self, new_name: str, keep_extension: bool = True) -> "StoredFile":
        """
        Return a copy of this file under a new name.

        Args:
            new_name: The new base name of the file
            keep_extension: If True, the original extension is appended to ``new_name``

        Returns:
            A new StoredFile with the same content type and content
        """
        if keep_extension and self.extension:
            new_name = f"{new_name}{self.extension}"
        return StoredFile(file_name=new_name, content_type=self.content_type, content=self.content)

    def to_descriptor(self) -> FileDescriptor:
        return FileDescriptor(file_name=self.file_name, content_type=self.content_type)
