"""
SQLAlchemy models for archive metadata.

Association tables carry composite primary keys, so an archive can hold a
given file or tag at most once and tag names are unique across archives.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class ArchiveModel(Base):
    __tablename__ = "archives"

    id = Column(String(36), primary_key=True)
    description = Column(Text, nullable=True)
    created = Column(DateTime(timezone=True), nullable=False, index=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)

    files = relationship(
        "ArchiveFileModel",
        back_populates="archive",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tags = relationship(
        "ArchiveTagModel",
        back_populates="archive",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<ArchiveModel(id={self.id}, is_deleted={self.is_deleted})>"


class FileModel(Base):
    __tablename__ = "files"

    id = Column(String(36), primary_key=True)
    file_name = Column(String(255), nullable=False)
    content_type = Column(String(255), nullable=False)


class TagModel(Base):
    __tablename__ = "tags"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)


class ArchiveFileModel(Base):
    __tablename__ = "archive_files"

    archive_id = Column(String(36), ForeignKey("archives.id", ondelete="CASCADE"), primary_key=True)
    file_id = Column(String(36), ForeignKey("files.id", ondelete="CASCADE"), primary_key=True)

    archive = relationship("ArchiveModel", back_populates="files")
    file = relationship("FileModel", lazy="joined")


class ArchiveTagModel(Base):
    __tablename__ = "archive_tags"

    tag_id = Column(String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    archive_id = Column(String(36), ForeignKey("archives.id", ondelete="CASCADE"), primary_key=True)

    archive = relationship("ArchiveModel", back_populates="tags")
    tag = relationship("TagModel", lazy="joined")
