"""
Archi - Archive management with pluggable metadata stores and blob storage.
"""

from .application.container import ServiceContainer, get_service_container
from .application.error_describer import ErrorDescriber
from .application.exceptions import (
    ArchiContractError,
    ArchiveManagerClosedError,
    CapabilityUnsupportedError,
    MissingArgumentError,
)
from .application.options import ArchiveOptions
from .application.services.archive_service import ArchiveApplicationService
from .application.validators import IArchiveValidator, ValidationPipeline
from .domain.entities import Archive, ArchiError, ArchiveFilter, FileDescriptor, Maybe, Result, StoredFile

__all__ = [
    "Archive",
    "ArchiveFilter",
    "FileDescriptor",
    "StoredFile",
    "ArchiError",
    "Result",
    "Maybe",
    "ArchiveOptions",
    "ErrorDescriber",
    "IArchiveValidator",
    "ValidationPipeline",
    "ArchiveApplicationService",
    "ArchiContractError",
    "ArchiveManagerClosedError",
    "CapabilityUnsupportedError",
    "MissingArgumentError",
    "ServiceContainer",
    "get_service_container",
]
