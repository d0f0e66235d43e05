"""
Application service container for dependency injection.

This module provides centralized service management and configuration,
wiring together the database, the archive repository, blob storage and
options into an archive service for use by interface layers.
"""

import logging
import os
from typing import Optional

from ..infrastructure.database.config import DatabaseConfig, DatabaseManager
from ..infrastructure.repositories.sqlalchemy_archive_repository import SqlAlchemyArchiveRepository
from ..infrastructure.storage.fsspec_blob_storage import FsspecBlobStorage
from .error_describer import ErrorDescriber
from .options import ArchiveOptions
from .services.archive_service import ArchiveApplicationService
from .validators import ValidationPipeline

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Dependency injection container for the archive service."""

    def __init__(
        self,
        database_config: Optional[DatabaseConfig] = None,
        options: Optional[ArchiveOptions] = None,
        storage_protocol: Optional[str] = None,
        storage_path: Optional[str] = None,
        validators: Optional[ValidationPipeline] = None,
        error_describer: Optional[ErrorDescriber] = None,
    ):
        self._database_config = database_config or DatabaseConfig.from_env()
        self._options = options or ArchiveOptions.from_env()
        self._storage_protocol = storage_protocol or os.getenv("ARCHI_STORAGE_PROTOCOL", "file")
        self._storage_path = storage_path if storage_path is not None else os.getenv(
            "ARCHI_STORAGE_PATH", os.path.join(os.getcwd(), "archi-storage")
        )
        self._validators = validators
        self._error_describer = error_describer or ErrorDescriber()
        self._database_manager: Optional[DatabaseManager] = None
        self._archive_service: Optional[ArchiveApplicationService] = None

    @property
    def database_manager(self) -> DatabaseManager:
        """Get or create the database manager."""
        if self._database_manager is None:
            self._database_manager = DatabaseManager(self._database_config)
        return self._database_manager

    @property
    def archive_service(self) -> ArchiveApplicationService:
        """Get or create the archive service."""
        if self._archive_service is None or self._archive_service.closed:
            repository = SqlAlchemyArchiveRepository(
                self.database_manager,
                error_describer=self._error_describer,
            )
            storage = FsspecBlobStorage(
                root=self._storage_path,
                protocol=self._storage_protocol,
            )
            self._archive_service = ArchiveApplicationService(
                repository,
                storage,
                options=self._options,
                validators=self._validators,
                error_describer=self._error_describer,
            )
            logger.info(
                "Archive service initialized (storage=%s://%s)",
                self._storage_protocol, self._storage_path,
            )
        return self._archive_service

    async def create_tables(self) -> None:
        """Create the database schema if it does not exist yet."""
        await self.database_manager.create_tables()

    async def close(self) -> None:
        """Close the archive service and the resources it owns."""
        if self._archive_service is not None:
            await self._archive_service.close()
        elif self._database_manager is not None:
            await self._database_manager.close()
        self.reset()

    def reset(self):
        """Reset the service container (useful for testing)."""
        self._archive_service = None
        self._database_manager = None
        logger.debug("Service container reset")


# Global service container instance
_service_container: Optional[ServiceContainer] = None


def get_service_container() -> ServiceContainer:
    """Get the global service container instance."""
    global _service_container
    if _service_container is None:
        _service_container = ServiceContainer()
    return _service_container


def set_service_container(container: Optional[ServiceContainer]):
    """Set the global service container (useful for testing)."""
    global _service_container
    _service_container = container
