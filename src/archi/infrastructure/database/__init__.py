"""Database configuration and ORM models."""

from .config import DatabaseConfig, DatabaseManager
from .models import Base

__all__ = ["Base", "DatabaseConfig", "DatabaseManager"]
