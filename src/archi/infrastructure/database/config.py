"""
Database configuration and connection management.

Provides database URL construction, connection pooling, and session management
using SQLAlchemy 2.0 async patterns. PostgreSQL (via psycopg) is the default
target; SQLite (via aiosqlite) is supported for local use and tests.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import quote_plus

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from .models import Base


class DatabaseConfig:
    """Database configuration management."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "archi",
        username: str = "archi",
        password: Optional[str] = None,
        ssl_mode: str = "prefer",
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
        database_url: Optional[str] = None,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.username = username
        self.password = password
        self.ssl_mode = ssl_mode
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.echo = echo
        self.database_url = database_url

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Create configuration from environment variables."""
        return cls(
            host=os.getenv("ARCHI_DB_HOST", "localhost"),
            port=int(os.getenv("ARCHI_DB_PORT", "5432")),
            database=os.getenv("ARCHI_DB_NAME", "archi"),
            username=os.getenv("ARCHI_DB_USER", "archi"),
            password=os.getenv("ARCHI_DB_PASSWORD"),
            ssl_mode=os.getenv("ARCHI_DB_SSL_MODE", "prefer"),
            pool_size=int(os.getenv("ARCHI_DB_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("ARCHI_DB_MAX_OVERFLOW", "10")),
            echo=os.getenv("ARCHI_DB_ECHO", "false").lower() == "true",
            database_url=os.getenv("ARCHI_DB_URL") or None,
        )

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "DatabaseConfig":
        """Create configuration from a database URL, other settings as given."""
        return cls(database_url=database_url, **kwargs)

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.get_database_url()).get_backend_name() == "sqlite"

    def get_database_url(self) -> str:
        """Construct the database URL, preferring an explicit one."""
        if self.database_url:
            return self.database_url

        if self.password:
            encoded_password = quote_plus(self.password)
            auth = f"{self.username}:{encoded_password}"
        else:
            auth = self.username

        return (
            f"postgresql+psycopg://{auth}@{self.host}:{self.port}/{self.database}"
            f"?sslmode={self.ssl_mode}"
        )


class DatabaseManager:
    """
    Database connection and session management.

    Handles engine creation, session lifecycle, and connection pooling
    for async database operations.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._engine = None
        self._session_factory = None

    @property
    def engine(self):
        """Get or create the async database engine."""
        if self._engine is None:
            url = self.config.get_database_url()
            if self.config.is_sqlite:
                options = {"connect_args": {"check_same_thread": False}}
                # in-memory databases live only as long as their single connection
                if make_url(url).database in (None, "", ":memory:"):
                    options["poolclass"] = StaticPool
            elif os.getenv("TESTING"):
                options = {"poolclass": NullPool}
            else:
                options = {
                    "pool_size": self.config.pool_size,
                    "max_overflow": self.config.max_overflow,
                }
            self._engine = create_async_engine(url, echo=self.config.echo, **options)
        return self._engine

    @property
    def session_factory(self):
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    async def create_tables(self):
        """Create all database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self):
        """Drop all database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Get an async database session, rolled back if the block raises."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self):
        """Close the database engine."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
