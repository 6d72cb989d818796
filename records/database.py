"""
Database setup and connection management for the records system.

This module handles:
- SQLAlchemy engine creation
- Session management
- Connection pooling configuration
- Database initialization

A DatabaseManager is constructed explicitly and handed to the application
through the service context; there is no module-level engine.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator
import logging
import os

from sqlalchemy import create_engine, event, inspect, pool, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from records.models import Base

logger = logging.getLogger(__name__)

import dotenv

dotenv.load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass
class DatabaseConfig:
    """Configuration for database connections"""

    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite://"))

    # Connection pooling
    pool_size: int = field(default_factory=lambda: _env_int("DB_POOL_SIZE", 10))
    max_overflow: int = field(default_factory=lambda: _env_int("DB_MAX_OVERFLOW", 20))
    pool_recycle: int = field(default_factory=lambda: _env_int("DB_POOL_RECYCLE", 1500))

    # Echo SQL for debugging (set False in production)
    echo: bool = field(default_factory=lambda: os.getenv("DB_ECHO", "False").lower() == "true")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and (self.url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in self.url)


class DatabaseManager:
    """
    Manages database connections and session lifecycle.

    Usage:
        db_manager = DatabaseManager(DatabaseConfig())
        db_manager.initialize()
        with db_manager.session_scope() as session:
            # Do database operations
            pass
    """

    def __init__(self, config: DatabaseConfig = None):
        self.config = config or DatabaseConfig()
        self._engine = None
        self._SessionLocal = None

    def initialize(self):
        """
        Create the engine and session factory, then create missing tables.
        Safe to call twice.
        """
        if self._engine is not None:
            logger.warning("DatabaseManager already initialized")
            return

        self._engine = self._create_engine(self.config)
        self._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self._engine,
            expire_on_commit=False
        )
        self.create_tables()
        logger.info(f"Records database initialized ({self._engine.dialect.name})")

    @staticmethod
    def _create_engine(config: DatabaseConfig):
        """Create SQLAlchemy engine with pooling"""
        if config.is_sqlite:
            kwargs = {"connect_args": {"check_same_thread": False}}
            if config.is_memory:
                # one shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = pool.StaticPool
            engine = create_engine(config.url, echo=config.echo, **kwargs)

            @event.listens_for(engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            return engine

        logger.info(
            f"Database config: pool_size={config.pool_size}, max_overflow={config.max_overflow}"
        )
        return create_engine(
            config.url,
            poolclass=pool.QueuePool,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            echo=config.echo,
        )

    def create_tables(self):
        """Create all tables if they don't exist (idempotent)."""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        existing_tables = set(inspect(self._engine).get_table_names())
        Base.metadata.create_all(bind=self._engine, checkfirst=True)
        for table_name in Base.metadata.tables:
            if table_name not in existing_tables:
                logger.info(f"Created table: {table_name}")

    def get_session(self) -> Generator[Session, None, None]:
        """
        FastAPI dependency body for getting a database session.

        Commits when the request handler returns, rolls back on any error.
        """
        if self._SessionLocal is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Same lifecycle as get_session(), for scripts and tests."""
        yield from self.get_session()

    def health_check(self) -> bool:
        """Check if database is healthy"""
        try:
            if self._SessionLocal is None:
                return False

            session = self._SessionLocal()
            try:
                session.execute(text("SELECT 1"))
            finally:
                session.close()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    @property
    def engine(self):
        """Get the SQLAlchemy engine (for migrations, admin tasks)"""
        if self._engine is None:
            raise RuntimeError("Database not initialized")
        return self._engine

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None
