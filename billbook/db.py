import logging
import os

from alembic.config import Config
from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from alembic import command
from billbook.exceptions import StorageError
from billbook.settings import settings

logger = logging.getLogger(__name__)


def get_url() -> str:
    if settings.db_url:
        return settings.db_url
    if settings.db_backend == "sqlite":
        return f"sqlite:///{os.path.abspath(settings.db_path)}"
    raise ValueError(f"Unsupported DB backend: {settings.db_backend}")


def _create_engine(url: str) -> Engine:
    engine = create_engine(url)
    if url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.execute("PRAGMA journal_mode = WAL")
            cursor.execute("PRAGMA busy_timeout = 5000")
            cursor.close()

    return engine


class Database:
    """One engine and one connection, opened and closed explicitly.

    Construct it at startup, ``open()`` it, hand ``connection`` to the
    repositories and ``close()`` it on shutdown. Also usable as a context
    manager.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine: Engine | None = None
        self._connection: Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise StorageError("Database is not open")
        return self._connection

    def open(self) -> Connection:
        if self._connection is not None:
            return self._connection
        try:
            self._engine = _create_engine(self.url)
            self._connection = self._engine.connect()
        except SQLAlchemyError as exc:
            self._engine = None
            raise StorageError(f"Could not open database: {exc}") from exc
        logger.info("Database opened")
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        logger.debug("Database closed")

    def __enter__(self) -> "Database":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _get_alembic_config() -> Config:
    """Build Alembic config pointing at the project root alembic.ini."""
    project_root = os.path.dirname(os.path.dirname(__file__))
    ini_path = os.path.join(project_root, "alembic.ini")
    if not os.path.exists(ini_path):
        ini_path = os.path.join(os.getcwd(), "alembic.ini")
    cfg = Config(ini_path)
    return cfg


def initialize_db(database: Database) -> None:
    """Run all pending Alembic migrations on the database's open connection."""
    logger.info("Running Alembic migrations")
    cfg = _get_alembic_config()
    cfg.set_main_option("sqlalchemy.url", database.url.replace("%", "%%"))
    cfg.attributes["connection"] = database.connection
    command.upgrade(cfg, "head")
    database.connection.commit()
    logger.info("Migrations complete")
