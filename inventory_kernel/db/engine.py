"""
Module: inventory_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities, wrapped in one ``Database`` object that
    is built once at process start and injected wherever sessions are needed.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/, domain/, or outer layers (except
    create_tables, which imports models so metadata is complete).

Invariants enforced:
    - No process-wide client: there are no module-level engine globals.
      Every component receives the Database (or a Session from it).
    - PostgreSQL runs at READ COMMITTED with explicit row-level locking
      (SELECT ... FOR UPDATE) in the ledger.
    - SQLite transactions start with BEGIN IMMEDIATE, so concurrent writers
      serialize on the database file instead of failing lock upgrades.

Failure modes:
    - OperationalError ("database is locked") on SQLite if a writer waits
      longer than ``sqlite_timeout`` seconds.
    - Connection pool exhaustion on PostgreSQL if pool_size + max_overflow
      is exceeded.

Audit relevance:
    All database transactions flow through sessions created here.
    session_scope() gives atomic commit-or-rollback semantics: a ledger row
    and its counter update are committed together or not at all.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from inventory_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    """Take pysqlite out of autobegin and issue BEGIN IMMEDIATE ourselves."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Engine plus session factory for one database URL.

    Contract:
        Constructed once per process (API startup, CLI, test session) and
        passed to whatever needs sessions.  ``session_scope()`` is the unit
        of atomicity for every inventory mutation.

    Guarantees:
        - ``session_scope()`` commits on normal exit and rolls back on any
          exception, re-raising it.
        - Sessions never expire attributes on commit, so DTOs can be built
          from ORM rows after the scope exits.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        sqlite_timeout: float = 30.0,
    ):
        self.url = database_url
        if database_url.startswith("sqlite"):
            self.engine = create_engine(
                database_url,
                echo=echo,
                connect_args={
                    "check_same_thread": False,
                    "timeout": sqlite_timeout,
                },
            )
            _enable_sqlite_immediate_transactions(self.engine)
        else:
            self.engine = create_engine(
                database_url,
                echo=echo,
                poolclass=QueuePool,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                isolation_level="READ COMMITTED",
            )

        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

        logger.info(
            "engine_initialized",
            extra={"dialect": self.engine.dialect.name, "echo": echo},
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Session factory for multi-threaded callers (one session per thread)."""
        return self._session_factory

    def session(self) -> Session:
        """Get a new, unmanaged session instance."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with database.session_scope() as session:
                services = InventoryServices(session, clock, catalog)
                services.holds.create_hold(...)
                # Commits on successful exit, rolls back on exception
        """
        session = self._session_factory()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.debug("transaction_rolled_back", exc_info=True)
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all tables defined in the models."""
        from inventory_kernel.db.base import Base
        import inventory_kernel.models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        from inventory_kernel.db.base import Base
        import inventory_kernel.models  # noqa: F401

        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Release all pooled connections."""
        self.engine.dispose()
