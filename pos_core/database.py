from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from pos_core.config import Settings


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine backing the record store.

    Pool options only apply to server databases; SQLite files get one
    connection per session so concurrent transactions never share one.
    """
    options = {"echo": settings.database_echo, "pool_pre_ping": True}
    if settings.database_url.startswith("sqlite"):
        options.update(poolclass=NullPool, connect_args={"timeout": _sqlite_busy_timeout(settings)})
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
        )
    engine = create_async_engine(settings.database_url, **options)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_immediate_transactions(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def _sqlite_busy_timeout(settings: Settings) -> float:
    """Seconds a SQLite connection waits for the write lock before failing."""
    if settings.db_lock_timeout_ms > 0:
        return settings.db_lock_timeout_ms / 1000
    return 30.0


def _enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    # SQLite has no SELECT ... FOR UPDATE; taking the write lock at BEGIN
    # serializes writers the same way a row lock does.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
