# survey_backend/database.py
import logging
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from . import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for_url(database_url: str, **kwargs) -> AsyncEngine:
    """Build the async engine for a URL.

    Server databases get a bounded connection pool: a request waits at most
    ``DB_POOL_TIMEOUT`` seconds for a free connection before failing.
    """
    url = make_url(database_url)
    is_sqlite = url.get_backend_name() == "sqlite"
    options = {"echo": config.DB_ECHO}
    if not is_sqlite:
        options.update(
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_timeout=config.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    options.update(kwargs)

    async_engine = create_async_engine(database_url, **options)
    if is_sqlite:
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return async_engine


def create_session_factory(bind: AsyncEngine) -> sessionmaker:
    # expire_on_commit=False: committed rows stay readable without a lazy reload
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
        class_=AsyncSession,
    )


if config.DATABASE_URL_IS_FALLBACK:
    logger.warning(
        "DATABASE_URL not set, falling back to local SQLite database: %s",
        config.DATABASE_URL,
    )

engine = create_engine_for_url(config.DATABASE_URL)
AsyncSessionFactory = create_session_factory(engine)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session.

    Commits whatever is still open when the request succeeds, rolls back on
    error, and always closes the session so the pooled connection is released.
    """
    async with AsyncSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_db_and_tables(bind: Optional[AsyncEngine] = None) -> None:
    """Create all tables directly from the models.

    Production schemas are managed by Alembic; this is used for the local
    SQLite fallback when ``AUTO_CREATE_TABLES`` is on.
    """
    # Models must be registered on Base.metadata before create_all
    from . import models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured on %s", target.url.render_as_string())
