# survey_api/database.py
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)

logger.debug("Using DATABASE_URL: %s", DATABASE_URL)

# echo=True gibt alle SQL-Statements aus, die SQLAlchemy generiert. Nur zum Debuggen.
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO)

# expire_on_commit=False: ORM-Objekte bleiben nach dem Commit lesbar (async, kein Lazy-Load)
AsyncSessionFactory = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db_session() -> AsyncSession:
    async with AsyncSessionFactory() as session:
        try:
            yield session
            await session.commit()  # Commit am Ende, wenn alles gut ging
        except Exception:
            await session.rollback()  # Rollback bei Fehlern
            raise
        finally:
            await session.close()


async def create_db_and_tables():
    """
    Creates all tables directly from the metadata.

    Production schemas are managed by Alembic (``alembic upgrade head``); this
    is only used for local SQLite setups and tests.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")
