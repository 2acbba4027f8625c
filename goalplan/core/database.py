# goalplan/core/database.py
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from .config import Settings, settings
import logging
from typing import Any, AsyncGenerator, Dict, Optional

logger = logging.getLogger(__name__)

def engine_options(config: Settings = settings) -> Dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` on ``config.DATABASE_URL``."""
    engine_kwargs: Dict[str, Any] = {
        "echo": config.DEBUG,
        "future": True,
    }

    # SQLite (local runs, tests) uses the driver's default pool
    if not config.is_sqlite:
        engine_kwargs.update({
            "pool_size": 5,
            "max_overflow": 5,
            "pool_timeout": 30,       # Seconds to wait for a free connection
            "pool_pre_ping": True,    # Check connection before using
            "pool_recycle": 300,      # Recycle connections after 5 minutes
        })

    # Production runs on Supabase behind PgBouncer in transaction mode
    if config.is_supabase:
        # PgBouncer cannot keep prepared statements across transactions.
        # Also set an explicit connect timeout to fail fast instead of hanging.
        engine_kwargs["connect_args"] = {
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
            "timeout": 10,  # seconds for asyncpg connect
        }
        logger.info("Configured engine for Supabase/PgBouncer (prepared statements disabled, connect timeout set)")

    return engine_kwargs

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_options(settings)
)

# AsyncSession factory using async_sessionmaker
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
)

# Base class for all models
Base = declarative_base()

# Dependency to get DB session with proper exception handling
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    session = AsyncSessionLocal()
    try:
        yield session
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        await session.rollback()
        raise
    finally:
        await session.close()
        logger.debug("Database session closed")

async def create_db_and_tables(bind: Optional[AsyncEngine] = None) -> None:
    """Create every planner table on ``bind`` (the app engine by default).

    Managed databases are migrated with Alembic instead.
    """
    # models register themselves on Base.metadata at import
    from goalplan.models import budget_profile, goal, goal_progress  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
