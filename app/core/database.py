# app/core/database.py

import ssl
from dotenv import load_dotenv
from typing import AsyncGenerator

from loguru import logger
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy import text

from app.core.config import settings

# ----------------------------------------------------
# Load environment
# ----------------------------------------------------
load_dotenv()
DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set")


# ----------------------------------------------------
# SSL for Supabase Pooler
# ----------------------------------------------------
def make_ssl():
    ctx = ssl.create_default_context()
    if not settings.DB_SSL_VERIFY:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


# ----------------------------------------------------
# Engine
# ----------------------------------------------------
if is_sqlite(DATABASE_URL):
    # Local dev / tests. An in-memory database needs one shared connection
    # to survive across sessions; a file database opens one per session.
    logger.info("Configuring Database (SQLite)")
    in_memory = ":memory:" in DATABASE_URL or DATABASE_URL.rstrip("/").endswith("sqlite+aiosqlite:")
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool if in_memory else NullPool,
    )
else:
    # AsyncPG SAFE Config (works with Supabase POOLER)
    logger.info("Configuring Database (Pooler Mode)")
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        future=True,
        connect_args={
            "ssl": make_ssl(),
            "statement_cache_size": 0,            # disable prepared statements
            "prepared_statement_name_func": None  # prevent SQLAlchemy from naming statements
        },
        pool_pre_ping=True,
        poolclass=NullPool,       # required for Pooler
    )


# ----------------------------------------------------
# Sessions
# ----------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ----------------------------------------------------
# Create / drop tables
# ----------------------------------------------------
async def init_db():
    # Register every table on the metadata before create_all
    from app.models import (  # noqa: F401
        user, system_module, module_config, sidebar, settings_snapshot, system_audit
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


# ----------------------------------------------------
# Test Connection (SAFE)
# ----------------------------------------------------
async def test_connection():
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
        logger.debug("DB Connection OK")
