"""Alembic environment for the paayo schema (async engine)."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from paayo.config import settings
from paayo.core.base_model import Base

# Models register their tables on Base.metadata at import time
from paayo.modules.auth.models import Account, Session, User  # noqa: F401
from paayo.modules.content.models import (  # noqa: F401
    ContentLink, HeroSlide, Hotel, HotelBranch, PhotoFeature, PhotoImage, Post, Region, Video,
)
from paayo.modules.engagement.models import (  # noqa: F401
    Comment, ContentLike, ContentView, ViewAggregate,
)
from paayo.modules.media.models import Media  # noqa: F401
from paayo.modules.notifications.models import Notification  # noqa: F401
from paayo.modules.tags.models import ContentTag, Tag  # noqa: F401

config = context.config

# ConfigParser treats % as interpolation
config.set_main_option("sqlalchemy.url", str(settings.database_url).replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_with_connection(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata, **COMPARE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with engine.connect() as connection:
        await connection.run_sync(_run_with_connection)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
