import ssl
from typing import AsyncGenerator

import structlog
from fastapi import HTTPException
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = structlog.get_logger()


def get_connect_args():
    """Get connection arguments"""
    if not settings.is_postgres:
        return {}

    connect_args = {
        "timeout": 30,
        "command_timeout": 30,
    }

    if settings.ENVIRONMENT == "prod":
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args.update(
            {
                "ssl": ssl_context,
                "server_settings": {
                    "application_name": "school_api",
                    "client_encoding": "utf8",
                },
            }
        )

    return connect_args


def enable_sqlite_foreign_keys(sync_engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    settings.DATABASE_URI,
    echo=settings.DB_ECHO_QUERIES,
    pool_pre_ping=settings.is_postgres,
    connect_args=get_connect_args(),
)

if engine.dialect.name == "sqlite":
    enable_sqlite_foreign_keys(engine.sync_engine)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except HTTPException:
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error("Database session rolled back", error=str(e))
            raise
