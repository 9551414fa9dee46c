from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from contextlib import asynccontextmanager
from typing import AsyncGenerator
import os
import logging

from messenger.config import Config
from .database import Base


class BaseDatabaseManager:
    def __init__(self, config: Config):
        self.config = config
        self.engine = None
        self.session_factory = None
        self._logger = logging.getLogger(__name__)

    async def initialize(self):
        raise NotImplementedError()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One session is one transaction: committed when the block exits normally,
        rolled back if anything inside raises.
        """
        if not self.engine:
            await self.initialize()

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_tables(self):
        if not self.engine:
            await self.initialize()

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        if self.engine:
            await self.engine.dispose()
            self.engine = None


class DatabaseManager(BaseDatabaseManager):
    async def initialize(self):
        db = self.config.db
        if db.is_postgres:
            self.engine = create_async_engine(
                url=db.url,
                pool_size=5,
                max_overflow=5,
                pool_pre_ping=True,
                echo=False,
            )
        else:
            directory = os.path.dirname(db.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.engine = create_async_engine(url=db.url, echo=False)

            @event.listens_for(self.engine.sync_engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self._logger.debug("Database engine created for %s", "postgresql" if db.is_postgres else db.path)

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
