import logging

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from vibe.core.config import settings
from vibe.helpers.getters import isDebugMode

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL
DATABASE_URL_SYNC = settings.DATABASE_URL_SYNC

if isDebugMode():
    logger.info("Using development database settings")

engine = create_async_engine(DATABASE_URL, future=True, echo=False)
SessionAsync = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Sync engine is used for schema bootstrap and Celery tasks
engine_sync = create_engine(DATABASE_URL_SYNC, pool_pre_ping=True)
SessionSync = sessionmaker(bind=engine_sync, expire_on_commit=False)
