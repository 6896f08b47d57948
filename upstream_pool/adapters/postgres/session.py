"""Postgres Session Management."""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from upstream_pool.core.config import settings

logger = logging.getLogger(__name__)

engine = None
SessionLocal = None


def init_engine(url: str = None):
    """Create the engine and session factory once."""
    global engine, SessionLocal
    if engine is None:
        engine = create_engine(
            url or settings.DATABASE_URL,
            pool_pre_ping=True,
            connect_args={"connect_timeout": settings.DATABASE_CONNECT_TIMEOUT_MS // 1000},
        )
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info("Initialized Database Engine")
    return engine


def get_db():
    """Dependency yielding a session that is closed after use."""
    init_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
