from sqlmodel import create_engine, Session, SQLModel
from sqlalchemy.engine import make_url
from chattyagent.core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """Create an engine, applying pool tuning only where the driver pools connections"""
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


engine = build_engine(settings.DATABASE_URL)


def get_session():
    """Provide database session"""
    with Session(engine) as session:
        yield session


def init_db(target_engine=None):
    """Create all tables that do not exist yet"""
    # Register table metadata before create_all
    from chattyagent.db import models  # noqa: F401

    try:
        SQLModel.metadata.create_all(target_engine or engine)
        logger.info("✅ Database tables created/verified")
    except Exception as e:
        logger.error(f"❌ Failed to initialize database: {e}")
        raise
