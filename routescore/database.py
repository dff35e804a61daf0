import logging
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from routescore.config import get_settings
from routescore.models import Base

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _create_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # SQLite connections are handed between the API and scheduler threads
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        echo=False,  # Set to True for SQL debugging
    )


def get_engine():
    """
    Return the SQLAlchemy engine for the configured DATABASE_URL

    Engines are created once per URL. Connection pooling is enabled for
    server databases:
    - pool_pre_ping: Verify connections before using (handle stale connections)
    - pool_size: Number of connections to maintain in pool
    - max_overflow: Additional connections allowed when pool is full
    - pool_recycle: Recycle connections after 1 hour
    """
    return _create_engine(get_settings().database_url)


def init_db(engine=None):
    """Initialize the database by creating all tables"""
    if engine is None:
        engine = get_engine()

    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized at %s", engine.url.render_as_string(hide_password=True))


def get_session() -> Session:
    """Get a new database session"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return SessionLocal()


def get_db():
    """FastAPI dependency yielding a session that is closed after the request"""
    db = get_session()
    try:
        yield db
    finally:
        db.close()
