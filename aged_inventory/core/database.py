"""
Database engine and session management.

Two engines live here: the local table store (read/write) and the optional
product catalog database (read-only, used by the image sync and token lookup).
"""

import logging
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from aged_inventory.core.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    if url.startswith("postgres") and settings.is_production:
        return {"sslmode": "require"}
    return {}


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine with the connect args appropriate for the URL's backend"""
    return create_engine(url, connect_args=_connect_args(url), pool_pre_ping=True, **kwargs)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Only a few connections are needed against the catalog DB
catalog_engine: Optional[Engine] = (
    build_engine(settings.CATALOG_DATABASE_URL, pool_size=3, max_overflow=0)
    if settings.CATALOG_DATABASE_URL
    else None
)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a session and always closes it"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the local tables if they do not exist yet"""
    # Import models so they register on Base.metadata
    import aged_inventory.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ready")
