import os
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Bills live in SQLite locally; point DATABASE_URL at PostgreSQL in deployment
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./billsplit.db")

Base = declarative_base()


def make_engine(url: str = DATABASE_URL):
    """
    Build an engine for the given URL.

    SQLite connections may be used from FastAPI's worker threads, and an
    in-memory SQLite database ("sqlite://") is pinned to a single connection
    so every session sees the same tables.
    """
    if not url.startswith("sqlite"):
        return create_engine(url)
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False})


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> bool:
    try:
        with engine.connect():
            logger.debug(f"Database reachable at {engine.url.render_as_string(hide_password=True)}")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
