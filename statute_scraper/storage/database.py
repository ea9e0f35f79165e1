"""Database engine and session management."""
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from statute_scraper.storage.schemas import Base

# Global session factory (initialized in init_db)
_SessionLocal = None

MEMORY_DB = ":memory:"


def _build_engine(db_path: str):
    if db_path == MEMORY_DB:
        # One shared connection so every session sees the same in-memory database
        return create_engine(
            "sqlite://",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    return create_engine(
        f"sqlite:///{db_path}",
        echo=False,  # Set True for SQL logging
        connect_args={"check_same_thread": False}  # Allow multithreading
    )


def create_session_factory(db_path: str = MEMORY_DB) -> sessionmaker:
    """Create an engine, its tables, and a session factory bound to it."""
    engine = _build_engine(db_path)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(db_path: str = "data/statutes.db"):
    """Initialize the process-wide database engine and create tables."""
    global _SessionLocal

    _SessionLocal = create_session_factory(db_path)
    return _SessionLocal.kw["bind"]


def get_session_factory() -> sessionmaker:
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _SessionLocal

