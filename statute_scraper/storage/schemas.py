"""SQLAlchemy models for the statute scraper database."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_FAILED)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class Statute(Base):
    """A single statute, unique by its citation."""
    __tablename__ = "statutes"

    id = Column(Integer, primary_key=True)
    citation = Column(String, nullable=False)  # e.g. "Cal. Penal Code § 187"
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    url = Column(String, nullable=False)
    jurisdiction = Column(String, nullable=False)
    category = Column(String)
    penalties = Column(Text)
    effective_date = Column(String)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index('idx_statutes_citation', 'citation', unique=True),
        Index('idx_statutes_jurisdiction', 'jurisdiction'),
    )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'citation': self.citation,
            'title': self.title,
            'content': self.content,
            'url': self.url,
            'jurisdiction': self.jurisdiction,
            'category': self.category,
            'penalties': self.penalties,
            'effective_date': self.effective_date,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class ScrapeSession(Base):
    """Tracks one scrape run for a jurisdiction."""
    __tablename__ = "scrape_sessions"

    id = Column(String, primary_key=True)  # UUID
    jurisdiction = Column(String, nullable=False)
    scrape_type = Column(String, nullable=False, default="full_scrape")
    status = Column(String, nullable=False, default=STATUS_IN_PROGRESS)  # in_progress|completed|failed
    started_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime)
    last_updated_at = Column(DateTime)
    statutes_scraped = Column(Integer, default=0)
    error_count = Column(Integer, default=0)
    error_message = Column(Text)
    metadata_json = Column("metadata", JSON)  # {"attempted": 3, "succeeded": 2, "failed": 1}

    __table_args__ = (
        Index('idx_scrape_sessions_jurisdiction', 'jurisdiction'),
        Index('idx_scrape_sessions_status', 'status'),
        Index('idx_scrape_sessions_started_at', 'started_at'),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'jurisdiction': self.jurisdiction,
            'scrape_type': self.scrape_type,
            'status': self.status,
            'started_at': _iso(self.started_at),
            'completed_at': _iso(self.completed_at),
            'last_updated_at': _iso(self.last_updated_at),
            'statutes_scraped': self.statutes_scraped or 0,
            'error_count': self.error_count or 0,
            'error_message': self.error_message,
            'metadata': self.metadata_json,
        }
