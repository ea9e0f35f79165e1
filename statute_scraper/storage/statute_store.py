"""Idempotent statute persistence keyed by citation."""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from statute_scraper.scraper.models import StatuteRecord
from statute_scraper.storage.schemas import Statute, utcnow
from statute_scraper.utils.logger import get_logger

logger = get_logger(__name__)

MUTABLE_FIELDS = (
    'title', 'content', 'url', 'jurisdiction', 'category', 'penalties', 'effective_date',
)


class StatuteStore:
    """Insert-or-update statutes. Rows are never deleted from here."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def upsert(self, record: StatuteRecord) -> bool:
        """
        Insert the statute or overwrite the row with the same citation.

        Returns False instead of raising when the database rejects the write,
        so the caller can count it as a per-item error.
        """
        db = self._session_factory()
        try:
            existing = db.query(Statute).filter_by(citation=record.citation).first()
            if existing:
                for name in MUTABLE_FIELDS:
                    setattr(existing, name, getattr(record, name))
                existing.updated_at = utcnow()
                action = "Updated"
            else:
                now = utcnow()
                db.add(Statute(
                    citation=record.citation,
                    created_at=now,
                    updated_at=now,
                    **{name: getattr(record, name) for name in MUTABLE_FIELDS},
                ))
                action = "Inserted"
            db.commit()
            logger.info(f"{action} statute: {record.citation}")
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error saving statute {record.citation}: {e}")
            return False
        finally:
            db.close()

    def get(self, citation: str) -> Optional[dict]:
        db = self._session_factory()
        try:
            row = db.query(Statute).filter_by(citation=citation).first()
            return row.to_dict() if row else None
        finally:
            db.close()

    def count(self, jurisdiction: Optional[str] = None) -> int:
        db = self._session_factory()
        try:
            query = db.query(Statute)
            if jurisdiction:
                query = query.filter_by(jurisdiction=jurisdiction.upper())
            return query.count()
        finally:
            db.close()

    def list(self, jurisdiction: Optional[str] = None, limit: int = 0) -> List[dict]:
        db = self._session_factory()
        try:
            query = db.query(Statute).order_by(Statute.citation)
            if jurisdiction:
                query = query.filter_by(jurisdiction=jurisdiction.upper())
            if limit > 0:
                query = query.limit(limit)
            return [row.to_dict() for row in query.all()]
        finally:
            db.close()
