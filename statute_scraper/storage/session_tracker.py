"""Durable lifecycle records for scrape runs."""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from statute_scraper.storage.schemas import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_IN_PROGRESS,
    ScrapeSession,
    utcnow,
)
from statute_scraper.utils.logger import get_logger

logger = get_logger(__name__)


class SessionTracker:
    """
    Records start, progress and completion of scrape sessions.

    A session moves from ``in_progress`` to exactly one terminal status.
    Once terminal, its counters are frozen: late ``progress`` or repeated
    ``complete`` calls are logged and ignored.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def start(self, jurisdiction: str, scrape_type: str = "full_scrape") -> str:
        session_id = str(uuid.uuid4())
        db = self._session_factory()
        try:
            db.add(ScrapeSession(
                id=session_id,
                jurisdiction=jurisdiction,
                scrape_type=scrape_type,
                status=STATUS_IN_PROGRESS,
                started_at=utcnow(),
                statutes_scraped=0,
                error_count=0,
            ))
            db.commit()
        finally:
            db.close()
        logger.info(f"Started scrape session {session_id} for {jurisdiction}")
        return session_id

    def progress(self, session_id: str, scraped: int, errors: int) -> None:
        db = self._session_factory()
        try:
            session = db.get(ScrapeSession, session_id)
            if session is None:
                logger.warning(f"Progress for unknown session {session_id}")
                return
            if session.is_terminal:
                logger.warning(f"Ignoring progress for {session.status} session {session_id}")
                return
            if scraped < (session.statutes_scraped or 0) or errors < (session.error_count or 0):
                logger.warning(
                    f"Ignoring decreasing counters for session {session_id}: "
                    f"{scraped}/{errors} < {session.statutes_scraped}/{session.error_count}"
                )
                return

            session.statutes_scraped = scraped
            session.error_count = errors
            session.last_updated_at = utcnow()
            db.commit()
        finally:
            db.close()

    def complete(
        self,
        session_id: str,
        success: bool,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        db = self._session_factory()
        try:
            session = db.get(ScrapeSession, session_id)
            if session is None:
                logger.warning(f"Completion for unknown session {session_id}")
                return
            if session.is_terminal:
                logger.warning(f"Session {session_id} already {session.status}, not completing again")
                return

            now = utcnow()
            session.status = STATUS_COMPLETED if success else STATUS_FAILED
            session.completed_at = now
            session.last_updated_at = now
            session.error_message = None if success else (error_message or "Unknown error")
            session.metadata_json = metadata
            db.commit()
            logger.info(f"Scrape session {session_id} {session.status}")
        finally:
            db.close()

    def get(self, session_id: str) -> Optional[dict]:
        db = self._session_factory()
        try:
            session = db.get(ScrapeSession, session_id)
            return session.to_dict() if session else None
        finally:
            db.close()

    def latest(self, jurisdiction: str) -> Optional[dict]:
        history = self.history(jurisdiction, limit=1)
        return history[0] if history else None

    def history(self, jurisdiction: Optional[str] = None, limit: Optional[int] = None) -> List[dict]:
        """Most recent sessions first, optionally for one jurisdiction."""
        db = self._session_factory()
        try:
            query = db.query(ScrapeSession).order_by(
                ScrapeSession.started_at.desc(), ScrapeSession.id
            )
            if jurisdiction:
                query = query.filter_by(jurisdiction=jurisdiction)
            if limit:
                query = query.limit(limit)
            return [session.to_dict() for session in query.all()]
        finally:
            db.close()

    def all(self) -> List[dict]:
        return self.history()
