"""Entry point for scrape runs: one run per jurisdiction at a time."""

import asyncio
import threading
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from statute_scraper.config.settings import Config
from statute_scraper.scraper.models import (
    REASON_ALREADY_RUNNING,
    REASON_CANCELLED,
    REASON_FAILED,
    REASON_UNKNOWN_JURISDICTION,
    CrawlPolicy,
    ScrapeOptions,
    ScrapeResult,
)
from statute_scraper.scraper.strategies import ScrapeCancelled, StrategyContext, StrategyRegistry
from statute_scraper.storage.schemas import STATUS_COMPLETED, STATUS_FAILED, STATUS_IN_PROGRESS
from statute_scraper.storage.session_tracker import SessionTracker
from statute_scraper.storage.statute_store import StatuteStore
from statute_scraper.utils.logger import get_logger

logger = get_logger(__name__)


class ActiveScrapes:
    """
    Jurisdictions with a run in flight, each mapped to its cancel token.

    Guarded by a thread lock so the check-and-insert stays atomic even when
    several event loops (e.g. a threaded server) share one coordinator.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._runs: Dict[str, asyncio.Event] = {}

    def try_acquire(self, jurisdiction: str) -> Optional[asyncio.Event]:
        """Claim ``jurisdiction``; returns its cancel token, or None if already claimed."""
        with self._lock:
            if jurisdiction in self._runs:
                return None
            event = asyncio.Event()
            self._runs[jurisdiction] = event
            return event

    def release(self, jurisdiction: str):
        with self._lock:
            self._runs.pop(jurisdiction, None)

    def is_active(self, jurisdiction: str) -> bool:
        with self._lock:
            return jurisdiction in self._runs

    def cancel(self, jurisdiction: str) -> bool:
        with self._lock:
            event = self._runs.get(jurisdiction)
        if event is None:
            return False
        event.set()
        return True

    def active(self) -> List[str]:
        with self._lock:
            return sorted(self._runs)


class ScrapeCoordinator:
    """
    Single entry point for triggering scrapes and reading their history.

    Every outcome of ``run_scrape`` is a ScrapeResult; exceptions raised by
    a strategy never reach the caller.
    """

    def __init__(
        self,
        config: Config,
        session_factory: sessionmaker,
        registry: Optional[StrategyRegistry] = None,
        active: Optional[ActiveScrapes] = None,
        fetcher_factory: Optional[Callable[[], object]] = None,
        policy_factory: Optional[Callable[[str], Optional[CrawlPolicy]]] = None,
    ):
        self.config = config
        self.store = StatuteStore(session_factory)
        self.tracker = SessionTracker(session_factory)
        self.registry = registry or StrategyRegistry(config)
        self.active = active or ActiveScrapes()
        self.fetcher_factory = fetcher_factory
        self.policy_factory = policy_factory

    @staticmethod
    def normalize(jurisdiction: str) -> str:
        return jurisdiction.strip().upper()

    def has_strategy(self, jurisdiction: str, options: Optional[ScrapeOptions] = None) -> bool:
        options = options or ScrapeOptions()
        return self.registry.has_strategy(self.normalize(jurisdiction), options.use_fallback)

    def _context(self, jurisdiction: str, options: ScrapeOptions, cancel_event: asyncio.Event) -> StrategyContext:
        return StrategyContext(
            store=self.store,
            tracker=self.tracker,
            config=self.config,
            fetcher=self.fetcher_factory() if self.fetcher_factory else None,
            cancel_event=cancel_event,
            policy=self.policy_factory(jurisdiction) if self.policy_factory else None,
            sections=options.sections,
            scrape_type=options.scrape_type,
        )

    async def run_scrape(self, jurisdiction: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        code = self.normalize(jurisdiction)
        options = options or ScrapeOptions()

        if not self.registry.has_strategy(code, options.use_fallback):
            return ScrapeResult(
                success=False,
                message=f"No scraper available for jurisdiction: {code}",
                reason=REASON_UNKNOWN_JURISDICTION,
            )

        # Claimed before the first await so two triggers cannot both pass
        cancel_event = self.active.try_acquire(code)
        if cancel_event is None:
            logger.warning(f"Scrape already in progress for {code}")
            return ScrapeResult(
                success=False,
                message=f"Scraping already in progress for {code}",
                reason=REASON_ALREADY_RUNNING,
            )

        strategy = None
        try:
            strategy = self.registry.resolve(code, self._context(code, options, cancel_event), options.use_fallback)
            if strategy is None:
                return ScrapeResult(
                    success=False,
                    message=f"No scraper available for jurisdiction: {code}",
                    reason=REASON_UNKNOWN_JURISDICTION,
                )

            logger.info(f"Starting scrape for {code} with {strategy.name}")
            session_id = await strategy.scrape()
            session = self.tracker.get(session_id) or {}
            return ScrapeResult(
                success=True,
                message=(
                    f"Scrape completed for {code}: {session.get('statutes_scraped', 0)} statutes, "
                    f"{session.get('error_count', 0)} errors"
                ),
                session_id=session_id,
            )
        except ScrapeCancelled as e:
            logger.info(f"Scrape for {code} cancelled")
            return ScrapeResult(success=False, message=str(e), session_id=strategy.session_id, reason=REASON_CANCELLED)
        except Exception as e:
            logger.error(f"Scrape for {code} failed: {e}", exc_info=True)
            return ScrapeResult(
                success=False,
                message=str(e) or e.__class__.__name__,
                session_id=getattr(strategy, 'session_id', None),
                reason=REASON_FAILED,
            )
        finally:
            try:
                if strategy is not None:
                    await strategy.cleanup()
            except Exception as e:
                logger.error(f"Cleanup after {code} scrape failed: {e!r}")
            finally:
                self.active.release(code)

    def cancel(self, jurisdiction: str) -> bool:
        """Ask the run for ``jurisdiction`` to stop after its current item."""
        cancelled = self.active.cancel(self.normalize(jurisdiction))
        if cancelled:
            logger.info(f"Cancellation requested for {self.normalize(jurisdiction)}")
        return cancelled

    def latest_status(self, jurisdiction: str) -> dict:
        code = self.normalize(jurisdiction)
        return {
            'jurisdiction': code,
            'is_active': self.active.is_active(code),
            'latest_scrape': self.tracker.latest(code),
        }

    def history(self, jurisdiction: Optional[str] = None, limit: Optional[int] = None) -> List[dict]:
        if jurisdiction:
            return self.tracker.history(
                self.normalize(jurisdiction), limit or self.config.jurisdiction_history_limit
            )
        return self.tracker.history(limit=limit or self.config.history_limit)

    def stats(self) -> dict:
        sessions = self.tracker.all()
        return {
            'total_scrapes': len(sessions),
            'successful_scrapes': sum(1 for s in sessions if s['status'] == STATUS_COMPLETED),
            'failed_scrapes': sum(1 for s in sessions if s['status'] == STATUS_FAILED),
            'in_progress_scrapes': sum(1 for s in sessions if s['status'] == STATUS_IN_PROGRESS),
            'total_statutes_scraped': sum(s['statutes_scraped'] or 0 for s in sessions),
            'total_errors': sum(s['error_count'] or 0 for s in sessions),
            'jurisdictions_covered': sorted({s['jurisdiction'] for s in sessions}),
            'last_scrape': sessions[0] if sessions else None,
            'active_scrapes': self.active.active(),
        }
