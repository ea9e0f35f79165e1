"""Base statute scraping strategy."""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
from bs4 import BeautifulSoup

from statute_scraper.config.settings import Config
from statute_scraper.scraper.fetcher import FetchError, PageFetcher
from statute_scraper.scraper.models import CrawlPolicy, ItemOutcome, OutcomeKind, StatuteRecord
from statute_scraper.scraper.policy import PolicyGuard, PolicyViolation
from statute_scraper.storage.session_tracker import SessionTracker
from statute_scraper.storage.statute_store import StatuteStore
from statute_scraper.utils.logger import get_logger

MIN_CONTENT_LENGTH = 20
# LookupError: unknown charset label in Content-Type
FETCH_ERRORS = (FetchError, aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError, LookupError)


class ScrapeCancelled(Exception):
    """An operator asked the run to stop."""


class NoContentError(ValueError):
    """The fetched page held no usable statute text."""


@dataclass
class StrategyContext:
    """Collaborators shared by every strategy of one coordinator."""

    store: StatuteStore
    tracker: SessionTracker
    config: Config
    fetcher: Any = None
    cancel_event: Optional[asyncio.Event] = None
    policy: Optional[CrawlPolicy] = None
    sections: Optional[List[str]] = None
    scrape_type: str = "full_scrape"


def page_text(html: str, selector: Optional[str] = None) -> str:
    """Visible text of the page (or of the first ``selector`` match), one line per block."""
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(['script', 'style', 'noscript']):
        tag.decompose()
    node = soup.select_one(selector) if selector else (soup.body or soup)
    if node is None:
        return ""
    lines = [line.strip() for line in node.get_text("\n").splitlines()]
    return "\n".join(line for line in lines if line)


def first_text(html: str, selectors: Sequence[str]) -> str:
    soup = BeautifulSoup(html, 'html.parser')
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None:
            text = re.sub(r'\s+', ' ', node.get_text(" ")).strip()
            if text:
                return text
    return ""


def strip_chrome(text: str) -> str:
    """Drop the two leading and trailing lines (site header and footer)."""
    lines = [line for line in text.splitlines() if line.strip()]
    return "\n".join(lines[2:-2])


class StatuteStrategy(ABC):
    """
    One source site's way to turn curated section numbers into statutes.

    Subclasses provide the target list, URL and citation schemes and the page
    parser; the run loop, error policy and bookkeeping live here.
    """

    name: str = "base"
    jurisdiction: str = ""
    base_url: str = ""
    sections: Sequence[str] = ()

    def __init__(self, context: StrategyContext):
        self.context = context
        self.config = context.config
        self.store = context.store
        self.tracker = context.tracker
        self.cancel_event = context.cancel_event
        self.session_id: Optional[str] = None
        self.logger = get_logger(f"statute_scraper.strategies.{self.__class__.__name__}")

        self._owns_fetcher = context.fetcher is None
        self.fetcher = context.fetcher or PageFetcher(
            user_agent=self.config.user_agent,
            timeout=self.config.request_timeout,
        )
        self.guard = PolicyGuard(
            base_url=self.base_url,
            fetcher=self.fetcher,
            user_agent=self.config.user_agent,
            min_delay=self.config.min_delay_seconds,
            allow_when_unreachable=self.config.allow_when_robots_unreachable,
            retries=self.config.request_retries,
            backoff_factor=self.config.backoff_factor,
            policy=context.policy,
        )

    def targets(self) -> List[str]:
        """Sections to fetch: caller restriction, else config override, else the curated list."""
        if self.context.sections:
            return [str(s) for s in self.context.sections]
        configured = self.config.source_sections(self.jurisdiction)
        if configured:
            return configured
        # dict.fromkeys keeps order and drops repeated sections
        return list(dict.fromkeys(str(s) for s in self.sections))

    @abstractmethod
    def section_url(self, section: str) -> str:
        """URL of the page holding ``section``."""

    @abstractmethod
    def citation_for(self, section: str) -> str:
        """Canonical citation string for ``section``."""

    @abstractmethod
    def parse(self, section: str, html: str, url: str) -> Optional[StatuteRecord]:
        """Turn a fetched page into a statute, or None when it holds no statute text."""

    def categorize(self, section: str) -> str:
        return "criminal_offenses"

    def build_record(self, section: str, url: str, content: str, title: str = "") -> Optional[StatuteRecord]:
        if not content or len(content) < MIN_CONTENT_LENGTH:
            return None
        return StatuteRecord(
            citation=self.citation_for(section),
            title=title or f"Section {section}",
            content=content,
            url=url,
            jurisdiction=self.jurisdiction,
            category=self.categorize(section),
            effective_date=date.today().isoformat(),
        )

    async def fetch_page(self, url: str) -> str:
        return await self.guard.fetch(url)

    async def scrape_one(self, section: str) -> ItemOutcome:
        try:
            url = self.section_url(section)
        except ValueError as e:
            self.logger.error(f"Invalid section {section!r}: {e}")
            return ItemOutcome.recoverable(section, e)

        try:
            html = await self.fetch_page(url)
        except PolicyViolation as e:
            return ItemOutcome.fatal(section, e)
        except FETCH_ERRORS as e:
            self.logger.error(f"Error fetching section {section}: {e!r}")
            return ItemOutcome.recoverable(section, e)

        try:
            statute = self.parse(section, html, url)
        except Exception as e:
            self.logger.error(f"Error parsing section {section}: {e!r}")
            return ItemOutcome.recoverable(section, e)

        if statute is None:
            self.logger.warning(f"No content found for section {section}")
            return ItemOutcome.recoverable(section, NoContentError(f"No content for section {section}"))
        return ItemOutcome.ok(section, statute)

    async def scrape(self) -> str:
        """Run the whole target list; returns the session id."""
        targets = self.targets()
        self.session_id = self.tracker.start(self.jurisdiction, self.context.scrape_type)
        scraped = 0
        errors = 0

        try:
            self.logger.info(f"Starting {self.name} scrape of {len(targets)} sections for {self.jurisdiction}")

            for section in targets:
                if self.cancel_event is not None and self.cancel_event.is_set():
                    raise ScrapeCancelled(f"Scrape of {self.jurisdiction} cancelled by operator")

                outcome = await self.scrape_one(section)
                if outcome.kind is OutcomeKind.FATAL:
                    raise outcome.error

                if outcome.kind is OutcomeKind.OK and self.store.upsert(outcome.statute):
                    scraped += 1
                else:
                    errors += 1
                self.tracker.progress(self.session_id, scraped, errors)

            self.tracker.complete(self.session_id, True, metadata=self._summary(targets, scraped, errors))
            self.logger.info(f"Completed: {scraped} statutes scraped, {errors} errors")
        except (Exception, asyncio.CancelledError) as e:
            self.logger.error(f"Fatal error during {self.jurisdiction} scrape: {e!r}")
            self.tracker.complete(
                self.session_id, False, error_message=str(e) or e.__class__.__name__,
                metadata=self._summary(targets, scraped, errors),
            )
            raise

        return self.session_id

    @staticmethod
    def _summary(targets: List[str], scraped: int, errors: int) -> Dict[str, int]:
        return {'attempted': scraped + errors, 'succeeded': scraped, 'failed': errors, 'targets': len(targets)}

    async def cleanup(self):
        if self._owns_fetcher:
            await self.fetcher.close()
