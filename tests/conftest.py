import asyncio
import time
from typing import Optional

import pytest

from statute_scraper.config.settings import Config
from statute_scraper.scraper.fetcher import FetchError
from statute_scraper.scraper.models import StatuteRecord
from statute_scraper.scraper.strategies.base import StatuteStrategy, StrategyContext, page_text
from statute_scraper.storage.database import create_session_factory
from statute_scraper.storage.session_tracker import SessionTracker
from statute_scraper.storage.statute_store import StatuteStore

EXAMPLE_BASE = "https://example.test"


def section_page(text: str) -> str:
    return f"<html><body><div class='statute'>{text}</div></body></html>"


class FakeFetcher:
    """
    Stand-in for PageFetcher serving canned pages.

    ``pages`` maps URL to page text or to an exception instance to raise.
    Unknown URLs answer 404, which also covers robots.txt.
    """

    def __init__(self, pages: Optional[dict] = None, delay: float = 0.0):
        self.pages = dict(pages or {})
        self.delay = delay
        self.requests = []
        self.closed = False

    async def get_text(self, url: str) -> str:
        self.requests.append((url, time.monotonic()))
        if self.delay:
            await asyncio.sleep(self.delay)
        value = self.pages.get(url)
        if value is None:
            raise FetchError(url, 404)
        if isinstance(value, BaseException):
            raise value
        return value

    async def close(self):
        self.closed = True

    @property
    def urls(self):
        return [url for url, _ in self.requests]


class ExampleStrategy(StatuteStrategy):
    name = "example"
    jurisdiction = "EX"
    base_url = EXAMPLE_BASE
    sections = ["1", "2", "3"]

    def section_url(self, section: str) -> str:
        return f"{self.base_url}/s/{section}"

    def citation_for(self, section: str) -> str:
        return f"Example Code § {section}"

    def parse(self, section, html, url) -> Optional[StatuteRecord]:
        return self.build_record(section, url, page_text(html, "div.statute"), f"Section {section} title")


def example_pages(overrides: Optional[dict] = None) -> dict:
    """Pages for sections 1-3; ``overrides`` maps a section to replacement text or an exception."""
    pages = {
        f"{EXAMPLE_BASE}/s/{n}": section_page(f"Statute text number {n}, long enough to keep.")
        for n in ("1", "2", "3")
    }
    for section, value in (overrides or {}).items():
        pages[f"{EXAMPLE_BASE}/s/{section}"] = value
    return pages


def make_config(**sections) -> Config:
    data = {
        'scraper': {'min_delay_seconds': 0.01, 'timeout': 5, 'retries': 1, 'backoff_factor': 0},
        'storage': {'database': ':memory:'},
        'policy': {'allow_when_robots_unreachable': True},
        'routing': {'via_fallback': ['PA']},
        'history': {'limit': 50, 'jurisdiction_limit': 10},
    }
    data.update(sections)
    return Config.from_dict(data)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def session_factory():
    return create_session_factory()


@pytest.fixture
def store(session_factory):
    return StatuteStore(session_factory)


@pytest.fixture
def tracker(session_factory):
    return SessionTracker(session_factory)


@pytest.fixture
def make_context(store, tracker, config):
    def _make(fetcher=None, **kwargs):
        return StrategyContext(store=store, tracker=tracker, config=config, fetcher=fetcher, **kwargs)
    return _make
