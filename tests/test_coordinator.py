import asyncio

import pytest

from conftest import EXAMPLE_BASE, ExampleStrategy, FakeFetcher, example_pages
from statute_scraper.scraper.coordinator import ActiveScrapes, ScrapeCoordinator
from statute_scraper.scraper.models import (
    REASON_ALREADY_RUNNING,
    REASON_CANCELLED,
    REASON_FAILED,
    REASON_UNKNOWN_JURISDICTION,
    ScrapeOptions,
)
from statute_scraper.scraper.strategies import StrategyRegistry
from statute_scraper.storage.schemas import STATUS_COMPLETED, STATUS_FAILED


@pytest.fixture
def fetcher():
    return FakeFetcher(example_pages())


@pytest.fixture
def coordinator(config, session_factory, fetcher):
    registry = StrategyRegistry(config, strategies={'EX': ExampleStrategy}, fallback=None)
    return ScrapeCoordinator(config, session_factory, registry=registry, fetcher_factory=lambda: fetcher)


def test_active_scrapes_claims_once():
    active = ActiveScrapes()

    token = active.try_acquire("CA")
    assert token is not None
    assert active.try_acquire("CA") is None
    assert active.is_active("CA")
    assert active.active() == ["CA"]

    assert active.cancel("CA")
    assert token.is_set()

    active.release("CA")
    assert not active.is_active("CA")
    assert not active.cancel("CA")


def test_successful_scrape(coordinator):
    result = asyncio.run(coordinator.run_scrape(" ex "))

    assert result.success
    assert result.reason is None
    assert "3 statutes" in result.message
    session = coordinator.tracker.get(result.session_id)
    assert session['jurisdiction'] == "EX"
    assert session['status'] == STATUS_COMPLETED
    assert not coordinator.active.is_active("EX")


def test_unknown_jurisdiction_creates_no_session(coordinator):
    result = asyncio.run(coordinator.run_scrape("ZZ"))

    assert not result.success
    assert result.reason == REASON_UNKNOWN_JURISDICTION
    assert result.session_id is None
    assert coordinator.tracker.all() == []


def test_concurrent_trigger_is_rejected(coordinator, fetcher):
    fetcher.delay = 0.02

    async def scenario():
        return await asyncio.gather(coordinator.run_scrape("EX"), coordinator.run_scrape("ex"))

    first, second = asyncio.run(scenario())

    assert first.success
    assert not second.success
    assert second.reason == REASON_ALREADY_RUNNING
    assert second.session_id is None
    assert len(coordinator.tracker.all()) == 1


def test_failed_run_releases_jurisdiction(coordinator, fetcher):
    fetcher.pages[f"{EXAMPLE_BASE}/robots.txt"] = "User-agent: *\nDisallow: /\n"

    result = asyncio.run(coordinator.run_scrape("EX"))

    assert not result.success
    assert result.reason == REASON_FAILED
    assert "Robots.txt disallows scraping" in result.message
    assert coordinator.tracker.get(result.session_id)['status'] == STATUS_FAILED
    assert coordinator.store.count() == 0
    assert not coordinator.active.is_active("EX")

    again = asyncio.run(coordinator.run_scrape("EX"))
    assert again.reason == REASON_FAILED


def test_cancel_stops_running_scrape(coordinator, fetcher):
    fetcher.delay = 0.05

    async def scenario():
        task = asyncio.create_task(coordinator.run_scrape("EX"))
        await asyncio.sleep(0.02)
        assert coordinator.cancel("ex")
        return await task

    result = asyncio.run(scenario())

    assert not result.success
    assert result.reason == REASON_CANCELLED
    session = coordinator.tracker.get(result.session_id)
    assert session['status'] == STATUS_FAILED
    assert session['statutes_scraped'] < 3
    assert not coordinator.cancel("EX")


def test_partial_scrape_options(coordinator):
    result = asyncio.run(coordinator.run_scrape("EX", ScrapeOptions(sections=["2"])))

    session = coordinator.tracker.get(result.session_id)
    assert session['scrape_type'] == "partial_scrape"
    assert session['statutes_scraped'] == 1


def test_latest_status(coordinator):
    assert coordinator.latest_status("ex") == {'jurisdiction': "EX", 'is_active': False, 'latest_scrape': None}

    result = asyncio.run(coordinator.run_scrape("EX"))

    status = coordinator.latest_status("EX")
    assert status['latest_scrape']['id'] == result.session_id
    assert status['is_active'] is False


def test_history_default_limits(config, session_factory, fetcher):
    registry = StrategyRegistry(config, strategies={'EX': ExampleStrategy}, fallback=None)
    coordinator = ScrapeCoordinator(config, session_factory, registry=registry, fetcher_factory=lambda: fetcher)
    for _ in range(12):
        coordinator.tracker.start("EX")
    coordinator.tracker.start("CA")

    assert len(coordinator.history("ex")) == 10
    assert len(coordinator.history("EX", limit=3)) == 3
    assert len(coordinator.history()) == 13


def test_stats(coordinator, fetcher):
    asyncio.run(coordinator.run_scrape("EX"))
    fetcher.pages[f"{EXAMPLE_BASE}/robots.txt"] = "User-agent: *\nDisallow: /s/3\n"
    asyncio.run(coordinator.run_scrape("EX"))
    coordinator.tracker.start("CA")

    stats = coordinator.stats()

    assert stats['total_scrapes'] == 3
    assert stats['successful_scrapes'] == 1
    assert stats['failed_scrapes'] == 1
    assert stats['in_progress_scrapes'] == 1
    assert stats['total_statutes_scraped'] == 5
    assert stats['total_errors'] == 0
    assert stats['jurisdictions_covered'] == ["CA", "EX"]
    assert stats['last_scrape']['jurisdiction'] == "CA"


def test_default_registry_routing(config, session_factory):
    coordinator = ScrapeCoordinator(config, session_factory)

    assert coordinator.has_strategy("ca")
    assert coordinator.has_strategy("PA")
    assert coordinator.has_strategy("GA")
    assert not coordinator.has_strategy("ZZ")
    assert not coordinator.has_strategy("CA", ScrapeOptions(use_fallback=True))


class CleanupFailsStrategy(ExampleStrategy):
    async def cleanup(self):
        raise RuntimeError("connector already closed")


def test_cleanup_error_does_not_escape(config, session_factory, fetcher):
    registry = StrategyRegistry(config, strategies={'EX': CleanupFailsStrategy}, fallback=None)
    coordinator = ScrapeCoordinator(config, session_factory, registry=registry, fetcher_factory=lambda: fetcher)

    result = asyncio.run(coordinator.run_scrape("EX"))

    assert result.success
    assert coordinator.tracker.get(result.session_id)['status'] == STATUS_COMPLETED
    assert not coordinator.active.is_active("EX")
