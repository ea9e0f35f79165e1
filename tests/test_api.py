import pytest
from fastapi.testclient import TestClient

from conftest import ExampleStrategy, FakeFetcher, example_pages
from statute_scraper.api import create_app
from statute_scraper.scraper.coordinator import ScrapeCoordinator
from statute_scraper.scraper.robots_audit import AuditSite, RobotsAuditor
from statute_scraper.scraper.strategies import StrategyRegistry


@pytest.fixture
def client(config, session_factory):
    fetcher = FakeFetcher(example_pages())
    registry = StrategyRegistry(config, strategies={'EX': ExampleStrategy}, fallback=None)
    coordinator = ScrapeCoordinator(config, session_factory, registry=registry, fetcher_factory=lambda: fetcher)
    auditor = RobotsAuditor(
        FakeFetcher(), delay_seconds=0, sites=[AuditSite('EX', 'Example', 'https://example.test', '/s/1')]
    )
    return TestClient(create_app(coordinator, auditor))


def test_scrape_unknown_jurisdiction(client):
    response = client.post("/scrape/zz")

    assert response.status_code == 400
    assert "ZZ" in response.json()["detail"]


def test_scrape_and_status(client):
    response = client.post("/scrape/ex")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["session_id"]

    status = client.get("/scrape/status/EX").json()
    assert status["jurisdiction"] == "EX"
    assert status["is_active"] is False
    assert status["latest_scrape"]["id"] == data["session_id"]
    assert status["latest_scrape"]["statutes_scraped"] == 3


def test_scrape_selected_sections(client):
    data = client.post("/scrape/EX", params={"section": ["1", "2"]}).json()

    status = client.get("/scrape/status/EX").json()
    assert data["success"] is True
    assert status["latest_scrape"]["scrape_type"] == "partial_scrape"
    assert status["latest_scrape"]["statutes_scraped"] == 2


def test_fallback_request_without_fallback_source(client):
    response = client.post("/scrape/EX", params={"use_fallback": True})

    assert response.status_code == 400


def test_cancel_when_idle(client):
    response = client.post("/scrape/ex/cancel")

    assert response.status_code == 200
    assert response.json() == {"jurisdiction": "EX", "cancelled": False}


def test_history_and_stats(client):
    client.post("/scrape/EX")
    client.post("/scrape/EX")

    history = client.get("/scrape/history").json()
    assert len(history) == 2
    assert client.get("/scrape/history", params={"jurisdiction": "ex", "limit": 1}).json()[0]["jurisdiction"] == "EX"

    stats = client.get("/scrape/stats").json()
    assert stats["total_scrapes"] == 2
    assert stats["successful_scrapes"] == 2
    assert stats["total_statutes_scraped"] == 6
    assert stats["jurisdictions_covered"] == ["EX"]


def test_robots_audit(client):
    data = client.get("/scrape/robots-audit").json()

    assert data["allowed"] == ["EX"]
    assert data["results"][0]["robots_txt_exists"] is False
