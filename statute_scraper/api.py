"""HTTP surface over the scrape coordinator and the robots audit."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query
from pydantic import BaseModel

from statute_scraper.config.settings import Config
from statute_scraper.scraper.coordinator import ScrapeCoordinator
from statute_scraper.scraper.fetcher import PageFetcher
from statute_scraper.scraper.models import REASON_UNKNOWN_JURISDICTION, ScrapeOptions
from statute_scraper.scraper.robots_audit import RobotsAuditor
from statute_scraper.storage.database import get_session_factory, init_db
from statute_scraper.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class ScrapeResponse(BaseModel):
    success: bool
    message: str
    session_id: Optional[str] = None
    reason: Optional[str] = None


class CancelResponse(BaseModel):
    jurisdiction: str
    cancelled: bool


class StatusResponse(BaseModel):
    jurisdiction: str
    is_active: bool
    latest_scrape: Optional[Dict[str, Any]] = None


class StatsResponse(BaseModel):
    total_scrapes: int
    successful_scrapes: int
    failed_scrapes: int
    in_progress_scrapes: int
    total_statutes_scraped: int
    total_errors: int
    jurisdictions_covered: List[str]
    last_scrape: Optional[Dict[str, Any]] = None
    active_scrapes: List[str] = []


def build_coordinator(config: Optional[Config] = None) -> ScrapeCoordinator:
    """Coordinator backed by the process-wide database from config."""
    config = config or Config()
    setup_logging(config)
    init_db(config.database_path)
    return ScrapeCoordinator(config, get_session_factory())


def create_router(coordinator: ScrapeCoordinator, auditor: Optional[RobotsAuditor] = None) -> APIRouter:
    router = APIRouter(prefix="/scrape", tags=["Scraping"])

    @router.post("/{jurisdiction}", response_model=ScrapeResponse)
    async def trigger_scrape(
        jurisdiction: str,
        use_fallback: bool = False,
        section: Optional[List[str]] = Query(None),
    ):
        """Run a scrape for one jurisdiction and report how it ended."""
        result = await coordinator.run_scrape(
            jurisdiction, ScrapeOptions(use_fallback=use_fallback, sections=section)
        )
        if result.reason == REASON_UNKNOWN_JURISDICTION:
            raise HTTPException(status_code=400, detail=result.message)
        return ScrapeResponse(**result.to_dict())

    @router.post("/{jurisdiction}/cancel", response_model=CancelResponse)
    async def cancel_scrape(jurisdiction: str):
        cancelled = coordinator.cancel(jurisdiction)
        return CancelResponse(jurisdiction=coordinator.normalize(jurisdiction), cancelled=cancelled)

    @router.get("/status/{jurisdiction}", response_model=StatusResponse)
    async def scrape_status(jurisdiction: str):
        return StatusResponse(**coordinator.latest_status(jurisdiction))

    @router.get("/history", response_model=List[Dict[str, Any]])
    async def scrape_history(jurisdiction: Optional[str] = None, limit: Optional[int] = Query(None, ge=1)):
        return coordinator.history(jurisdiction, limit)

    @router.get("/stats", response_model=StatsResponse)
    async def scrape_stats():
        return StatsResponse(**coordinator.stats())

    @router.get("/robots-audit")
    async def robots_audit():
        """Check robots.txt of every candidate source. Slow: one request per site, paced."""
        if auditor is not None:
            return (await auditor.run()).to_dict()

        config = coordinator.config
        fetcher = PageFetcher(user_agent=config.user_agent, timeout=config.audit_timeout)
        try:
            report = await RobotsAuditor(
                fetcher, user_agent=config.user_agent, delay_seconds=config.audit_delay_seconds
            ).run()
        finally:
            await fetcher.close()
        return report.to_dict()

    return router


def create_app(coordinator: Optional[ScrapeCoordinator] = None, auditor: Optional[RobotsAuditor] = None) -> FastAPI:
    coordinator = coordinator or build_coordinator()
    app = FastAPI(title="Statute Scraper API")
    app.include_router(create_router(coordinator, auditor))
    logger.info("API ready")
    return app
