"""One-shot robots.txt audit of the candidate statute sources."""

import asyncio
from dataclasses import asdict, dataclass, field
from typing import List, Optional
from urllib.parse import urljoin

from statute_scraper.config.settings import DEFAULT_USER_AGENT
from statute_scraper.scraper.fetcher import FetchError
from statute_scraper.scraper.policy import MISSING_STATUSES, ROBOTS_FETCH_ERRORS, parse_robots, robots_url_for
from statute_scraper.utils.logger import get_logger
from statute_scraper.utils.rate_limiter import retry_on_failure

logger = get_logger(__name__)


@dataclass
class AuditSite:
    state: str
    name: str
    base_url: str
    test_path: str

    @property
    def test_url(self) -> str:
        return urljoin(self.base_url, self.test_path)


AUDIT_SITES = [
    AuditSite('CA', 'California', 'https://leginfo.legislature.ca.gov',
              '/faces/codes_displaySection.xhtml?sectionNum=242&lawCode=PEN'),
    AuditSite('TX', 'Texas', 'https://statutes.capitol.texas.gov', '/Docs/PE/htm/PE.19.htm'),
    AuditSite('FL', 'Florida', 'https://www.leg.state.fl.us',
              '/Statutes/index.cfm?App_mode=Display_Statute&Ch=782'),
    AuditSite('NY', 'New York', 'https://www.nysenate.gov', '/legislation/laws/PEN/125.25'),
    AuditSite('PA', 'Pennsylvania', 'https://www.legis.state.pa.us',
              '/cfdocs/legis/LI/consCheck.cfm?txtType=HTM&ttl=18&div=0&chpt=25'),
    AuditSite('IL', 'Illinois', 'https://www.ilga.gov', '/legislation/ilcs/ilcs3.asp?ActID=1876&ChapterID=53'),
    AuditSite('OH', 'Ohio', 'https://codes.ohio.gov', '/ohio-revised-code/section-2903.01'),
    AuditSite('GA', 'Georgia', 'https://law.justia.com',
              '/codes/georgia/title-16/chapter-5/article-1/section-16-5-1/'),
    AuditSite('NC', 'North Carolina', 'https://www.ncleg.gov', '/Laws/GeneralStatutes'),
    AuditSite('MI', 'Michigan', 'http://legislature.mi.gov', '/doc.aspx?mcl-750-316'),
]

ALTERNATIVES = [
    "Use the curated seed data for initial coverage",
    "Contact a licensed statute API provider (e.g. OpenLaws) for bulk coverage",
    "Contact state legislative counsel offices for bulk data or API access",
    "Focus scraping efforts on states that allow it",
]


@dataclass
class AuditResult:
    state: str
    name: str
    base_url: str
    test_url: str
    allowed: bool
    robots_txt_exists: bool
    disallow_rules: List[str] = field(default_factory=list)
    crawl_delay: Optional[float] = None
    notes: str = ""


@dataclass
class AuditReport:
    results: List[AuditResult] = field(default_factory=list)

    @property
    def allowed(self) -> List[AuditResult]:
        return [r for r in self.results if r.allowed]

    @property
    def disallowed(self) -> List[AuditResult]:
        return [r for r in self.results if not r.allowed]

    @property
    def recommendations(self) -> List[str]:
        recommendations = []
        if self.disallowed:
            recommendations.extend(ALTERNATIVES)
        if self.allowed:
            states = ", ".join(r.state for r in self.allowed)
            recommendations.append(f"Proceed with rate-limited scraping for: {states}")
        return recommendations

    def to_dict(self) -> dict:
        return {
            'results': [asdict(r) for r in self.results],
            'allowed': [r.state for r in self.allowed],
            'disallowed': [r.state for r in self.disallowed],
            'recommendations': self.recommendations,
        }

    def format_summary(self) -> str:
        total = len(self.results)
        report = ["=" * 60, "ROBOTS.TXT AUDIT SUMMARY", "=" * 60, ""]

        report.append(f"Allowed states ({len(self.allowed)}/{total}):")
        for r in self.allowed:
            report.append(f"  - {r.state}: {r.notes}")
        report.append("")

        report.append(f"Disallowed states ({len(self.disallowed)}/{total}):")
        for r in self.disallowed:
            report.append(f"  - {r.state}: {r.notes}")
            for rule in r.disallow_rules:
                report.append(f"      Disallow: {rule}")
        report.append("")

        if self.recommendations:
            report.append("Recommendations:")
            for rec in self.recommendations:
                report.append(f"  - {rec}")

        return "\n".join(report)


class RobotsAuditor:
    """Reads each candidate site's robots.txt and decides for one representative URL."""

    def __init__(
        self,
        fetcher,
        user_agent: str = DEFAULT_USER_AGENT,
        delay_seconds: float = 1.0,
        sites: Optional[List[AuditSite]] = None,
    ):
        self.fetcher = fetcher
        self.user_agent = user_agent
        self.delay_seconds = delay_seconds
        self.sites = list(AUDIT_SITES if sites is None else sites)

    @retry_on_failure(max_attempts=2, backoff_factor=0.5)
    async def _fetch_robots(self, robots_url: str) -> str:
        return await self.fetcher.get_text(robots_url)

    async def check_site(self, site: AuditSite) -> AuditResult:
        robots_url = robots_url_for(site.base_url)
        result = AuditResult(
            state=site.state,
            name=site.name,
            base_url=site.base_url,
            test_url=site.test_url,
            allowed=True,
            robots_txt_exists=False,
        )
        logger.info(f"Checking {site.name} ({site.state}): {robots_url}")

        try:
            text = await self._fetch_robots(robots_url)
        except ROBOTS_FETCH_ERRORS as e:
            if isinstance(e, FetchError) and e.status in MISSING_STATUSES:
                result.notes = "No robots.txt file (scraping allowed by default)"
                return result
            logger.error(f"Error checking {site.name}: {e!r}")
            result.allowed = False
            result.notes = f"Error checking robots.txt: {e}"
            return result

        policy = parse_robots(text, self.user_agent)
        result.robots_txt_exists = True
        result.allowed = policy.allowed(site.test_url)
        result.disallow_rules = policy.disallow_rules
        result.crawl_delay = policy.crawl_delay

        if result.allowed:
            result.notes = "Scraping allowed"
            if policy.crawl_delay:
                result.notes += f" (crawl delay: {policy.crawl_delay:g}s)"
        else:
            result.notes = "Scraping disallowed by robots.txt"
        logger.info(f"{site.state}: {'ALLOWED' if result.allowed else 'DISALLOWED'}")
        return result

    async def run(self) -> AuditReport:
        report = AuditReport()
        logger.info(f"Starting robots.txt audit of {len(self.sites)} sites")
        for index, site in enumerate(self.sites):
            if index and self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)
            report.results.append(await self.check_site(site))
        logger.info(f"Audit finished: {len(report.allowed)} allowed, {len(report.disallowed)} disallowed")
        return report
