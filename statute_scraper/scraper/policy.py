"""Robots.txt compliance and request pacing for one source host."""

import asyncio
from typing import Optional
from urllib.parse import urljoin
from urllib.robotparser import RobotFileParser

import aiohttp

from statute_scraper.config.settings import DEFAULT_USER_AGENT
from statute_scraper.scraper.fetcher import FetchError
from statute_scraper.scraper.models import CrawlPolicy
from statute_scraper.utils.logger import get_logger
from statute_scraper.utils.rate_limiter import RateLimiter, retrying

logger = get_logger(__name__)

MISSING_STATUSES = (404, 410)
ROBOTS_FETCH_ERRORS = (FetchError, aiohttp.ClientError, asyncio.TimeoutError, OSError, UnicodeDecodeError, LookupError)


class PolicyViolation(Exception):
    """The site's robots directives forbid fetching this URL."""

    def __init__(self, url: str, message: str = ""):
        self.url = url
        super().__init__(message or f"Robots.txt disallows scraping: {url}")


class RobotsUnavailable(PolicyViolation):
    """robots.txt could not be read and the configured posture forbids guessing."""

    def __init__(self, url: str, reason: str):
        self.reason = reason
        super().__init__(url, f"robots.txt unavailable at {url}: {reason}")


def robots_url_for(base_url: str) -> str:
    return urljoin(base_url, "/robots.txt")


def parse_robots(text: str, user_agent: str = DEFAULT_USER_AGENT) -> CrawlPolicy:
    """Parse robots.txt text into the policy that applies to ``user_agent``."""
    parser = RobotFileParser()
    parser.parse(text.splitlines())

    entry = None
    for candidate in parser.entries:
        if candidate.applies_to(user_agent):
            entry = candidate
            break
    if entry is None:
        entry = parser.default_entry

    rules = [line.path for line in entry.rulelines if not line.allowance] if entry else []
    delay = parser.crawl_delay(user_agent)

    return CrawlPolicy(
        disallow_rules=rules,
        crawl_delay=float(delay) if delay is not None else None,
        source="robots",
        parser=parser,
        user_agent=user_agent,
    )


class PolicyGuard:
    """
    Gatekeeper for every request a scraper instance sends to one host.

    The robots policy is fetched on first use and memoized in ``_policy`` for
    the lifetime of the guard. All requests, including the robots.txt fetch
    itself, are spaced by the guard's own rate limiter.
    """

    def __init__(
        self,
        base_url: str,
        fetcher,
        user_agent: str = DEFAULT_USER_AGENT,
        min_delay: float = 2.0,
        allow_when_unreachable: bool = True,
        retries: int = 3,
        backoff_factor: float = 1.0,
        policy: Optional[CrawlPolicy] = None,
    ):
        self.base_url = base_url
        self.fetcher = fetcher
        self.user_agent = user_agent
        self.allow_when_unreachable = allow_when_unreachable
        self.retries = retries
        self.backoff_factor = backoff_factor
        self.rate_limiter = RateLimiter(min_delay)
        self.robots_failures = 0
        self._policy: Optional[CrawlPolicy] = None
        if policy is not None:
            self._set_policy(policy)

    @property
    def cached_policy(self) -> Optional[CrawlPolicy]:
        return self._policy

    def _set_policy(self, policy: CrawlPolicy):
        self._policy = policy
        self.rate_limiter.raise_floor(policy.crawl_delay)

    async def policy(self) -> CrawlPolicy:
        if self._policy is None:
            self._set_policy(await self._load_policy())
        return self._policy

    async def _load_policy(self) -> CrawlPolicy:
        robots_url = robots_url_for(self.base_url)
        try:
            await self.wait_for_slot()
            text = await self.fetcher.get_text(robots_url)
        except ROBOTS_FETCH_ERRORS as e:
            self.robots_failures += 1
            if isinstance(e, FetchError) and e.status in MISSING_STATUSES:
                logger.warning(f"robots.txt not found for {self.base_url}, proceeding with caution")
                return CrawlPolicy.permissive("missing")
            if not self.allow_when_unreachable:
                logger.error(f"robots.txt unreachable for {self.base_url}: {e!r}")
                raise RobotsUnavailable(robots_url, repr(e)) from e
            logger.warning(
                f"robots.txt unreachable for {self.base_url} ({e!r}), treating policy as allow-all"
            )
            return CrawlPolicy.permissive("unavailable")

        policy = parse_robots(text, self.user_agent)
        logger.info(
            f"Loaded robots.txt for {self.base_url}: {len(policy.disallow_rules)} disallow rules"
            + (f", crawl delay {policy.crawl_delay}s" if policy.crawl_delay else "")
        )
        return policy

    async def check_allowed(self, url: str) -> bool:
        allowed = (await self.policy()).allowed(url)
        if not allowed:
            logger.warning(f"robots.txt disallows: {url}")
        return allowed

    async def wait_for_slot(self) -> float:
        return await self.rate_limiter.wait()

    async def fetch(self, url: str) -> str:
        """Policy-checked, rate-limited GET. Raises PolicyViolation before any request."""
        if not await self.check_allowed(url):
            raise PolicyViolation(url)

        async for attempt in retrying(self.retries, self.backoff_factor):
            with attempt:
                await self.wait_for_slot()
                return await self.fetcher.get_text(url)
