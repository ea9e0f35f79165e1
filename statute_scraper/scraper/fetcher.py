"""Plain HTTP GET client used by policy guards and the robots audit."""

from typing import Optional

import aiohttp

from statute_scraper.config.settings import DEFAULT_USER_AGENT
from statute_scraper.utils.logger import get_logger

logger = get_logger(__name__)


class FetchError(Exception):
    """Non-2xx answer from a remote site."""

    def __init__(self, url: str, status: int, message: str = ""):
        self.url = url
        self.status = status
        super().__init__(message or f"HTTP {status} fetching {url}")


class PageFetcher:
    """
    Thin aiohttp wrapper with a fixed, honest user agent and a total timeout.

    The session is created lazily so a fetcher can be built outside a
    running event loop.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT, timeout: float = 30):
        self.user_agent = user_agent
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def get_text(self, url: str) -> str:
        session = await self._get_session()
        logger.info(f"Fetching: {url}")
        async with session.get(url) as resp:
            if resp.status < 200 or resp.status >= 300:
                raise FetchError(url, resp.status)
            # undecodable bytes become U+FFFD instead of failing the whole page
            return await resp.text(errors="replace")

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
