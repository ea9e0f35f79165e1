"""Data models for the statute scraper."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse


@dataclass
class StatuteRecord:
    """A parsed statute, ready to be stored."""
    citation: str
    title: str
    content: str
    url: str
    jurisdiction: str
    category: Optional[str] = None
    penalties: Optional[str] = None
    effective_date: Optional[str] = None


class OutcomeKind(Enum):
    OK = "ok"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


@dataclass
class ItemOutcome:
    """Result of fetching and parsing one target document."""
    section: str
    kind: OutcomeKind
    statute: Optional[StatuteRecord] = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, section: str, statute: StatuteRecord) -> "ItemOutcome":
        return cls(section=section, kind=OutcomeKind.OK, statute=statute)

    @classmethod
    def recoverable(cls, section: str, error: BaseException) -> "ItemOutcome":
        return cls(section=section, kind=OutcomeKind.RECOVERABLE, error=error)

    @classmethod
    def fatal(cls, section: str, error: BaseException) -> "ItemOutcome":
        return cls(section=section, kind=OutcomeKind.FATAL, error=error)


@dataclass
class ScrapeOptions:
    """Caller options for a scrape run."""
    use_fallback: bool = False  # skip the dedicated strategy
    sections: Optional[List[str]] = None  # restrict the curated target list

    @property
    def scrape_type(self) -> str:
        return "partial_scrape" if self.sections else "full_scrape"


# ScrapeResult.reason values
REASON_ALREADY_RUNNING = "already_running"
REASON_UNKNOWN_JURISDICTION = "unknown_jurisdiction"
REASON_FAILED = "failed"
REASON_CANCELLED = "cancelled"


@dataclass
class ScrapeResult:
    """Uniform answer of the coordinator."""
    success: bool
    message: str
    session_id: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'message': self.message,
            'session_id': self.session_id,
            'reason': self.reason,
        }


@dataclass
class CrawlPolicy:
    """Robots directives that apply to this scraper's user agent on one host."""
    disallow_rules: List[str] = field(default_factory=list)
    crawl_delay: Optional[float] = None
    source: str = "robots"  # robots|missing|unavailable|injected
    parser: Optional[object] = field(default=None, repr=False)
    user_agent: str = "*"

    @classmethod
    def permissive(cls, source: str) -> "CrawlPolicy":
        return cls(source=source)

    def allowed(self, url: str) -> bool:
        if self.parser is not None:
            return self.parser.can_fetch(self.user_agent, url)
        return not any(_matches_rule(rule, url) for rule in self.disallow_rules)


def _matches_rule(rule: str, url: str) -> bool:
    """Prefix match of a Disallow path against the path of ``url``."""
    if not rule:
        return False
    parsed = urlparse(url)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return path.startswith(rule)
