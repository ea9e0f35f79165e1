"""Generic fallback source: law.justia.com code pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from statute_scraper.config.settings import Config
from statute_scraper.scraper.models import StatuteRecord
from statute_scraper.scraper.strategies.base import (
    StatuteStrategy,
    StrategyContext,
    first_text,
    page_text,
    strip_chrome,
)


@dataclass
class JustiaProfile:
    """How one jurisdiction's code is laid out on Justia."""
    slug: str
    citation: str  # format string with {section}
    targets: Dict[str, str] = field(default_factory=dict)  # section -> path under /codes/<slug>/

    @classmethod
    def from_config(cls, data: dict) -> "JustiaProfile":
        return cls(
            slug=data['slug'],
            citation=data.get('citation', "§ {section}"),
            targets={str(k): str(v) for k, v in (data.get('targets') or {}).items()},
        )


BUILTIN_PROFILES: Dict[str, JustiaProfile] = {
    # Georgia has no free official site for its code
    'GA': JustiaProfile(
        slug="georgia",
        citation="Ga. Code Ann. § {section}",
        targets={
            "16-5-1": "title-16/chapter-5/article-1/section-16-5-1/",
            "16-5-20": "title-16/chapter-5/article-2/section-16-5-20/",
            "16-5-21": "title-16/chapter-5/article-2/section-16-5-21/",
            "16-7-1": "title-16/chapter-7/article-1/section-16-7-1/",
            "16-8-2": "title-16/chapter-8/article-1/section-16-8-2/",
            "16-13-30": "title-16/chapter-13/article-2/section-16-13-30/",
        },
    ),
    'PA': JustiaProfile(
        slug="pennsylvania",
        citation="18 Pa.C.S. § {section}",
        targets={
            "2502": "title-18/chapter-25/section-2502/",
            "2701": "title-18/chapter-27/section-2701/",
            "2702": "title-18/chapter-27/section-2702/",
            "3502": "title-18/chapter-35/section-3502/",
            "3701": "title-18/chapter-37/section-3701/",
            "3921": "title-18/chapter-39/section-3921/",
        },
    ),
}


class JustiaStrategy(StatuteStrategy):
    """Fallback for jurisdictions without a dedicated (or permitted) official-site strategy."""

    name = "justia"
    base_url = "https://law.justia.com"

    def __init__(self, context: StrategyContext, jurisdiction: str):
        self.jurisdiction = jurisdiction.upper()
        profile = self.profiles(context.config).get(self.jurisdiction)
        if profile is None:
            raise ValueError(f"No Justia profile for {self.jurisdiction}")
        self.profile = profile
        self.sections = list(profile.targets)
        super().__init__(context)

    @staticmethod
    def profiles(config: Config) -> Dict[str, JustiaProfile]:
        profiles = dict(BUILTIN_PROFILES)
        for code, data in config.fallback_jurisdictions.items():
            profiles[code] = JustiaProfile.from_config(data)
        return profiles

    @classmethod
    def supports(cls, jurisdiction: str, config: Config) -> bool:
        profile = cls.profiles(config).get(jurisdiction.upper())
        return bool(profile and profile.targets)

    def targets(self) -> List[str]:
        requested = super().targets()
        known = [s for s in requested if s in self.profile.targets]
        for section in requested:
            if section not in self.profile.targets:
                self.logger.warning(f"No Justia path known for {self.jurisdiction} section {section}, skipping")
        return known

    def section_url(self, section: str) -> str:
        path = self.profile.targets[section].lstrip("/")
        return f"{self.base_url}/codes/{self.profile.slug}/{path}"

    def citation_for(self, section: str) -> str:
        return self.profile.citation.format(section=section)

    def parse(self, section: str, html: str, url: str) -> Optional[StatuteRecord]:
        title = first_text(html, ["h1"])
        content = page_text(html, "#codes-content") or strip_chrome(page_text(html))
        return self.build_record(section, url, content, title)
