"""Texas Penal Code via statutes.capitol.texas.gov."""

from __future__ import annotations

import re
from typing import Dict, Optional

from statute_scraper.scraper.models import StatuteRecord
from statute_scraper.scraper.strategies.base import StatuteStrategy, page_text

TEXAS_SECTIONS = [
    # Homicide
    "19.01", "19.02", "19.03", "19.04", "19.05", "19.06",
    # Kidnapping
    "20.01", "20.02", "20.03", "20.04",
    # Assault
    "22.01", "22.011", "22.02", "22.021", "22.03", "22.04", "22.05",
    # Arson and criminal mischief
    "28.01", "28.02", "28.03", "28.04",
    # Robbery
    "29.01", "29.02", "29.03",
    # Burglary
    "30.01", "30.02", "30.03", "30.04", "30.05",
    # Theft
    "31.03", "31.04", "31.05", "31.06", "31.07", "31.08", "31.09", "31.10", "31.11", "31.12",
    # Forgery
    "32.21", "32.22", "32.23", "32.24",
    # Fraud
    "32.31", "32.32", "32.33", "32.34", "32.35", "32.42", "32.43", "32.44", "32.45",
    "32.46", "32.47", "32.48", "32.49", "32.50", "32.51",
    # Weapons
    "46.02", "46.04", "46.05", "46.06", "46.10", "46.13",
]

CHAPTER_CATEGORIES = {
    19: "assault",
    20: "assault",
    22: "assault",
    28: "property_crimes",
    29: "theft",
    30: "theft",
    31: "theft",
    32: "fraud",
    46: "weapons",
}


class TexasStrategy(StatuteStrategy):
    """
    Texas publishes one HTML page per penal code chapter, so each section is
    cut out of its chapter page between its ``Sec. N.`` heading and the next one.
    """

    name = "texas_capitol"
    jurisdiction = "TX"
    base_url = "https://statutes.capitol.texas.gov"
    sections = TEXAS_SECTIONS

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._chapter_pages: Dict[str, str] = {}

    async def fetch_page(self, url: str) -> str:
        # consecutive sections share a chapter page; fetch each chapter once per run
        if url not in self._chapter_pages:
            self._chapter_pages[url] = await super().fetch_page(url)
        return self._chapter_pages[url]

    @staticmethod
    def chapter_of(section: str) -> str:
        return section.split(".")[0]

    def section_url(self, section: str) -> str:
        return f"{self.base_url}/Docs/PE/htm/PE.{self.chapter_of(section)}.htm"

    def citation_for(self, section: str) -> str:
        return f"Tex. Penal Code § {section}"

    def categorize(self, section: str) -> str:
        try:
            chapter = int(self.chapter_of(section))
        except ValueError:
            return "criminal_offenses"
        return CHAPTER_CATEGORIES.get(chapter, "criminal_offenses")

    def parse(self, section: str, html: str, url: str) -> Optional[StatuteRecord]:
        text = page_text(html)
        pattern = re.compile(
            rf'^Sec\.\s*{re.escape(section)}\.\s*(?P<body>.*?)(?=^Sec\.\s*\d|\Z)',
            re.MULTILINE | re.DOTALL,
        )
        match = pattern.search(text)
        if not match:
            # section missing from its chapter page (repealed or renumbered)
            return None

        body = match.group('body').strip()
        heading, _, rest = body.partition("\n")
        title = heading.strip().rstrip(".")
        content = f"Sec. {section}. {body}"
        if not rest.strip():
            # heading and text share one line: "MURDER. (a) A person commits..."
            title = heading.split(".")[0].strip()
        return self.build_record(section, url, content, title.title() if title.isupper() else title)
