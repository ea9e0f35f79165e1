"""Official legislature sites whose section pages share one layout recipe."""

from __future__ import annotations

from typing import Optional, Sequence

from statute_scraper.scraper.models import StatuteRecord
from statute_scraper.scraper.strategies.base import StatuteStrategy, first_text, page_text, strip_chrome


class StateSiteStrategy(StatuteStrategy):
    """
    A section page whose statute text sits in a known container.

    ``content_selectors`` are tried in order; when none matches, the page
    body minus its header and footer lines is used instead.
    """

    title_selectors: Sequence[str] = ("h1", "h2")
    content_selectors: Sequence[str] = ()
    citation_format: str = "§ {section}"

    def citation_for(self, section: str) -> str:
        return self.citation_format.format(section=section)

    def extract_content(self, html: str) -> str:
        for selector in self.content_selectors:
            content = page_text(html, selector)
            if content:
                return content
        return strip_chrome(page_text(html))

    def parse(self, section: str, html: str, url: str) -> Optional[StatuteRecord]:
        title = first_text(html, self.title_selectors)
        return self.build_record(section, url, self.extract_content(html), title)


class FloridaStrategy(StateSiteStrategy):
    name = "florida_leg"
    jurisdiction = "FL"
    base_url = "https://www.leg.state.fl.us"
    citation_format = "Fla. Stat. § {section}"
    title_selectors = ("span.CatchlineText", "span.Catchline")
    content_selectors = ("span.SectionBody", "div.Section")
    sections = [
        "782.04", "782.07", "784.03", "784.045", "787.01", "794.011",
        "806.01", "810.02", "812.014", "812.13", "812.135", "817.234",
    ]

    def section_url(self, section: str) -> str:
        # Chapters are grouped in blocks of 100: URL=0700-0799/0784/Sections/0784.03.html
        chapter, _, number = section.partition(".")
        chapter_num = int(chapter)
        block = chapter_num // 100 * 100
        padded = f"{chapter_num:04d}"
        return (
            f"{self.base_url}/Statutes/index.cfm?App_mode=Display_Statute"
            f"&URL={block:04d}-{block + 99:04d}/{padded}/Sections/{padded}.{number}.html"
        )


class NewYorkStrategy(StateSiteStrategy):
    name = "new_york_senate"
    jurisdiction = "NY"
    base_url = "https://www.nysenate.gov"
    citation_format = "N.Y. Penal Law § {section}"
    title_selectors = ("h3.c-law-doc-title", "h1")
    content_selectors = ("div.c-law-doc-text", "pre")
    sections = [
        "120.00", "120.05", "125.10", "125.15", "125.20", "125.25",
        "130.20", "130.25", "130.35", "140.20", "140.25", "140.30",
        "155.05", "155.25", "155.30", "155.35", "155.40", "155.42",
    ]

    def section_url(self, section: str) -> str:
        return f"{self.base_url}/legislation/laws/PEN/{section}"


class IllinoisStrategy(StateSiteStrategy):
    """720 ILCS 5 (Criminal Code of 2012); sections are given without the act prefix."""

    name = "illinois_ilga"
    jurisdiction = "IL"
    base_url = "https://www.ilga.gov"
    citation_format = "720 ILCS 5/{section}"
    content_selectors = ("td.content", "table")
    sections = ["9-1", "9-2", "9-3", "12-2", "12-3", "16-1", "17-1", "18-1", "18-2"]

    def section_url(self, section: str) -> str:
        return f"{self.base_url}/legislation/ilcs/fulltext.asp?DocName=072000050K{section}"


class OhioStrategy(StateSiteStrategy):
    name = "ohio_codes"
    jurisdiction = "OH"
    base_url = "https://codes.ohio.gov"
    citation_format = "Ohio Rev. Code Ann. § {section}"
    content_selectors = ("section.laws-body", "div.laws-body")
    sections = [
        "2903.01", "2903.02", "2903.03", "2903.04", "2903.11", "2903.13",
        "2905.01", "2905.02", "2907.02", "2909.02", "2909.03", "2911.01",
        "2911.02", "2913.02", "2913.03", "2923.11", "2923.12", "2923.13",
    ]

    def section_url(self, section: str) -> str:
        return f"{self.base_url}/ohio-revised-code/section-{section}"


class NorthCarolinaStrategy(StateSiteStrategy):
    name = "north_carolina_ncleg"
    jurisdiction = "NC"
    base_url = "https://www.ncleg.gov"
    citation_format = "N.C. Gen. Stat. § {section}"
    sections = [
        "14-17", "14-18", "14-32", "14-33", "14-39", "14-51",
        "14-54", "14-58", "14-72", "14-86", "14-87", "14-90",
    ]

    def section_url(self, section: str) -> str:
        chapter = section.split("-")[0]
        return (
            f"{self.base_url}/EnactedLegislation/Statutes/HTML/BySection/"
            f"Chapter_{chapter}/GS_{section}.html"
        )


class MichiganStrategy(StateSiteStrategy):
    name = "michigan_legislature"
    jurisdiction = "MI"
    base_url = "http://legislature.mi.gov"
    citation_format = "Mich. Comp. Laws § {section}"
    content_selectors = ("div#objectText", "div.objectText")
    sections = [
        "750.83", "750.84", "750.316", "750.317", "750.349", "750.356",
        "750.520b", "750.520c", "750.529", "750.530", "750.543a",
    ]

    def section_url(self, section: str) -> str:
        return f"{self.base_url}/doc.aspx?mcl-{section.replace('.', '-')}"
