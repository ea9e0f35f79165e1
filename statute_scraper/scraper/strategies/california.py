"""California Penal Code via leginfo.legislature.ca.gov."""

from __future__ import annotations

import re
from typing import Optional

from statute_scraper.scraper.models import StatuteRecord
from statute_scraper.scraper.strategies.base import StatuteStrategy, first_text, page_text, strip_chrome

# Most common criminal statutes of Part 1 (Crimes and Punishments) and a few others
CALIFORNIA_SECTIONS = [
    # Homicide
    "187", "188", "189", "190", "191", "192", "193", "194", "195", "196", "197", "198", "199",
    # Mayhem
    "203", "204", "205", "206",
    # Kidnapping
    "207", "208", "209", "210",
    # Robbery
    "211", "212", "212.5", "213", "214", "215",
    # Assault and battery
    "240", "241", "242", "243", "244", "245", "246", "247", "248",
    # Sex offenses
    "261", "262", "263", "264", "265", "266", "267", "268", "269",
    # Domestic violence
    "273.5", "273.6", "273.65", "273.7", "273.75", "273.8", "273.81", "273.82", "273.83",
    # Arson
    "451", "452", "453", "454", "455", "456", "457", "458",
    # Burglary
    "459", "460", "461", "462", "463", "464",
    # Forgery and fraud
    "470", "475", "476", "480",
    # Theft
    "484", "485", "486", "487", "488", "489", "490", "491", "492", "493", "494",
    "495", "496", "497", "498", "499", "500", "501", "502",
    # Drug-related
    "11350", "11351", "11352", "11353", "11354", "11355", "11357", "11358", "11359", "11360",
    # Weapons
    "16590", "17500", "25400", "25850", "26350", "29800", "30600", "32310",
]

# Checked in order; the first matching range wins
CATEGORY_RANGES = [
    (187, 199, "Homicide"),
    (203, 206, "Mayhem"),
    (207, 210, "Kidnapping"),
    (211, 215, "Robbery"),
    (240, 248, "Assault and Battery"),
    (261, 269, "Sex Offenses"),
    (273, 273.83, "Domestic Violence"),
    (459, 464, "Burglary"),
    (451, 458, "Arson"),
    (470, 483.5, "Forgery and Fraud"),
    (484, 502.9, "Theft and Related Offenses"),
    (11350, 11392, "Drug Offenses"),
    (16000, 34370, "Weapons Offenses"),
]

_SECTION_NUMBER = re.compile(r'^\d+(?:\.\d+)?')


def section_number(section: str) -> Optional[float]:
    match = _SECTION_NUMBER.match(section.strip())
    return float(match.group(0)) if match else None


class CaliforniaStrategy(StatuteStrategy):
    name = "california_leginfo"
    jurisdiction = "CA"
    base_url = "https://leginfo.legislature.ca.gov"
    sections = CALIFORNIA_SECTIONS

    def section_url(self, section: str) -> str:
        return f"{self.base_url}/faces/codes_displaySection.xhtml?sectionNum={section}&lawCode=PEN"

    def citation_for(self, section: str) -> str:
        return f"Cal. Penal Code § {section}"

    def categorize(self, section: str) -> str:
        number = section_number(section)
        if number is None:
            return "Criminal Offenses"
        for low, high, category in CATEGORY_RANGES:
            if low <= number <= high:
                return category
        return "Criminal Offenses"

    def parse(self, section: str, html: str, url: str) -> Optional[StatuteRecord]:
        title = first_text(html, ["div.section-heading"])
        content = page_text(html, "div.section-content")
        if not content:
            content = strip_chrome(page_text(html))
        return self.build_record(section, url, content, title)
