from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urljoin

import pandas as pd
import requests
from bs4 import BeautifulSoup

from .quest_csv import parse_required_level, requires_kappa, split_objective

logger = logging.getLogger(__name__)

USER_AGENT = "tarkov-tracker-scraper/1.0 (+https://github.com/)"  # polite UA
REQUEST_TIMEOUT = 30
DEFAULT_URL = "https://escapefromtarkov.fandom.com/wiki/Quests"
DEFAULT_BASE_URL = "https://escapefromtarkov.fandom.com"
DEFAULT_OUTPUT = "quests.csv"
NAVBOX_SELECTOR = "table.navbox.va-navbox-border.va-navbox-bottom"
HEADINGS = ["h2", "h3", "h4"]


@dataclass
class QuestLink:
    title: str
    url: str
    trader: Optional[str] = None


@dataclass
class ScrapedObjective:
    text: str
    optional: bool = False
    count: Optional[int] = None

    @classmethod
    def from_line(cls, line: str) -> "ScrapedObjective":
        text, optional, count = split_objective(line)
        return cls(text=text, optional=optional, count=count)


@dataclass
class ScrapedQuest:
    name: str
    url: str
    trader: Optional[str]
    location: Optional[str] = None
    level_required: Optional[int] = None
    kappa_required: bool = False
    requirements: List[str] = field(default_factory=list)
    objectives: List[ScrapedObjective] = field(default_factory=list)
    rewards: List[str] = field(default_factory=list)
    previous: List[str] = field(default_factory=list)
    leads_to: List[str] = field(default_factory=list)

    def as_row(self) -> dict:
        """
        One CSV row in the layout sources.quest_csv reads. Objective counts
        (0 for binary) and optional flags are pipe lists aligned with
        "objectives".
        """
        return {
            "name": self.name,
            "url": self.url,
            "trader": self.trader,
            "location": self.location,
            "level_required": self.level_required if self.level_required is not None else "",
            "kappa": "true" if self.kappa_required else "false",
            "requirements": _pipe(self.requirements),
            "objectives": _pipe(obj.text for obj in self.objectives),
            "objective_counts": _pipe(str(obj.count or 0) for obj in self.objectives),
            "optional_objectives": _pipe("1" if obj.optional else "0" for obj in self.objectives),
            "rewards": _pipe(self.rewards),
            "previous": _pipe(self.previous),
            "leads_to": _pipe(self.leads_to),
        }


def _pipe(items) -> str:
    return " | ".join(items)


def fetch_html(url: str) -> str:
    resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    return resp.text


def extract_quest_links(html_text: str, base_url: str = DEFAULT_BASE_URL) -> List[QuestLink]:
    """Wiki links from the quest navbox, tagged with the trader row they sit in."""
    navbox = BeautifulSoup(html_text, "html.parser").select_one(NAVBOX_SELECTOR)
    if navbox is None:
        raise RuntimeError(f"Navbox ({NAVBOX_SELECTOR}) not found in page source")

    by_url: Dict[str, QuestLink] = {}
    for row in navbox.select("tr"):
        group = row.select_one("td.va-navbox-group")
        trader = group.get_text(strip=True) if group else None
        for anchor in row.select("td.va-navbox-cell a[href*='/wiki/']"):
            url = urljoin(base_url, anchor["href"])
            by_url.setdefault(url, QuestLink(anchor.get_text(" ", strip=True), url, trader))
    return list(by_url.values())


class QuestPage:
    def __init__(self, html_text: str):
        self.soup = BeautifulSoup(html_text, "html.parser")
        self.infobox = self.soup.find("table", class_="va-infobox")

    def title(self) -> Optional[str]:
        heading = self.soup.find("h1", id="firstHeading")
        return heading.get_text(" ", strip=True) if heading else None

    def fields(self) -> Dict[str, str]:
        """Infobox label (lower case) -> content text."""
        if self.infobox is None:
            return {}
        values = {}
        for label in self.infobox.select("td.va-infobox-label"):
            content = label.find_next("td", class_="va-infobox-content")
            if content is not None:
                values[label.get_text(" ", strip=True).lower()] = content.get_text(" ", strip=True)
        return values

    def linked_titles(self, prefix: str) -> List[str]:
        """Link texts of infobox cells starting with e.g. "previous:"."""
        if self.infobox is None:
            return []
        return [
            anchor.get_text(" ", strip=True)
            for cell in self.infobox.select("td.va-infobox-content")
            if cell.get_text(" ", strip=True).lower().startswith(prefix)
            for anchor in cell.select("a[href]")
        ]

    def section(self, section_id: str) -> List[str]:
        anchor = self.soup.find(id=section_id)
        heading = anchor.find_parent(HEADINGS) if anchor else None
        if heading is None:
            return []
        lines = []
        for tag in heading.find_next_siblings():
            if tag.name in HEADINGS:
                break
            if tag.name == "ul":
                lines.extend(li.get_text(" ", strip=True) for li in tag.find_all("li", recursive=False))
            elif tag.name == "p":
                lines.append(tag.get_text(" ", strip=True))
        return [line for line in lines if line]


def _field(fields: Dict[str, str], label: str) -> Optional[str]:
    return next((value for key, value in fields.items() if key.startswith(label)), None)


def parse_quest_page(html_text: str, url: str, trader: Optional[str] = None) -> ScrapedQuest:
    page = QuestPage(html_text)
    fields = page.fields()
    requirements = page.section("Requirements")

    kappa = _field(fields, "required for kappa") or _field(fields, "kappa")
    if kappa is not None:
        kappa_required = kappa.strip().lower().startswith("yes")
    else:
        kappa_required = requires_kappa(requirements)

    return ScrapedQuest(
        name=page.title() or url,
        url=url,
        trader=trader or _field(fields, "given by"),
        location=_field(fields, "location"),
        level_required=parse_required_level(requirements),
        kappa_required=kappa_required,
        requirements=requirements,
        objectives=[ScrapedObjective.from_line(line) for line in page.section("Objectives")],
        rewards=page.section("Rewards"),
        previous=page.linked_titles("previous:"),
        leads_to=page.linked_titles("leads to:"),
    )


def scrape_quest(url: str, trader: Optional[str] = None) -> ScrapedQuest:
    return parse_quest_page(fetch_html(url), url, trader)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Scrape quest pages from the Tarkov wiki into a CSV.")
    parser.add_argument("--url", default=DEFAULT_URL, help="Quest list URL to scrape.")
    parser.add_argument("--html", type=Path, help="Optional saved quest list HTML instead of --url.")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Base URL for relative wiki links.")
    parser.add_argument("--out", default=DEFAULT_OUTPUT, type=Path, help="Where to write the CSV")
    parser.add_argument("--limit", type=int, default=None, help="Limit number of quests for quick testing")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    html_text = args.html.read_text(encoding="utf-8") if args.html else fetch_html(args.url)
    links = extract_quest_links(html_text, base_url=args.base_url)
    if args.limit:
        links = links[: args.limit]

    rows = []
    for idx, link in enumerate(links, start=1):
        logger.info("[%d/%d] Scraping %s", idx, len(links), link.title)
        rows.append(scrape_quest(link.url, link.trader).as_row())

    df = pd.DataFrame(rows)
    df.to_csv(args.out, index=False, encoding="utf-8")
    print(f"Wrote {len(df)} quests to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
