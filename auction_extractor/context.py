"""
Per-page extraction context.

Built once per detail page and passed to every field extractor, so the DOM is
parsed and its text regions are computed a single time.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from bs4 import BeautifulSoup

from .dom import item_texts, node_text, parse_html, select_all, select_first, visible_text, without_selectors
from .sites import SiteConfig


@dataclass(frozen=True)
class PageContext:
    """
    Parsed detail page plus the text regions the extractors search.

    soup is the page as fetched; content is the same page with the comment
    threads removed and is what the structured lookups run against.
    """

    soup: BeautifulSoup
    site: SiteConfig
    url: str
    content: Optional[BeautifulSoup] = None
    title: str = ""
    description: str = ""
    body: str = ""
    full_text: str = ""
    essentials: List[str] = field(default_factory=list)
    today: Optional[date] = None

    def __post_init__(self):
        if self.content is None:
            object.__setattr__(self, "content", self.soup)

    @property
    def reference_date(self) -> date:
        return self.today or date.today()


def _title_text(soup: BeautifulSoup, site: SiteConfig) -> str:
    title = node_text(select_first(soup, site.selectors.title))
    if title:
        return title
    meta = soup.find("meta", attrs={"property": "og:title"})
    if meta and meta.get("content"):
        return meta["content"].strip()
    return ""


def _description_text(soup: BeautifulSoup, site: SiteConfig) -> str:
    parts = [visible_text(el, site.selectors.comments) for el in select_all(soup, site.selectors.description)]
    return " ".join(p for p in parts if p)


def _essentials(soup: BeautifulSoup, site: SiteConfig) -> List[str]:
    items = item_texts(soup, site.selectors.essentials)
    if items:
        return items

    # Some layouts drop the container class; the list carrying the chassis number is the essentials list
    for ul in soup.find_all("ul"):
        texts = [node_text(li) for li in ul.find_all("li")]
        if any(t.startswith("Chassis:") for t in texts):
            return [t for t in texts if t]
    return []


def build_page_context(html, site: SiteConfig, url: str, today: Optional[date] = None) -> PageContext:
    """
    Parse a detail page and compute its text regions.

    Args:
        html: Page HTML string or an already-parsed BeautifulSoup
        site: Site config for the page's source
        url: Page URL
        today: Reference date for date-window checks (defaults to today)
    """
    soup = html if isinstance(html, BeautifulSoup) else parse_html(html)
    root = soup.body or soup
    content = without_selectors(soup, site.selectors.comments)
    return PageContext(
        soup=soup,
        site=site,
        url=url,
        content=content,
        title=_title_text(soup, site),
        description=_description_text(soup, site),
        body=visible_text(root, site.selectors.comments),
        full_text=visible_text(root),
        essentials=_essentials(content, site),
        today=today,
    )
