"""
Site adapters: per-source selectors, search URLs and pagination.

Each supported auction site is one immutable SiteConfig record. The shared
extraction driver reads everything site-specific from here; adding a site
means adding a record (built in, or loaded from a JSON file).
"""

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

logger = logging.getLogger(__name__)

PAGINATION_PATH = "path"
PAGINATION_QUERY = "query"
PAGINATION_OFFSET = "offset"
PAGINATION_STYLES = (PAGINATION_PATH, PAGINATION_QUERY, PAGINATION_OFFSET)


@dataclass(frozen=True)
class SiteSelectors:
    """CSS selectors for one site. Each entry is tried in order."""

    # Search/results pages
    listings: Tuple[str, ...] = ()
    card_title: Tuple[str, ...] = ("h3", "h2", "a")
    card_link: Tuple[str, ...] = ("a[href]",)
    card_price: Tuple[str, ...] = ()

    # Detail pages
    title: Tuple[str, ...] = ("h1",)
    description: Tuple[str, ...] = ()
    comments: Tuple[str, ...] = ("#comments", ".comments", ".comment-list")
    sale_status: Tuple[str, ...] = (".listing-available-info", ".auction-status")
    mileage: Tuple[str, ...] = ()
    location: Tuple[str, ...] = (".seller-location",)
    options: Tuple[str, ...] = ()
    essentials: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Pagination:
    """
    How result pages are numbered.

    path:   /porsche/page/2/
    query:  ?page=2
    offset: ?offset=50 (page_size items per page)
    """

    style: str = PAGINATION_QUERY
    param: str = "page"
    page_size: int = 50

    def __post_init__(self):
        if self.style not in PAGINATION_STYLES:
            raise ValueError(f"pagination style must be one of {PAGINATION_STYLES}, got {self.style!r}")
        if self.page_size <= 0:
            raise ValueError("pagination page_size must be positive")


@dataclass(frozen=True)
class SiteConfig:
    """Everything the extraction driver needs to know about one source site."""

    source: str
    name: str
    base_url: str
    make: str = "Porsche"
    search_paths: Tuple[str, ...] = ()
    selectors: SiteSelectors = field(default_factory=SiteSelectors)
    pagination: Pagination = field(default_factory=Pagination)
    min_price: int = 10000
    platform_launch_year: int = 2007
    vin_prefix: Optional[str] = None
    embedded_json_key: Optional[str] = None

    def __post_init__(self):
        if not self.source:
            raise ValueError("site source id is required")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url '{self.base_url}' doesn't start with http:// or https://")
        if self.min_price < 1:
            raise ValueError(f"min_price must be at least 1, got {self.min_price}")


BRING_A_TRAILER = SiteConfig(
    source="bat",
    name="Bring a Trailer",
    base_url="https://bringatrailer.com",
    search_paths=("/porsche/",),
    selectors=SiteSelectors(
        listings=(".listing-card", ".auctions-item"),
        card_title=("h3", ".listing-card-title", "a"),
        card_link=("a[href]",),
        card_price=(".bid-formatted", ".listing-card-result"),
        title=("h1.listing-title", "h1.post-title", "h1"),
        description=(".post-excerpt", ".listing-text"),
        comments=("#comments", ".comments", ".comments-list", "#comments-javascript-enabled"),
        sale_status=(".listing-available-info", ".auction-status"),
        location=(".seller-location",),
        essentials=(".essentials",),
    ),
    pagination=Pagination(style=PAGINATION_PATH),
    min_price=15000,
    platform_launch_year=2007,
    vin_prefix=r"WP[01]",
    embedded_json_key="auctionsCompletedInitialData",
)

CARS_AND_BIDS = SiteConfig(
    source="carsandbids",
    name="Cars & Bids",
    base_url="https://carsandbids.com",
    search_paths=("/search/porsche", "/past-auctions?q=porsche"),
    selectors=SiteSelectors(
        listings=("li.auction-item", ".auction-item", ".results-item"),
        card_title=(".auction-title", "h3", "a"),
        card_link=("a[href]",),
        card_price=(".bid-value", ".sold-for"),
        title=("div.auction-title > h1", "h1"),
        description=(".detail-section.detail-highlights", ".detail-body", ".auction-description"),
        comments=(".comments", "ul.thread"),
        sale_status=(".auction-status", ".sold-for", ".winning-bid"),
        mileage=(".mileage",),
        location=(".seller-location", ".auction-loc"),
        options=(".detail-equipment",),
        essentials=(".quick-facts",),
    ),
    pagination=Pagination(style=PAGINATION_QUERY, param="page"),
    min_price=10000,
    platform_launch_year=2020,
    vin_prefix=r"WP[01]",
)

PCARMARKET = SiteConfig(
    source="pcarmarket",
    name="PCARMARKET",
    base_url="https://pcarmarket.com",
    search_paths=(
        "/auction/completed/?make=porsche&model=911",
        "/auction/completed/?make=porsche&model=718-cayman",
        "/auction/completed/?make=porsche&model=718-boxster",
    ),
    selectors=SiteSelectors(
        listings=(".auction-card", ".post-card", "article"),
        card_title=(".auction-card-title", "h3", "h2", "a"),
        card_link=("a[href]",),
        card_price=(".auction-card-price", ".final-price"),
        title=("h1.auction-title", "h1"),
        description=(".auction-description", ".description"),
        comments=(".comments", "#comments"),
        sale_status=(".auction-status", ".auction-result"),
        mileage=(".auction-mileage",),
        location=(".auction-location", ".seller-location"),
        options=(".auction-options",),
        essentials=(".auction-details",),
    ),
    pagination=Pagination(style=PAGINATION_QUERY, param="page"),
    min_price=10000,
    platform_launch_year=2016,
    vin_prefix=r"WP[01]",
)

SITE_CONFIGS: Dict[str, SiteConfig] = {
    site.source: site for site in (BRING_A_TRAILER, CARS_AND_BIDS, PCARMARKET)
}


def get_site_config(source: str, registry: Optional[Dict[str, SiteConfig]] = None) -> SiteConfig:
    """
    Look up a site by source id.

    Raises:
        ValueError: If no site is registered under that id
    """
    sites = registry if registry is not None else SITE_CONFIGS
    site = sites.get((source or "").lower())
    if site is None:
        raise ValueError(f"Unknown source '{source}'. Known sources: {', '.join(sorted(sites))}")
    return site


def _tuple(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def site_from_dict(data: dict) -> SiteConfig:
    """
    Build a SiteConfig from a plain dict (one entry of a sites JSON file).

    Raises:
        ValueError: On missing required keys or unknown selector names
    """
    if not isinstance(data, dict):
        raise ValueError("site entry must be an object")

    missing = [key for key in ("source", "name", "base_url") if not data.get(key)]
    if missing:
        raise ValueError(f"site entry missing {', '.join(missing)}")

    selector_names = {f.name for f in fields(SiteSelectors)}
    raw_selectors = data.get("selectors") or {}
    unknown = set(raw_selectors) - selector_names
    if unknown:
        raise ValueError(f"unknown selector names: {', '.join(sorted(unknown))}")
    selectors = SiteSelectors(**{k: _tuple(v) for k, v in raw_selectors.items()})

    raw_pagination = data.get("pagination") or {}
    if isinstance(raw_pagination, str):
        raw_pagination = {"style": raw_pagination}
    style = raw_pagination.get("style", PAGINATION_QUERY)
    pagination = Pagination(
        style=style,
        param=raw_pagination.get("param", "offset" if style == PAGINATION_OFFSET else "page"),
        page_size=int(raw_pagination.get("page_size", 50)),
    )

    try:
        return SiteConfig(
            source=str(data["source"]).lower(),
            name=data["name"],
            base_url=data["base_url"].rstrip("/"),
            make=data.get("make", "Porsche"),
            search_paths=_tuple(data.get("search_paths")),
            selectors=selectors,
            pagination=pagination,
            min_price=int(data.get("min_price", 10000)),
            platform_launch_year=int(data.get("platform_launch_year", 2007)),
            vin_prefix=data.get("vin_prefix"),
            embedded_json_key=data.get("embedded_json_key"),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid site '{data.get('source')}': {e}")


def load_site_configs(path: str) -> Dict[str, SiteConfig]:
    """
    Load site records from a JSON file.

    The file holds either a list of site objects or {"sites": [...]}.

    Args:
        path: Path to JSON file

    Returns:
        Dict of source id -> SiteConfig

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file isn't valid JSON or an entry is invalid
    """
    sites_file = Path(path)
    if not sites_file.exists():
        raise FileNotFoundError(f"Sites file not found: {path}")

    try:
        with open(sites_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in sites file: {e}")

    entries = data.get("sites") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ValueError("sites file must contain a list of sites")

    sites = {}
    for entry in entries:
        site = site_from_dict(entry)
        sites[site.source] = site

    logger.info(f"Loaded {len(sites)} site config(s) from {path}")
    return sites


def build_registry(sites_file: Optional[str] = None) -> Dict[str, SiteConfig]:
    """Built-in sites, overridden/extended by records from sites_file."""
    registry = dict(SITE_CONFIGS)
    if sites_file:
        extra = load_site_configs(sites_file)
        for source in extra:
            if source in registry:
                logger.info(f"Site config '{source}' overridden from {sites_file}")
        registry.update(extra)
    return registry


def _page_url(base: str, path: str, page: int, pagination: Pagination) -> str:
    url = base + (path if path.startswith("/") else "/" + path)
    if page <= 1:
        return url

    if pagination.style == PAGINATION_PATH:
        parsed = urlparse(url)
        new_path = parsed.path.rstrip("/") + f"/page/{page}/"
        return urlunparse(parsed._replace(path=new_path))

    if pagination.style == PAGINATION_QUERY:
        value = page
    else:
        value = (page - 1) * pagination.page_size
    param = pagination.param

    parsed = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k != param]
    query.append((param, str(value)))
    return urlunparse(parsed._replace(query=urlencode(query)))


def build_search_urls(site: SiteConfig, max_pages: int = 1) -> List[str]:
    """
    Expand the site's search paths into result-page URLs.

    Args:
        site: Site config
        max_pages: Pages per search path (at least 1)

    Returns:
        List of absolute URLs, page 1 first for each path
    """
    max_pages = max(1, int(max_pages))
    urls = []
    for path in site.search_paths:
        for page in range(1, max_pages + 1):
            urls.append(_page_url(site.base_url, path, page, site.pagination))
    return urls
