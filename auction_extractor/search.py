"""
Search/results page parsing: listing cards -> ListingSummary records.

Sites that ship their completed auctions as JSON inside a <script> tag are
read from that JSON; everything else is read from the listing cards.
"""

import json
import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from .car_regexes import DOLLAR_REGEX, YEAR_REGEX, parse_amount
from .dom import node_text, parse_html, select_all, select_first
from .extractors import normalize_price
from .models import ACTIVE, SEARCH_PAGE, SOLD, UNKNOWN, ListingSummary, RawPage
from .sites import SiteConfig

logger = logging.getLogger(__name__)

_JSON_DECODER = json.JSONDecoder()


def _dollar_amount(text: str) -> Optional[int]:
    match = DOLLAR_REGEX.search(text or "")
    if not match:
        return None
    value = parse_amount(match.group("value"), match.group("k"))
    return normalize_price(value) if value else None


def _year_from_title(title: str) -> Optional[int]:
    match = YEAR_REGEX.search(title or "")
    return int(match.group(0)) if match else None


def find_embedded_json(soup, key: str):
    """
    Locate the JSON value assigned to a JS variable inside <script> tags.

    Handles both `var key = {...};` and `key: [...]` forms.

    Returns:
        The decoded value, or None if the key isn't present or isn't valid JSON
    """
    assignment = re.compile(r"\b" + re.escape(key) + r"\b\s*[=:]\s*")
    for script in soup.find_all("script"):
        text = script.string or script.get_text() or ""
        for match in assignment.finditer(text):
            start = match.end()
            if start >= len(text) or text[start] not in "{[":
                continue
            try:
                value, _ = _JSON_DECODER.raw_decode(text, start)
            except json.JSONDecodeError as e:
                logger.warning(f"Embedded JSON for '{key}' is not valid: {e}")
                continue
            return value
    return None


def _summary_from_item(item: dict, site: SiteConfig) -> Optional[ListingSummary]:
    url = item.get("url")
    if not url:
        return None
    title = str(item.get("title") or "").strip()

    sold_text = str(item.get("sold_text") or "")
    sold_price = _dollar_amount(sold_text)
    if sold_price is not None:
        status, price = SOLD, sold_price
    else:
        bid = item.get("current_bid")
        price = int(bid) if isinstance(bid, (int, float)) and bid > 0 else None
        status = ACTIVE if price is not None and not sold_text else UNKNOWN

    year = item.get("year")
    try:
        year = int(year) if year else _year_from_title(title)
    except (TypeError, ValueError):
        year = _year_from_title(title)

    source_id = item.get("id")
    return ListingSummary(
        detail_url=urljoin(site.base_url, url),
        title=title,
        price=price,
        status=status,
        year=year,
        source_id=str(source_id) if source_id is not None else None,
    )


def _summaries_from_json(data, site: SiteConfig) -> List[ListingSummary]:
    items = data.get("items", []) if isinstance(data, dict) else data
    summaries = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        summary = _summary_from_item(item, site)
        if summary is not None:
            summaries.append(summary)
    return summaries


def _summary_from_card(card, site: SiteConfig) -> Optional[ListingSummary]:
    sel = site.selectors
    link = card if card.name == "a" and card.get("href") else select_first(card, sel.card_link)
    if link is None or not link.get("href"):
        return None

    title = node_text(select_first(card, sel.card_title)) or node_text(link)
    price_text = node_text(select_first(card, sel.card_price))
    card_text = node_text(card).lower()
    price = _dollar_amount(price_text or card_text)

    if "sold" in card_text and price is not None:
        status = SOLD
    elif "bid" in card_text and "sold" not in card_text:
        status = ACTIVE
    else:
        status = UNKNOWN

    return ListingSummary(
        detail_url=urljoin(site.base_url, link["href"]),
        title=title,
        price=price,
        status=status,
        year=_year_from_title(title),
    )


def _summaries_from_cards(soup, site: SiteConfig) -> List[ListingSummary]:
    summaries = []
    for card in select_all(soup, site.selectors.listings):
        summary = _summary_from_card(card, site)
        if summary is not None:
            summaries.append(summary)
    return summaries


def parse_search_page(page: RawPage, site: SiteConfig) -> List[ListingSummary]:
    """
    Read the listing cards off a search/results page.

    Args:
        page: RawPage with page_type "search"
        site: Site config with the card selectors / embedded JSON key

    Returns:
        ListingSummary records in page order, one per detail URL

    Raises:
        ValueError: If the page is not a search page
    """
    if page.page_type != SEARCH_PAGE:
        raise ValueError(f"parse_search_page only handles search pages, got '{page.page_type}' for {page.url}")

    soup = parse_html(page.html)
    summaries = []
    if site.embedded_json_key:
        data = find_embedded_json(soup, site.embedded_json_key)
        if data is not None:
            summaries = _summaries_from_json(data, site)
            logger.debug(f"{site.name}: Read {len(summaries)} listings from embedded JSON")
    if not summaries:
        summaries = _summaries_from_cards(soup, site)

    # Remove duplicates by URL
    seen = set()
    unique = []
    for summary in summaries:
        if summary.detail_url in seen:
            continue
        seen.add(summary.detail_url)
        unique.append(summary)

    logger.info(f"{site.name}: Found {len(unique)} listings on {page.url}")
    return unique
