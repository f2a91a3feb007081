"""
Auction-status classification: sold, active, or unknown.

Active markers are checked first. Live auction pages routinely show "sold
for" text for other, already-completed lots, so a sold marker only counts
when no active marker is present.
"""

import logging
from typing import Optional, Tuple

from bs4 import BeautifulSoup

from .car_regexes import ACTIVE_PHRASE_REGEXES, SOLD_FOR_AMOUNT_REGEX, SOLD_PHRASE_REGEXES, WINNING_BID_REGEX
from .dom import node_text
from .field_keywords import ACTIVE_SELECTORS, SOLD_SELECTORS, SOLD_STAT_SELECTORS
from .models import ACTIVE, SOLD, UNKNOWN

logger = logging.getLogger(__name__)


def find_active_marker(soup: BeautifulSoup, page_text: str) -> Optional[str]:
    """Return a description of the first live-auction marker found, or None."""
    for selector in ACTIVE_SELECTORS:
        if soup.select_one(selector) is not None:
            return f"element {selector}"

    text = page_text or ""
    for regex in ACTIVE_PHRASE_REGEXES:
        match = regex.search(text)
        if match:
            return f"text '{match.group(0)}'"
    return None


def find_sold_marker(soup: BeautifulSoup, page_text: str) -> Optional[str]:
    """Return a description of the first completed-sale marker found, or None."""
    text = page_text or ""

    match = SOLD_FOR_AMOUNT_REGEX.search(text)
    if match:
        return f"text '{match.group(0)}'"
    match = WINNING_BID_REGEX.search(text)
    if match:
        return f"text '{match.group(0)}'"

    lowered = text.lower()
    if "sold for usd" in lowered:
        return "text 'sold for usd'"
    for regex in SOLD_PHRASE_REGEXES:
        match = regex.search(text)
        if match:
            return f"text '{match.group(0)}'"

    for selector in SOLD_SELECTORS:
        if soup.select_one(selector) is not None:
            return f"element {selector}"

    for selector in SOLD_STAT_SELECTORS:
        for element in soup.select(selector):
            if "sold" in node_text(element).lower():
                return f"element {selector} reading 'Sold'"
    return None


def classify_status_with_reason(soup: BeautifulSoup, page_text: str) -> Tuple[str, Optional[str]]:
    """Classify the page and return (status, marker that decided it)."""
    active = find_active_marker(soup, page_text)
    if active:
        return ACTIVE, active

    sold = find_sold_marker(soup, page_text)
    if sold:
        return SOLD, sold

    return UNKNOWN, None


def classify_status(soup: BeautifulSoup, page_text: str) -> str:
    """
    Classify a detail page as sold, active or unknown.

    Args:
        soup: Parsed page
        page_text: Visible page text, without comment threads

    Returns:
        SOLD, ACTIVE or UNKNOWN
    """
    status, marker = classify_status_with_reason(soup, page_text)
    if marker:
        logger.debug(f"Status {status} from {marker}")
    else:
        logger.debug("No active or sold marker found")
    return status
