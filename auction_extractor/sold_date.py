"""
Sold-date extraction.

Dates are read from the sale-status block, then end-date meta tags, then
sale phrases in the page text. A date outside the platform's operating window
is discarded; nothing is ever substituted for a missing date.
"""

import logging
import re
from datetime import date
from typing import Optional

from .car_regexes import (
    ISO_DATE,
    ON_DATE_REGEX,
    ORDINAL_SUFFIX_REGEX,
    SOLD_DATE_PHRASE_REGEXES,
)
from .dom import node_text, select_all

logger = logging.getLogger(__name__)

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

END_DATE_META = "auction:end_date"

_NUMERIC = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_LONG = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{2}|\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def resolve_two_digit_year(two_digit: int, launch_year: int, max_year: int) -> Optional[int]:
    """
    Expand a two-digit year to the century that puts it inside the window.

    "22" on a platform running 2007..2027 is 2022. A value that fits no
    century inside the window is rejected rather than guessed.
    """
    for century in (2000, 1900):
        year = century + two_digit
        if launch_year <= year <= max_year:
            return year
    return None


def _to_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date_text(text: str, launch_year: int, today: Optional[date] = None) -> Optional[date]:
    """
    Parse one date string and check it against the platform window.

    Accepts M/D/YY, M/D/YYYY, "Month D, YYYY" (full or abbreviated month,
    ordinal suffixes allowed) and ISO YYYY-MM-DD. Dates without a year are
    not parsed.

    Args:
        text: Date text
        launch_year: First year the platform ran auctions
        today: Reference date (defaults to today)

    Returns:
        The date, or None if it can't be parsed or falls outside
        [launch_year, current year + 1]
    """
    if not text:
        return None
    today = today or date.today()
    max_year = today.year + 1

    cleaned = ORDINAL_SUFFIX_REGEX.sub(r"\1", text.strip())
    parsed = None
    year_token = None

    m = _ISO.match(cleaned)
    if m:
        year_token = m.group(1)
        parsed = _to_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    else:
        m = _NUMERIC.match(cleaned)
        if m:
            month, day, year_token = int(m.group(1)), int(m.group(2)), m.group(3)
        else:
            m = _LONG.match(cleaned)
            if not m:
                logger.debug(f"Unrecognized date format: {text!r}")
                return None
            month = MONTHS.get(m.group(1)[:3].lower())
            if month is None:
                return None
            day, year_token = int(m.group(2)), m.group(3)

        if len(year_token) == 2:
            year = resolve_two_digit_year(int(year_token), launch_year, max_year)
            if year is None:
                logger.info(f"Discarding date {text!r}: two-digit year outside {launch_year}-{max_year}")
                return None
        else:
            year = int(year_token)
        parsed = _to_date(year, month, day)

    if parsed is None:
        return None
    if not launch_year <= parsed.year <= max_year:
        logger.info(f"Discarding date {text!r}: outside platform window {launch_year}-{max_year}")
        return None
    return parsed


def extract_sold_date(ctx) -> Optional[date]:
    """
    Find the date a sold listing closed.

    Args:
        ctx: PageContext of a page already classified as sold

    Returns:
        The sale date, or None
    """
    launch_year = ctx.site.platform_launch_year
    today = ctx.reference_date

    # 1. Sale-status block: "Sold for USD $150,000 on 8/29/22"
    for element in select_all(ctx.content, ctx.site.selectors.sale_status):
        for match in ON_DATE_REGEX.finditer(node_text(element)):
            found = parse_date_text(match.group(1), launch_year, today)
            if found:
                return found

    # 2. End-date meta tags
    for attr in ("property", "name"):
        meta = ctx.soup.find("meta", attrs={attr: END_DATE_META})
        if meta and meta.get("content"):
            content = meta["content"].strip()
            iso = re.match(ISO_DATE, content)
            candidate = iso.group(0) if iso else content
            found = parse_date_text(candidate, launch_year, today)
            if found:
                return found

    # 3. Sale phrases in the page text
    for regex in SOLD_DATE_PHRASE_REGEXES:
        for match in regex.finditer(ctx.body):
            found = parse_date_text(match.group(1), launch_year, today)
            if found:
                return found

    logger.debug(f"No valid sold date on {ctx.url}")
    return None

