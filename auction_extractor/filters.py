"""
Filtering logic for search results and extracted listings.
"""

import re
from typing import List, Optional

from .field_keywords import get_keywords
from .model_trim import is_excluded_model
from .models import ListingDetail, ListingSummary, SOLD
from .sites import SiteConfig

# Title words that identify a tracked sports car
SPORTS_CAR_KEYWORDS = [
    "911", "718", "cayman", "boxster", "gt2", "gt3", "gt4", "turbo",
    "carrera", "targa", "speedster", "spyder", "993", "996", "997", "991", "992",
]


def _parts_regex():
    words = "|".join(re.escape(w) for w in get_keywords("parts"))
    return re.compile(r"\b(?:" + words + r")\b", re.IGNORECASE)


def is_parts_listing(title: str) -> bool:
    """True for wheels, seats, literature and other non-car lots."""
    return bool(_parts_regex().search(title or ""))


def is_sports_car_title(title: str, make: Optional[str] = None) -> bool:
    """Title names a tracked sports car of the given make."""
    lowered = (title or "").lower()
    if not lowered:
        return False
    if make and make.lower() not in lowered:
        return False
    if is_excluded_model(title) or is_parts_listing(title):
        return False
    return any(keyword in lowered for keyword in SPORTS_CAR_KEYWORDS)


def filter_summaries(
    summaries: List[ListingSummary],
    site: SiteConfig,
    only_sold: bool = False,
) -> List[ListingSummary]:
    """
    Keep search results worth fetching.

    Args:
        summaries: Listing cards from a search page
        site: Site config (make and minimum price)
        only_sold: Drop results that aren't sold

    Returns:
        Filtered list of summaries
    """
    filtered = []
    for summary in summaries:
        if not is_sports_car_title(summary.title, site.make):
            continue
        if only_sold and summary.status != SOLD:
            continue
        if summary.status == SOLD and summary.price is not None and summary.price < site.min_price:
            continue
        filtered.append(summary)
    return filtered


def listing_matches(
    listing: ListingDetail,
    only_sold: bool = False,
    models: Optional[List[str]] = None,
    trims: Optional[List[str]] = None,
    min_year: Optional[int] = None,
    max_year: Optional[int] = None,
) -> bool:
    """Check one extracted listing against the batch filters."""
    if only_sold and listing.status != SOLD:
        return False
    if models is not None and listing.model not in models:
        return False
    if trims is not None and listing.trim not in trims:
        return False
    if min_year is not None and (listing.year is None or listing.year < min_year):
        return False
    if max_year is not None and (listing.year is None or listing.year > max_year):
        return False
    return True


def filter_listings(listings: List[ListingDetail], **criteria) -> List[ListingDetail]:
    """Filter extracted listings; see listing_matches for the criteria."""
    return [listing for listing in listings if listing_matches(listing, **criteria)]
