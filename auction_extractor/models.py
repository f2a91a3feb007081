"""
Data models for auction listing pages and the records extracted from them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


# Listing status values
SOLD = "sold"
ACTIVE = "active"
UNKNOWN = "unknown"

# Page types handed over by the fetch layer
SEARCH_PAGE = "search"
DETAIL_PAGE = "detail"

# Where a candidate value was found on the page
REGION_STRUCTURED = "structured-field"
REGION_TITLE = "title"
REGION_BODY = "body-text"

MAX_MILEAGE = 500_000


@dataclass(frozen=True)
class RawPage:
    """A fetched page: rendered HTML plus the hints the fetch layer knows about it."""

    html: str
    url: str
    page_type: str = DETAIL_PAGE
    source: Optional[str] = None
    model_hint: Optional[str] = None
    trim_hint: Optional[str] = None

    def __post_init__(self):
        if self.page_type not in (SEARCH_PAGE, DETAIL_PAGE):
            raise ValueError(f"page_type must be '{SEARCH_PAGE}' or '{DETAIL_PAGE}', got {self.page_type!r}")


@dataclass(frozen=True)
class ExtractionCandidate:
    """A value matched in page text that still has to pass a validity check."""

    value: int
    source_region: str
    raw_match_text: str
    position_index: int
    context: str = ""


@dataclass(frozen=True)
class Location:
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    def to_dict(self) -> dict:
        return {"city": self.city, "state": self.state, "zip": self.zip}


@dataclass(frozen=True)
class ModelTrimResult:
    """Canonical model identity for a listing title. All fields None means "not a tracked car"."""

    model: Optional[str] = None
    trim: Optional[str] = None
    generation: Optional[str] = None
    year: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.model is None and self.trim is None and self.generation is None and self.year is None


@dataclass(frozen=True)
class ListingSummary:
    """A listing card read from a search/results page (before the detail page is processed)."""

    detail_url: str
    title: str = ""
    price: Optional[int] = None
    status: str = UNKNOWN
    year: Optional[int] = None
    source_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "detail_url": self.detail_url,
            "title": self.title,
            "price": self.price,
            "status": self.status,
            "year": self.year,
            "source_id": self.source_id,
        }


@dataclass(frozen=True)
class ListingDetail:
    """One vehicle sale/listing as extracted from a detail page."""

    # Required core fields
    title: str
    source_url: str
    status: str
    source: str

    # Sale facts (trusted only when status is sold)
    price: Optional[int] = None
    sold_date: Optional[date] = None

    # Vehicle facts
    mileage: Optional[int] = None
    year: Optional[int] = None
    vin: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    generation: Optional[str] = None
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    paint_to_sample: bool = False
    transmission: Optional[str] = None
    location: Optional[Location] = None

    # Options
    options_raw: str = ""
    options_normalized: List[str] = field(default_factory=list)

    source_id: Optional[str] = None

    def __post_init__(self):
        """Enforce the record invariants; an invalid record can't be built."""
        if not self.title or not isinstance(self.title, str):
            raise ValueError("title must be a non-empty string")
        if not self.source_url or not isinstance(self.source_url, str):
            raise ValueError("source_url must be a non-empty string")
        if self.status not in (SOLD, ACTIVE):
            raise ValueError(f"status must be '{SOLD}' or '{ACTIVE}', got {self.status!r}")
        if self.status == SOLD and self.price is None:
            raise ValueError("a sold listing needs a price")
        if self.status != SOLD and self.sold_date is not None:
            raise ValueError("only sold listings carry a sold_date")
        if self.price is not None and (not isinstance(self.price, int) or self.price <= 0):
            raise ValueError(f"price must be a positive integer, got {self.price!r}")
        if self.mileage is not None and (not isinstance(self.mileage, int) or not 0 < self.mileage < MAX_MILEAGE):
            raise ValueError(f"mileage must be between 1 and {MAX_MILEAGE - 1}, got {self.mileage!r}")
        if self.year is not None:
            max_year = datetime.now().year + 1
            if not isinstance(self.year, int) or not 1900 <= self.year <= max_year:
                raise ValueError(f"year must be between 1900 and {max_year}, got {self.year!r}")

    def to_dict(self) -> dict:
        """Convert the listing to a plain dictionary for the persistence layer."""
        return {
            "title": self.title,
            "source": self.source,
            "source_url": self.source_url,
            "source_id": self.source_id,
            "status": self.status,
            "price": self.price,
            "sold_date": self.sold_date.isoformat() if self.sold_date else None,
            "mileage": self.mileage,
            "year": self.year,
            "vin": self.vin,
            "model": self.model,
            "trim": self.trim,
            "generation": self.generation,
            "exterior_color": self.exterior_color,
            "interior_color": self.interior_color,
            "paint_to_sample": self.paint_to_sample,
            "transmission": self.transmission,
            "location": self.location.to_dict() if self.location else None,
            "options_raw": self.options_raw,
            "options_normalized": list(self.options_normalized),
        }
