"""
Field extractors for auction detail pages.

Every extractor takes a PageContext and returns the field value or None.
Each one searches its page regions in a fixed order and the first candidate
that passes the field's validity check wins; later regions are not looked at.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from .car_regexes import (
    DOLLAR_REGEX,
    ESSENTIALS_PAINT_REGEX,
    ESSENTIALS_UPHOLSTERY_REGEX,
    FINISHED_IN_REGEX,
    LOCATED_IN_REGEX,
    LOCATION_REGEX,
    MILEAGE_REGEX,
    OVER_INTERIOR_REGEX,
    SOLD_PRICE_REGEX,
    SPEED_WORDS,
    STRUCTURED_NUMBER_REGEX,
    TRANSMISSION_REGEXES,
    VIN_REGEX,
)
from .colors import clean_color
from .context import PageContext
from .dom import labeled_value, node_text, select_all
from .models import (
    MAX_MILEAGE,
    REGION_BODY,
    REGION_STRUCTURED,
    REGION_TITLE,
    ExtractionCandidate,
    Location,
)
from .scanner import pick_nearest_year, scan
from .sold_date import extract_sold_date

logger = logging.getLogger(__name__)

# Prices this large were captured in cents
CENTS_THRESHOLD = 1_000_000_000

# Elements whose class names suggest a final/sold price
PRICE_CLASS_SELECTORS = [".sold-for", ".final-price", "[class*=sold-price]", ".winning-bid"]

# Essentials items that describe the listing rather than an option
ESSENTIALS_SKIP_REGEXES = [
    re.compile(r"^Chassis:"),
    re.compile(r"^~?[\d,.]+k?\s+(?:Miles|Kilometers)\b", re.IGNORECASE),
    re.compile(r"^Location:"),
    re.compile(r"^Private Party", re.IGNORECASE),
    re.compile(r"^Dealer\b", re.IGNORECASE),
    re.compile(r"^Lot #"),
    re.compile(r"Carfax Report$", re.IGNORECASE),
    re.compile(r"^Clean Carfax", re.IGNORECASE),
    re.compile(r"^\d+\.\d+-Liter"),
    re.compile(r"^(?:Five|Six|Seven|Eight)-Speed (?:Manual|PDK|Automatic)(?: Transaxle)?$", re.IGNORECASE),
    re.compile(r"^Window Sticker$", re.IGNORECASE),
    re.compile(r"^Total Price of"),
    re.compile(r"^MSRP"),
]

LOCATION_STOP_WORDS = {"the", "a", "an", "with", "and", "this"}


# ====================
# TITLE
# ====================

def extract_title(ctx: PageContext) -> str:
    """Primary heading of the page (empty string when there is none)."""
    return ctx.title


# ====================
# MILEAGE
# ====================

def is_valid_mileage(value: Optional[int]) -> bool:
    """Mileage must be positive and under MAX_MILEAGE; 0 is a data-entry artifact."""
    return value is not None and 0 < value < MAX_MILEAGE


def _choose_mileage(candidates: List[ExtractionCandidate], text: str, region: str) -> Optional[int]:
    valid = []
    for candidate in candidates:
        if is_valid_mileage(candidate.value):
            valid.append(candidate)
        else:
            logger.debug(f"Rejected mileage {candidate.value} from {region}: {candidate.raw_match_text!r}")

    chosen = pick_nearest_year(valid, text)
    if chosen is None:
        return None
    logger.debug(f"Mileage {chosen.value} from {region}: {chosen.raw_match_text!r}")
    return chosen.value


def structured_mileage_texts(ctx: PageContext) -> List[str]:
    """Texts of labeled mileage regions: label/value pairs, site mileage elements, essentials lines."""
    texts = []
    value = labeled_value(ctx.content, "mileage")
    if value:
        texts.append(value)
    for element in select_all(ctx.content, ctx.site.selectors.mileage):
        text = node_text(element)
        if text:
            texts.append(text)
    for item in ctx.essentials:
        if re.search(r"\bmiles?\b", item, re.IGNORECASE) and len(item) < 40:
            texts.append(item)
    return texts


def extract_mileage(ctx: PageContext) -> Optional[int]:
    """
    Mileage of the listed car.

    Regions, in order: labeled mileage fields, title, description, the rest
    of the page text. Comment threads are never searched. Within a region the
    candidate nearest a model-year token wins.
    """
    for text in structured_mileage_texts(ctx):
        candidates = scan(text, [MILEAGE_REGEX, STRUCTURED_NUMBER_REGEX], REGION_STRUCTURED)
        mileage = _choose_mileage(candidates, text, REGION_STRUCTURED)
        if mileage is not None:
            return mileage

    regions = [
        (ctx.title, REGION_TITLE),
        (ctx.description, REGION_BODY),
        (ctx.body, REGION_BODY),
    ]
    for text, region in regions:
        candidates = scan(text, [MILEAGE_REGEX], region)
        mileage = _choose_mileage(candidates, text, region)
        if mileage is not None:
            return mileage

    return None


# ====================
# PRICE
# ====================

def normalize_price(value: int) -> int:
    """Undo cents-scaled amounts."""
    if value > CENTS_THRESHOLD:
        return value // 100
    return value


def _first_valid_price(candidates: List[ExtractionCandidate], min_price: int) -> Optional[int]:
    for candidate in candidates:
        price = normalize_price(candidate.value)
        if price >= min_price:
            return price
        logger.debug(f"Rejected price {price} below minimum {min_price}: {candidate.raw_match_text!r}")
    return None


def extract_price(ctx: PageContext) -> Optional[int]:
    """
    Final sale price of a sold listing.

    Regions, in order: the sale-status block ("Sold for USD $150,000"), sale
    phrases in the page text, then elements whose class names a sold/final
    price. Amounts under the site's minimum are rejected.
    """
    min_price = ctx.site.min_price

    for element in select_all(ctx.content, ctx.site.selectors.sale_status):
        text = node_text(element)
        if "sold" not in text.lower():
            continue
        price = _first_valid_price(scan(text, [SOLD_PRICE_REGEX], REGION_STRUCTURED), min_price)
        if price is not None:
            return price

    price = _first_valid_price(scan(ctx.body, [SOLD_PRICE_REGEX], REGION_BODY), min_price)
    if price is not None:
        return price

    for element in select_all(ctx.content, PRICE_CLASS_SELECTORS):
        text = node_text(element)
        price = _first_valid_price(scan(text, [DOLLAR_REGEX], REGION_STRUCTURED), min_price)
        if price is not None:
            return price

    return None


# ====================
# VIN
# ====================

def vin_regex(prefix: Optional[str] = None):
    """VIN pattern, optionally pinned to a manufacturer prefix regex."""
    if not prefix:
        return VIN_REGEX
    return re.compile(r"\b(?=" + prefix + r")([A-HJ-NPR-Z0-9]{17})\b")


def is_valid_vin(vin: Optional[str], prefix: Optional[str] = None) -> bool:
    if not vin:
        return False
    return bool(vin_regex(prefix).fullmatch(vin))


def extract_vin(ctx: PageContext) -> Optional[str]:
    """VIN from a labeled field (VIN / Chassis), else from the description and page text."""
    regex = vin_regex(ctx.site.vin_prefix)

    labeled = labeled_value(ctx.content, "vin")
    if labeled:
        match = regex.search(labeled.upper())
        if match:
            return match.group(1)

    for text in (ctx.description, ctx.body):
        match = regex.search(text)
        if match:
            return match.group(1)
    return None


# ====================
# LOCATION
# ====================

def parse_location(text: Optional[str]) -> Optional[Location]:
    """Parse "City, State 12345" (zip optional)."""
    if not text:
        return None
    text = re.sub(r"^(?:Location|Located in)\s*:?\s*", "", text.strip(), flags=re.IGNORECASE)
    match = LOCATION_REGEX.match(text)
    if not match:
        return None
    city, state, zip_code = match.group(1).strip(), match.group(2).strip(), match.group(3)
    if not city or city.lower() in LOCATION_STOP_WORDS or not state:
        return None
    return Location(city=city, state=state, zip=zip_code)


def extract_location(ctx: PageContext) -> Optional[Location]:
    """Seller location from a labeled field or location element, else "located in ..." in the description."""
    location = parse_location(labeled_value(ctx.content, "location"))
    if location:
        return location

    for element in select_all(ctx.content, ctx.site.selectors.location):
        location = parse_location(node_text(element))
        if location:
            return location

    match = LOCATED_IN_REGEX.search(ctx.description)
    if match and match.group(1).lower() not in LOCATION_STOP_WORDS:
        return Location(city=match.group(1).strip(), state=match.group(2).strip(), zip=match.group(3))
    return None


def essentials_location(ctx: PageContext) -> Optional[Location]:
    """Location line of an essentials list ("Location: Palo Alto, California 94306")."""
    for item in ctx.essentials:
        if item.startswith("Location:"):
            location = parse_location(item)
            if location:
                return location
    return extract_location(ctx)


# ====================
# COLORS
# ====================

def extract_exterior_color(ctx: PageContext) -> Optional[str]:
    """
    Exterior color, possibly still carrying a paint-to-sample marker.

    Regions: labeled field, essentials "<Color> Paint" line, then
    "finished in <Color>" in the description.
    """
    color = clean_color(labeled_value(ctx.content, "exterior_color"))
    if color:
        return color

    for item in ctx.essentials:
        match = ESSENTIALS_PAINT_REGEX.match(item)
        if match:
            color = clean_color(match.group(1))
            if color:
                return color

    for match in FINISHED_IN_REGEX.finditer(ctx.description):
        color = clean_color(match.group(1))
        if color:
            return color
    return None


def extract_interior_color(ctx: PageContext) -> Optional[str]:
    """Interior color: labeled field, essentials upholstery line, then "over <Color> leather"."""
    color = clean_color(labeled_value(ctx.content, "interior_color"))
    if color:
        return color

    upholstery = [i for i in ctx.essentials if re.search(r"upholstery|leather|race-tex", i, re.IGNORECASE)]
    upholstery.sort(key=lambda i: "upholstery" not in i.lower())
    for item in upholstery:
        match = ESSENTIALS_UPHOLSTERY_REGEX.match(item)
        if match:
            color = clean_color(match.group(1))
            if color:
                return color

    for match in OVER_INTERIOR_REGEX.finditer(ctx.description):
        color = clean_color(match.group(1))
        if color:
            return color
    return None


# ====================
# TRANSMISSION
# ====================

def _kind(text: str) -> str:
    lowered = text.lower()
    if "pdk" in lowered:
        return "PDK"
    if "tiptronic" in lowered:
        return "Tiptronic"
    if "automatic" in lowered:
        return "Automatic"
    return "Manual"


def normalize_transmission(text: Optional[str]) -> Optional[str]:
    """
    Canonical transmission label.

    "Six-Speed Manual Transaxle" -> "6-Speed Manual", "Seven-Speed PDK" ->
    "7-Speed PDK", "PDK" -> "PDK". None when the text names no transmission.
    """
    if not text:
        return None

    match = TRANSMISSION_REGEXES[0].search(text)
    if match and match.group(1).lower() in SPEED_WORDS:
        return f"{SPEED_WORDS[match.group(1).lower()]}-Speed {_kind(match.group(2))}"

    match = TRANSMISSION_REGEXES[1].search(text)
    if match and match.group(1).lower() in SPEED_WORDS:
        return f"{SPEED_WORDS[match.group(1).lower()]}-Speed {_kind(text)}"

    match = TRANSMISSION_REGEXES[2].search(text)
    if match:
        return _kind(match.group(1))
    return None


def extract_transmission(ctx: PageContext) -> Optional[str]:
    """Transmission from a labeled field, essentials line, title, then description."""
    labeled = labeled_value(ctx.content, "transmission")
    if labeled:
        return normalize_transmission(labeled) or labeled

    for text in ctx.essentials:
        if re.search(r"speed|transaxle|pdk|tiptronic", text, re.IGNORECASE):
            transmission = normalize_transmission(text)
            if transmission:
                return transmission

    for text in (ctx.title, ctx.description):
        transmission = normalize_transmission(text)
        if transmission:
            return transmission
    return None


# ====================
# OPTIONS
# ====================

def extract_options_text(ctx: PageContext) -> str:
    """Raw options text: the site's options list, else a labeled options field."""
    items = []
    for container in select_all(ctx.content, ctx.site.selectors.options):
        lis = container.find_all("li")
        if lis:
            items.extend(node_text(li) for li in lis)
        else:
            items.append(node_text(container))
    items = [i for i in items if i]
    if items:
        return "; ".join(items)

    return labeled_value(ctx.content, "options") or ""


def essentials_options_text(ctx: PageContext) -> str:
    """Options read from an essentials list, skipping VIN, mileage, location and paperwork lines."""
    options = []
    for item in ctx.essentials:
        if any(regex.search(item) for regex in ESSENTIALS_SKIP_REGEXES):
            continue
        if 3 < len(item) < 200:
            options.append(item)
    if options:
        return "; ".join(options)
    return extract_options_text(ctx)


# ====================
# EXTRACTOR SETS
# ====================

@dataclass(frozen=True)
class FieldExtractors:
    """The extractor function used for each field. Sites swap individual functions."""

    title: Callable[[PageContext], str] = extract_title
    mileage: Callable[[PageContext], Optional[int]] = extract_mileage
    price: Callable[[PageContext], Optional[int]] = extract_price
    sold_date: Callable = extract_sold_date
    vin: Callable[[PageContext], Optional[str]] = extract_vin
    location: Callable[[PageContext], Optional[Location]] = extract_location
    exterior_color: Callable[[PageContext], Optional[str]] = extract_exterior_color
    interior_color: Callable[[PageContext], Optional[str]] = extract_interior_color
    transmission: Callable[[PageContext], Optional[str]] = extract_transmission
    options: Callable[[PageContext], str] = extract_options_text


DEFAULT_EXTRACTORS = FieldExtractors()

# Bring a Trailer keeps location and options in its "BaT Essentials" list
BAT_EXTRACTORS = replace(
    DEFAULT_EXTRACTORS,
    location=essentials_location,
    options=essentials_options_text,
)

SITE_EXTRACTORS: Dict[str, FieldExtractors] = {
    "bat": BAT_EXTRACTORS,
}


def extractors_for(source: str) -> FieldExtractors:
    """Extractor set for a source id (the default set when the site has no overrides)."""
    return SITE_EXTRACTORS.get(source, DEFAULT_EXTRACTORS)
