"""
Porsche VIN decoding: manufacturer, model year and model line.

Position 10 carries the model year and position 11 the assembly plant. Year
letters repeat every 30 years, so a letter can mean 1980-2000 or 2010-2030;
a year hint (usually the year in the listing title) picks the cycle.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

VIN_LENGTH = 17
YEAR_CYCLE = 30

_VIN_CHARS = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")

# World manufacturer identifiers (positions 1-3)
MANUFACTURERS = {
    "WP0": "Porsche",
    "WP1": "Porsche SUV",
}

# Position 10, latest cycle
MODEL_YEAR_CODES = {
    "1": 2001, "2": 2002, "3": 2003, "4": 2004, "5": 2005,
    "6": 2006, "7": 2007, "8": 2008, "9": 2009,
    "A": 2010, "B": 2011, "C": 2012, "D": 2013, "E": 2014,
    "F": 2015, "G": 2016, "H": 2017, "J": 2018, "K": 2019,
    "L": 2020, "M": 2021, "N": 2022, "P": 2023, "R": 2024,
    "S": 2025, "T": 2026, "V": 2027, "W": 2028, "X": 2029,
    "Y": 2030,
}

# Position 11
PLANTS = {
    "S": "Stuttgart-Zuffenhausen",
    "U": "Uusikaupunki",
    "K": "Osnabrueck",
    "O": "Osnabrueck",
    "L": "Leipzig",
    "N": "Neckarsulm",
}

# Plants that only ever built the mid-engine cars
MID_ENGINE_PLANTS = {"U", "K", "O"}

# Type number in positions 7-8 of rest-of-world VINs (WP0ZZZ99...)
TYPE_CODES = {
    "99": "911",
    "96": "911",
    "93": "911",
    "98": "718",
    "97": "Panamera",
    "92": "Cayenne",
    "9P": "Cayenne",
    "9Y": "Cayenne",
    "95": "Macan",
    "Y1": "Taycan",
}


@dataclass(frozen=True)
class VinDecoding:
    """What a VIN says about the car. valid is False when the VIN isn't a decodable Porsche VIN."""

    vin: str
    valid: bool
    manufacturer: Optional[str] = None
    model_year: Optional[int] = None
    model: Optional[str] = None
    plant: Optional[str] = None
    errors: Tuple[str, ...] = ()


def resolve_model_year(code: str, year_hint: Optional[int] = None,
                       max_year: Optional[int] = None) -> Optional[int]:
    """
    Model year for a position-10 code.

    Args:
        code: The year character
        year_hint: Year the car is believed to be (picks the 30-year cycle)
        max_year: Latest acceptable model year (default: next year)

    Returns:
        The model year, or None for an invalid code
    """
    latest = MODEL_YEAR_CODES.get(code)
    if latest is None:
        return None
    if max_year is None:
        max_year = datetime.now().year + 1

    candidates = [latest]
    if code.isalpha():
        candidates.append(latest - YEAR_CYCLE)
    plausible = [year for year in candidates if year <= max_year]
    if not plausible:
        return None
    if year_hint:
        return min(plausible, key=lambda year: abs(year - year_hint))
    return max(plausible)


def _model_line(vin: str) -> Optional[str]:
    if vin[3:6] == "ZZZ":
        return TYPE_CODES.get(vin[6:8])
    if vin.startswith("WP1"):
        return TYPE_CODES.get(vin[6:8])
    if vin[10] in MID_ENGINE_PLANTS:
        return "718"
    if vin[3] in "ABCZ":
        return "911"
    return None


def decode_vin(vin: Optional[str], year_hint: Optional[int] = None,
               max_year: Optional[int] = None) -> VinDecoding:
    """
    Decode a Porsche VIN.

    Args:
        vin: The VIN (case and surrounding whitespace are ignored)
        year_hint: Year from the listing, used to pick the year-letter cycle
        max_year: Latest acceptable model year (default: next year)

    Returns:
        VinDecoding; errors explains what made it invalid
    """
    clean = (vin or "").strip().upper()
    if len(clean) != VIN_LENGTH:
        return VinDecoding(vin=clean, valid=False,
                           errors=(f"Invalid VIN length: {len(clean)} (must be {VIN_LENGTH} characters)",))
    if not _VIN_CHARS.match(clean):
        return VinDecoding(vin=clean, valid=False, errors=("VIN contains characters not allowed in a VIN",))

    errors = []
    wmi = clean[:3]
    manufacturer = MANUFACTURERS.get(wmi)
    if manufacturer is None:
        errors.append(f"Unknown manufacturer code: {wmi}")

    model_year = resolve_model_year(clean[9], year_hint, max_year)
    if model_year is None:
        errors.append(f"Invalid model year code: {clean[9]}")

    decoding = VinDecoding(
        vin=clean,
        valid=not errors,
        manufacturer=manufacturer,
        model_year=model_year,
        model=_model_line(clean) if manufacturer else None,
        plant=PLANTS.get(clean[10]),
        errors=tuple(errors),
    )
    if errors:
        logger.debug(f"VIN {clean} not decodable: {'; '.join(errors)}")
    return decoding
