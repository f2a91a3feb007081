"""
Regular expressions for extracting vehicle sale facts from auction pages.

Numeric patterns expose a ``value`` group and an optional ``k`` group
(thousands multiplier) so they can be fed straight to the candidate scanner.
"""

import re


# ==============
# BASIC HELPERS
# ==============

def parse_amount(number_str, thousands=None):
    """
    Turn '32,995', '32995.00' or ('8', 'k') into an int.
    Returns None if it can't parse.
    """
    if not number_str:
        return None
    s = number_str.strip().replace(",", "")
    try:
        value = float(s)
    except ValueError:
        return None
    if thousands:
        value *= 1000
    return int(round(value))


# Shared number shape: 1,234,567 | 1234 | 8.5
_NUMBER = r"\d{1,3}(?:,\d{3})+|\d+(?:\.\d+)?"


# =====================
# VIN (17-char standard)
# =====================

VIN_REGEX = re.compile(
    r"\b([A-HJ-NPR-Z0-9]{17})\b"
)


# ==========================
# MILEAGE (number + miles/mi)
# ==========================

# Matches:
# 8k-Mile   25K Mile   1,234-Mile   186,000 miles   12k mi
MILEAGE_REGEX = re.compile(
    r"(?<![\d,.$#])(?P<value>" + _NUMBER + r")\s*(?P<k>[kK])?\s*-?\s*(?:miles?\b|mi\b)",
    re.IGNORECASE,
)

# A bare number inside a labeled mileage field ("Mileage: 8,456", "8k")
STRUCTURED_NUMBER_REGEX = re.compile(
    r"(?<![\d,.])(?P<value>" + _NUMBER + r")\s*(?P<k>[kK])?(?![\w])"
)


# ====================
# PRICE (USD with $)
# ====================

# $32,995   $ 32995   $175k   USD $120,000
DOLLAR_REGEX = re.compile(
    r"(?:USD\s*)?\$\s*(?P<value>" + _NUMBER + r")\s*(?P<k>[kK])?(?![\w])",
    re.IGNORECASE,
)

# Sale phrases followed by a currency amount
SOLD_PRICE_REGEX = re.compile(
    r"(?:sold\s+(?:after\s+)?for|winning\s+bid|final\s+price)\s*:?\s*(?:USD\s*)?\$\s*"
    r"(?P<value>" + _NUMBER + r")\s*(?P<k>[kK])?(?![\w])",
    re.IGNORECASE,
)

# "Sold for" with an amount, used to classify status
SOLD_FOR_AMOUNT_REGEX = re.compile(
    r"sold\s+(?:after\s+)?for\s*:?\s*(?:USD\s*)?\$\s*\d",
    re.IGNORECASE,
)

WINNING_BID_REGEX = re.compile(
    r"winning\s+bid\s*:?\s*(?:USD\s*)?\$\s*[\d,]+",
    re.IGNORECASE,
)

_MONTH = r"(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?"

# Live-auction phrasing; each one needs the countdown or amount that follows it
ACTIVE_PHRASE_REGEXES = [
    re.compile(r"\btime\s+(?:remaining|left)\s*(?::|\d)", re.IGNORECASE),
    re.compile(r"\bends\s+in\s*:?\s*\d", re.IGNORECASE),
    re.compile(r"\bcurrent\s+bid\s*:?\s*(?:USD\s*)?\$\s*\d", re.IGNORECASE),
]

# Closed-auction phrasing; "sold on" only counts with a date after it
SOLD_PHRASE_REGEXES = [
    re.compile(r"\b(?:auction|sale|bidding)\s+(?:has\s+)?ended\b(?!\s+up\b)", re.IGNORECASE),
    re.compile(r"\bsold\s+on\s+(?:\d|" + _MONTH + r"\s+\d)", re.IGNORECASE),
]


# ====================
# YEAR
# ====================

YEAR_REGEX = re.compile(r"\b(19\d{2}|20\d{2})\b")


# ====================
# DATES
# ====================

MONTH_NAMES = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|"
    r"Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

# 8/29/22   08/29/2022
NUMERIC_DATE = r"\d{1,2}/\d{1,2}/(?:\d{4}|\d{2})(?!\d)"
# August 29, 2022   Aug 29th 2022   August 29, 22
LONG_DATE = MONTH_NAMES + r"\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+(?:\d{4}|\d{2})(?!\d)"
# 2022-08-29
ISO_DATE = r"\d{4}-\d{2}-\d{2}"

ANY_DATE = r"(" + NUMERIC_DATE + r"|" + LONG_DATE + r"|" + ISO_DATE + r")"

# "... on 8/29/22" inside a sale-status block
ON_DATE_REGEX = re.compile(r"\bon\s+" + ANY_DATE, re.IGNORECASE)

# Body-text phrases that introduce the sale date
SOLD_DATE_PHRASE_REGEXES = [
    re.compile(r"sold\s+(?:after\s+)?for\s+(?:USD\s*)?\$[\d,]+\s*k?\s+on\s+" + ANY_DATE, re.IGNORECASE),
    re.compile(r"sold\s+on[:\s]+" + ANY_DATE, re.IGNORECASE),
    re.compile(r"auction\s+ended(?:\s+on)?[:\s]+" + ANY_DATE, re.IGNORECASE),
    re.compile(r"sale\s+ended(?:\s+on)?[:\s]+" + ANY_DATE, re.IGNORECASE),
    re.compile(r"\bended(?:\s+on)?[:\s]+" + ANY_DATE, re.IGNORECASE),
    re.compile(r"\bclosed(?:\s+on)?[:\s]+" + ANY_DATE, re.IGNORECASE),
]

ORDINAL_SUFFIX_REGEX = re.compile(r"(\d)(st|nd|rd|th)\b", re.IGNORECASE)


# ====================
# LOCATION
# ====================

# Palo Alto, California 94306   Austin, TX
LOCATION_REGEX = re.compile(
    r"^\s*([A-Za-z][A-Za-z .'\-]*?),\s*([A-Za-z][A-Za-z .]*?)\s*(\d{5})?(?:-\d{4})?\s*$"
)

LOCATED_IN_REGEX = re.compile(
    r"located\s+in\s+([A-Z][A-Za-z .'\-]*?),\s*([A-Z][A-Za-z .]*?)(?:\s+(\d{5}))?(?=[.;,)]|\s*$)"
)


# ====================
# COLORS
# ====================

PAINT_TO_SAMPLE_REGEX = re.compile(r"\b(?:paint[\s-]+to[\s-]+sample|PTS)\b", re.IGNORECASE)

# "Paint-To-Sample Mint Green Paint", "GT Silver Metallic Paint"
ESSENTIALS_PAINT_REGEX = re.compile(
    r"^([A-Za-z][A-Za-z \-]*?)\s+Paint$",
    re.IGNORECASE,
)

# "Black Leather & Race-Tex Upholstery", "Graphite Grey Leather Upholstery"
ESSENTIALS_UPHOLSTERY_REGEX = re.compile(
    r"^([A-Za-z][A-Za-z \-]*?)\s+(?:Full\s+)?(?:Leather|Race-Tex|Alcantara|Leatherette|Cloth|Upholstery)\b",
    re.IGNORECASE,
)

# "finished in Guards Red over Black leather"
FINISHED_IN_REGEX = re.compile(
    r"(?:finished|painted|refinished)\s+in\s+([A-Za-z][A-Za-z \-]*?)(?:\s+\([A-Z0-9]+\))?\s*(?:\b(?:over|with|and)\b|[.,])",
    re.IGNORECASE,
)

OVER_INTERIOR_REGEX = re.compile(
    r"\bover\s+([A-Za-z][A-Za-z \-]*?)\s*(?:full\s+)?(?:\b(?:leather|upholstery|race-tex|alcantara|interior)\b|[,.])",
    re.IGNORECASE,
)


# ====================
# TRANSMISSION
# ====================

TRANSMISSION_REGEXES = [
    re.compile(r"\b(\d|five|six|seven|eight)[-\s]?speed\s+(manual|automatic|PDK|tiptronic(?:\s+S)?)\b", re.IGNORECASE),
    re.compile(r"\b(\d|five|six|seven|eight)[-\s]?speed\b", re.IGNORECASE),
    re.compile(r"\b(PDK|tiptronic(?:\s+S)?|manual\s+transmission|automatic\s+transmission|manual\s+transaxle)\b", re.IGNORECASE),
]

SPEED_WORDS = {
    "5": "5", "five": "5",
    "6": "6", "six": "6",
    "7": "7", "seven": "7",
    "8": "8", "eight": "8",
}


# ====================
# GENERATION CODES
# ====================

GENERATION_REGEX = re.compile(
    r"(?<![\d.])(992\.2|992\.1|991\.2|991\.1|997\.2|997\.1|987\.2|987\.1|992|991|997|996|993|982|981|987|986)(?![\d.])"
)
