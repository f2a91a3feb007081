"""
Field keywords for identifying labeled values and sale status on auction pages.
"""

FIELD_KEYWORDS = {
    "mileage": [
        "Mileage",
        "Miles",
        "Odometer",
        "Odometer Reading",
        "Chassis Miles",
    ],
    "vin": [
        "VIN",
        "VIN #",
        "Chassis",
        "Vehicle Identification Number",
    ],
    "location": [
        "Location",
        "Seller Location",
        "Located In",
    ],
    "exterior_color": [
        "Exterior Color",
        "Exterior",
        "Ext. Color",
        "Paint",
        "Color",
    ],
    "interior_color": [
        "Interior Color",
        "Interior",
        "Int. Color",
        "Upholstery",
    ],
    "transmission": [
        "Transmission",
        "Gearbox",
    ],
    "options": [
        "Options",
        "Equipment",
        "Highlights",
        "Notable Options",
    ],
    # Title words for listings that aren't whole cars
    "parts": [
        "wheel",
        "wheels",
        "seat",
        "seats",
        "tool",
        "tools",
        "part",
        "parts",
        "kit",
        "literature",
        "brochure",
        "sign",
        "memorabilia",
        "luggage",
        "hardtop",
        "model car",
    ],
}

# Page elements that only show up while bidding is open
ACTIVE_SELECTORS = [
    ".bid-button",
    ".place-bid",
    ".auction-timer",
    "#countdown",
    '[data-test="place-bid-button"]',
    ".time-remaining",
    ".countdown",
]

# Page elements that carry the final sale result
SOLD_SELECTORS = [
    ".sold-for",
    ".sold-section",
    "[class*=sold-price]",
]

# Stat blocks that read "Sold" once the auction closes
SOLD_STAT_SELECTORS = [
    ".listing-stats-value",
]


# Helper function to get keywords for a field
def get_keywords(field_name: str) -> list:
    """Get keywords for a specific field."""
    return FIELD_KEYWORDS.get(field_name, [])


def is_label(text: str, field_name: str) -> bool:
    """True if text is exactly one of the field's labels (ignoring case and a trailing colon)."""
    if not text:
        return False
    cleaned = text.strip().rstrip(":").strip().lower()
    return cleaned in (kw.lower() for kw in get_keywords(field_name))
