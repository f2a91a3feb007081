"""
Color cleanup, paint-to-sample detection and canonical color names.
"""

import re
from typing import Optional, Tuple

from .car_regexes import PAINT_TO_SAMPLE_REGEX

# Colors only ever offered through the paint-to-sample program
PTS_COLORS = [
    "Granite Green",
    "Dark Sea Blue",
    "Oslo Blue",
    "Mexico Blue",
    "Voodoo Blue",
    "Nardo Grey",
    "Fashion Grey",
    "Slate Grey",
    "Signal Yellow",
    "Signal Green",
    "Acid Green",
    "Lizard Green",
    "Ruby Star",
    "Python Green",
]

# Filler words a loose pattern can capture in place of a color
FILLER_WORDS = {"a", "an", "and", "in", "is", "it", "its", "over", "the", "this", "with"}

# Words that are never a color on their own
COLOR_STOP_WORDS = FILLER_WORDS | {"car", "color", "features", "full", "paint", "leather", "interior"}

MAX_COLOR_LENGTH = 40


def clean_color(value: Optional[str]) -> Optional[str]:
    """Trim punctuation and reject filler words or runaway captures."""
    if not value:
        return None
    color = re.sub(r"\s+", " ", value).strip(" .,;:-")
    if not color or len(color) > MAX_COLOR_LENGTH:
        return None
    if color.lower() in COLOR_STOP_WORDS or color.split()[0].lower() in FILLER_WORDS:
        return None
    return color


def detect_paint_to_sample(color: Optional[str]) -> Tuple[Optional[str], bool]:
    """
    Strip paint-to-sample markers from a color name.

    Returns:
        (clean color name or None, True if the car is paint-to-sample)
    """
    if not color:
        return None, False

    is_pts = bool(PAINT_TO_SAMPLE_REGEX.search(color))
    cleaned = PAINT_TO_SAMPLE_REGEX.sub(" ", color)
    cleaned = re.sub(r"[()]", " ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" .,;:-")

    if not is_pts:
        lowered = cleaned.lower()
        is_pts = any(pts.lower() in lowered for pts in PTS_COLORS)

    return (cleaned or None), is_pts


# ====================
# CANONICAL NAMES
# ====================

# Variant spellings -> factory color names (keys lowercased, "metallic" suffix dropped)
EXTERIOR_COLOR_NAMES = {
    "white": "Carrara White",
    "carrara white": "Carrara White",
    "pure white": "Carrara White",
    "black": "Jet Black",
    "jet black": "Jet Black",
    "grey black finish": "Jet Black",
    "gt silver": "GT Silver",
    "silver": "Rhodium Silver",
    "rhodium silver": "Rhodium Silver",
    "arctic gray": "Arctic Gray",
    "arctic grey": "Arctic Gray",
    "agate gray": "Agate Gray",
    "agate grey": "Agate Gray",
    "chalk": "Chalk",
    "carbon steel gray": "Carbon Steel Gray",
    "carbon steel grey": "Carbon Steel Gray",
    "slate grey": "Slate Grey",
    "slate gray": "Slate Grey",
    "carmine red": "Carmine Red",
    "guards red": "Guards Red",
    "blue": "Sapphire Blue",
    "sapphire blue": "Sapphire Blue",
    "gentian blue": "Gentian Blue",
    "gemini blue": "Gentian Blue",
    "miami blue": "Miami Blue",
    "shark blue": "Shark Blue",
    "dark blue": "Dark Blue Metallic",
    "yellow": "Racing Yellow",
    "racing yellow": "Racing Yellow",
    "gulf orange": "Gulf Orange",
    "pastel orange": "Pastel Orange",
    "python green": "Python Green",
    "signal green": "Signal Green",
    "purple": "Ultraviolet",
    "frozen berry": "Frozen Berry",
}

INTERIOR_COLOR_NAMES = {
    "black": "Black",
    "graphite grey": "Graphite Grey",
    "graphite gray": "Graphite Grey",
    "slate grey": "Slate Grey",
    "slate gray": "Slate Grey",
    "agate grey": "Agate Grey",
    "agate gray": "Agate Grey",
    "bordeaux red": "Bordeaux Red",
    "bordeaux": "Bordeaux Red",
    "espresso": "Espresso",
    "luxor beige": "Luxor Beige",
    "mojave beige": "Mojave Beige",
    "cognac": "Cognac",
}

# A wrapped or stickered car doesn't show its factory paint
WRAP_WORDS = ("wrap", "vinyl", "graphics")


def normalize_color(color: Optional[str], interior: bool = False) -> Optional[str]:
    """
    Map a color to its factory name ("Arctic Grey" -> "Arctic Gray",
    "GT Silver Metallic" -> "GT Silver").

    Unknown colors come back cleaned but otherwise unchanged. A wrapped
    exterior gives None.
    """
    color = clean_color(color)
    if not color:
        return None

    lowered = color.lower()
    if not interior and any(word in lowered for word in WRAP_WORDS):
        return None

    names = INTERIOR_COLOR_NAMES if interior else EXTERIOR_COLOR_NAMES
    key = re.sub(r"\s+metallic$", "", lowered)
    return names.get(lowered) or names.get(key) or color
