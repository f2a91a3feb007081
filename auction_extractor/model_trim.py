"""
Model/trim normalization: listing title -> (model, trim, generation, year).

The classification service is asked first; when it is unavailable, rate
limited, overloaded past the retry budget, or answers with something that
isn't the expected JSON, the title is parsed with the fixed vocabulary below.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from .car_regexes import GENERATION_REGEX, YEAR_REGEX
from .classifier import ClassificationClient, ClassificationError, RateLimited, parse_json_response
from .models import ModelTrimResult

logger = logging.getLogger(__name__)

MODEL_TRIM_PROMPT = """You are a Porsche sports-car expert. Extract the model and trim from a vehicle listing title.
Models: 911, 718 Cayman, 718 Boxster, 718 Spyder.
Never return Cayenne, Macan, Panamera or Taycan; for those titles return all nulls.
Use the most specific trim named in the title (e.g. "GT3 RS", not "GT3").
Generation is the chassis code (992.2, 992.1, 991.2, 991.1, 997.2, 997.1, 996, 993, 982, 981, 987.2, 987.1, 986).
Return ONLY JSON: {"model": "string or null", "trim": "string or null", "generation": "string or null", "year": number or null}"""

# Model families that are not tracked sports cars
EXCLUDED_MODELS = ("Cayenne", "Macan", "Panamera", "Taycan")

FIRST_MODEL_YEAR = 1948

# Trim vocabulary, most specific first
TRIM_PATTERNS = [
    (re.compile(r"GT3[\s-]?RS\b", re.IGNORECASE), "GT3 RS"),
    (re.compile(r"GT2[\s-]?RS\b", re.IGNORECASE), "GT2 RS"),
    (re.compile(r"GT4[\s-]?RS\b", re.IGNORECASE), "GT4 RS"),
    (re.compile(r"Spyder[\s-]?RS\b", re.IGNORECASE), "Spyder RS"),
    (re.compile(r"GT3[\s-]?Touring\b", re.IGNORECASE), "GT3 Touring"),
    (re.compile(r"GT3\b", re.IGNORECASE), "GT3"),
    (re.compile(r"GT2\b", re.IGNORECASE), "GT2"),
    (re.compile(r"GT4\b", re.IGNORECASE), "GT4"),
    (re.compile(r"Turbo[\s-]?S\b", re.IGNORECASE), "Turbo S"),
    (re.compile(r"Turbo\b", re.IGNORECASE), "Turbo"),
    (re.compile(r"Carrera[\s-]?4[\s-]?GTS\b", re.IGNORECASE), "Carrera 4 GTS"),
    (re.compile(r"Carrera[\s-]?GTS\b", re.IGNORECASE), "Carrera GTS"),
    (re.compile(r"Carrera[\s-]?4S\b", re.IGNORECASE), "Carrera 4S"),
    (re.compile(r"Carrera[\s-]?S\b", re.IGNORECASE), "Carrera S"),
    (re.compile(r"Carrera[\s-]?4\b", re.IGNORECASE), "Carrera 4"),
    (re.compile(r"Carrera\b", re.IGNORECASE), "Carrera"),
    (re.compile(r"GTS[\s-]?4\.0\b", re.IGNORECASE), "GTS 4.0"),
    (re.compile(r"\bGTS\b", re.IGNORECASE), "GTS"),
    (re.compile(r"Targa[\s-]?4S\b", re.IGNORECASE), "Targa 4S"),
    (re.compile(r"Targa\b", re.IGNORECASE), "Targa"),
    (re.compile(r"\bS/T\b", re.IGNORECASE), "S/T"),
    (re.compile(r"Sport[\s-]?Classic\b", re.IGNORECASE), "Sport Classic"),
    (re.compile(r"Speedster\b", re.IGNORECASE), "Speedster"),
    (re.compile(r"Dakar\b", re.IGNORECASE), "Dakar"),
    (re.compile(r"Spyder\b", re.IGNORECASE), "Spyder"),
    (re.compile(r"\bS\b"), "S"),
    (re.compile(r"\bR\b"), "R"),
]

# Trims that only exist on one model line
TRIM_MODELS = {
    "GT3 RS": "911", "GT2 RS": "911", "GT3 Touring": "911", "GT3": "911", "GT2": "911",
    "Carrera 4 GTS": "911", "Carrera GTS": "911", "Carrera 4S": "911", "Carrera S": "911",
    "Carrera 4": "911", "Carrera": "911", "Targa 4S": "911", "Targa": "911", "S/T": "911",
    "Sport Classic": "911", "Dakar": "911",
    "GT4 RS": "718 Cayman", "GT4": "718 Cayman", "Spyder RS": "718 Spyder",
}

# (first model year, generation), newest first
GENERATION_YEARS = {
    "911": [
        (2025, "992.2"),
        (2020, "992.1"),
        (2017, "991.2"),
        (2012, "991.1"),
        (2009, "997.2"),
        (2005, "997.1"),
        (1999, "996"),
    ],
    "718": [
        (2017, "982"),
        (2013, "981"),
        (2009, "987.2"),
        (2005, "987.1"),
        (1997, "986"),
    ],
}


def is_excluded_model(title: str) -> bool:
    lowered = (title or "").lower()
    return any(model.lower() in lowered for model in EXCLUDED_MODELS)


def detect_trim(title: str) -> Optional[str]:
    """
    Most specific trim named in the title.

    Every pattern is tried; the longest matched text wins, and ties go to the
    pattern listed first. "GT3 RS" therefore always beats "GT3".
    """
    best = None
    best_length = 0
    for pattern, trim in TRIM_PATTERNS:
        match = pattern.search(title or "")
        if match and len(match.group(0)) > best_length:
            best, best_length = trim, len(match.group(0))
    return best


def detect_model(title: str, trim: Optional[str] = None) -> Optional[str]:
    if "911" in title:
        return "911"
    if "Cayman" in title:
        return "718 Cayman"
    if "Boxster" in title:
        return "718 Boxster"
    if "Spyder" in title:
        return "718 Spyder"
    generation = GENERATION_REGEX.search(title)
    if generation and generation.group(1).startswith("99"):
        return "911"
    return TRIM_MODELS.get(trim)


def detect_year(title: str) -> Optional[int]:
    """First 4-digit model year in the title within the plausible range."""
    max_year = datetime.now().year + 1
    for match in YEAR_REGEX.finditer(title or ""):
        year = int(match.group(1))
        if FIRST_MODEL_YEAR <= year <= max_year:
            return year
    return None


def generation_for(model: Optional[str], year: Optional[int]) -> Optional[str]:
    """Generation implied by model line and model year."""
    if not model or not year:
        return None
    if model == "911":
        table = GENERATION_YEARS["911"]
    elif "718" in model or "Cayman" in model or "Boxster" in model:
        table = GENERATION_YEARS["718"]
    else:
        return None
    for first_year, generation in table:
        if year >= first_year:
            return generation
    return None


def fallback_model_trim(title: str) -> ModelTrimResult:
    """Deterministic title parsing used whenever the service can't answer."""
    if not title or is_excluded_model(title):
        return ModelTrimResult()

    trim = detect_trim(title)
    model = detect_model(title, trim)
    year = detect_year(title)

    explicit = GENERATION_REGEX.search(title)
    generation = explicit.group(1) if explicit else generation_for(model, year)

    return ModelTrimResult(model=model, trim=trim, generation=generation, year=year)


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "unknown"):
        return None
    return text


def result_from_reply(reply: str) -> ModelTrimResult:
    """
    Build a result from the service's JSON reply.

    Raises:
        MalformedResponse: If the reply holds no JSON object
    """
    data = parse_json_response(reply, dict)

    model = _clean(data.get("model"))
    if model and is_excluded_model(model):
        return ModelTrimResult()

    year = data.get("year")
    try:
        year = int(year) if year is not None else None
    except (TypeError, ValueError):
        year = None
    if year is not None and not FIRST_MODEL_YEAR <= year <= datetime.now().year + 1:
        year = None

    generation = _clean(data.get("generation")) or generation_for(model, year)
    return ModelTrimResult(model=model, trim=_clean(data.get("trim")), generation=generation, year=year)


class ModelTrimNormalizer:
    """Title -> ModelTrimResult, service first, vocabulary fallback."""

    def __init__(self, client: Optional[ClassificationClient] = None):
        self.client = client

    def normalize(self, title: str) -> ModelTrimResult:
        """
        Normalize a listing title.

        Returns:
            ModelTrimResult; all fields None for empty titles and excluded model families
        """
        if not title or not title.strip():
            return ModelTrimResult()
        if is_excluded_model(title):
            logger.debug(f"Excluded model family: {title!r}")
            return ModelTrimResult()

        if self.client is not None and self.client.available:
            try:
                reply = self.client.complete(MODEL_TRIM_PROMPT, f'Extract model and trim from this title:\n"{title}"')
                return result_from_reply(reply)
            except RateLimited:
                logger.warning(f"Classification rate limited; using fallback parsing for {title!r}")
            except ClassificationError as e:
                logger.warning(f"Classification failed ({e}); using fallback parsing for {title!r}")

        return fallback_model_trim(title)
