"""
Options normalization: freeform option text -> list of canonical option names.
"""

import logging
import re
from typing import List, Optional

from .classifier import ClassificationClient, ClassificationError, RateLimited, parse_json_response

logger = logging.getLogger(__name__)

OPTIONS_PROMPT = """You normalize Porsche factory option lists.
Map jargon and abbreviations to full option names, e.g.
PCCB -> Porsche Ceramic Composite Brakes, PDCC -> Porsche Dynamic Chassis Control,
PASM -> Porsche Active Suspension Management, PSE -> Porsche Sport Exhaust,
LWBS -> Lightweight Bucket Seats, PTS -> Paint to Sample, FVD -> Factory Vehicle Delivery.
Drop anything that is not a factory or dealer-installed option.
Return ONLY a JSON array of option names."""

DEFAULT_CHAR_LIMIT = 500

_SPLIT_REGEX = re.compile(r"[,;]")


def split_options(raw_text: str) -> List[str]:
    """Split on commas/semicolons, trim each token, drop empty ones. No abbreviation expansion."""
    if not raw_text:
        return []
    return [token.strip() for token in _SPLIT_REGEX.split(raw_text) if token.strip()]


def truncate(raw_text: str, limit: int = DEFAULT_CHAR_LIMIT) -> str:
    if len(raw_text) <= limit:
        return raw_text
    return raw_text[:limit] + "..."


class OptionsNormalizer:
    """Raw options text -> option names, service first, naive split fallback."""

    def __init__(self, client: Optional[ClassificationClient] = None, char_limit: int = DEFAULT_CHAR_LIMIT):
        self.client = client
        self.char_limit = char_limit

    def normalize(self, raw_text: str) -> List[str]:
        if not raw_text or not raw_text.strip():
            return []

        if self.client is not None and self.client.available:
            try:
                reply = self.client.complete(
                    OPTIONS_PROMPT,
                    f"Raw options text:\n{truncate(raw_text, self.char_limit)}\n\n"
                    f"Return ONLY a JSON array of normalized option names.",
                )
                options = parse_json_response(reply, list)
                return [opt.strip() for opt in options if isinstance(opt, str) and opt.strip()]
            except RateLimited:
                logger.warning("Classification rate limited; splitting options text instead")
            except ClassificationError as e:
                logger.warning(f"Options classification failed ({e}); splitting options text instead")

        return split_options(raw_text)
