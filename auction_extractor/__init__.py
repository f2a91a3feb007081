"""
Auction Extractor - turns vehicle auction pages into normalized sale records.
"""

__version__ = "0.3.0"

from .models import (
    RawPage, ExtractionCandidate, Location, ModelTrimResult, ListingSummary, ListingDetail,
    SOLD, ACTIVE, UNKNOWN, SEARCH_PAGE, DETAIL_PAGE,
)
from .scanner import scan, pick_nearest_year
from .context import PageContext, build_page_context
from .extractors import (
    FieldExtractors, DEFAULT_EXTRACTORS, BAT_EXTRACTORS, extractors_for,
    extract_mileage, extract_price, extract_vin, extract_location,
    extract_exterior_color, extract_interior_color, extract_transmission,
)
from .sold_date import extract_sold_date
from .status import classify_status
from .vin_decoder import VinDecoding, decode_vin
from .colors import normalize_color
from .assembler import ListingAssembler
from .model_trim import ModelTrimNormalizer
from .options import OptionsNormalizer
from .classifier import (
    ClassificationClient, RetryPolicy, ClassificationError, ServiceOverloaded,
    RateLimited, MalformedResponse,
)
from .sites import SiteConfig, SITE_CONFIGS, get_site_config, build_search_urls, load_site_configs
from .search import parse_search_page
from .filters import filter_summaries, filter_listings
from .validator import DataValidator, ExtractionReport
from .config import ExtractorConfig
from .logging_config import setup_logging
from .field_keywords import FIELD_KEYWORDS, get_keywords
from .utils import ListingSink, StreamingOutputWriter, save_to_file, load_page_file

__all__ = [
    "RawPage",
    "ExtractionCandidate",
    "Location",
    "ModelTrimResult",
    "ListingSummary",
    "ListingDetail",
    "SOLD",
    "ACTIVE",
    "UNKNOWN",
    "SEARCH_PAGE",
    "DETAIL_PAGE",
    "scan",
    "pick_nearest_year",
    "PageContext",
    "build_page_context",
    "FieldExtractors",
    "DEFAULT_EXTRACTORS",
    "BAT_EXTRACTORS",
    "extractors_for",
    "extract_mileage",
    "extract_price",
    "extract_vin",
    "extract_location",
    "extract_exterior_color",
    "extract_interior_color",
    "extract_transmission",
    "extract_sold_date",
    "classify_status",
    "VinDecoding",
    "decode_vin",
    "normalize_color",
    "ListingAssembler",
    "ModelTrimNormalizer",
    "OptionsNormalizer",
    "ClassificationClient",
    "RetryPolicy",
    "ClassificationError",
    "ServiceOverloaded",
    "RateLimited",
    "MalformedResponse",
    "SiteConfig",
    "SITE_CONFIGS",
    "get_site_config",
    "build_search_urls",
    "load_site_configs",
    "parse_search_page",
    "filter_summaries",
    "filter_listings",
    "DataValidator",
    "ExtractionReport",
    "ExtractorConfig",
    "setup_logging",
    "FIELD_KEYWORDS",
    "get_keywords",
    "ListingSink",
    "StreamingOutputWriter",
    "save_to_file",
    "load_page_file",
]
