"""
Listing detail assembler: one detail page in, one ListingDetail (or a
rejection) out.

The auction status gates everything else. Unknown-status pages are dropped,
price and sold date are only read from sold pages, and a sold page without a
valid price is dropped rather than stored with a guessed price.
"""

import logging
from datetime import date
from typing import Optional, Tuple
from urllib.parse import urlparse

from .classifier import ClassificationClient
from .colors import detect_paint_to_sample, normalize_color
from .context import build_page_context
from .extractors import FieldExtractors, extractors_for
from .model_trim import ModelTrimNormalizer, detect_year, generation_for, is_excluded_model
from .models import DETAIL_PAGE, SOLD, UNKNOWN, ListingDetail, RawPage
from .options import OptionsNormalizer
from .sites import SiteConfig
from .status import classify_status
from .vin_decoder import decode_vin

logger = logging.getLogger(__name__)

# Rejection reasons
REJECT_EMPTY_TITLE = "empty_title"
REJECT_EXCLUDED_MODEL = "excluded_model"
REJECT_STATUS_UNKNOWN = "status_unknown"
REJECT_SOLD_WITHOUT_PRICE = "sold_without_price"

PAINT_TO_SAMPLE_OPTION = "Paint to Sample"


def source_id_from_url(url: str) -> Optional[str]:
    """Last path segment of a listing URL ("/listing/2004-porsche-911-gt3-12/" -> "2004-porsche-911-gt3-12")."""
    path = urlparse(url or "").path.rstrip("/")
    segment = path.rsplit("/", 1)[-1] if path else ""
    return segment or None


class ListingAssembler:
    """Runs the field extractors and normalizers over one site's detail pages."""

    def __init__(self, site: SiteConfig, extractors: Optional[FieldExtractors] = None,
                 model_trim: Optional[ModelTrimNormalizer] = None,
                 options: Optional[OptionsNormalizer] = None,
                 today: Optional[date] = None):
        """
        Args:
            site: Site config for the pages this assembler handles
            extractors: Field extractor set (default: the site's own set)
            model_trim: Model/trim normalizer (default: fallback parsing only)
            options: Options normalizer (default: naive split only)
            today: Reference date for sold-date window checks
        """
        self.site = site
        self.extractors = extractors or extractors_for(site.source)
        self.model_trim = model_trim or ModelTrimNormalizer()
        self.options = options or OptionsNormalizer()
        self.today = today

    @classmethod
    def with_client(cls, site: SiteConfig, client: Optional[ClassificationClient],
                    options_char_limit: int = 500, today: Optional[date] = None) -> "ListingAssembler":
        """Assembler whose normalizers share one classification client."""
        return cls(
            site,
            model_trim=ModelTrimNormalizer(client),
            options=OptionsNormalizer(client, char_limit=options_char_limit),
            today=today,
        )

    def evaluate(self, page: RawPage) -> Tuple[Optional[ListingDetail], Optional[str]]:
        """
        Extract one detail page.

        Args:
            page: RawPage with page_type "detail"

        Returns:
            (listing, None) on success, or (None, rejection reason)

        Raises:
            ValueError: If the page is not a detail page
        """
        if page.page_type != DETAIL_PAGE:
            raise ValueError(f"ListingAssembler only handles detail pages, got '{page.page_type}' for {page.url}")

        ctx = build_page_context(page.html, self.site, page.url, today=self.today)
        ex = self.extractors

        title = ex.title(ctx)
        if not title:
            logger.warning(f"{self.site.name}: Rejected {page.url}: empty title")
            return None, REJECT_EMPTY_TITLE

        if is_excluded_model(title):
            logger.info(f"{self.site.name}: Rejected {page.url}: {title!r} isn't a tracked model")
            return None, REJECT_EXCLUDED_MODEL

        status = classify_status(ctx.content, ctx.body)
        if status == UNKNOWN:
            logger.warning(f"{self.site.name}: Rejected {page.url}: no sold or active marker")
            return None, REJECT_STATUS_UNKNOWN

        price = None
        sold_date = None
        if status == SOLD:
            price = ex.price(ctx)
            if price is None:
                logger.warning(f"{self.site.name}: Rejected {page.url}: sold without a valid price")
                return None, REJECT_SOLD_WITHOUT_PRICE
            sold_date = ex.sold_date(ctx)

        exterior_color, paint_to_sample = detect_paint_to_sample(ex.exterior_color(ctx))

        identity = self.model_trim.normalize(title)
        model = identity.model or page.model_hint
        trim = identity.trim or page.trim_hint
        year = identity.year or detect_year(title)
        generation = identity.generation

        vin = ex.vin(ctx)
        decoded = decode_vin(vin, year_hint=year) if vin else None
        if decoded is not None and decoded.valid:
            model = model or decoded.model
            if year is None:
                year = decoded.model_year
                logger.debug(f"{self.site.name}: Model year {year} for {title!r} from VIN {vin}")
            elif decoded.model_year and abs(decoded.model_year - year) > 1:
                logger.warning(f"{self.site.name}: VIN {vin} decodes to model year {decoded.model_year}, "
                               f"title says {year}")
        generation = generation or generation_for(model, year)

        options_raw = ex.options(ctx) or ""
        options_normalized = self.options.normalize(options_raw)
        if paint_to_sample and PAINT_TO_SAMPLE_OPTION not in options_normalized:
            options_normalized.append(PAINT_TO_SAMPLE_OPTION)

        listing = ListingDetail(
            title=title,
            source_url=page.url,
            status=status,
            source=page.source or self.site.source,
            price=price,
            sold_date=sold_date,
            mileage=ex.mileage(ctx),
            year=year,
            vin=vin,
            model=model,
            trim=trim,
            generation=generation,
            exterior_color=normalize_color(exterior_color),
            interior_color=normalize_color(ex.interior_color(ctx), interior=True),
            paint_to_sample=paint_to_sample,
            transmission=ex.transmission(ctx),
            location=ex.location(ctx),
            options_raw=options_raw,
            options_normalized=options_normalized,
            source_id=source_id_from_url(page.url),
        )
        logger.info(f"{self.site.name}: Extracted {status} listing {title!r}"
                    + (f" at ${price:,}" if price else ""))
        return listing, None

    def assemble(self, page: RawPage) -> Optional[ListingDetail]:
        """Extract one detail page; None when the page is rejected."""
        listing, _ = self.evaluate(page)
        return listing
