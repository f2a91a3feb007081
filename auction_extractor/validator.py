"""
Data Validator

Plausibility checks for extracted listings, beyond the hard invariants the
ListingDetail record enforces itself, plus the batch extraction report.
"""

import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .models import ListingDetail, SOLD
from .sites import SiteConfig
from .vin_decoder import decode_vin


class DataValidator:
    """Validate extracted listings for data quality."""

    MAX_PRICE = 5_000_000

    # Sold prices below these are almost certainly mis-extracted (or not the car)
    TRIM_PRICE_FLOORS = {
        "GT3": 150_000,
        "GT3 RS": 250_000,
        "GT4 RS": 180_000,
        "Spyder RS": 200_000,
        "Turbo S": 180_000,
    }

    # First model year each trim/model was built
    FIRST_YEARS = {
        "GT4 RS": 2022,
        "Spyder RS": 2024,
        "718": 2017,
    }

    @staticmethod
    def validate_listing(listing: ListingDetail, site: Optional[SiteConfig] = None) -> Tuple[bool, List[str]]:
        """
        Validate an extracted listing.

        Args:
            listing: ListingDetail to validate
            site: Site config the listing came from (enables the VIN prefix check)

        Returns:
            (is_valid, list_of_issues); warnings are prefixed with "WARNING:"
        """
        errors = []
        warnings = []

        # ===== CRITICAL VALIDATIONS (always fail) =====

        if listing.price is not None and listing.price > DataValidator.MAX_PRICE:
            errors.append(f"Price exceeds maximum plausible sale: ${listing.price:,}")

        if listing.year is not None:
            for name, first_year in DataValidator.FIRST_YEARS.items():
                if name == "718":
                    # Pre-2017 Caymans and Boxsters are fine; only a title calling it a 718 is checked
                    label = listing.title
                else:
                    label = listing.trim
                if label and name in label and listing.year < first_year:
                    errors.append(f"{name} did not exist in {listing.year}")

        if listing.vin and site is not None and site.vin_prefix:
            if not re.match(site.vin_prefix, listing.vin):
                errors.append(f"VIN {listing.vin} doesn't match {site.make} prefix")

        if DataValidator._looks_like_test_data(listing):
            errors.append("Appears to be test/placeholder data")

        # ===== DATA QUALITY WARNINGS =====

        if listing.status == SOLD and listing.price is not None and listing.trim:
            floor = DataValidator.TRIM_PRICE_FLOORS.get(listing.trim)
            if floor and listing.price < floor:
                warnings.append(f"Price ${listing.price:,} seems low for {listing.trim} (floor ${floor:,})")

        if listing.sold_date and listing.year and listing.sold_date.year < listing.year - 1:
            warnings.append(f"Sold date {listing.sold_date.isoformat()} is before model year {listing.year}")

        if listing.mileage is not None and listing.year:
            age = max(1, datetime.now().year - listing.year)
            if listing.mileage / age > 30000:
                warnings.append(f"Unusually high mileage for age: {listing.mileage:,} miles")

        if listing.status == SOLD and listing.sold_date is None:
            warnings.append("Sold listing without a sold date")

        if listing.vin and listing.year:
            decoded = decode_vin(listing.vin, year_hint=listing.year)
            if decoded.valid and decoded.model_year and abs(decoded.model_year - listing.year) > 1:
                warnings.append(f"VIN model year {decoded.model_year} doesn't match listing year {listing.year}")

        # ===== FINAL DECISION =====

        is_valid = len(errors) == 0
        all_issues = errors + [f"WARNING: {w}" for w in warnings]

        return is_valid, all_issues

    @staticmethod
    def _looks_like_test_data(listing: ListingDetail) -> bool:
        """Check if listing appears to be test/placeholder data."""
        test_indicators = ["lorem ipsum", "placeholder", "test listing", "xxxxxxxx"]
        for value in (listing.title, listing.vin, listing.exterior_color):
            if value and any(indicator in str(value).lower() for indicator in test_indicators):
                return True
        return False


class ExtractionReport:
    """Tally of a batch: extracted records, rejections by reason, failures, validation issues."""

    def __init__(self):
        self.pages = 0
        self.extracted = 0
        self.sold = 0
        self.active = 0
        self.rejected: Dict[str, int] = {}
        self.failed = 0
        self.invalid = 0
        self.issues: Dict[str, int] = {}

    def add_extracted(self, listing: ListingDetail, is_valid: bool = True, issues: Optional[List[str]] = None):
        """Record a page that produced a listing."""
        self.pages += 1
        self.extracted += 1
        if listing.status == SOLD:
            self.sold += 1
        else:
            self.active += 1
        if not is_valid:
            self.invalid += 1
        for issue in issues or []:
            # Clean issue (remove specific values)
            clean_issue = re.sub(r"\$[\d,]+", "$X", issue)
            clean_issue = re.sub(r"\b\d{4}\b", "YYYY", clean_issue)
            self.issues[clean_issue] = self.issues.get(clean_issue, 0) + 1

    def add_rejected(self, reason: str):
        """Record a page the assembler rejected."""
        self.pages += 1
        self.rejected[reason] = self.rejected.get(reason, 0) + 1

    def add_failure(self):
        """Record a page that raised while being processed."""
        self.pages += 1
        self.failed += 1

    @property
    def total_rejected(self) -> int:
        return sum(self.rejected.values())

    def to_dict(self) -> dict:
        return {
            "pages": self.pages,
            "extracted": self.extracted,
            "sold": self.sold,
            "active": self.active,
            "rejected": dict(self.rejected),
            "failed": self.failed,
            "invalid": self.invalid,
            "issues": dict(self.issues),
        }

    def print_report(self):
        """Print extraction report."""
        print("\n" + "=" * 80)
        print("EXTRACTION REPORT")
        print("=" * 80)
        print(f"Pages processed: {self.pages}")
        print(f"Extracted: {self.extracted} (sold: {self.sold}, active: {self.active})")
        print(f"Rejected: {self.total_rejected}")
        for reason, count in sorted(self.rejected.items(), key=lambda x: x[1], reverse=True):
            print(f"  • {reason}: {count}")
        print(f"Failed: {self.failed}")
        if self.extracted:
            print(f"Failed validation: {self.invalid}")

        if self.issues:
            print("\nTop issues found:")
            sorted_issues = sorted(self.issues.items(), key=lambda x: x[1], reverse=True)
            for issue, count in sorted_issues[:10]:
                print(f"  • {issue}: {count} occurrences")

        print("=" * 80 + "\n")
