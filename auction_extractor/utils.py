"""
Utility functions for saved-page input and JSON/JSONL/CSV output.
"""

import csv
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from .dom import parse_html
from .models import DETAIL_PAGE, ListingDetail, RawPage

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ('json', 'jsonl', 'csv')
PAGE_SUFFIXES = ('.html', '.htm')

LISTING_FIELDNAMES = [
    'source',
    'source_id',
    'source_url',
    'title',
    'status',
    'price',
    'sold_date',
    'year',
    'model',
    'trim',
    'generation',
    'mileage',
    'vin',
    'exterior_color',
    'interior_color',
    'paint_to_sample',
    'transmission',
    'location_city',
    'location_state',
    'location_zip',
    'options_raw',
    'options_normalized',  # Will be joined with semicolon
]

SUMMARY_FIELDNAMES = ['detail_url', 'title', 'price', 'status', 'year', 'source_id']


# ====================
# Saved page input
# ====================

def page_url(html: str, path: Path) -> str:
    """Canonical URL of a saved page: <link rel="canonical">, then og:url, then the file URI."""
    soup = parse_html(html)
    canonical = soup.find("link", rel="canonical")
    if canonical is not None and canonical.get("href"):
        return canonical["href"].strip()
    og_url = soup.find("meta", attrs={"property": "og:url"})
    if og_url is not None and og_url.get("content"):
        return og_url["content"].strip()
    return path.resolve().as_uri()


def load_page_file(path, page_type: str = DETAIL_PAGE, source: Optional[str] = None) -> RawPage:
    """
    Load a saved HTML page as a RawPage.

    Args:
        path: Path to the .html file
        page_type: "detail" or "search"
        source: Source id to stamp on the page

    Returns:
        RawPage with the page's own URL when it declares one

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Page file not found: {path}")
    html = path.read_text(encoding='utf-8', errors='replace')
    return RawPage(html=html, url=page_url(html, path), page_type=page_type, source=source)


def find_page_files(input_path) -> List[Path]:
    """A single file, or every .html/.htm file under a directory (sorted)."""
    path = Path(input_path)
    if path.is_file():
        return [path]
    if path.is_dir():
        return sorted(p for p in path.rglob('*') if p.suffix.lower() in PAGE_SUFFIXES and p.is_file())
    raise FileNotFoundError(f"Input not found: {input_path}")


# ====================
# Output
# ====================

def detect_format(output_path, format: Optional[str] = None) -> str:
    """Explicit format, else from the file extension; JSON by default."""
    if format and format != 'auto':
        format = format.lower()
        if format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format '{format}'")
        return format
    ext = Path(output_path).suffix.lower()
    if ext == '.csv':
        return 'csv'
    if ext == '.jsonl':
        return 'jsonl'
    return 'json'


def to_csv_row(record: dict, fieldnames: List[str]) -> dict:
    """Flatten a record dict for CSV: location split into columns, lists joined with '; '."""
    flat = dict(record)
    location = flat.pop('location', None) or {}
    flat['location_city'] = location.get('city')
    flat['location_state'] = location.get('state')
    flat['location_zip'] = location.get('zip')

    row = {}
    for name in fieldnames:
        value = flat.get(name)
        if value is None:
            value = ''
        elif isinstance(value, list):
            value = '; '.join(str(v) for v in value)
        elif isinstance(value, str):
            value = value.replace('\n', ' ').replace('\r', ' ')
        row[name] = value
    return row


class ListingSink(ABC):
    """Receives extracted listings; the persistence layer implements this."""

    @abstractmethod
    def save(self, listing: ListingDetail, source: str) -> None:
        ...


class StreamingOutputWriter(ListingSink):
    """
    Streams output incrementally to prevent data loss and memory issues.
    The file is valid JSON/CSV after every write.
    """

    def __init__(self, output_path: str, format: Optional[str] = None,
                 fieldnames: Optional[List[str]] = None, append: bool = False):
        """
        Initialize streaming output writer.

        Args:
            output_path: Path to output file
            format: 'json', 'jsonl', 'csv', or None/'auto' to detect from the extension
            fieldnames: CSV columns (default: listing columns)
            append: Whether to append to an existing file (default: False)
        """
        self.output_path = Path(output_path)
        self.format = detect_format(output_path, format)
        self.fieldnames = fieldnames or LISTING_FIELDNAMES
        self.append = append
        self.count = 0

        self._initialize_file()

    def _initialize_file(self):
        """Initialize output file with headers/metadata."""
        if self.append and self.output_path.exists():
            return

        if self.format == 'csv':
            with open(self.output_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.DictWriter(f, fieldnames=self.fieldnames)
                writer.writeheader()
        elif self.format == 'json':
            with open(self.output_path, 'w', encoding='utf-8') as f:
                metadata = {
                    'timestamp': datetime.now().isoformat(),
                    'source': 'auction-extract',
                    'streaming': True,
                }
                f.write('{\n  "metadata": ' + json.dumps(metadata) + ',\n  "listings": [\n  ]\n}')
        elif self.format == 'jsonl':
            self.output_path.write_text('', encoding='utf-8')

    def save(self, listing: ListingDetail, source: str) -> None:
        """Append one extracted listing."""
        record = listing.to_dict()
        record['source'] = source or record.get('source')
        self.append_records([record])

    def append_records(self, records: Iterable[dict]) -> None:
        """
        Append record dicts to the output file.

        Args:
            records: Dicts as produced by to_dict()
        """
        records = list(records)
        if not records:
            return

        if self.format == 'csv':
            with open(self.output_path, 'a', newline='', encoding='utf-8') as f:
                writer = csv.DictWriter(f, fieldnames=self.fieldnames)
                for record in records:
                    writer.writerow(to_csv_row(record, self.fieldnames))

        elif self.format == 'jsonl':
            with open(self.output_path, 'a', encoding='utf-8') as f:
                for record in records:
                    json.dump(record, f, ensure_ascii=False)
                    f.write('\n')

        elif self.format == 'json':
            with open(self.output_path, 'r+', encoding='utf-8') as f:
                content = f.read().rstrip()
                # Remove closing '\n  ]\n}'
                if content.endswith(']\n}'):
                    content = content[:-3].rstrip()
                needs_comma = not content.endswith('[')

                f.seek(0)
                f.truncate()
                f.write(content)
                for record in records:
                    f.write(',\n' if needs_comma else '\n')
                    needs_comma = True
                    record_json = json.dumps(record, indent=2, ensure_ascii=False)
                    f.write('\n'.join('    ' + line for line in record_json.split('\n')))
                f.write('\n  ]\n}')

        self.count += len(records)

    def get_count(self) -> int:
        """
        Get current count of saved records.

        Returns:
            Number of records in the output file
        """
        if not self.output_path.exists():
            return 0

        try:
            with open(self.output_path, 'r', encoding='utf-8') as f:
                if self.format == 'csv':
                    return max(0, sum(1 for _ in csv.reader(f)) - 1)
                if self.format == 'jsonl':
                    return sum(1 for line in f if line.strip())
                return len(json.load(f).get('listings', []))
        except (OSError, ValueError) as e:
            logger.warning(f"Couldn't count records in {self.output_path}: {e}")
            return 0


def save_to_file(listings: List[ListingDetail], output_path: str, format: Optional[str] = None) -> None:
    """
    Save listings in one go, format from the argument or the file extension.

    Args:
        listings: ListingDetail records to save
        output_path: Path to output file
        format: Optional format override ('json', 'jsonl' or 'csv')
    """
    writer = StreamingOutputWriter(output_path, format)
    writer.append_records(listing.to_dict() for listing in listings)
    logger.info(f"Saved {len(listings)} listings to {output_path}")
