"""
CLI interface for the auction listing extractor.

Runs saved auction pages (one .html file or a directory of them) through the
extraction pipeline and streams the records to JSON, JSONL or CSV.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from .assembler import ListingAssembler
from .classifier import ClassificationClient
from .config import ExtractorConfig
from .filters import filter_summaries, listing_matches
from .logging_config import setup_logging
from .models import DETAIL_PAGE, SEARCH_PAGE
from .search import parse_search_page
from .sites import SiteConfig, build_registry, build_search_urls, get_site_config
from .utils import SUMMARY_FIELDNAMES, StreamingOutputWriter, find_page_files, load_page_file
from .validator import DataValidator, ExtractionReport

DEFAULT_CONFIG_PATH = 'extractor_config.json'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='auction-extract',
        description="Extract normalized sale records from saved vehicle auction pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --source bat --input pages/ --output sold.csv --only-sold
  %(prog)s --source carsandbids --input results.html --page-type search
  %(prog)s --source pcarmarket --max-pages 3
        """
    )

    parser.add_argument(
        '--source',
        help='Site the pages came from (bat, carsandbids, pcarmarket, or one from --sites-file)'
    )

    parser.add_argument(
        '--input',
        help='Saved HTML page, or a directory of .html files'
    )

    parser.add_argument(
        '--page-type',
        choices=[DETAIL_PAGE, SEARCH_PAGE],
        default=DETAIL_PAGE,
        help='Kind of page in --input (default: detail)'
    )

    parser.add_argument(
        '--output',
        help='Output file path (default from config: listings.json). Format auto-detected from extension'
    )

    parser.add_argument(
        '--format',
        choices=['json', 'jsonl', 'csv', 'auto'],
        default='auto',
        help='Output format: json, jsonl, csv, or auto (detect from file extension). Default: auto'
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file (JSON). CLI arguments override config file settings.'
    )

    parser.add_argument(
        '--create-config',
        help='Create a default configuration file at the specified path and exit'
    )

    parser.add_argument(
        '--sites-file',
        help='JSON file with extra or overriding site configurations'
    )

    parser.add_argument(
        '--no-classifier',
        action='store_true',
        help='Skip the classification service; use the built-in model/trim and options parsing'
    )

    parser.add_argument(
        '--only-sold',
        action='store_true',
        help='Keep only sold listings'
    )

    parser.add_argument(
        '--max-pages',
        type=int,
        help='Print the search URLs for this many result pages per search path'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Set logging level (default: INFO)'
    )

    parser.add_argument(
        '--log-file',
        help='Optional file path to write logs to'
    )

    return parser


def load_config(args, logger) -> ExtractorConfig:
    """Config file (explicit or default location) with CLI overrides applied."""
    if args.config:
        config_path = args.config
    elif Path(DEFAULT_CONFIG_PATH).exists():
        config_path = DEFAULT_CONFIG_PATH
        logger.info(f"Auto-loading default config from {DEFAULT_CONFIG_PATH}")
    else:
        config_path = None

    config = ExtractorConfig.from_file(config_path) if config_path else ExtractorConfig()

    # CLI takes precedence
    if args.output:
        config.output_path = args.output
    if args.format != 'auto':
        config.output_format = args.format
    if args.log_level != 'INFO':
        config.log_level = args.log_level
    if args.log_file:
        config.log_file = args.log_file
    if args.sites_file:
        config.sites_file = args.sites_file
    if args.no_classifier:
        config.classifier_enabled = False
    if args.only_sold:
        config.only_sold = True
    return config


def build_client(config: ExtractorConfig, logger) -> Optional[ClassificationClient]:
    if not config.classifier_enabled:
        logger.info("Classification service disabled; using built-in parsing")
        return None
    client = ClassificationClient.from_config(config)
    if not client.available:
        logger.info(f"No API key in ${config.classifier_api_key_env}; using built-in parsing")
        return None
    logger.info(f"Classification service: {config.classifier_model} at {config.classifier_endpoint}")
    return client


def extract_detail_pages(files: List[Path], site: SiteConfig, assembler: ListingAssembler,
                         writer: StreamingOutputWriter, only_sold: bool = False) -> ExtractionReport:
    """
    Run detail pages through the assembler and validator, streaming kept records.

    A page that raises is logged and counted; the batch carries on.
    """
    logger = logging.getLogger(__name__)
    report = ExtractionReport()

    for path in tqdm(files, desc=f"Extracting {site.name}", unit="page"):
        try:
            page = load_page_file(path, DETAIL_PAGE, site.source)
            listing, reason = assembler.evaluate(page)
        except Exception as e:
            logger.error(f"{site.name}: Failed on {path}: {e}", exc_info=True)
            report.add_failure()
            continue

        if listing is None:
            report.add_rejected(reason)
            continue

        is_valid, issues = DataValidator.validate_listing(listing, site)
        report.add_extracted(listing, is_valid, issues)
        if not is_valid:
            error_msgs = [i for i in issues if not i.startswith("WARNING:")]
            logger.warning(f"{site.name}: Invalid listing {listing.title!r} - {error_msgs[0]}")
            continue
        if not listing_matches(listing, only_sold=only_sold):
            continue
        writer.save(listing, site.source)

    return report


def extract_search_pages(files: List[Path], site: SiteConfig, writer: StreamingOutputWriter,
                         only_sold: bool = False) -> int:
    """Read listing cards off search pages; returns how many summaries were written."""
    logger = logging.getLogger(__name__)
    written = 0

    for path in tqdm(files, desc=f"Reading {site.name} results", unit="page"):
        try:
            page = load_page_file(path, SEARCH_PAGE, site.source)
            summaries = parse_search_page(page, site)
        except Exception as e:
            logger.error(f"{site.name}: Failed on {path}: {e}", exc_info=True)
            continue
        kept = filter_summaries(summaries, site, only_sold=only_sold)
        logger.info(f"{site.name}: Kept {len(kept)}/{len(summaries)} listings from {path.name}")
        writer.append_records(summary.to_dict() for summary in kept)
        written += len(kept)

    return written


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle --create-config
    if args.create_config:
        ExtractorConfig.create_default(args.create_config)
        print(f"Created default configuration file: {args.create_config}")
        return 0

    # Basic logging until the config is loaded
    setup_logging(level=logging.INFO, log_file=None)
    logger = logging.getLogger(__name__)

    try:
        config = load_config(args, logger)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config file: {e}", file=sys.stderr)
        return 1

    setup_logging(level=config.log_level, log_file=config.log_file)
    logger = logging.getLogger(__name__)

    if not args.source:
        parser.error("--source is required")

    try:
        registry = build_registry(config.sites_file)
        site = get_site_config(args.source, registry)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.max_pages is not None:
        for url in build_search_urls(site, max_pages=args.max_pages):
            print(url)
        if not args.input:
            return 0

    if not args.input:
        parser.error("--input is required unless --max-pages is given")

    try:
        files = find_page_files(args.input)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not files:
        print(f"No .html files found in {args.input}")
        return 0

    logger.info("=" * 60)
    logger.info(f"Extracting {len(files)} {args.page_type} page(s) from {site.name}")
    logger.info(f"Only sold: {config.only_sold}")
    logger.info(f"Output: {config.output_path} ({config.output_format})")
    logger.info("-" * 60)

    start_time = time.time()
    if args.page_type == SEARCH_PAGE:
        writer = StreamingOutputWriter(config.output_path, config.output_format, fieldnames=SUMMARY_FIELDNAMES)
        written = extract_search_pages(files, site, writer, only_sold=config.only_sold)
        print(f"Listings found: {written}")
    else:
        writer = StreamingOutputWriter(config.output_path, config.output_format)
        assembler = ListingAssembler.with_client(
            site, build_client(config, logger), options_char_limit=config.options_char_limit)
        report = extract_detail_pages(files, site, assembler, writer, only_sold=config.only_sold)
        report.print_report()
        print(f"Listings saved: {writer.count}")

    elapsed = time.time() - start_time
    print(f"Results saved to {config.output_path} ({writer.format})")
    logger.info(f"Finished in {elapsed:.2f} seconds")
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
