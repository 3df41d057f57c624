#!/usr/bin/env python3
"""Main entry point for the CRE feed aggregator.

This module provides the CLI interface for printing a page of the
aggregated commercial real estate news feed.

Usage:
    python -m crefeed.main                     # Live sources, first page
    python -m crefeed.main --mock              # Serve MOCK_DATA_PATH instead
    python -m crefeed.main --region South -v   # Filter, verbose logging
    python -m crefeed.main --metrics           # Also print source health
"""

import argparse
import sys

from crefeed.agent.runner import run


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="crefeed",
        description="CRE Feed - aggregated commercial real estate news listings",
    )

    parser.add_argument(
        "--mock",
        action="store_true",
        help="Serve the static dataset at MOCK_DATA_PATH instead of live sources",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    parser.add_argument(
        "--page",
        type=_positive_int,
        default=1,
        help="1-based page number (default: 1)",
    )

    parser.add_argument(
        "--page-size",
        type=_positive_int,
        default=None,
        help="Articles per page (default: FEED_PAGE_SIZE)",
    )

    parser.add_argument(
        "--region",
        default=None,
        help="Only show articles for this region (\"All\" for every region)",
    )

    parser.add_argument(
        "--source",
        default=None,
        help="Only show articles whose source name contains this text",
    )

    parser.add_argument(
        "--search",
        dest="search_term",
        default=None,
        help="Only show articles whose title contains this text",
    )

    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print per-source health metrics after the feed",
    )

    parser.add_argument(
        "--metrics-dir",
        default=None,
        help="Write a source health snapshot JSON file to this directory",
    )

    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Drop cached source results before fetching",
    )

    return parser.parse_args(args)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CRE feed.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parsed = parse_args(args)
    return run(
        mock=parsed.mock,
        verbose=parsed.verbose,
        page=parsed.page,
        page_size=parsed.page_size,
        region=parsed.region,
        source=parsed.source,
        search_term=parsed.search_term,
        show_metrics=parsed.metrics,
        clear_cache=parsed.clear_cache,
        metrics_dir=parsed.metrics_dir,
    )


if __name__ == "__main__":
    sys.exit(main())
