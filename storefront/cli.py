"""Command-line interface for managing and querying the catalog."""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from storefront.config import DB_PATH, FILTER_KEYS
from storefront.csv_utils import export_products_csv, import_categories_csv, import_products_csv
from storefront.db import get_table_counts, init_db
from storefront.listing import CategoryNotFoundError, get_all_products_listing, get_category_listing
from storefront.logging_config import setup_logging

__all__ = ["main", "parse_args", "parse_filter_args", "show_stats", "show_listing"]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Tiles storefront catalog management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the schema and import data
  python -m storefront.cli --init-db --import-categories data/categories.csv --import-csv data/products.csv

  # Show database statistics
  python -m storefront.cli --stats

  # Query a category page with filters
  python -m storefront.cli --category flooring --filter material=Oak --filter sort=price_asc

  # Query the all-products page
  python -m storefront.cli --all-products --page 2
        """,
    )

    parser.add_argument(
        "--db",
        default=DB_PATH,
        help=f"SQLite database path (default: {DB_PATH})",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create the database schema",
    )

    # Import / export
    parser.add_argument(
        "--import-categories",
        metavar="PATH",
        help="Import categories CSV (name, slug, parent_slug, description)",
    )
    parser.add_argument(
        "--import-csv",
        metavar="PATH",
        help="Import products CSV",
    )
    parser.add_argument(
        "--export-csv",
        metavar="PATH",
        help="Export products to CSV",
    )

    # Queries
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show database statistics and exit",
    )
    parser.add_argument(
        "--category",
        metavar="SLUG",
        help="Print the category listing for SLUG",
    )
    parser.add_argument(
        "--all-products",
        action="store_true",
        help="Print the all-products listing",
    )
    parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page for --all-products (default: 1)",
    )
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help=f"Filter for listings, repeatable. Keys: {sorted(FILTER_KEYS)}",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def parse_filter_args(pairs: List[str]) -> Dict[str, str]:
    """Parse repeated ``key=value`` arguments; later keys win."""
    filters: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid filter '{pair}', expected KEY=VALUE")
        if key not in FILTER_KEYS:
            raise ValueError(f"Unknown filter key '{key}'. Choices: {sorted(FILTER_KEYS)}")
        filters[key] = value
    return filters


def show_stats(db_path: str) -> None:
    """Display database statistics."""
    init_db(db_path)
    counts = get_table_counts(db_path)

    print(f"\n{'='*50}")
    print(f"Database: {db_path}")
    print(f"{'='*50}")
    print(f"\nCategories: {counts['categories']}")
    print(f"Products: {counts['products']} ({counts['active_products']} active)")
    print(f"Orders: {counts['orders']}")
    print(f"Stock inconsistencies: {counts['stock_inconsistencies']}")
    print()


def _print_groups(groups) -> None:
    print("\nFilters:")
    for group in groups:
        values = ", ".join(o.label for o in group.options)
        print(f"  {group.label}: {values}")


def _print_products(products) -> None:
    for p in products:
        price = f"€{p.price:.2f}" if p.price is not None else "n/a"
        print(f"  {p.name} ({p.slug}) - {price}")


def show_listing(db_path: str, category: Optional[str], filters: Dict[str, str], page: int) -> int:
    """Print a listing; returns a process exit code."""
    if category:
        try:
            listing = get_category_listing(category, filters, db_path=db_path)
        except CategoryNotFoundError as e:
            print(f"Error: {e}")
            return 1
        print(f"\n{listing.category.name}: {listing.total_products} products")
        _print_groups(listing.filter_groups)
        print("\nProducts:")
        _print_products(listing.products)
        return 0

    result = get_all_products_listing(filters, page=page, db_path=db_path)
    print(f"\nAll products: page {result.page} of {result.total_pages} ({result.total_products} total)")
    _print_groups(result.filter_groups)
    print("\nProducts:")
    _print_products(result.products)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_to_file=False)

    if args.stats:
        show_stats(args.db)
        return 0

    if args.init_db or args.import_categories or args.import_csv:
        init_db(args.db)

    if args.import_categories:
        count = import_categories_csv(args.import_categories, db_path=args.db)
        print(f"Imported {count} categories")
    if args.import_csv:
        count = import_products_csv(args.import_csv, db_path=args.db)
        print(f"Imported {count} products")
    if args.export_csv:
        init_db(args.db)
        export_products_csv(args.export_csv, db_path=args.db)

    if args.category or args.all_products:
        try:
            filters = parse_filter_args(args.filter)
        except ValueError as e:
            print(f"Error: {e}")
            return 2
        return show_listing(args.db, args.category, filters, args.page)

    return 0


if __name__ == "__main__":
    sys.exit(main())
