"""Tiles storefront catalog package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from storefront.config import DB_PATH, FACET_ATTRIBUTES, PRICE_OPTIONS, PRODUCTS_PER_PAGE
from storefront.db import init_db
from storefront.filters import build_filter_groups, build_filter_url, parse_price_range
from storefront.listing import (
    CategoryNotFoundError,
    ProductNotFoundError,
    get_all_products_listing,
    get_category_listing,
    get_clearance_listing,
    get_product_detail,
    search_catalog,
)
from storefront.models import Category, FilterGroup, FilterOption, Product
from storefront.stock import deduct_stock

__all__ = [
    # Version
    "__version__",
    # Config
    "DB_PATH",
    "FACET_ATTRIBUTES",
    "PRICE_OPTIONS",
    "PRODUCTS_PER_PAGE",
    # Models
    "Category",
    "FilterGroup",
    "FilterOption",
    "Product",
    # Core functions
    "init_db",
    "build_filter_groups",
    "build_filter_url",
    "parse_price_range",
    "get_category_listing",
    "get_all_products_listing",
    "get_clearance_listing",
    "CategoryNotFoundError",
    "get_product_detail",
    "search_catalog",
    "ProductNotFoundError",
    "deduct_stock",
]
