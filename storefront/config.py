"""Configuration and constants for the storefront catalog."""

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

__all__ = [
    "DB_PATH",
    "LOG_DIR",
    "FLASK_HOST",
    "FLASK_PORT",
    "FLASK_DEBUG",
    "PRODUCTS_PER_PAGE",
    "MAX_PAGE",
    "RELATED_PRODUCTS_LIMIT",
    "SEARCH_RESULTS_LIMIT",
    "LISTING_CACHE_SECONDS",
    "RESERVED_SLUGS",
    "FACET_ATTRIBUTES",
    "FILTER_LABELS",
    "FILTER_KEYS",
    "PRICE_OPTIONS",
    "SORT_OPTIONS",
    "ROOT_CATEGORY_ORDER",
    "DEFAULT_TAX_RATE",
    "STORE_PATH",
]

# Determine project root (parent of 'storefront' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

# Storage
DB_PATH = os.getenv("STOREFRONT_DB_PATH", str(_PROJECT_ROOT / "data" / "storefront.db"))
LOG_DIR = Path(os.getenv("LOG_DIR", str(_PROJECT_ROOT / "logs")))
STORE_PATH = os.getenv("STOREFRONT_STORE_PATH", str(_PROJECT_ROOT / "data" / "session_store.json"))

# Flask app settings (allow env overrides; default debug off for safety)
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Listing settings
PRODUCTS_PER_PAGE = int(os.getenv("PRODUCTS_PER_PAGE", "24"))
LISTING_CACHE_SECONDS = int(os.getenv("LISTING_CACHE_SECONDS", "60"))

# Page numbers above this are served as this page
MAX_PAGE = 1_000_000

# Product detail and search reads
RELATED_PRODUCTS_LIMIT = 4
SEARCH_RESULTS_LIMIT = 50

# Paths handled by other routes; never resolved as category slugs
RESERVED_SLUGS = frozenset({
    "cart", "wishlist", "login", "register", "product", "admin",
    "account", "checkout", "about", "contact", "faq", "terms",
    "privacy", "returns", "delivery", "trade", "clearance", "payment",
    "test-supabase",
})


# =============================================================================
# Filter Definitions
# =============================================================================
# Facet attributes are product columns matched by exact string equality.
# Order here is the order filter groups appear in.

FACET_ATTRIBUTES: List[str] = [
    "material",
    "finish",
    "size",
    "thickness",
    "application_area",
    "brand",
]

FILTER_LABELS: Dict[str, str] = {
    "subcategory": "Sub Category",
    "category": "Category",
    "material": "Material",
    "finish": "Finish",
    "size": "Size",
    "thickness": "Thickness",
    "application_area": "Usage",
    "brand": "Brand",
    "price": "Price",
}

# Every query-string key the listing pages understand
FILTER_KEYS = frozenset({"subcategory", "category", "price", "sort", *FACET_ATTRIBUTES})

# "Over €60" is a literal 5000 upper bound, not an open range
PRICE_OPTIONS: List[Dict[str, str]] = [
    {"label": "Under €20", "value": "0-20"},
    {"label": "€20 – €40", "value": "20-40"},
    {"label": "€40 – €60", "value": "40-60"},
    {"label": "Over €60", "value": "60-5000"},
]

SORT_OPTIONS: List[Dict[str, str]] = [
    {"label": "Newest Arrivals", "value": "newest"},
    {"label": "Price: Low → High", "value": "price_asc"},
    {"label": "Price: High → Low", "value": "price_desc"},
]

# Merchandising order for root categories in navigation (lowercased names)
ROOT_CATEGORY_ORDER: List[str] = [
    "clearance",
    "tiles",
    "laminates",
    "wall panels",
    "mirrors",
    "vanity units",
    "accessories",
]

# Orders
DEFAULT_TAX_RATE = float(os.getenv("DEFAULT_TAX_RATE", "0.18"))
