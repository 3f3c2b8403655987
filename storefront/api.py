"""JSON API endpoints for the storefront listings and order operations.

Listing routes:
- /api/categories/<slug>/products - category page
- /api/products - all-products page (paginated)
- /api/clearance - clearance page
- /api/products/<slug> - product page with related products
- /api/search?q= - name search
"""

import logging
import sqlite3
from typing import Any, Dict, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request

from storefront.categories import get_category_tree
from storefront.config import LISTING_CACHE_SECONDS, SORT_OPTIONS
from storefront.filters import active_filter_count, build_clear_all_url, build_page_url
from storefront.listing import (
    CategoryNotFoundError,
    ProductNotFoundError,
    get_all_products_listing,
    get_category_listing,
    get_clearance_listing,
    get_product_detail,
    search_catalog,
)
from storefront.logging_config import log_catalog_event
from storefront.orders import (
    InvalidStatusTransitionError,
    OrderNotFoundError,
    get_valid_next_statuses,
    update_order_status,
)
from storefront.stock import deduct_stock

__all__ = ["api"]

logger = logging.getLogger(__name__)

# Create blueprint for API
api = Blueprint("api", __name__, url_prefix="/api")

JsonResponse = Union[Response, Tuple[Response, int]]


def _db_path() -> str:
    return current_app.config["STOREFRONT_DB_PATH"]


def _cached(response: Response) -> Response:
    response.headers["Cache-Control"] = f"public, max-age={LISTING_CACHE_SECONDS}"
    return response


@api.errorhandler(sqlite3.Error)
def catalog_unavailable(e: sqlite3.Error) -> JsonResponse:
    log_catalog_event(
        "database_error",
        {"message": f"Catalog query failed: {e}", "path": request.path, "error": str(e)},
        level=logging.ERROR,
    )
    return jsonify({"error": "catalog unavailable", "retryable": True}), 503


@api.route("/categories", methods=["GET"])
def list_categories() -> JsonResponse:
    """Category tree for navigation."""
    tree = get_category_tree(_db_path())
    return jsonify({"categories": [c.to_dict() for c in tree]})


@api.route("/categories/<category_slug>/products", methods=["GET"])
def category_products(category_slug: str) -> JsonResponse:
    """Filtered products and facets for one category."""
    try:
        listing = get_category_listing(category_slug, request.args.to_dict(), db_path=_db_path())
    except CategoryNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    pathname = f"/{category_slug}"
    payload: Dict[str, Any] = listing.to_dict()
    payload["sort_options"] = SORT_OPTIONS
    payload["active_filter_count"] = active_filter_count(listing.filter_groups, listing.params)
    payload["clear_all_url"] = build_clear_all_url(pathname, listing.params)
    return _cached(jsonify(payload))


@api.route("/products", methods=["GET"])
def all_products() -> JsonResponse:
    """Paginated listing of the whole catalog."""
    result = get_all_products_listing(request.args.to_dict(), db_path=_db_path())

    pathname = "/products"
    payload: Dict[str, Any] = result.to_dict()
    payload["sort_options"] = SORT_OPTIONS
    payload["active_filter_count"] = active_filter_count(result.filter_groups, result.params)
    payload["clear_all_url"] = build_clear_all_url(pathname, result.params)
    payload["previous_url"] = (
        build_page_url(pathname, result.params, result.page - 1) if result.has_previous else None
    )
    payload["next_url"] = (
        build_page_url(pathname, result.params, result.page + 1) if result.has_next else None
    )
    return _cached(jsonify(payload))


@api.route("/clearance", methods=["GET"])
def clearance() -> JsonResponse:
    products = get_clearance_listing(db_path=_db_path())
    return jsonify({"products": [p.to_dict() for p in products], "total_products": len(products)})


@api.route("/products/<product_slug>", methods=["GET"])
def product_detail(product_slug: str) -> JsonResponse:
    """One active product and up to four related products."""
    try:
        detail = get_product_detail(product_slug, db_path=_db_path())
    except ProductNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return _cached(jsonify(detail.to_dict()))


@api.route("/search", methods=["GET"])
def search() -> JsonResponse:
    term = request.args.get("q", "")
    products = search_catalog(term, db_path=_db_path())
    return jsonify({
        "query": term,
        "products": [p.to_dict() for p in products],
        "total_products": len(products),
    })


@api.route("/orders/<order_id>/deduct-stock", methods=["POST"])
def deduct_order_stock(order_id: str) -> JsonResponse:
    """Deduct stock for a paid order.

    Returns 200 when every line item was deducted, 409 with the per-item
    report when any failed.
    """
    data = request.get_json(silent=True) or {}
    items = data.get("items")
    if not isinstance(items, list) or not items:
        return jsonify({"error": "items must be a non-empty list"}), 400
    if not all(isinstance(i, dict) for i in items):
        return jsonify({"error": "each item must be an object"}), 400

    report = deduct_stock(order_id, items, db_path=_db_path())
    return jsonify(report.to_dict()), 200 if report.success else 409


@api.route("/orders/<order_id>/status", methods=["POST"])
def change_order_status(order_id: str) -> JsonResponse:
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status:
        return jsonify({"error": "status is required"}), 400

    try:
        result = update_order_status(order_id, status, db_path=_db_path())
    except OrderNotFoundError:
        return jsonify({"error": f"Order not found: {order_id}"}), 404
    except InvalidStatusTransitionError as e:
        return jsonify({
            "error": str(e),
            "valid_next_statuses": get_valid_next_statuses(e.current),
        }), 409

    return jsonify(result)
