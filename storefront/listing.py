"""Faceted product listings for the storefront pages.

Each listing page issues two independent reads per render: the filtered
product list and the unfiltered facet source. They are not transactionally
consistent with each other; catalog data is read-mostly.

Pages:
1. Category page - a category plus its direct children, facets need one value
2. All-products page - whole catalog, paginated, facets need two values
3. Clearance page - clearance flag only, no facets
4. Product page - one product by slug with related products
5. Search - case-insensitive name match
"""

import logging
from typing import Any, Mapping, Optional

from storefront.catalog import (
    count_products,
    get_clearance_products,
    get_facet_source,
    get_product_by_slug,
    get_related_products,
    query_products,
    search_products,
    to_products,
)
from storefront.categories import (
    find_category_by_id,
    get_all_category_ids,
    get_category_by_slug,
    get_category_tree,
    get_child_categories,
)
from storefront.config import DB_PATH, PRODUCTS_PER_PAGE, RESERVED_SLUGS
from storefront.filters import build_filter_groups, clean_params, parse_page
from storefront.logging_config import log_catalog_event
from storefront.models import CategoryListing, ProductDetail, ProductsPage

__all__ = [
    "CategoryNotFoundError",
    "ProductNotFoundError",
    "get_category_listing",
    "get_all_products_listing",
    "get_clearance_listing",
    "get_product_detail",
    "search_catalog",
]

logger = logging.getLogger(__name__)

CATEGORY_PAGE_MIN_VALUES = 1
ALL_PRODUCTS_MIN_VALUES = 2


class CategoryNotFoundError(LookupError):
    """Raised when a slug does not resolve to a category."""

    def __init__(self, slug: str):
        super().__init__(f"Category not found: {slug}")
        self.slug = slug


class ProductNotFoundError(LookupError):
    """Raised when a slug does not resolve to an active product."""

    def __init__(self, slug: str):
        super().__init__(f"Product not found: {slug}")
        self.slug = slug


def get_category_listing(
    category_slug: str,
    raw_params: Optional[Mapping[str, Any]] = None,
    db_path: str = DB_PATH,
) -> CategoryListing:
    """Products and facets for a category page.

    Args:
        category_slug: Exact category slug from the URL.
        raw_params: Query-string values; empty values mean "no filter".
        db_path: Path to SQLite database.

    Returns:
        CategoryListing with the filtered products and the facets derived
        from the unfiltered category scope.

    Raises:
        CategoryNotFoundError: If the slug is reserved or unknown.
    """
    if category_slug in RESERVED_SLUGS:
        raise CategoryNotFoundError(category_slug)

    category = get_category_by_slug(category_slug, db_path)
    if category is None:
        raise CategoryNotFoundError(category_slug)

    children = get_child_categories(category.id, db_path)
    category_ids = [category.id, *(c.id for c in children)]

    params = clean_params(raw_params)

    products_df = query_products(params, category_ids=category_ids, db_path=db_path)
    facet_df = get_facet_source(category_ids=category_ids, db_path=db_path)

    filter_groups = build_filter_groups(
        facet_df,
        parent_options=children,
        parent_group_id="subcategory",
        min_distinct_values=CATEGORY_PAGE_MIN_VALUES,
    )

    log_catalog_event(
        "category_listing",
        {
            "message": f"Category '{category_slug}': {len(products_df)} products",
            "category_id": category.id,
            "filters": params,
            "result_count": len(products_df),
        },
        level=logging.DEBUG,
    )

    return CategoryListing(
        category=category,
        products=to_products(products_df),
        filter_groups=filter_groups,
        params=params,
    )


def get_all_products_listing(
    raw_params: Optional[Mapping[str, Any]] = None,
    page: Any = None,
    page_size: int = PRODUCTS_PER_PAGE,
    db_path: str = DB_PATH,
) -> ProductsPage:
    """Paginated listing over the whole catalog.

    A ``category`` param scopes to that category and all of its
    descendants; an id missing from the tree is matched exactly.
    ``subcategory`` belongs to category pages and is dropped here.
    """
    params = clean_params(raw_params)
    params.pop("subcategory", None)
    if page is None:
        page = params.get("page", 1)
    current_page = parse_page(page)
    offset = (current_page - 1) * page_size

    tree = get_category_tree(db_path)

    category_ids = None
    if params.get("category"):
        selected = find_category_by_id(tree, params["category"])
        category_ids = get_all_category_ids(selected) if selected else [params["category"]]

    products_df = query_products(
        params,
        category_ids=category_ids,
        limit=page_size,
        offset=offset,
        db_path=db_path,
    )
    total = count_products(params, category_ids=category_ids, db_path=db_path)

    # Facets for this page come from the entire active catalog
    facet_df = get_facet_source(db_path=db_path)
    filter_groups = build_filter_groups(
        facet_df,
        parent_options=tree,
        parent_group_id="category",
        min_distinct_values=ALL_PRODUCTS_MIN_VALUES,
    )

    log_catalog_event(
        "products_listing",
        {
            "message": f"All products page {current_page}: {len(products_df)} of {total}",
            "filters": params,
            "page": current_page,
            "total": total,
        },
        level=logging.DEBUG,
    )

    return ProductsPage(
        products=to_products(products_df),
        filter_groups=filter_groups,
        total_products=total,
        page=current_page,
        page_size=page_size,
        params=params,
    )


def get_clearance_listing(db_path: str = DB_PATH):
    """Active clearance products, cheapest first."""
    return to_products(get_clearance_products(db_path))


def get_product_detail(slug: str, db_path: str = DB_PATH) -> ProductDetail:
    """Active product by slug plus related products from its category.

    Raises:
        ProductNotFoundError: no active product has this slug.
    """
    product_df = get_product_by_slug(slug, db_path=db_path)
    if product_df.empty:
        raise ProductNotFoundError(slug)

    product = to_products(product_df)[0]
    related_df = get_related_products(product.id, product.category_id, db_path=db_path)
    return ProductDetail(product=product, related=to_products(related_df))


def search_catalog(term: Optional[str], db_path: str = DB_PATH):
    """Active products matching a name search."""
    products = to_products(search_products(term, db_path=db_path))
    log_catalog_event(
        "search",
        {
            "message": f"Search '{term}': {len(products)} results",
            "term": term,
            "result_count": len(products),
        },
        level=logging.DEBUG,
    )
    return products
