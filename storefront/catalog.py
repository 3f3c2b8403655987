"""Database-backed product queries.

Every query is scoped to ``status = 'active'``. Results come back as
DataFrames; ``to_products`` converts rows to ``Product`` objects for
rendering.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from storefront.config import (
    DB_PATH,
    FACET_ATTRIBUTES,
    RELATED_PRODUCTS_LIMIT,
    SEARCH_RESULTS_LIMIT,
)
from storefront.db import get_connection
from storefront.filters import parse_price_range
from storefront.models import Product

__all__ = [
    "build_where_clause",
    "order_by_clause",
    "query_products",
    "count_products",
    "get_facet_source",
    "get_clearance_products",
    "get_product_by_slug",
    "get_related_products",
    "search_products",
    "to_products",
]

_ORDER_BY = {
    # NULL prices last on ascending, first on descending (PostgreSQL defaults)
    "price_asc": "price IS NULL, price ASC, id ASC",
    "price_desc": "price IS NULL DESC, price DESC, id ASC",
}
_DEFAULT_ORDER_BY = "created_at DESC, id ASC"


def _in_clause(column: str, values: Sequence[str]) -> Tuple[str, List[Any]]:
    if not values:
        # Empty scope matches nothing
        return " AND 0", []
    placeholders = ",".join("?" for _ in values)
    return f" AND {column} IN ({placeholders})", list(values)


def build_where_clause(
    filters: Optional[Mapping[str, str]] = None,
    category_ids: Optional[Sequence[str]] = None,
) -> Tuple[str, List[Any]]:
    """Build the WHERE clause for a filtered product read.

    Args:
        filters: Cleaned query params. Only recognized keys are used.
        category_ids: Category scope. None means no category restriction.
            A ``subcategory`` filter replaces the scope with that one id.

    Returns:
        Tuple of (sql fragment starting with WHERE, params).
    """
    filters = filters or {}
    sql = "WHERE status = 'active'"
    params: List[Any] = []

    if filters.get("subcategory"):
        sql += " AND category_id = ?"
        params.append(filters["subcategory"])
    elif category_ids is not None:
        clause, clause_params = _in_clause("category_id", category_ids)
        sql += clause
        params.extend(clause_params)

    for attribute in FACET_ATTRIBUTES:
        value = filters.get(attribute)
        if value:
            sql += f" AND {attribute} = ?"
            params.append(value)

    if filters.get("price"):
        min_price, max_price = parse_price_range(filters["price"])
        if min_price is not None:
            sql += " AND price >= ?"
            params.append(min_price)
        if max_price is not None:
            sql += " AND price <= ?"
            params.append(max_price)

    return sql, params


def order_by_clause(sort: Optional[str]) -> str:
    """ORDER BY clause for a sort key; unknown keys mean newest first."""
    return "ORDER BY " + _ORDER_BY.get(sort or "", _DEFAULT_ORDER_BY)


def query_products(
    filters: Optional[Mapping[str, str]] = None,
    category_ids: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """Filtered, sorted (and optionally paginated) active products."""
    filters = filters or {}
    where, params = build_where_clause(filters, category_ids)
    query = f"SELECT * FROM products {where} {order_by_clause(filters.get('sort'))}"

    if limit is not None:
        query += " LIMIT ? OFFSET ?"
        params.extend([int(limit), int(offset)])

    with get_connection(db_path) as conn:
        return pd.read_sql_query(query, conn, params=params)


def count_products(
    filters: Optional[Mapping[str, str]] = None,
    category_ids: Optional[Sequence[str]] = None,
    db_path: str = DB_PATH,
) -> int:
    """Exact count for the same predicate ``query_products`` uses."""
    where, params = build_where_clause(filters, category_ids)
    query = f"SELECT COUNT(*) AS count FROM products {where}"

    with get_connection(db_path) as conn:
        df = pd.read_sql_query(query, conn, params=params)

    return int(df["count"].iloc[0])


def get_facet_source(
    category_ids: Optional[Sequence[str]] = None,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """Active products in scope, ignoring every selection filter."""
    columns = ", ".join(["id", "category_id", *FACET_ATTRIBUTES])
    query = f"SELECT {columns} FROM products WHERE status = 'active'"
    params: List[Any] = []

    if category_ids is not None:
        clause, params = _in_clause("category_id", category_ids)
        query += clause

    with get_connection(db_path) as conn:
        return pd.read_sql_query(query, conn, params=params)


def get_clearance_products(db_path: str = DB_PATH) -> pd.DataFrame:
    """Active clearance products, cheapest first."""
    query = (
        "SELECT * FROM products WHERE status = 'active' AND is_clearance = 1 "
        f"{order_by_clause('price_asc')}"
    )
    with get_connection(db_path) as conn:
        return pd.read_sql_query(query, conn)


def get_product_by_slug(slug: str, db_path: str = DB_PATH) -> pd.DataFrame:
    """The active product with this slug (empty frame when none)."""
    query = "SELECT * FROM products WHERE status = 'active' AND slug = ? LIMIT 1"
    with get_connection(db_path) as conn:
        return pd.read_sql_query(query, conn, params=[slug])


def get_related_products(
    product_id: str,
    category_id: Optional[str] = None,
    limit: int = RELATED_PRODUCTS_LIMIT,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """Other active products from the same category, newest first.

    A product without a category is related to the whole catalog.
    """
    query = "SELECT * FROM products WHERE status = 'active' AND id != ?"
    params: List[Any] = [product_id]

    if category_id:
        query += " AND category_id = ?"
        params.append(category_id)

    query += f" {order_by_clause(None)} LIMIT ?"
    params.append(int(limit))

    with get_connection(db_path) as conn:
        return pd.read_sql_query(query, conn, params=params)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


def search_products(
    term: Optional[str],
    limit: int = SEARCH_RESULTS_LIMIT,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """Active products whose name contains ``term``, ignoring case.

    A blank term matches nothing. ``%`` and ``_`` in the term are literal.
    """
    term = (term or "").strip()
    if not term:
        return pd.DataFrame(columns=["id", "name", "slug"])

    query = (
        "SELECT * FROM products WHERE status = 'active' "
        "AND LOWER(name) LIKE ? ESCAPE '\\' "
        "ORDER BY name ASC, id ASC LIMIT ?"
    )
    with get_connection(db_path) as conn:
        return pd.read_sql_query(query, conn, params=[_like_pattern(term), int(limit)])


def _clean_value(value: Any) -> Any:
    """Convert pandas NA values to None while leaving other types intact."""
    try:
        return None if pd.isna(value) else value
    except (TypeError, ValueError):
        return value


def to_products(df: pd.DataFrame) -> List[Product]:
    """Convert query rows to Product objects, preserving row order."""
    products: List[Product] = []
    for record in df.to_dict(orient="records"):
        row: Dict[str, Any] = {k: _clean_value(v) for k, v in record.items()}
        price = row.get("price")
        products.append(Product(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            price=float(price) if price is not None else None,
            status=row.get("status") or "active",
            category_id=row.get("category_id"),
            material=row.get("material"),
            finish=row.get("finish"),
            size=row.get("size"),
            thickness=row.get("thickness"),
            application_area=row.get("application_area"),
            brand=row.get("brand"),
            is_clearance=bool(row.get("is_clearance") or 0),
            stock=int(row.get("stock") or 0),
            created_at=row.get("created_at"),
        ))
    return products
