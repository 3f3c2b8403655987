"""CSV import and export for catalog data."""

import logging
from typing import Any, Dict, Optional

import pandas as pd

from storefront.config import DB_PATH, FACET_ATTRIBUTES
from storefront.db import get_connection, upsert_category, upsert_product

__all__ = [
    "import_categories_csv",
    "import_products_csv",
    "export_products_csv",
]

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "y", "t"}


def _clean(value: Any) -> Any:
    """Convert pandas NA values to None; strip strings."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _as_bool(value: Any) -> bool:
    value = _clean(value)
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in _TRUE_VALUES
    return bool(value)


def import_categories_csv(path: str, db_path: str = DB_PATH) -> int:
    """Import categories from CSV.

    Expected columns: name, slug; optional parent_slug, description.
    Parents are imported before children regardless of row order.

    Returns:
        Number of categories imported.
    """
    df = pd.read_csv(path, dtype=str)
    missing = {"name", "slug"} - set(df.columns)
    if missing:
        raise ValueError(f"Category CSV missing columns: {sorted(missing)}")

    rows = [{k: _clean(v) for k, v in r.items()} for r in df.to_dict(orient="records")]
    ids: Dict[str, str] = {}
    pending = [r for r in rows if r.get("slug") and r.get("name")]

    while pending:
        progressed = False
        remaining = []
        for row in pending:
            parent_slug = row.get("parent_slug")
            if parent_slug and parent_slug not in ids:
                remaining.append(row)
                continue
            ids[row["slug"]] = upsert_category(
                db_path,
                name=row["name"],
                slug=row["slug"],
                parent_id=ids.get(parent_slug) if parent_slug else None,
                description=row.get("description"),
            )
            progressed = True
        if not progressed:
            orphans = sorted(r["slug"] for r in remaining)
            raise ValueError(f"Unknown parent_slug for categories: {orphans}")
        pending = remaining

    logger.info("Imported %d categories from %s", len(ids), path)
    return len(ids)


def _category_ids_by_slug(db_path: str) -> Dict[str, str]:
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id, slug FROM categories")
        return {row["slug"]: row["id"] for row in cursor.fetchall()}


def import_products_csv(path: str, db_path: str = DB_PATH) -> int:
    """Import products from CSV.

    Expected columns: name, slug; optional price, status, category_slug,
    facet attributes, is_clearance, stock, created_at.

    Returns:
        Number of products imported.
    """
    df = pd.read_csv(path, dtype=str)
    missing = {"name", "slug"} - set(df.columns)
    if missing:
        raise ValueError(f"Product CSV missing columns: {sorted(missing)}")

    category_ids = _category_ids_by_slug(db_path)
    count = 0

    for record in df.to_dict(orient="records"):
        row = {k: _clean(v) for k, v in record.items()}
        if not row.get("name") or not row.get("slug"):
            continue

        fields: Dict[str, Any] = {attr: row.get(attr) for attr in FACET_ATTRIBUTES}
        fields["status"] = row.get("status") or "active"
        fields["is_clearance"] = _as_bool(row.get("is_clearance"))
        fields["stock"] = int(float(row["stock"])) if row.get("stock") else 0
        fields["price"] = _parse_price(row.get("price"), row["slug"])

        category_slug = row.get("category_slug")
        if category_slug:
            if category_slug not in category_ids:
                logger.warning("Product %s: unknown category '%s'", row["slug"], category_slug)
            fields["category_id"] = category_ids.get(category_slug)

        upsert_product(db_path, name=row["name"], slug=row["slug"],
                       created_at=row.get("created_at"), **fields)
        count += 1

    logger.info("Imported %d products from %s", count, path)
    return count


def _parse_price(value: Optional[str], slug: str) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value.replace("€", "").replace(",", "."))
    except ValueError:
        logger.warning("Product %s: unparsable price '%s'", slug, value)
        return None


def export_products_csv(output_path: str, db_path: str = DB_PATH) -> int:
    """Export all products with their category slug to CSV."""
    query = """
        SELECT p.*, c.slug AS category_slug
        FROM products p
        LEFT JOIN categories c ON c.id = p.category_id
        ORDER BY p.created_at, p.id
    """
    with get_connection(db_path) as conn:
        df = pd.read_sql_query(query, conn)

    df.to_csv(output_path, index=False)
    print(f"Exported {len(df)} products to {output_path}")
    return len(df)
