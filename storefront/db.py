"""SQLite database schema and write helpers for the catalog."""

import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional

from storefront.config import DB_PATH, FACET_ATTRIBUTES

__all__ = [
    "get_connection",
    "init_db",
    "new_id",
    "upsert_category",
    "upsert_product",
    "create_order",
    "get_table_counts",
]

PRODUCT_COLUMNS = [
    "name",
    "slug",
    "price",
    "status",
    "category_id",
    *FACET_ATTRIBUTES,
    "is_clearance",
    "stock",
]


def new_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def get_connection(db_path: str = DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections."""
    # Ensure directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = DB_PATH) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS categories (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                slug TEXT UNIQUE NOT NULL,
                parent_id TEXT,
                description TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (parent_id) REFERENCES categories(id) ON DELETE SET NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS products (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                slug TEXT UNIQUE NOT NULL,
                price REAL,
                status TEXT NOT NULL DEFAULT 'active',
                category_id TEXT,
                material TEXT,
                finish TEXT,
                size TEXT,
                thickness TEXT,
                application_area TEXT,
                brand TEXT,
                is_clearance INTEGER NOT NULL DEFAULT 0,
                stock INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE SET NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS orders (
                id TEXT PRIMARY KEY,
                status TEXT NOT NULL DEFAULT 'Pending',
                total REAL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS order_status_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_id TEXT NOT NULL,
                from_status TEXT,
                to_status TEXT NOT NULL,
                changed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE
            )
        """)

        # Failed line items from stock deduction, kept for reconciliation
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS stock_inconsistencies (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_id TEXT NOT NULL,
                product_id TEXT NOT NULL,
                quantity INTEGER NOT NULL,
                reason TEXT NOT NULL,
                recorded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_categories_parent ON categories(parent_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_category ON products(category_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_status ON products(status)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_created_at ON products(created_at)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_status_history_order ON order_status_history(order_id)")

        conn.commit()


def upsert_category(
    db_path: str,
    name: str,
    slug: str,
    parent_id: Optional[str] = None,
    description: Optional[str] = None,
    category_id: Optional[str] = None,
) -> str:
    """Insert or update a category by slug, returning its ID."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("SELECT id FROM categories WHERE slug = ?", (slug,))
        existing = cursor.fetchone()

        if existing:
            cursor.execute("""
                UPDATE categories SET name = ?, parent_id = ?, description = ?
                WHERE slug = ?
            """, (name, parent_id, description, slug))
            result_id = existing["id"]
        else:
            result_id = category_id or new_id()
            cursor.execute("""
                INSERT INTO categories (id, name, slug, parent_id, description)
                VALUES (?, ?, ?, ?, ?)
            """, (result_id, name, slug, parent_id, description))

        conn.commit()
        return result_id


def upsert_product(
    db_path: str,
    name: str,
    slug: str,
    product_id: Optional[str] = None,
    created_at: Optional[str] = None,
    **fields: Any,
) -> str:
    """Insert or update a product by slug, returning its ID.

    Extra keyword fields must be product columns (price, status,
    category_id, facet attributes, is_clearance, stock).
    """
    unknown = set(fields) - set(PRODUCT_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown product fields: {sorted(unknown)}")

    values: Dict[str, Any] = {"name": name, "slug": slug, **fields}
    if "is_clearance" in values:
        values["is_clearance"] = int(bool(values["is_clearance"]))

    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("SELECT id FROM products WHERE slug = ?", (slug,))
        existing = cursor.fetchone()

        if existing:
            set_clause = ", ".join(f"{k} = ?" for k in values)
            cursor.execute(
                f"UPDATE products SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE slug = ?",
                list(values.values()) + [slug],
            )
            result_id = existing["id"]
        else:
            result_id = product_id or new_id()
            values["id"] = result_id
            if created_at:
                values["created_at"] = created_at
            cols = ", ".join(values)
            placeholders = ", ".join("?" for _ in values)
            cursor.execute(
                f"INSERT INTO products ({cols}) VALUES ({placeholders})",
                list(values.values()),
            )

        conn.commit()
        return result_id


def create_order(
    db_path: str,
    order_id: Optional[str] = None,
    status: str = "Pending",
    total: Optional[float] = None,
) -> str:
    """Insert an order and its initial history row."""
    order_id = order_id or new_id()
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO orders (id, status, total) VALUES (?, ?, ?)",
            (order_id, status, total),
        )
        cursor.execute(
            "INSERT INTO order_status_history (order_id, from_status, to_status) VALUES (?, NULL, ?)",
            (order_id, status),
        )
        conn.commit()
    return order_id


def get_table_counts(db_path: str = DB_PATH) -> Dict[str, int]:
    """Row counts for the main tables, used by ``--stats``."""
    counts = {}
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        for table in ("categories", "products", "orders", "stock_inconsistencies"):
            cursor.execute(f"SELECT COUNT(*) AS n FROM {table}")
            counts[table] = cursor.fetchone()["n"]
        cursor.execute("SELECT COUNT(*) AS n FROM products WHERE status = 'active'")
        counts["active_products"] = cursor.fetchone()["n"]
    return counts
