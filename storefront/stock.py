"""Stock deduction after payment confirmation.

Each line item is decremented with a single conditional UPDATE, so stock
can never go negative and there is no read-then-write window. Line items
that fail are written to ``stock_inconsistencies`` for reconciliation.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from storefront.config import DB_PATH
from storefront.db import get_connection
from storefront.logging_config import log_catalog_event

__all__ = [
    "LineItemResult",
    "StockDeductionReport",
    "deduct_stock",
    "get_stock_inconsistencies",
]

logger = logging.getLogger(__name__)

DEDUCTED = "deducted"
NOT_FOUND = "not_found"
INSUFFICIENT_STOCK = "insufficient_stock"
INVALID_QUANTITY = "invalid_quantity"


@dataclass
class LineItemResult:
    product_id: str
    quantity: Optional[int]
    status: str
    new_stock: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == DEDUCTED


@dataclass
class StockDeductionReport:
    """Outcome of deducting stock for one order."""

    order_id: str
    results: List[LineItemResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def failures(self) -> List[LineItemResult]:
        return [r for r in self.results if not r.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "success": self.success,
            "results": [dict(asdict(r), success=r.success) for r in self.results],
        }


def _parse_quantity(value: Any) -> Optional[int]:
    """Positive whole quantity, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return None
    return quantity if quantity > 0 else None


def deduct_stock(
    order_id: str,
    items: Iterable[Mapping[str, Any]],
    db_path: str = DB_PATH,
) -> StockDeductionReport:
    """Reduce stock for each purchased line item.

    Args:
        order_id: Order the items belong to.
        items: Line items with ``product_id`` and ``quantity`` keys.
        db_path: Path to SQLite database.

    Returns:
        A report with one result per line item. ``report.success`` is False
        when any item could not be deducted; those items have already been
        recorded as stock inconsistencies.
    """
    report = StockDeductionReport(order_id=order_id)

    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        for item in items:
            product_id = str(item.get("product_id") or "")
            quantity = _parse_quantity(item.get("quantity"))

            if not product_id:
                report.results.append(
                    LineItemResult(product_id=product_id, quantity=quantity, status=NOT_FOUND)
                )
                continue
            if quantity is None:
                report.results.append(
                    LineItemResult(product_id=product_id, quantity=quantity, status=INVALID_QUANTITY)
                )
                continue

            cursor.execute(
                """
                UPDATE products
                SET stock = stock - ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND stock >= ?
                """,
                (quantity, product_id, quantity),
            )
            updated = cursor.rowcount == 1
            conn.commit()

            cursor.execute("SELECT stock FROM products WHERE id = ?", (product_id,))
            row = cursor.fetchone()

            if row is None:
                status = NOT_FOUND
            elif updated:
                status = DEDUCTED
            else:
                status = INSUFFICIENT_STOCK

            report.results.append(LineItemResult(
                product_id=product_id,
                quantity=quantity,
                status=status,
                new_stock=row["stock"] if row is not None else None,
            ))

        for failure in report.failures:
            cursor.execute(
                """
                INSERT INTO stock_inconsistencies (order_id, product_id, quantity, reason)
                VALUES (?, ?, ?, ?)
                """,
                (order_id, failure.product_id, failure.quantity or 0, failure.status),
            )
        conn.commit()

    if report.success:
        log_catalog_event(
            "stock_deduction",
            {
                "message": f"Stock deducted for order {order_id}",
                "order_id": order_id,
                "items": len(report.results),
            },
        )
    else:
        log_catalog_event(
            "stock_inconsistency",
            {
                "message": f"Stock deduction incomplete for order {order_id}",
                "order_id": order_id,
                "failures": [asdict(f) for f in report.failures],
            },
            level=logging.WARNING,
        )

    return report


def get_stock_inconsistencies(
    order_id: Optional[str] = None,
    db_path: str = DB_PATH,
) -> List[Dict[str, Any]]:
    """Recorded failed line items, oldest first."""
    query = "SELECT order_id, product_id, quantity, reason, recorded_at FROM stock_inconsistencies"
    params: List[Any] = []
    if order_id:
        query += " WHERE order_id = ?"
        params.append(order_id)
    query += " ORDER BY id"

    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]
