"""Order status transitions and totals."""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from storefront.config import DB_PATH, DEFAULT_TAX_RATE
from storefront.db import get_connection
from storefront.logging_config import log_catalog_event

__all__ = [
    "ORDER_STATUSES",
    "OrderNotFoundError",
    "InvalidStatusTransitionError",
    "get_valid_next_statuses",
    "update_order_status",
    "get_status_history",
    "calculate_order_totals",
]

logger = logging.getLogger(__name__)

STATUS_PROGRESSION: Dict[str, List[str]] = {
    "Pending": ["Confirmed", "Cancelled"],
    "Confirmed": ["Processing", "Cancelled"],
    "Processing": ["Ready", "Cancelled"],
    "Ready": ["Shipped", "Cancelled"],
    "Shipped": ["Delivered"],
    "Delivered": [],
    "Cancelled": [],
}

ORDER_STATUSES = list(STATUS_PROGRESSION)


class OrderNotFoundError(LookupError):
    pass


class InvalidStatusTransitionError(ValueError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move order from {current} to {requested}")
        self.current = current
        self.requested = requested


def get_valid_next_statuses(current_status: str) -> List[str]:
    """Statuses reachable from ``current_status``; empty for terminal or unknown."""
    return list(STATUS_PROGRESSION.get(current_status, []))


def update_order_status(order_id: str, status: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Move an order to a new status and append to its history.

    Raises:
        OrderNotFoundError: If the order does not exist.
        InvalidStatusTransitionError: If the transition is not allowed.
    """
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT status FROM orders WHERE id = ?", (order_id,))
        row = cursor.fetchone()
        if row is None:
            raise OrderNotFoundError(order_id)

        current = row["status"]
        if status not in get_valid_next_statuses(current):
            raise InvalidStatusTransitionError(current, status)

        # Guard on the old status so concurrent updates cannot both apply
        cursor.execute(
            "UPDATE orders SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND status = ?",
            (status, order_id, current),
        )
        if cursor.rowcount != 1:
            conn.rollback()
            raise InvalidStatusTransitionError(current, status)

        cursor.execute(
            "INSERT INTO order_status_history (order_id, from_status, to_status) VALUES (?, ?, ?)",
            (order_id, current, status),
        )
        conn.commit()

    log_catalog_event(
        "order_status",
        {"message": f"Order {order_id} status {current} -> {status}", "order_id": order_id,
         "from_status": current, "to_status": status},
    )
    return {"order_id": order_id, "status": status, "previous_status": current}


def get_status_history(order_id: str, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT from_status, to_status, changed_at FROM order_status_history "
            "WHERE order_id = ? ORDER BY id",
            (order_id,),
        )
        return [dict(row) for row in cursor.fetchall()]


def calculate_order_totals(
    items: Iterable[Mapping[str, Any]],
    tax_rate: Optional[float] = None,
) -> Dict[str, float]:
    """Subtotal, tax and total for line items with ``unit_price`` and ``quantity``.

    Checkout currently persists the client-computed total; whether tax should
    be recomputed server-side is still an open product decision, so the rate
    is explicit here.
    """
    rate = DEFAULT_TAX_RATE if tax_rate is None else tax_rate
    subtotal = sum(float(i["unit_price"]) * int(i["quantity"]) for i in items)
    tax = subtotal * rate
    return {"subtotal": subtotal, "tax": tax, "total": subtotal + tax}
