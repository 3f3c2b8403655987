"""Shared cart/wishlist state persisted to a JSON file.

One store object is shared by every consumer. It is hydrated from disk once,
written back on every change, and notifies subscribers after each update.

Usage:
    store = get_session_store()
    unsubscribe = store.subscribe(lambda state: print(state["cart_count"]))
    store.toggle_wishlist("prod-1")
    unsubscribe()
"""

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

__all__ = [
    "SessionStore",
    "get_session_store",
]

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]

DEFAULT_STATE: Dict[str, Any] = {
    "wishlist": [],
    "cart_count": 0,
    # product_id -> {"cart_item_id": str, "quantity": int}
    "cart_items": {},
}


class SessionStore:
    """Get/set/subscribe state container backed by a JSON file."""

    _instance: Optional["SessionStore"] = None
    _instance_lock = threading.Lock()

    def __init__(self, path: Optional[str] = None) -> None:
        from storefront.config import STORE_PATH

        self.path = Path(path or STORE_PATH)
        self._state: Dict[str, Any] = copy.deepcopy(DEFAULT_STATE)
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()
        self._hydrated = False

    @classmethod
    def get_instance(cls) -> "SessionStore":
        """Get or create the singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls().hydrate()
        return cls._instance

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    def hydrate(self) -> "SessionStore":
        """Load persisted state. Only the first call reads the file.

        Returns:
            Self for chaining
        """
        with self._lock:
            if self._hydrated:
                return self
            if self.path.exists():
                try:
                    saved = json.loads(self.path.read_text(encoding="utf-8"))
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning("Ignoring unreadable store file %s: %s", self.path, e)
                    saved = {}
                if isinstance(saved, dict):
                    for key in DEFAULT_STATE:
                        if key in saved:
                            self._state[key] = saved[key]
            self._hydrated = True
        return self

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._state, ensure_ascii=False), encoding="utf-8")

    def get(self, key: Optional[str] = None) -> Any:
        """A copy of one value, or of the whole state when ``key`` is None."""
        with self._lock:
            if key is None:
                return copy.deepcopy(self._state)
            return copy.deepcopy(self._state.get(key))

    def set(self, **values: Any) -> None:
        """Update state keys, persist and notify subscribers."""
        unknown = set(values) - set(DEFAULT_STATE)
        if unknown:
            raise KeyError(f"Unknown store keys: {sorted(unknown)}")

        with self._lock:
            self._state.update(copy.deepcopy(values))
            self._persist()
            snapshot = copy.deepcopy(self._state)
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session store listener failed")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ---------- wishlist ----------

    def set_wishlist(self, product_ids: List[str]) -> None:
        # dedupe, keep order
        self.set(wishlist=list(dict.fromkeys(product_ids)))

    def toggle_wishlist(self, product_id: str) -> bool:
        """Add or remove a product; returns True if it is now wishlisted."""
        with self._lock:
            wishlist = list(self._state["wishlist"])
            if product_id in wishlist:
                wishlist.remove(product_id)
                added = False
            else:
                wishlist.append(product_id)
                added = True
            self.set(wishlist=wishlist)
        return added

    def is_in_wishlist(self, product_id: str) -> bool:
        with self._lock:
            return product_id in self._state["wishlist"]

    # ---------- cart ----------

    def set_cart_items(self, items: Dict[str, Dict[str, Any]]) -> None:
        """Replace cart items and recompute the badge count."""
        count = sum(int(i.get("quantity", 0)) for i in items.values())
        self.set(cart_items=items, cart_count=count)

    def get_cart_quantity(self, product_id: str) -> int:
        with self._lock:
            item = self._state["cart_items"].get(product_id)
            return int(item["quantity"]) if item else 0

    def get_cart_item_id(self, product_id: str) -> Optional[str]:
        with self._lock:
            item = self._state["cart_items"].get(product_id)
            return item.get("cart_item_id") if item else None

    @property
    def cart_count(self) -> int:
        with self._lock:
            return int(self._state["cart_count"])

    def clear(self) -> None:
        """Reset to an empty session (logout)."""
        self.set(**copy.deepcopy(DEFAULT_STATE))


def get_session_store() -> SessionStore:
    """Get the global session store instance."""
    return SessionStore.get_instance()
