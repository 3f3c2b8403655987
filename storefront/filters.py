"""Filter parsing, facet derivation and filter URL building.

Facets are always derived from the unfiltered, category-scoped product set,
so selecting one filter never hides the options of another.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlencode

import pandas as pd

from storefront.config import FACET_ATTRIBUTES, FILTER_LABELS, MAX_PAGE, PRICE_OPTIONS
from storefront.models import Category, FilterGroup, FilterOption

__all__ = [
    "clean_params",
    "parse_price_range",
    "parse_page",
    "unique_values",
    "build_filter_groups",
    "price_filter_group",
    "build_filter_url",
    "build_clear_all_url",
    "build_page_url",
    "active_filter_count",
]


def clean_params(raw: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Drop absent and empty query-string values.

    Multi-valued entries (lists) keep their first value only; filters are
    single-select.
    """
    params: Dict[str, str] = {}
    for key, value in (raw or {}).items():
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is None:
            continue
        value = str(value)
        if value:
            params[key] = value
    return params


def _parse_bound(text: Optional[str]) -> Optional[float]:
    if text is None or not text.strip():
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_price_range(value: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """Parse ``"<min>-<max>"`` into numeric bounds.

    A part that is missing, empty or non-numeric comes back as None and is
    skipped by the caller. ``"60-5000"`` keeps its literal 5000 cap.

    >>> parse_price_range("20-40")
    (20.0, 40.0)
    >>> parse_price_range("abc-40")
    (None, 40.0)
    """
    if not value:
        return None, None
    parts = value.split("-")
    min_part = parts[0]
    max_part = parts[1] if len(parts) > 1 else None
    return _parse_bound(min_part), _parse_bound(max_part)


def parse_page(value: Any, max_page: int = MAX_PAGE) -> int:
    """1-based page number; anything unparsable or below 1 is page 1.

    Pages above ``max_page`` are capped so the read offset stays within
    SQLite integer range.
    """
    try:
        page = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    if page < 1:
        return 1
    return min(page, max_page)


def unique_values(products: pd.DataFrame, column: str) -> List[str]:
    """Distinct non-blank string values of a column, sorted."""
    if products.empty or column not in products.columns:
        return []
    values = {v for v in products[column].tolist() if isinstance(v, str) and v.strip()}
    return sorted(values)


def price_filter_group() -> FilterGroup:
    return FilterGroup(
        id="price",
        label=FILTER_LABELS["price"],
        options=[FilterOption(label=o["label"], value=o["value"]) for o in PRICE_OPTIONS],
    )


def build_filter_groups(
    products: pd.DataFrame,
    parent_options: Optional[Sequence[Category]] = None,
    parent_group_id: str = "subcategory",
    min_distinct_values: int = 1,
    attributes: Iterable[str] = FACET_ATTRIBUTES,
) -> List[FilterGroup]:
    """Build the facet groups shown above a product grid.

    Args:
        products: Unfiltered, category-scoped active products.
        parent_options: Categories offered as the leading group (child
            categories on a category page, roots on the all-products page).
        parent_group_id: Query key for that leading group.
        min_distinct_values: Minimum distinct values before an attribute
            group is shown. Category pages use 1, the all-products page 2.
        attributes: Product columns to derive groups from.

    Returns:
        Ordered groups: category group (if any), attribute groups, price.
    """
    groups: List[FilterGroup] = []

    if parent_options:
        groups.append(FilterGroup(
            id=parent_group_id,
            label=FILTER_LABELS.get(parent_group_id, parent_group_id),
            options=[FilterOption(label=c.name, value=c.id) for c in parent_options],
        ))

    for attribute in attributes:
        values = unique_values(products, attribute)
        if len(values) >= min_distinct_values and values:
            groups.append(FilterGroup(
                id=attribute,
                label=FILTER_LABELS.get(attribute, attribute),
                options=[FilterOption(label=v, value=v) for v in values],
            ))

    groups.append(price_filter_group())
    return groups


def _with_query(pathname: str, params: Mapping[str, str]) -> str:
    qs = urlencode(list(params.items()))
    return f"{pathname}?{qs}" if qs else pathname


def build_filter_url(
    pathname: str,
    current_params: Mapping[str, str],
    key: str,
    value: Optional[str],
) -> str:
    """URL for clicking a filter option.

    Selecting the already-selected value removes the key (toggle off).
    ``value=None`` clears the key. Any filter change resets pagination.
    """
    params: Dict[str, str] = {
        k: v for k, v in current_params.items() if k != key and k != "page"
    }
    if value is not None and current_params.get(key) != value:
        params[key] = value
    return _with_query(pathname, params)


def build_clear_all_url(pathname: str, current_params: Mapping[str, str]) -> str:
    """Remove every filter but keep the chosen sort."""
    params = {"sort": current_params["sort"]} if current_params.get("sort") else {}
    return _with_query(pathname, params)


def build_page_url(pathname: str, current_params: Mapping[str, str], page: int) -> str:
    params = {k: v for k, v in current_params.items() if k != "page"}
    if page > 1:
        params["page"] = str(page)
    return _with_query(pathname, params)


def active_filter_count(groups: Iterable[FilterGroup], current_params: Mapping[str, str]) -> int:
    return sum(1 for g in groups if current_params.get(g.id))
