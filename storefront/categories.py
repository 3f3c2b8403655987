"""Category store: slug lookup, children and the navigation tree.

Categories form a shallow tree in practice (roots with one level of
children), but nothing here assumes a maximum depth.
"""

import logging
from typing import Dict, Iterable, List, Optional

from storefront.config import DB_PATH, ROOT_CATEGORY_ORDER
from storefront.db import get_connection
from storefront.models import Category

__all__ = [
    "get_category_by_slug",
    "get_child_categories",
    "get_all_categories",
    "build_category_tree",
    "get_category_tree",
    "find_category_by_id",
    "get_all_category_ids",
    "get_descendant_ids",
]

logger = logging.getLogger(__name__)

_CATEGORY_FIELDS = "id, name, slug, parent_id, description, created_at"


def _row_to_category(row) -> Category:
    return Category(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        parent_id=row["parent_id"],
        description=row["description"],
        created_at=row["created_at"],
    )


def get_category_by_slug(slug: str, db_path: str = DB_PATH) -> Optional[Category]:
    """Find a category by exact (case-sensitive) slug."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(f"SELECT {_CATEGORY_FIELDS} FROM categories WHERE slug = ?", (slug,))
        row = cursor.fetchone()
    return _row_to_category(row) if row else None


def get_child_categories(parent_id: str, db_path: str = DB_PATH) -> List[Category]:
    """Direct children of a category, ordered by name."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT {_CATEGORY_FIELDS} FROM categories WHERE parent_id = ? ORDER BY name, id",
            (parent_id,),
        )
        return [_row_to_category(row) for row in cursor.fetchall()]


def get_all_categories(db_path: str = DB_PATH) -> List[Category]:
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(f"SELECT {_CATEGORY_FIELDS} FROM categories ORDER BY name, id")
        return [_row_to_category(row) for row in cursor.fetchall()]


def _root_sort_key(category: Category):
    name = category.name.lower().strip()
    if name in ROOT_CATEGORY_ORDER:
        return (0, ROOT_CATEGORY_ORDER.index(name), "")
    return (1, 0, name)


def build_category_tree(categories: Iterable[Category]) -> List[Category]:
    """Link categories to their parents and return the sorted roots.

    A category whose parent is missing becomes a root. Roots follow the
    merchandising order first, then alphabetical order.
    """
    nodes: Dict[str, Category] = {}
    for cat in categories:
        nodes[cat.id] = Category(
            id=cat.id,
            name=cat.name,
            slug=cat.slug,
            parent_id=cat.parent_id,
            description=cat.description,
            created_at=cat.created_at,
        )

    roots: List[Category] = []
    for node in nodes.values():
        if node.parent_id and node.parent_id in nodes and node.parent_id != node.id:
            nodes[node.parent_id].children.append(node)
        else:
            roots.append(node)

    for node in nodes.values():
        node.children.sort(key=lambda c: (c.name, c.id))

    roots.sort(key=_root_sort_key)
    return roots


def get_category_tree(db_path: str = DB_PATH) -> List[Category]:
    """Load every category and return the navigation tree roots."""
    return build_category_tree(get_all_categories(db_path))


def find_category_by_id(categories: List[Category], category_id: str) -> Optional[Category]:
    """Depth-first search of a category tree."""
    for cat in categories:
        if cat.id == category_id:
            return cat
        found = find_category_by_id(cat.children, category_id)
        if found:
            return found
    return None


def get_all_category_ids(category: Category) -> List[str]:
    """The category's own id followed by every descendant id (pre-order)."""
    ids: List[str] = []
    seen = set()
    stack = [category]
    while stack:
        node = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)
        ids.append(node.id)
        stack.extend(reversed(node.children))
    return ids


def get_descendant_ids(category_id: str, db_path: str = DB_PATH) -> List[str]:
    """Scope of a category: itself plus all descendants.

    Returns just ``[category_id]`` when the id is unknown.
    """
    node = find_category_by_id(get_category_tree(db_path), category_id)
    if node is None:
        logger.debug("Category %s not in tree, using exact id scope", category_id)
        return [category_id]
    return get_all_category_ids(node)
