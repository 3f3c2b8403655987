"""Data models for catalog entities and derived listing structures."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

__all__ = [
    "Product",
    "Category",
    "FilterOption",
    "FilterGroup",
    "CategoryListing",
    "ProductsPage",
    "ProductDetail",
]


@dataclass
class Product:
    """A catalog product row.

    Only ``active`` products are ever listed. Facet attributes are free-text
    columns matched by exact string equality.
    """

    # Required fields
    id: str
    name: str
    slug: str

    price: Optional[float] = None
    status: str = "active"
    category_id: Optional[str] = None

    # Facet attributes
    material: Optional[str] = None
    finish: Optional[str] = None
    size: Optional[str] = None
    thickness: Optional[str] = None
    application_area: Optional[str] = None
    brand: Optional[str] = None

    is_clearance: bool = False
    stock: int = 0
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Category:
    """A category node. ``children`` is only populated for tree results."""

    id: str
    name: str
    slug: str
    parent_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    children: List["Category"] = field(default_factory=list)

    def to_dict(self, include_children: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "parent_id": self.parent_id,
            "description": self.description,
        }
        if include_children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@dataclass(frozen=True)
class FilterOption:
    label: str
    value: str


@dataclass
class FilterGroup:
    """A selectable facet shown above a product grid."""

    id: str
    label: str
    options: List[FilterOption] = field(default_factory=list)

    def option_values(self) -> List[str]:
        return [o.value for o in self.options]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "options": [{"label": o.label, "value": o.value} for o in self.options],
        }


@dataclass
class CategoryListing:
    """Result of a category page query."""

    category: Category
    products: List[Product]
    filter_groups: List[FilterGroup]
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def total_products(self) -> int:
        return len(self.products)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.to_dict(include_children=False),
            "products": [p.to_dict() for p in self.products],
            "filter_groups": [g.to_dict() for g in self.filter_groups],
            "total_products": self.total_products,
            "params": dict(self.params),
        }


@dataclass
class ProductsPage:
    """Result of the paginated all-products query."""

    products: List[Product]
    filter_groups: List[FilterGroup]
    total_products: int
    page: int
    page_size: int
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        # ceil without floats
        return -(-self.total_products // self.page_size) if self.page_size else 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "products": [p.to_dict() for p in self.products],
            "filter_groups": [g.to_dict() for g in self.filter_groups],
            "total_products": self.total_products,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "params": dict(self.params),
        }


@dataclass
class ProductDetail:
    """A product page: the product plus a few related products."""

    product: Product
    related: List[Product] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product": self.product.to_dict(),
            "related": [p.to_dict() for p in self.related],
        }
