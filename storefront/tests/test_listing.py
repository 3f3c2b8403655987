"""Tests for the category, all-products and clearance listings."""

import pytest

from storefront.config import MAX_PAGE, PRODUCTS_PER_PAGE
from storefront.db import upsert_category, upsert_product
from storefront.listing import (
    CategoryNotFoundError,
    ProductNotFoundError,
    get_all_products_listing,
    get_category_listing,
    get_clearance_listing,
    get_product_detail,
    search_catalog,
)

from conftest import FLOORING_IDS, LAMINATE_IDS, VINYL_IDS


def _ids(products):
    return {p.id for p in products}


def _groups(listing):
    return {g.id: g.option_values() for g in listing.filter_groups}


class TestCategoryListingScenario:
    """Flooring has Laminate (5 active) and Vinyl (3 active) children."""

    def test_parent_without_filters_returns_all_children_products(self, catalog_db):
        listing = get_category_listing("flooring", db_path=catalog_db)
        assert listing.total_products == 8
        assert _ids(listing.products) == FLOORING_IDS

    def test_subcategory_narrows_to_child(self, catalog_db):
        listing = get_category_listing("flooring", {"subcategory": "cat-laminate"}, db_path=catalog_db)
        assert _ids(listing.products) == LAMINATE_IDS

    def test_material_filter_across_children(self, catalog_db):
        listing = get_category_listing("flooring", {"material": "Oak"}, db_path=catalog_db)
        assert _ids(listing.products) == {"prod-l1"}

    def test_material_facet_lists_every_material(self, catalog_db):
        listing = get_category_listing("flooring", {"material": "Oak"}, db_path=catalog_db)
        assert _groups(listing)["material"] == [
            "Ash", "Beech", "Oak", "PVC", "Stone Composite", "Walnut",
        ]

    def test_inactive_products_do_not_contribute_facets(self, catalog_db):
        listing = get_category_listing("laminate", db_path=catalog_db)
        assert "Cork" not in _groups(listing)["material"]
        assert "prod-l6" not in _ids(listing.products)

    def test_subcategory_group_first_and_price_last(self, catalog_db):
        listing = get_category_listing("flooring", db_path=catalog_db)
        ids = [g.id for g in listing.filter_groups]
        assert ids[0] == "subcategory"
        assert ids[-1] == "price"
        assert listing.filter_groups[0].option_values() == ["cat-laminate", "cat-vinyl"]

    def test_single_value_groups_shown_on_category_page(self, catalog_db):
        groups = _groups(get_category_listing("flooring", db_path=catalog_db))
        assert groups["brand"] == ["Kronotex"]
        assert groups["size"] == ["1200x190"]
        assert groups["finish"] == ["Gloss", "Matt"]

    def test_groups_without_values_are_omitted(self, catalog_db):
        groups = _groups(get_category_listing("tiles", db_path=catalog_db))
        assert "finish" not in groups
        assert "subcategory" not in groups

    def test_empty_result_is_not_an_error(self, catalog_db):
        listing = get_category_listing("flooring", {"material": "Marble"}, db_path=catalog_db)
        assert listing.products == []
        assert "material" in _groups(listing)

    def test_params_are_cleaned(self, catalog_db):
        listing = get_category_listing("flooring", {"material": "", "sort": "price_asc"}, db_path=catalog_db)
        assert listing.params == {"sort": "price_asc"}
        assert listing.total_products == 8


class TestCategoryListingProperties:

    @pytest.mark.parametrize(
        "filters",
        [
            {},
            {"material": "Oak"},
            {"subcategory": "cat-vinyl"},
            {"price": "0-20", "finish": "Matt"},
            {"brand": "Nobody", "sort": "price_desc"},
            {"price": "garbage"},
        ],
    )
    def test_facets_independent_of_filters(self, catalog_db, filters):
        baseline = get_category_listing("flooring", db_path=catalog_db)
        filtered = get_category_listing("flooring", filters, db_path=catalog_db)
        assert [g.to_dict() for g in filtered.filter_groups] == [g.to_dict() for g in baseline.filter_groups]

    @pytest.mark.parametrize("child", ["cat-laminate", "cat-vinyl"])
    @pytest.mark.parametrize("filters", [{}, {"price": "20-40"}, {"finish": "Matt"}])
    def test_parent_scope_is_superset_of_child(self, catalog_db, child, filters):
        parent = get_category_listing("flooring", filters, db_path=catalog_db)
        only_child = get_category_listing("flooring", {**filters, "subcategory": child}, db_path=catalog_db)
        assert _ids(only_child.products) <= _ids(parent.products)

    def test_default_sort_is_stable_across_calls(self, catalog_db):
        first = [p.id for p in get_category_listing("laminate", db_path=catalog_db).products]
        for _ in range(3):
            again = [p.id for p in get_category_listing("laminate", db_path=catalog_db).products]
            assert again == first
        assert first.index("prod-l4") < first.index("prod-l5")

    def test_price_sort(self, catalog_db):
        listing = get_category_listing("flooring", {"sort": "price_asc"}, db_path=catalog_db)
        prices = [p.price for p in listing.products]
        assert prices[-1] is None
        assert prices[:-1] == sorted(prices[:-1])


class TestCategoryNotFound:

    def test_unknown_slug(self, catalog_db):
        with pytest.raises(CategoryNotFoundError) as exc:
            get_category_listing("doors", db_path=catalog_db)
        assert exc.value.slug == "doors"

    @pytest.mark.parametrize("slug", ["cart", "wishlist", "admin", "clearance"])
    def test_reserved_slug_never_resolves(self, catalog_db, slug):
        upsert_category(catalog_db, name=slug.title(), slug=slug)
        with pytest.raises(CategoryNotFoundError):
            get_category_listing(slug, db_path=catalog_db)


class TestAllProductsListing:

    def test_first_page(self, catalog_db):
        result = get_all_products_listing(db_path=catalog_db)
        assert result.page == 1
        assert result.total_products == 10
        assert result.total_pages == 1
        assert len(result.products) == 10

    def test_pagination_with_small_pages(self, catalog_db):
        result = get_all_products_listing({"page": "3"}, page_size=4, db_path=catalog_db)
        assert result.page == 3
        assert result.total_pages == 3
        assert len(result.products) == 2
        assert result.has_previous and not result.has_next

    def test_page_beyond_end_is_empty(self, catalog_db):
        result = get_all_products_listing(page=9, page_size=4, db_path=catalog_db)
        assert result.products == []
        assert result.total_products == 10

    def test_invalid_page_defaults_to_first(self, catalog_db):
        assert get_all_products_listing({"page": "abc"}, db_path=catalog_db).page == 1

    def test_huge_page_is_capped_and_empty(self, catalog_db):
        result = get_all_products_listing({"page": "99999999999999999999"}, db_path=catalog_db)
        assert result.page == MAX_PAGE
        assert result.products == []
        assert result.total_products == 10

    def test_default_page_size(self, catalog_db):
        for n in range(20):
            upsert_product(catalog_db, name=f"Plank {n:02d}", slug=f"plank-{n:02d}",
                           price=10.0 + n, category_id="cat-laminate")

        first = get_all_products_listing(db_path=catalog_db)
        assert PRODUCTS_PER_PAGE == 24
        assert first.page_size == 24
        assert first.total_products == 30
        assert first.total_pages == 2
        assert len(first.products) == 24
        assert first.has_next

        second = get_all_products_listing({"page": "2"}, db_path=catalog_db)
        assert len(second.products) == 6
        assert not _ids(first.products) & _ids(second.products)

    def test_subcategory_is_ignored(self, catalog_db):
        result = get_all_products_listing({"subcategory": "cat-vinyl"}, db_path=catalog_db)
        assert result.total_products == 10
        assert "subcategory" not in result.params

    def test_subcategory_does_not_override_category(self, catalog_db):
        result = get_all_products_listing(
            {"category": "cat-tiles", "subcategory": "cat-vinyl"}, db_path=catalog_db
        )
        assert _ids(result.products) == {"prod-t1", "prod-t2"}

    def test_total_counts_filtered_predicate(self, catalog_db):
        result = get_all_products_listing({"price": "20-40"}, page_size=2, db_path=catalog_db)
        assert result.total_products == 4
        assert len(result.products) == 2

    def test_category_includes_descendants(self, catalog_db):
        result = get_all_products_listing({"category": "cat-flooring"}, db_path=catalog_db)
        assert _ids(result.products) == FLOORING_IDS

    def test_category_recurses_past_one_level(self, catalog_db):
        upsert_category(catalog_db, name="Click Vinyl", slug="click-vinyl",
                        parent_id="cat-vinyl", category_id="cat-click")
        upsert_product(catalog_db, name="Click Plank", slug="click-plank", product_id="prod-c1",
                       price=33.0, category_id="cat-click")
        result = get_all_products_listing({"category": "cat-flooring"}, db_path=catalog_db)
        assert "prod-c1" in _ids(result.products)

    def test_unknown_category_matches_exact_id(self, catalog_db):
        result = get_all_products_listing({"category": "cat-nope"}, db_path=catalog_db)
        assert result.products == []

    def test_category_group_lists_roots(self, catalog_db):
        result = get_all_products_listing(db_path=catalog_db)
        assert result.filter_groups[0].id == "category"
        assert result.filter_groups[0].option_values() == ["cat-tiles", "cat-flooring"]

    def test_stricter_threshold_hides_single_value_groups(self, catalog_db):
        groups = _groups(get_all_products_listing(db_path=catalog_db))
        assert "brand" not in groups
        assert "size" not in groups
        assert groups["thickness"] == ["12mm", "8mm"]
        assert groups["application_area"] == ["Bathroom", "Kitchen"]

    def test_facets_from_whole_catalog(self, catalog_db):
        result = get_all_products_listing({"category": "cat-tiles"}, db_path=catalog_db)
        assert "Oak" in _groups(result)["material"]


class TestClearanceListing:

    def test_only_clearance_cheapest_first(self, catalog_db):
        products = get_clearance_listing(db_path=catalog_db)
        assert [p.id for p in products] == ["prod-t1", "prod-t2"]

    def test_inactive_clearance_excluded(self, catalog_db):
        upsert_product(catalog_db, name="Old Tile", slug="old-tile", price=1.0,
                       category_id="cat-tiles", is_clearance=True, status="archived")
        assert len(get_clearance_listing(db_path=catalog_db)) == 2

    def test_empty(self, temp_db):
        assert get_clearance_listing(db_path=temp_db) == []


def test_vinyl_child_listing(catalog_db):
    listing = get_category_listing("vinyl", db_path=catalog_db)
    assert _ids(listing.products) == VINYL_IDS
    assert "subcategory" not in _groups(listing)


class TestProductDetail:

    def test_product_with_related_from_same_category(self, catalog_db):
        detail = get_product_detail("oak-laminate", db_path=catalog_db)
        assert detail.product.id == "prod-l1"
        assert [p.id for p in detail.related] == ["prod-l2", "prod-l3", "prod-l4", "prod-l5"]

    def test_related_excludes_inactive(self, catalog_db):
        detail = get_product_detail("walnut-laminate", db_path=catalog_db)
        assert "prod-l6" not in _ids(detail.related)
        assert "prod-l2" not in _ids(detail.related)
        assert _ids(detail.related) <= LAMINATE_IDS

    def test_related_limited_to_four(self, catalog_db):
        detail = get_product_detail("grey-laminate", db_path=catalog_db)
        assert len(detail.related) == 4

    def test_uncategorized_product_relates_to_whole_catalog(self, catalog_db):
        upsert_product(catalog_db, name="Loose Trim", slug="loose-trim", product_id="prod-x1", price=5.0)
        detail = get_product_detail("loose-trim", db_path=catalog_db)
        assert len(detail.related) == 4
        assert "prod-x1" not in _ids(detail.related)

    def test_few_related(self, catalog_db):
        detail = get_product_detail("ceramic-tile", db_path=catalog_db)
        assert [p.id for p in detail.related] == ["prod-t2"]

    @pytest.mark.parametrize("slug", ["cork-laminate", "no-such-product"])
    def test_not_found(self, catalog_db, slug):
        with pytest.raises(ProductNotFoundError):
            get_product_detail(slug, db_path=catalog_db)


class TestSearch:

    def test_name_contains_case_insensitive(self, catalog_db):
        products = search_catalog("LAMINATE", db_path=catalog_db)
        assert [p.slug for p in products] == [
            "ash-laminate", "beech-laminate", "grey-laminate", "oak-laminate", "walnut-laminate",
        ]

    def test_partial_match(self, catalog_db):
        assert _ids(search_catalog("vin", db_path=catalog_db)) == VINYL_IDS

    @pytest.mark.parametrize("term", ["", "   ", None])
    def test_blank_term_matches_nothing(self, catalog_db, term):
        assert search_catalog(term, db_path=catalog_db) == []

    @pytest.mark.parametrize("term", ["%", "_", "oak%"])
    def test_wildcards_are_literal(self, catalog_db, term):
        assert search_catalog(term, db_path=catalog_db) == []

    def test_inactive_excluded(self, catalog_db):
        assert search_catalog("cork", db_path=catalog_db) == []
