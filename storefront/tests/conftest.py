"""Shared test fixtures for the storefront test suite."""

import logging
from pathlib import Path

import pytest

from storefront.db import init_db, upsert_category, upsert_product

# Flooring has two children; every product id is fixed so tests can name them.
CATEGORIES = [
    # (id, name, slug, parent_id)
    ("cat-flooring", "Flooring", "flooring", None),
    ("cat-laminate", "Laminate", "laminate", "cat-flooring"),
    ("cat-vinyl", "Vinyl", "vinyl", "cat-flooring"),
    ("cat-tiles", "Tiles", "tiles", None),
]

PRODUCTS = [
    # Laminate: 5 active, 1 draft
    dict(product_id="prod-l1", name="Oak Laminate", slug="oak-laminate", price=45.0,
         category_id="cat-laminate", material="Oak", finish="Matt", size="1200x190",
         brand="Kronotex", stock=10, created_at="2024-01-05 10:00:00"),
    dict(product_id="prod-l2", name="Walnut Laminate", slug="walnut-laminate", price=20.0,
         category_id="cat-laminate", material="Walnut", finish="Gloss", brand="Kronotex",
         stock=5, created_at="2024-01-04 10:00:00"),
    dict(product_id="prod-l3", name="Ash Laminate", slug="ash-laminate", price=12.5,
         category_id="cat-laminate", material="Ash", finish="   ", stock=0,
         created_at="2024-01-03 10:00:00"),
    dict(product_id="prod-l4", name="Beech Laminate", slug="beech-laminate", price=65.0,
         category_id="cat-laminate", material="Beech", thickness="8mm", stock=2,
         created_at="2024-01-02 10:00:00"),
    dict(product_id="prod-l5", name="Grey Laminate", slug="grey-laminate", price=30.0,
         category_id="cat-laminate", thickness="12mm", stock=1,
         created_at="2024-01-02 10:00:00"),
    dict(product_id="prod-l6", name="Cork Laminate", slug="cork-laminate", price=35.0,
         category_id="cat-laminate", material="Cork", status="draft",
         created_at="2024-01-06 10:00:00"),
    # Vinyl: 3 active
    dict(product_id="prod-v1", name="Bathroom Vinyl", slug="bathroom-vinyl", price=25.0,
         category_id="cat-vinyl", material="PVC", finish="Matt", application_area="Bathroom",
         stock=4, created_at="2024-02-01 10:00:00"),
    dict(product_id="prod-v2", name="Kitchen Vinyl", slug="kitchen-vinyl", price=40.0,
         category_id="cat-vinyl", material="PVC", application_area="Kitchen",
         stock=3, created_at="2024-02-02 10:00:00"),
    dict(product_id="prod-v3", name="Stone Vinyl", slug="stone-vinyl", price=None,
         category_id="cat-vinyl", material="Stone Composite", stock=0,
         created_at="2024-02-03 10:00:00"),
    # Tiles: 2 active clearance products
    dict(product_id="prod-t1", name="Ceramic Tile", slug="ceramic-tile", price=15.0,
         category_id="cat-tiles", material="Ceramic", is_clearance=True, stock=50,
         created_at="2024-03-01 10:00:00"),
    dict(product_id="prod-t2", name="Porcelain Tile", slug="porcelain-tile", price=80.0,
         category_id="cat-tiles", material="Porcelain", is_clearance=True, stock=20,
         created_at="2024-03-02 10:00:00"),
]

LAMINATE_IDS = {"prod-l1", "prod-l2", "prod-l3", "prod-l4", "prod-l5"}
VINYL_IDS = {"prod-v1", "prod-v2", "prod-v3"}
FLOORING_IDS = LAMINATE_IDS | VINYL_IDS


def seed_catalog(db_path: str) -> None:
    init_db(db_path)
    for category_id, name, slug, parent_id in CATEGORIES:
        upsert_category(db_path, name=name, slug=slug, parent_id=parent_id, category_id=category_id)
    for product in PRODUCTS:
        upsert_product(db_path, **product)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging (e.g. via cli.main)."""
    yield
    logger = logging.getLogger("storefront")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_db(tmp_path) -> str:
    """Empty database with the schema applied."""
    db_path = str(tmp_path / "storefront.db")
    init_db(db_path)
    return db_path


@pytest.fixture
def catalog_db(tmp_path) -> str:
    """Database seeded with the Flooring/Laminate/Vinyl/Tiles catalog."""
    db_path = str(tmp_path / "catalog.db")
    seed_catalog(db_path)
    return db_path


@pytest.fixture
def fixtures_dir(tmp_path) -> Path:
    fixtures = tmp_path / "fixtures"
    fixtures.mkdir(exist_ok=True)
    return fixtures
