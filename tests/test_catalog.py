"""
Menu catalog: loading, matching and size-aware prices.
"""
from decimal import Decimal

import pytest

from phone_orders.core.config import get_settings
from phone_orders.db.seed import seed_menu
from phone_orders.services.catalog import MenuCatalog


def test_seed_file_loads_whole_menu(menu_catalog):
    assert len(menu_catalog) == 189


def test_exact_name_match(menu_catalog):
    entry = menu_catalog.find_best_match("general tso's chicken")
    assert entry.name == "General Tso's Chicken"
    assert entry.item_code == "C16"


def test_partial_match_takes_first_in_catalog_order(menu_catalog):
    entry = menu_catalog.find_best_match("egg roll")
    assert entry.name == "Vegetable Egg Roll"


def test_partial_match_is_case_insensitive(menu_catalog):
    entry = menu_catalog.find_best_match("  SESAME CHICKEN combo ")
    assert entry.item_code == "CP14"


@pytest.mark.parametrize("name", ["", "   ", None, "Pizza Margherita", "asdf-nonexistent-item"])
def test_no_match_returns_none(menu_catalog, name):
    assert menu_catalog.find_best_match(name) is None


def test_pint_and_quart_prices(menu_catalog):
    entry = menu_catalog.find_best_match("Roast Pork Fried Rice")
    assert entry.is_multi_tier
    assert entry.price_for("Pt") == Decimal("5.95")
    assert entry.price_for("qt") == Decimal("9.95")
    assert entry.price_for(None) is None


def test_single_size_item_needs_no_size(menu_catalog):
    entry = menu_catalog.find_best_match("Fried Wonton Soup")
    assert not entry.is_multi_tier
    assert entry.price_for(None) == Decimal("7.35")


def test_specialty_table_lookup(menu_catalog):
    entry = menu_catalog.find_best_match("Chicken Wing (4 pcs) or Half Chicken")
    assert entry.price_for("Plain") == Decimal("7.75")
    assert entry.price_for("w. french fries") == Decimal("10.95")
    assert entry.price_for("beef fried rice") == Decimal("11.95")
    assert entry.price_for("Combination") is None


def test_get_by_id(menu_catalog):
    first = next(iter(menu_catalog))
    assert menu_catalog.get(first.id) is first
    assert menu_catalog.get(None) is None
    assert menu_catalog.get(10_000) is None


def test_render_groups_by_category(menu_catalog):
    text = menu_catalog.render()
    assert text.startswith("APPETIZERS")
    assert "C16. General Tso's Chicken (spicy) [w. White Rice] .... 12.95" in text
    assert "47. Roast Pork Fried Rice .... (Pt) 5.95 / (Qt) 9.95" in text


@pytest.mark.asyncio
async def test_load_from_database(db):
    catalog = await MenuCatalog.load(db)
    assert len(catalog) == 189
    assert catalog.find_best_match("Chicken Lo Mein").price_for("Pt") == Decimal("7.75")


@pytest.mark.asyncio
async def test_seeding_twice_keeps_existing_rows(db):
    assert await seed_menu(db, get_settings().MENU_SEED_FILE) == 0
    assert len(await MenuCatalog.load(db)) == 189
