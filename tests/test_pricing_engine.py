"""
Quote calculator tests — line item amounts, totals chain, dashboard figures.

Tests:
1-3.   Unit of measure formulas (AREA, LENGTH, COUNT)
4-6.   Material and add-on additions, legacy string add-ons
7-10.  Lenient input handling
11-14. Room totals and the financial chain
15-18. Unit totals and stats
19-24. PricingEngine.build_quote_summary, rows without a room

Pure math — no database.
"""

import json
import warnings

import pytest

from interior_quote.pricing_engine import (
    PricingEngine,
    aggregate_room_totals,
    compute_discount,
    compute_grand_total,
    compute_line_item_amount,
    compute_quote_stats,
    compute_quote_totals,
    compute_subtotal,
    compute_tax,
    compute_unit_totals,
)


# --- Test fixtures ---

def _sample_line_items():
    """Three rooms' worth of already-priced items."""
    return [
        {"room": "Kitchen", "item": "Kitchen", "unit_of_measure": "AREA", "amount": 50000},
        {"room": "Living Room", "item": "TV Unit", "unit_of_measure": "AREA", "amount": 30000},
        {"room": "Kitchen", "item": "Chimney Point", "unit_of_measure": "COUNT", "amount": 2000},
        {"room": "Bedroom", "item": "Skirting", "unit_of_measure": "LENGTH", "amount": 4500},
    ]


def _sample_project():
    return {
        "id": 7,
        "name": "Mehta Villa",
        "client_name": "R. Mehta",
        "site_address": "Plot 22, Whitefield",
        "project_type": "Villa",
        "tax_percent": 18,
        "discount_percent": 10,
        "rooms": [
            {"name": "Living Room", "type": "Living"},
            {"name": "Kitchen", "type": "Kitchen"},
            {"name": "Study", "type": "Study"},
        ],
        "line_items": [
            {"id": 1, "room": "Kitchen", "item": "Kitchen", "unit_of_measure": "AREA",
             "length": 10, "height": 3, "quantity": 1, "rate": 2200, "amount": 66000},
            {"id": 2, "room": "Living Room", "item": "TV Unit", "unit_of_measure": "AREA",
             "length": 6, "height": 5, "quantity": 1, "rate": 1200, "amount": 36000},
            {"id": 3, "room": "Balcony", "item": "Planter", "unit_of_measure": "COUNT",
             "quantity": 2, "rate": 1500, "amount": 3000},
        ],
    }


# ============================================================
# 1-3. Unit of measure formulas
# ============================================================

def test_area_amount():
    """AREA: length x height x quantity x rate."""
    item = {"unit_of_measure": "AREA", "length": 10, "height": 5, "quantity": 2, "rate": 100}
    assert compute_line_item_amount(item) == 10000


def test_length_amount_ignores_height():
    """LENGTH: length x quantity x rate, height ignored even if set."""
    item = {"unit_of_measure": "LENGTH", "length": 10, "height": 99, "quantity": 3, "rate": 50}
    assert compute_line_item_amount(item) == 1500


def test_count_amount():
    """COUNT: quantity x rate."""
    item = {"unit_of_measure": "COUNT", "length": 12, "height": 4, "quantity": 4, "rate": 250}
    assert compute_line_item_amount(item) == 1000


# ============================================================
# 4-6. Material and add-on additions
# ============================================================

def test_material_addition_scales_with_unit():
    """Selected material's addition uses the same multiplier as the base rate."""
    item = {
        "unit_of_measure": "AREA", "length": 10, "height": 5, "quantity": 2, "rate": 100,
        "material": {"selected": "Veneer", "price_additions": {"Laminate": 0, "Veneer": 500}},
    }
    assert compute_line_item_amount(item) == 60000


def test_unselected_add_on_contributes_nothing():
    item = {
        "unit_of_measure": "COUNT", "quantity": 3, "rate": 100,
        "add_ons": {
            "Lights": {"selected": False, "rate_per_unit": 250},
            "Profile Door": {"selected": True, "rate_per_unit": 150},
        },
    }
    assert compute_line_item_amount(item) == 300 + 450


def test_structured_add_ons_apply_to_every_unit():
    item = {
        "unit_of_measure": "LENGTH", "length": 5, "quantity": 2, "rate": 0,
        "add_ons": {"Lights": {"selected": True, "rate_per_unit": 250}},
    }
    assert compute_line_item_amount(item) == 2500


def test_legacy_add_ons_only_priced_on_area():
    """A legacy "Lights" string adds 250/unit on AREA items and nothing elsewhere."""
    area = {"unit_of_measure": "AREA", "length": 4, "height": 3, "quantity": 1, "rate": 0, "add_ons": "Lights"}
    running = {"unit_of_measure": "LENGTH", "length": 4, "quantity": 1, "rate": 0, "add_ons": "Lights"}
    assert compute_line_item_amount(area) == 3000
    assert compute_line_item_amount(running) == 0


def test_legacy_add_ons_case_and_spacing():
    item = {"unit_of_measure": "AREA", "length": 1, "height": 1, "quantity": 1, "rate": 0,
            "add_ons": " profile DOOR ,LIGHTS, Handles"}
    assert compute_line_item_amount(item) == 150 + 250


def test_legacy_unit_codes():
    """Stored SFT / RFT / NOS codes price as AREA / LENGTH / COUNT."""
    assert compute_line_item_amount({"uom": "SFT", "length": 10, "height": 5, "quantity": 2, "rate": 100}) == 10000
    assert compute_line_item_amount({"uom": "RFT", "length": 10, "height": 5, "quantity": 3, "rate": 50}) == 1500
    assert compute_line_item_amount({"unit_of_measure": "NOS", "quantity": 4, "rate": 250}) == 1000


# ============================================================
# 7-10. Lenient input handling
# ============================================================

def test_unknown_material_adds_nothing():
    item = {"unit_of_measure": "COUNT", "quantity": 1, "rate": 100,
            "material": {"selected": "Marble", "price_additions": {"Veneer": 500}}}
    assert compute_line_item_amount(item) == 100


def test_malformed_numbers_count_as_zero():
    item = {"unit_of_measure": "AREA", "length": "ten", "height": 5, "quantity": 2, "rate": 100}
    assert compute_line_item_amount(item) == 0
    assert compute_line_item_amount({"unit_of_measure": "COUNT", "quantity": 2, "rate": "abc"}) == 0
    assert compute_line_item_amount({"unit_of_measure": "COUNT", "quantity": " 2 ", "rate": "50"}) == 100


def test_missing_quantity_defaults_to_one():
    assert compute_line_item_amount({"unit_of_measure": "COUNT", "rate": 250}) == 250
    assert compute_line_item_amount({"unit_of_measure": "COUNT", "quantity": 0, "rate": 250}) == 0


def test_unknown_unit_prices_as_count():
    item = {"unit_of_measure": "SQM", "length": 10, "height": 10, "quantity": 2, "rate": 100}
    assert compute_line_item_amount(item) == 200


def test_never_raises_on_garbage():
    assert compute_line_item_amount({}) == 0
    assert compute_line_item_amount({"material": "Veneer", "add_ons": 42, "rate": None}) == 0
    assert compute_line_item_amount({"unit_of_measure": "COUNT", "rate": float("nan")}) == 0
    # json.loads turns an over-long digit string into an int too big for a float
    imported = json.loads('{"unit_of_measure": "COUNT", "rate": 1, "quantity": 1' + "0" * 400 + "}")
    assert compute_line_item_amount(imported) == 0


# ============================================================
# 11-14. Room totals and the financial chain
# ============================================================

def test_aggregate_room_totals_groups_in_first_seen_order():
    totals = aggregate_room_totals(_sample_line_items())
    assert list(totals) == ["Kitchen", "Living Room", "Bedroom"]
    assert totals["Kitchen"] == 52000
    assert totals["Bedroom"] == 4500


def test_aggregate_room_totals_is_pure():
    assert aggregate_room_totals([]) == {}
    items = _sample_line_items()
    assert aggregate_room_totals(items) == aggregate_room_totals(items)


def test_financial_chain():
    """1000 at 18% tax and 10% discount -> 180 tax, 100 discount, 1080 total."""
    subtotal = compute_subtotal({"Kitchen": 600, "Bedroom": 400})
    tax = compute_tax(subtotal, 18)
    discount = compute_discount(subtotal, 10)
    assert subtotal == 1000
    assert tax == pytest.approx(180)
    assert discount == pytest.approx(100)
    assert compute_grand_total(subtotal, tax, discount) == pytest.approx(1080)


def test_grand_total_is_not_clamped():
    """Discounts over 100% are accepted and can push the total negative."""
    totals = compute_quote_totals([{"room": "Hall", "amount": 1000}], tax_percent=0, discount_percent=150)
    assert totals.grand_total == pytest.approx(-500)


def test_compute_quote_totals():
    totals = compute_quote_totals(_sample_line_items(), tax_percent=18, discount_percent=5)
    assert totals.subtotal == 86500
    assert totals.tax == pytest.approx(15570)
    assert totals.discount == pytest.approx(4325)
    assert totals.grand_total == pytest.approx(86500 + 15570 - 4325)
    assert totals.room_totals["Living Room"] == 30000


# ============================================================
# 15-18. Unit totals and stats
# ============================================================

def test_unit_totals_sorting():
    items = _sample_line_items()
    assert compute_unit_totals(items) == {"AREA": 80000, "COUNT": 2000, "LENGTH": 4500}
    assert list(compute_unit_totals(items, sort="value-desc")) == ["AREA", "LENGTH", "COUNT"]
    assert list(compute_unit_totals(items, sort="value-asc")) == ["COUNT", "LENGTH", "AREA"]
    assert list(compute_unit_totals(items, sort="name")) == ["AREA", "COUNT", "LENGTH"]


def test_quote_stats():
    stats = compute_quote_stats(_sample_line_items())
    assert stats.total_rooms == 3
    assert stats.total_items == 4
    assert stats.avg_room_cost == pytest.approx(86500 / 3)
    assert stats.avg_item_cost == pytest.approx(86500 / 4)
    assert stats.highest_cost_room == "Kitchen"
    assert stats.highest_cost_room_total == 52000
    assert stats.highest_cost_item == "Kitchen"
    assert stats.highest_cost_item_amount == 50000


def test_quote_stats_empty():
    stats = compute_quote_stats([])
    assert stats.total_rooms == 0
    assert stats.avg_room_cost == 0
    assert stats.highest_cost_room is None
    assert stats.highest_cost_item is None


def test_quote_stats_ties_keep_first():
    items = [
        {"room": "A", "item": "Shelf", "amount": 500},
        {"room": "B", "item": "Desk", "amount": 500},
    ]
    stats = compute_quote_stats(items)
    assert stats.highest_cost_room == "A"
    assert stats.highest_cost_item == "Shelf"


# ============================================================
# 19-21. Quote summary
# ============================================================

def test_build_quote_summary_room_order():
    """Project rooms come first in project order; item-only rooms follow. Empty rooms are skipped."""
    summary = PricingEngine().build_quote_summary(_sample_project())
    assert [r.name for r in summary.rooms] == ["Living Room", "Kitchen", "Balcony"]
    assert summary.rooms[0].type == "Living"
    assert summary.rooms[2].type is None
    assert summary.rooms[1].total == 66000
    assert summary.rooms[1].items[0].item == "Kitchen"


def test_build_quote_summary_totals():
    summary = PricingEngine().build_quote_summary(_sample_project())
    assert summary.project_name == "Mehta Villa"
    assert summary.totals.subtotal == 105000
    assert summary.totals.tax == pytest.approx(18900)
    assert summary.totals.discount == pytest.approx(10500)
    assert summary.totals.grand_total == pytest.approx(113400)
    assert list(summary.unit_totals) == ["AREA", "COUNT"]
    assert summary.stats.total_items == 3


def test_recalculate_with_settings():
    engine = PricingEngine()
    summary = engine.build_quote_summary(_sample_project())
    summary = engine.recalculate_with_settings(summary, tax_percent=0, discount_percent=0)
    assert summary.totals.tax == 0
    assert summary.totals.discount == 0
    assert summary.totals.grand_total == summary.totals.subtotal


def test_items_without_room_group_under_blank_room():
    """A line item with no room still totals; it groups under ""."""
    items = [{"item": "Loose item", "amount": 100}, {"room": "Hall", "item": "Shelf", "amount": 50}]
    assert aggregate_room_totals(items) == {"": 100, "Hall": 50}

    totals = compute_quote_totals(items, 18, 0)
    assert totals.room_totals == {"": 100, "Hall": 50}
    assert totals.grand_total == pytest.approx(177)

    stats = compute_quote_stats(items)
    assert stats.highest_cost_room == ""
    assert stats.highest_cost_item_room == ""


def test_build_quote_summary_with_roomless_and_odd_rows():
    """Rows that price also summarize: unknown units, blank dimensions, no room."""
    project = _sample_project()
    project["line_items"].append(
        {"id": 4, "item": "Imported", "unit_of_measure": "SQM", "length": None,
         "quantity": 2, "rate": 100, "material": "Veneer", "add_ons": 7, "amount": 200},
    )
    summary = PricingEngine().build_quote_summary(project)

    loose = summary.rooms[-1]
    assert loose.name == ""
    assert loose.total == 200
    assert loose.items[0].unit_of_measure.value == "COUNT"
    assert loose.items[0].length == 0
    assert loose.items[0].material is None
    assert loose.items[0].add_ons == {}


def test_build_quote_summary_emits_no_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        summary = PricingEngine().build_quote_summary(_sample_project())
    assert summary.created_at.tzinfo is not None
