"""
Rate card storage — seeding, entry CRUD, browsing.
"""

import pytest

from interior_quote import rate_cards, schemas
from interior_quote.project_service import RecordNotFound


def test_seed_default_rate_card_is_idempotent(db):
    first = rate_cards.seed_default_rate_card(db)
    second = rate_cards.seed_default_rate_card(db)
    assert first.id == second.id
    assert len(first.items) == len(rate_cards.DEFAULT_RATE_CARD_ITEMS)
    assert len(rate_cards.list_rate_cards(db)) == 1


def test_list_categories(db):
    card = rate_cards.seed_default_rate_card(db)
    assert rate_cards.list_categories(db, card.id) == ["Decorative", "Furniture", "Wall Work"]


def test_filter_items(db):
    card = rate_cards.seed_default_rate_card(db)
    rate_cards.add_rate_card_item(db, card.id, schemas.RateCardItemCreate(
        category="Furniture", item="Study Table", unit_of_measure="NOS", rate=8000,
    ))

    furniture = rate_cards.filter_items(db, card.id, category="Furniture")
    assert [e.item for e in furniture] == ["TV Unit", "Wardrobe", "Kitchen", "Study Table"]

    counted = rate_cards.filter_items(db, card.id, unit_of_measure="COUNT")
    assert [e.item for e in counted] == ["Study Table"]

    assert [e.item for e in rate_cards.filter_items(db, card.id, search="wall")] == ["POP Wall", "Wall Painting"]


def test_rate_card_entry_crud(db):
    card = rate_cards.create_rate_card(db, schemas.RateCardCreate(name="Premium Card"))
    entry = rate_cards.add_rate_card_item(db, card.id, schemas.RateCardItemCreate(
        category="Decorative", item="Wallpaper", unit_of_measure="SFT", rate=90,
        material_options="Vinyl, Fabric", material_prices="Fabric:60",
    ))
    assert entry.unit_of_measure == "AREA"

    updated = rate_cards.update_rate_card_item(db, card.id, entry.id, schemas.RateCardItemCreate(
        category="Decorative", item="Wallpaper", rate=110,
    ))
    assert updated.rate == 110
    assert updated.material_options == ""

    rate_cards.delete_rate_card_item(db, card.id, entry.id)
    with pytest.raises(RecordNotFound):
        rate_cards.delete_rate_card_item(db, card.id, entry.id)


def test_negative_rate_rejected():
    with pytest.raises(ValueError):
        schemas.RateCardItemCreate(category="Furniture", item="Shelf", rate=-10)


def test_delete_rate_card(db):
    card = rate_cards.seed_default_rate_card(db)
    rate_cards.delete_rate_card(db, card.id)
    with pytest.raises(RecordNotFound):
        rate_cards.get_rate_card(db, card.id)
