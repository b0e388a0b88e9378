"""
Rate card storage and browsing.

A rate card is a company's catalog of priceable items. Entries keep their
material / add-on lists as the raw comma strings users type; they are only
parsed (see calculators.catalog) when an entry is copied into a project.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .calculators.base import resolve_unit_of_measure
from .database import commit
from .project_service import RecordNotFound

logger = logging.getLogger(__name__)

# Starter catalog for a new company, prices per unit of measure
DEFAULT_RATE_CARD_ITEMS = [
    {"category": "Wall Work", "item": "POP Wall", "unit_of_measure": "AREA", "rate": 150,
     "material_options": "Standard, Premium", "add_ons": "None"},
    {"category": "Wall Work", "item": "Wall Painting", "unit_of_measure": "AREA", "rate": 80,
     "material_options": "Regular, Texture", "add_ons": "None"},
    {"category": "Furniture", "item": "TV Unit", "unit_of_measure": "AREA", "rate": 1200,
     "material_options": "Laminate, Veneer, PU", "add_ons": "Lights, Profile Door"},
    {"category": "Furniture", "item": "Wardrobe", "unit_of_measure": "AREA", "rate": 1500,
     "material_options": "Laminate, Veneer, PU", "add_ons": "Lights, Profile Door"},
    {"category": "Furniture", "item": "Kitchen", "unit_of_measure": "AREA", "rate": 2200,
     "material_options": "Laminate, Acrylic, PU", "add_ons": "Lights, Profile Door"},
    {"category": "Decorative", "item": "False Ceiling", "unit_of_measure": "AREA", "rate": 220,
     "material_options": "Regular, Cove", "add_ons": "Lights"},
    {"category": "Decorative", "item": "Curtains", "unit_of_measure": "AREA", "rate": 180,
     "material_options": "Regular, Blackout", "add_ons": "None"},
]

DEFAULT_RATE_CARD_NAME = "Standard Rate Card"


def _entry_fields(data: schemas.RateCardItemBase) -> dict:
    fields = data.model_dump()
    fields["unit_of_measure"] = data.unit_of_measure.value
    return fields


def create_rate_card(db: Session, data: schemas.RateCardCreate) -> models.RateCard:
    rate_card = models.RateCard(name=data.name, company_id=data.company_id)
    for entry in data.items:
        rate_card.items.append(models.RateCardItem(**_entry_fields(entry)))
    db.add(rate_card)
    commit(db)
    db.refresh(rate_card)
    logger.info("Created rate card %s (%s) with %d items", rate_card.id, rate_card.name, len(rate_card.items))
    return rate_card


def get_rate_card(db: Session, rate_card_id: int) -> models.RateCard:
    rate_card = db.query(models.RateCard).filter(models.RateCard.id == rate_card_id).first()
    if not rate_card:
        raise RecordNotFound(f"Rate card {rate_card_id} not found")
    return rate_card


def list_rate_cards(db: Session, company_id: Optional[int] = None) -> list:
    query = db.query(models.RateCard)
    if company_id is not None:
        query = query.filter(models.RateCard.company_id == company_id)
    return query.order_by(models.RateCard.name).all()


def delete_rate_card(db: Session, rate_card_id: int):
    db.delete(get_rate_card(db, rate_card_id))
    commit(db)


def _get_entry(db: Session, rate_card_id: int, entry_id: int) -> models.RateCardItem:
    entry = db.query(models.RateCardItem).filter(
        models.RateCardItem.id == entry_id,
        models.RateCardItem.rate_card_id == rate_card_id,
    ).first()
    if not entry:
        raise RecordNotFound(f"Rate card item {entry_id} not found in rate card {rate_card_id}")
    return entry


def add_rate_card_item(db: Session, rate_card_id: int, data: schemas.RateCardItemCreate) -> models.RateCardItem:
    rate_card = get_rate_card(db, rate_card_id)
    entry = models.RateCardItem(**_entry_fields(data))
    rate_card.items.append(entry)
    commit(db)
    db.refresh(entry)
    return entry


def update_rate_card_item(db: Session, rate_card_id: int, entry_id: int,
                          data: schemas.RateCardItemCreate) -> models.RateCardItem:
    """
    Replace an entry. Line items already copied from it keep their old
    prices; a project is a snapshot of the card at the time of quoting.
    """
    entry = _get_entry(db, rate_card_id, entry_id)
    for field, value in _entry_fields(data).items():
        setattr(entry, field, value)
    commit(db)
    db.refresh(entry)
    return entry


def delete_rate_card_item(db: Session, rate_card_id: int, entry_id: int):
    db.delete(_get_entry(db, rate_card_id, entry_id))
    commit(db)


def list_categories(db: Session, rate_card_id: int) -> list[str]:
    """Distinct non-empty categories, sorted."""
    rate_card = get_rate_card(db, rate_card_id)
    return sorted({entry.category for entry in rate_card.items if entry.category})


def filter_items(db: Session, rate_card_id: int, category: Optional[str] = None,
                 unit_of_measure=None, search: Optional[str] = None) -> list:
    """
    Browse a rate card.

    category: exact match; unit_of_measure: enum, name or legacy code;
    search: case-insensitive substring of the item name or category.
    """
    items = list(get_rate_card(db, rate_card_id).items)
    if category:
        items = [e for e in items if e.category == category]
    if unit_of_measure:
        unit = resolve_unit_of_measure(unit_of_measure)
        items = [e for e in items if resolve_unit_of_measure(e.unit_of_measure) == unit]
    if search:
        term = search.lower()
        items = [e for e in items if term in (e.item or "").lower() or term in (e.category or "").lower()]
    return items


def seed_default_rate_card(db: Session, company_id: Optional[int] = None) -> models.RateCard:
    """Create the starter rate card once per company."""
    existing = db.query(models.RateCard).filter(
        models.RateCard.name == DEFAULT_RATE_CARD_NAME,
        models.RateCard.company_id == company_id,
    ).first()
    if existing:
        return existing
    data = schemas.RateCardCreate(
        name=DEFAULT_RATE_CARD_NAME,
        company_id=company_id,
        items=[schemas.RateCardItemCreate(**entry) for entry in DEFAULT_RATE_CARD_ITEMS],
    )
    return create_rate_card(db, data)
