"""
Project service — rooms, line items and settings for a stored project.

Every write that touches a line item recomputes its `amount` before commit,
so the stored amount is always the calculator's output for the stored
fields. Line items are addressed by id, never by position in a list.
"""

import logging
from copy import deepcopy
from typing import Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .database import commit
from .calculators.add_ons import upgrade_legacy_add_ons
from .calculators.catalog import line_item_from_rate_card
from .pricing_engine import PricingEngine, compute_line_item_amount

logger = logging.getLogger(__name__)


class RecordNotFound(LookupError):
    """A project, room, line item, rate card or template id that doesn't exist."""


def _apply_amount(line_item: models.LineItem) -> models.LineItem:
    line_item.amount = compute_line_item_amount(line_item)
    return line_item


def _dump_material(material: Optional[schemas.MaterialSelection]):
    return material.model_dump() if material is not None else None


def _dump_add_ons(add_ons) -> dict:
    return {name: a.model_dump() for name, a in (add_ons or {}).items()}


# --- Companies / templates ---

def create_company(db: Session, data: schemas.CompanyCreate) -> models.Company:
    company = models.Company(**data.model_dump())
    db.add(company)
    commit(db)
    db.refresh(company)
    return company


def get_company(db: Session, company_id: int) -> models.Company:
    company = db.query(models.Company).filter(models.Company.id == company_id).first()
    if not company:
        raise RecordNotFound(f"Company {company_id} not found")
    return company


def update_company(db: Session, company_id: int, data: schemas.CompanyUpdate) -> models.Company:
    company = get_company(db, company_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "website":
            continue
        setattr(company, field, value)
    commit(db)
    db.refresh(company)
    logger.info("Updated company %s", company_id)
    return company


def create_export_template(db: Session, data: schemas.ExportTemplateCreate) -> models.ExportTemplate:
    fields = data.model_dump()
    fields["layout_type"] = data.layout_type.value
    template = models.ExportTemplate(**fields)
    db.add(template)
    commit(db)
    db.refresh(template)
    return template


def get_export_template(db: Session, template_id: int) -> models.ExportTemplate:
    template = db.query(models.ExportTemplate).filter(models.ExportTemplate.id == template_id).first()
    if not template:
        raise RecordNotFound(f"Export template {template_id} not found")
    return template


def list_export_templates(db: Session, company_id: Optional[int] = None) -> list:
    query = db.query(models.ExportTemplate)
    if company_id is not None:
        query = query.filter(models.ExportTemplate.company_id == company_id)
    return query.order_by(models.ExportTemplate.name).all()


def update_export_template(db: Session, template_id: int,
                           data: schemas.ExportTemplateUpdate) -> models.ExportTemplate:
    template = get_export_template(db, template_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "layout_type":
            value = value.value
        setattr(template, field, value)
    commit(db)
    db.refresh(template)
    return template


def delete_export_template(db: Session, template_id: int):
    db.delete(get_export_template(db, template_id))
    commit(db)
    logger.info("Deleted export template %s", template_id)


# --- Projects ---

def create_project(db: Session, data: schemas.ProjectCreate) -> models.Project:
    project = models.Project(
        company_id=data.company_id,
        name=data.name,
        client_name=data.client_name,
        site_address=data.site_address,
        contact_info=data.contact_info,
        project_type=data.project_type.value,
        tax_percent=data.settings.tax_percent,
        discount_percent=data.settings.discount_percent,
    )
    seen = set()
    for room in data.rooms:
        if room.name in seen:
            raise ValueError(f"Room '{room.name}' is listed twice")
        seen.add(room.name)
        project.rooms.append(models.Room(name=room.name, type=room.type))

    db.add(project)
    commit(db)
    db.refresh(project)
    logger.info("Created project %s (%s) with %d rooms", project.id, project.name, len(project.rooms))
    return project


def get_project(db: Session, project_id: int) -> models.Project:
    project = db.query(models.Project).filter(models.Project.id == project_id).first()
    if not project:
        raise RecordNotFound(f"Project {project_id} not found")
    return project


def list_projects(db: Session, company_id: Optional[int] = None, skip: int = 0, limit: int = 50) -> list:
    query = db.query(models.Project)
    if company_id is not None:
        query = query.filter(models.Project.company_id == company_id)
    return query.order_by(models.Project.created_at.desc()).offset(skip).limit(limit).all()


def update_project_info(db: Session, project_id: int, data: schemas.ProjectInfoUpdate) -> models.Project:
    project = get_project(db, project_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "project_type" and value is not None:
            value = value.value
        setattr(project, field, value)
    commit(db)
    db.refresh(project)
    return project


def update_settings(db: Session, project_id: int, settings: schemas.ProjectSettings) -> models.Project:
    """
    Store tax / discount percentages. Amounts don't depend on them, so line
    items are left as they are.
    """
    project = get_project(db, project_id)
    if settings.discount_percent > 100 or settings.discount_percent < 0:
        logger.warning("Project %s: discount of %s%% is outside 0-100", project_id, settings.discount_percent)
    if settings.tax_percent < 0:
        logger.warning("Project %s: negative tax of %s%%", project_id, settings.tax_percent)
    project.tax_percent = settings.tax_percent
    project.discount_percent = settings.discount_percent
    commit(db)
    db.refresh(project)
    return project


def delete_project(db: Session, project_id: int):
    project = get_project(db, project_id)
    db.delete(project)
    commit(db)
    logger.info("Deleted project %s", project_id)


# --- Rooms ---

def _find_room(project: models.Project, room_name: str) -> Optional[models.Room]:
    for room in project.rooms:
        if room.name == room_name:
            return room
    return None


def add_room(db: Session, project_id: int, data: schemas.RoomCreate) -> models.Room:
    project = get_project(db, project_id)
    if _find_room(project, data.name):
        raise ValueError(f"Room '{data.name}' already exists in project {project_id}")
    room = models.Room(name=data.name, type=data.type)
    project.rooms.append(room)
    commit(db)
    db.refresh(room)
    return room


def delete_room(db: Session, project_id: int, room_name: str) -> int:
    """Delete a room and every line item in it. Returns the number of items removed."""
    project = get_project(db, project_id)
    room = _find_room(project, room_name)
    if room is None:
        raise RecordNotFound(f"Room '{room_name}' not found in project {project_id}")

    doomed = [item for item in project.line_items if item.room == room_name]
    for item in doomed:
        project.line_items.remove(item)
    project.rooms.remove(room)
    commit(db)
    logger.info("Deleted room '%s' from project %s (%d line items)", room_name, project_id, len(doomed))
    return len(doomed)


# --- Line items ---

def list_line_items(db: Session, project_id: int, room: Optional[str] = None) -> list:
    project = get_project(db, project_id)
    if room is None:
        return list(project.line_items)
    return [item for item in project.line_items if item.room == room]


def get_line_item(db: Session, project_id: int, item_id: int) -> models.LineItem:
    item = db.query(models.LineItem).filter(
        models.LineItem.id == item_id,
        models.LineItem.project_id == project_id,
    ).first()
    if not item:
        raise RecordNotFound(f"Line item {item_id} not found in project {project_id}")
    return item


def _require_room(project: models.Project, room_name: str):
    if _find_room(project, room_name) is None:
        raise ValueError(f"Room '{room_name}' does not exist in project {project.id}; add it first")


def add_line_item(db: Session, project_id: int, data: schemas.LineItemCreate) -> models.LineItem:
    project = get_project(db, project_id)
    _require_room(project, data.room)

    item = models.LineItem(
        room=data.room,
        item=data.item,
        category=data.category,
        unit_of_measure=data.unit_of_measure.value,
        length=data.length,
        height=data.height,
        quantity=data.quantity,
        rate=data.rate,
        material=_dump_material(data.material),
        add_ons=_dump_add_ons(data.add_ons),
    )
    _apply_amount(item)
    project.line_items.append(item)
    commit(db)
    db.refresh(item)
    logger.info("Added '%s' to %s (project %s): amount %.2f", item.item, item.room, project_id, item.amount)
    return item


def update_line_item(db: Session, project_id: int, item_id: int,
                     data: schemas.LineItemUpdate) -> models.LineItem:
    """
    Apply the fields that were set, then recompute the amount.

    A row still holding legacy string add-ons is converted to the structured
    form on its first edit.
    """
    item = get_line_item(db, project_id, item_id)
    updates = data.model_dump(exclude_unset=True)

    if updates.get("room") is not None and updates["room"] != item.room:
        _require_room(item.project, updates["room"])

    for field, value in updates.items():
        if value is None and field not in ("material",):
            continue
        if field == "unit_of_measure":
            value = value.value
        elif field == "material":
            value = _dump_material(data.material)
        elif field == "add_ons":
            value = _dump_add_ons(data.add_ons)
        setattr(item, field, value)

    if isinstance(item.add_ons, str):
        item.add_ons = upgrade_legacy_add_ons(item.add_ons, item.unit_of_measure)

    _apply_amount(item)
    commit(db)
    db.refresh(item)
    return item


def duplicate_line_item(db: Session, project_id: int, item_id: int) -> models.LineItem:
    source = get_line_item(db, project_id, item_id)
    duplicate = models.LineItem(
        room=source.room,
        item=f"{source.item} (Copy)",
        category=source.category,
        unit_of_measure=source.unit_of_measure,
        length=source.length,
        height=source.height,
        quantity=source.quantity,
        rate=source.rate,
        material=deepcopy(source.material),
        add_ons=deepcopy(source.add_ons) if source.add_ons else {},
    )
    if isinstance(duplicate.add_ons, str):
        duplicate.add_ons = upgrade_legacy_add_ons(duplicate.add_ons, duplicate.unit_of_measure)
    _apply_amount(duplicate)
    source.project.line_items.append(duplicate)
    commit(db)
    db.refresh(duplicate)
    return duplicate


def delete_line_item(db: Session, project_id: int, item_id: int):
    item = get_line_item(db, project_id, item_id)
    db.delete(item)
    commit(db)


def add_items_from_rate_card(db: Session, project_id: int, room_name: str, rate_card_item_ids: list) -> list:
    """
    Instantiate rate card entries as new line items in a room.

    Each copy gets quantity 1, zero dimensions, its base material selected
    and every add-on unselected.
    """
    project = get_project(db, project_id)
    _require_room(project, room_name)

    entries = db.query(models.RateCardItem).filter(models.RateCardItem.id.in_(rate_card_item_ids)).all()
    by_id = {entry.id: entry for entry in entries}
    missing = [i for i in rate_card_item_ids if i not in by_id]
    if missing:
        raise RecordNotFound(f"Rate card items not found: {missing}")

    created = []
    for entry_id in rate_card_item_ids:
        fields = line_item_from_rate_card(by_id[entry_id], room_name)
        fields["unit_of_measure"] = fields["unit_of_measure"].value
        item = _apply_amount(models.LineItem(**fields))
        project.line_items.append(item)
        created.append(item)

    commit(db)
    for item in created:
        db.refresh(item)
    logger.info("Added %d rate card items to %s (project %s)", len(created), room_name, project_id)
    return created


def recalculate_project(db: Session, project_id: int) -> models.Project:
    """Recompute every stored amount, e.g. after importing projects saved elsewhere."""
    project = get_project(db, project_id)
    for item in project.line_items:
        _apply_amount(item)
    commit(db)
    db.refresh(project)
    return project


def get_quote_summary(db: Session, project_id: int) -> schemas.QuoteSummary:
    return PricingEngine().build_quote_summary(get_project(db, project_id))
