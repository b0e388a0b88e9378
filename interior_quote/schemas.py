from collections.abc import Mapping
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List, Dict, Union
from datetime import datetime
from .calculators.base import get_field, item_room, item_unit, parse_number, parse_quantity
from .config import settings
from .models import UnitOfMeasure, ProjectType, LayoutType, LEGACY_UOM_CODES


def _coerce_unit(value):
    """Accept legacy SFT / RFT / NOS codes wherever a unit is read."""
    if isinstance(value, str):
        code = value.strip().upper()
        return LEGACY_UOM_CODES.get(code, code)
    return value


# --- Embedded selections ---
# Unconstrained: the catalog builds these from free-text rate
# cards and must never fail. Input checks live on the *Create/*Update schemas.

class MaterialSelection(BaseModel):
    options: List[str] = []
    selected: Optional[str] = None
    base_material: Optional[str] = None
    price_additions: Dict[str, float] = {}


class AddOnSelection(BaseModel):
    selected: bool = False
    rate_per_unit: float = 0.0
    description: Optional[str] = None


# --- Line items ---

class LineItemBase(BaseModel):
    room: str
    item: str
    category: Optional[str] = None
    unit_of_measure: UnitOfMeasure = UnitOfMeasure.AREA
    length: float = 0.0
    height: float = 0.0
    quantity: float = 1.0
    rate: float = 0.0
    material: Optional[MaterialSelection] = None

    @field_validator("unit_of_measure", mode="before")
    @classmethod
    def _legacy_unit(cls, value):
        return _coerce_unit(value)


def _check_non_negative(values: dict):
    for field in ("length", "height", "quantity", "rate"):
        value = values.get(field)
        if value is not None and value < 0:
            raise ValueError(f"{field} must not be negative")


def _check_material(material: Optional[MaterialSelection]):
    if material is None:
        return
    if material.selected is not None and material.selected not in material.options:
        raise ValueError(f"Selected material '{material.selected}' is not one of {material.options}")
    for name, price in material.price_additions.items():
        if price < 0:
            raise ValueError(f"Price addition for '{name}' must not be negative")
    if material.base_material and material.price_additions.get(material.base_material, 0) != 0:
        raise ValueError(f"Base material '{material.base_material}' must have a price addition of 0")


def _check_add_ons(add_ons: Optional[Dict[str, AddOnSelection]]):
    for name, add_on in (add_ons or {}).items():
        if add_on.rate_per_unit < 0:
            raise ValueError(f"Add-on '{name}' rate must not be negative")


class LineItemCreate(LineItemBase):
    """New writes only take the structured add-on form."""
    add_ons: Dict[str, AddOnSelection] = {}

    @model_validator(mode="after")
    def _validate_entry(self):
        _check_non_negative(self.__dict__)
        _check_material(self.material)
        _check_add_ons(self.add_ons)
        return self


class LineItemUpdate(BaseModel):
    room: Optional[str] = None
    item: Optional[str] = None
    category: Optional[str] = None
    unit_of_measure: Optional[UnitOfMeasure] = None
    length: Optional[float] = None
    height: Optional[float] = None
    quantity: Optional[float] = None
    rate: Optional[float] = None
    material: Optional[MaterialSelection] = None
    add_ons: Optional[Dict[str, AddOnSelection]] = None

    @field_validator("unit_of_measure", mode="before")
    @classmethod
    def _legacy_unit(cls, value):
        return _coerce_unit(value)

    @model_validator(mode="after")
    def _validate_entry(self):
        _check_non_negative(self.__dict__)
        _check_material(self.material)
        _check_add_ons(self.add_ons)
        return self


def _stored_material(material):
    if not isinstance(material, Mapping):
        return None
    options = material.get("options")
    options = [str(o) for o in options] if isinstance(options, list) else []
    selected = material.get("selected")
    base_material = material.get("base_material")
    additions = material.get("price_additions")
    additions = additions if isinstance(additions, Mapping) else {}
    return {
        "options": options,
        "selected": None if selected is None else str(selected),
        "base_material": None if base_material is None else str(base_material),
        "price_additions": {str(k): parse_number(v) for k, v in additions.items()},
    }


def _stored_add_ons(add_ons):
    if isinstance(add_ons, str):
        return add_ons
    if not isinstance(add_ons, Mapping):
        return {}
    entries = {}
    for name, entry in add_ons.items():
        description = get_field(entry, "description")
        entries[str(name)] = {
            "selected": bool(get_field(entry, "selected")),
            "rate_per_unit": parse_number(get_field(entry, "rate_per_unit")),
            "description": None if description is None else str(description),
        }
    return entries


class LineItem(LineItemBase):
    """
    Stored line item, read as leniently as the calculator prices it.

    `add_ons` may still be a legacy comma string on old rows. Unknown units
    read as COUNT and unusable numbers as 0, so an imported row that prices
    also reads.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    add_ons: Union[Dict[str, AddOnSelection], str, None] = {}
    amount: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _read_stored_row(cls, row):
        return {
            "id": get_field(row, "id"),
            "room": item_room(row),
            "item": str(get_field(row, "item") or ""),
            "category": None if get_field(row, "category") is None else str(get_field(row, "category")),
            "unit_of_measure": item_unit(row),
            "length": parse_number(get_field(row, "length")),
            "height": parse_number(get_field(row, "height")),
            "quantity": parse_quantity(get_field(row, "quantity")),
            "rate": parse_number(get_field(row, "rate")),
            "material": _stored_material(get_field(row, "material")),
            "add_ons": _stored_add_ons(get_field(row, "add_ons")),
            "amount": parse_number(get_field(row, "amount")),
        }


# --- Rooms / projects ---

class RoomCreate(BaseModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)

    @field_validator("name", "type")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class Room(RoomCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ProjectSettings(BaseModel):
    # Range is not checked; a discount over 100% is accepted as entered
    tax_percent: float = settings.TAX_PERCENT_DEFAULT
    discount_percent: float = settings.DISCOUNT_PERCENT_DEFAULT


class ProjectInfo(BaseModel):
    name: str = Field(min_length=1)
    client_name: str = Field(min_length=1)
    site_address: str = Field(min_length=1)
    contact_info: Optional[str] = None
    project_type: ProjectType = ProjectType.APARTMENT


class ProjectCreate(ProjectInfo):
    company_id: Optional[int] = None
    settings: ProjectSettings = ProjectSettings()
    rooms: List[RoomCreate] = []


class ProjectInfoUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    client_name: Optional[str] = Field(default=None, min_length=1)
    site_address: Optional[str] = Field(default=None, min_length=1)
    contact_info: Optional[str] = None
    project_type: Optional[ProjectType] = None


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: str = Field(pattern=r"^\S+@\S+\.\S+$")
    website: Optional[str] = None
    primary_color: str = "#C62828"


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, pattern=r"^\S+@\S+\.\S+$")
    website: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


# --- Rate cards ---

class RateCardItemBase(BaseModel):
    category: str = Field(min_length=1)
    item: str = Field(min_length=1)
    unit_of_measure: UnitOfMeasure = UnitOfMeasure.AREA
    rate: float = Field(default=0.0, ge=0)
    material_options: str = ""
    material_prices: str = ""
    add_ons: str = ""
    addon_prices: str = ""

    @field_validator("unit_of_measure", mode="before")
    @classmethod
    def _legacy_unit(cls, value):
        return _coerce_unit(value)


class RateCardItemCreate(RateCardItemBase):
    pass


class RateCardItem(RateCardItemBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class RateCardCreate(BaseModel):
    name: str = Field(min_length=1)
    company_id: Optional[int] = None
    items: List[RateCardItemCreate] = []


# --- Export templates ---

class ExportTemplateCreate(BaseModel):
    name: str = Field(min_length=1)
    company_id: Optional[int] = None
    include_logo: bool = True
    include_company_details: bool = True
    include_images: bool = False
    include_terms: bool = True
    terms_text: str = settings.DEFAULT_TERMS
    primary_color: str = Field(default="#C62828", pattern=r"^#[0-9A-Fa-f]{6}$")
    header_text: str = "Interior Design Quote"
    footer_text: str = "Thank you for choosing our services."
    font_family: str = "Helvetica"
    font_size: int = Field(default=10, ge=6, le=24)
    layout_type: LayoutType = LayoutType.DETAILED


class ExportTemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    include_logo: Optional[bool] = None
    include_company_details: Optional[bool] = None
    include_images: Optional[bool] = None
    include_terms: Optional[bool] = None
    terms_text: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    header_text: Optional[str] = None
    footer_text: Optional[str] = None
    font_family: Optional[str] = None
    font_size: Optional[int] = Field(default=None, ge=6, le=24)
    layout_type: Optional[LayoutType] = None


# --- Quote outputs ---

class QuoteTotals(BaseModel):
    room_totals: Dict[str, float] = {}
    subtotal: float = 0.0
    tax_percent: float = 0.0
    tax: float = 0.0
    discount_percent: float = 0.0
    discount: float = 0.0
    grand_total: float = 0.0


class QuoteStats(BaseModel):
    total_rooms: int = 0
    total_items: int = 0
    avg_room_cost: float = 0.0
    avg_item_cost: float = 0.0
    highest_cost_room: Optional[str] = None
    highest_cost_room_total: float = 0.0
    highest_cost_item: Optional[str] = None
    highest_cost_item_room: Optional[str] = None
    highest_cost_item_amount: float = 0.0


class RoomSummary(BaseModel):
    name: str
    type: Optional[str] = None
    items: List[LineItem] = []
    total: float = 0.0


class QuoteSummary(BaseModel):
    project_id: Optional[int] = None
    project_name: str = ""
    client_name: str = ""
    site_address: str = ""
    contact_info: Optional[str] = None
    project_type: Optional[str] = None
    rooms: List[RoomSummary] = []
    totals: QuoteTotals = QuoteTotals()
    unit_totals: Dict[str, float] = {}
    stats: QuoteStats = QuoteStats()
    created_at: datetime
