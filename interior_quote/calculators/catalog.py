"""
Rate card parsing with a fallback price chain:
1. Explicit `name:price` pairs on the rate card item
2. Default prices for known material / add-on kinds (below)
3. One generic default for anything unrecognized

Older rate cards list materials and add-ons without prices, so the
defaults are part of the pricing contract: changing them reprices
every item created from such a card.
"""

import enum
import logging

from ..config import settings
from ..schemas import AddOnSelection, MaterialSelection
from .base import get_field, parse_number, resolve_unit_of_measure, split_names

logger = logging.getLogger(__name__)


class MaterialKind(str, enum.Enum):
    LAMINATE = "laminate"
    VENEER = "veneer"
    PU = "pu"
    ACRYLIC = "acrylic"
    PREMIUM = "premium"
    TEXTURE = "texture"


# Extra price per unit over the base material
MATERIAL_DEFAULT_PRICES = {
    MaterialKind.LAMINATE: 0.0,
    MaterialKind.VENEER: 500.0,
    MaterialKind.PU: 800.0,
    MaterialKind.ACRYLIC: 600.0,
    MaterialKind.PREMIUM: 400.0,
    MaterialKind.TEXTURE: 200.0,
}
GENERIC_MATERIAL_PRICE = 300.0


class AddOnKind(str, enum.Enum):
    PROFILE_DOOR = "profile door"
    LIGHTS = "lights"


ADD_ON_DEFAULTS = {
    AddOnKind.PROFILE_DOOR: {"rate_per_unit": 150.0, "description": "Premium profile door finish"},
    AddOnKind.LIGHTS: {"rate_per_unit": 250.0, "description": "LED strip lighting"},
}
GENERIC_ADD_ON_RATE = 100.0

NO_ADD_ONS = "none"


def _kind(enum_cls, name: str):
    try:
        return enum_cls(name.strip().lower())
    except ValueError:
        return None


def default_material_price(name: str) -> float:
    """Fallback price addition for a material the rate card doesn't price."""
    kind = _kind(MaterialKind, name)
    if kind is None:
        return GENERIC_MATERIAL_PRICE
    return MATERIAL_DEFAULT_PRICES[kind]


def default_add_on(name: str) -> tuple[float, str]:
    """Fallback (rate_per_unit, description) for an add-on the rate card doesn't price."""
    kind = _kind(AddOnKind, name)
    if kind is None:
        return GENERIC_ADD_ON_RATE, f"Additional {name} feature"
    defaults = ADD_ON_DEFAULTS[kind]
    return defaults["rate_per_unit"], defaults["description"]


def parse_price_pairs(raw) -> dict[str, float]:
    """
    Parse "Veneer:500, PU:800" into {"Veneer": 500.0, "PU": 800.0}.

    The first colon splits name from price. Pairs without a colon or with a
    price that isn't a number are skipped.
    """
    prices = {}
    if not isinstance(raw, str):
        return prices
    for pair in raw.split(","):
        if ":" not in pair:
            continue
        parts = pair.split(":")
        name, price_str = parts[0].strip(), parts[1].strip()
        price = parse_number(price_str, default=None)
        if price is None:
            logger.debug("Skipping unparsable price %r for %r", price_str, name)
            continue
        prices[name] = price
    return prices


def _format_rate(rate: float) -> str:
    return f"{rate:g}"


def build_material_selection_from_catalog(rate_card_item) -> MaterialSelection:
    """
    Build the MaterialSelection for a rate card item.

    The first listed option is the base material (addition 0). Every other
    option takes its price from `material_prices`, falling back to the
    default table by lowercased name.
    """
    options = split_names(get_field(rate_card_item, "material_options"))
    if not options:
        return MaterialSelection()

    base_material = options[0]
    listed_prices = parse_price_pairs(get_field(rate_card_item, "material_prices"))

    price_additions = {base_material: 0.0}
    for option in options[1:]:
        if option in listed_prices:
            price_additions[option] = listed_prices[option]
        else:
            price_additions[option] = default_material_price(option)

    return MaterialSelection(
        options=options,
        base_material=base_material,
        price_additions=price_additions,
    )


def build_add_ons_from_catalog(rate_card_item) -> dict[str, AddOnSelection]:
    """
    Build the add-on menu for a rate card item.

    Returns {} when the card lists no add-ons or says "None". Every add-on
    starts unselected.
    """
    raw = get_field(rate_card_item, "add_ons")
    if not isinstance(raw, str) or not raw.strip() or raw.strip().lower() == NO_ADD_ONS:
        return {}

    listed_prices = parse_price_pairs(get_field(rate_card_item, "addon_prices"))

    add_ons = {}
    for name in split_names(raw):
        if name in listed_prices:
            rate = listed_prices[name]
            description = f"{name} ({settings.CURRENCY_SYMBOL}{_format_rate(rate)} per unit)"
        else:
            rate, description = default_add_on(name)
        add_ons[name] = AddOnSelection(selected=False, rate_per_unit=rate, description=description)
    return add_ons


def line_item_from_rate_card(rate_card_item, room: str) -> dict:
    """
    Instantiate a new line item from a rate card entry.

    Quantity starts at 1 and dimensions at 0; the base material is
    pre-selected. The caller prices and persists the result.
    """
    unit = resolve_unit_of_measure(get_field(rate_card_item, "unit_of_measure"))
    item = {
        "room": room,
        "item": get_field(rate_card_item, "item") or "",
        "category": get_field(rate_card_item, "category") or "",
        "unit_of_measure": unit,
        "length": 0.0,
        "height": 0.0,
        "quantity": 1.0,
        "rate": parse_number(get_field(rate_card_item, "rate")),
        "material": None,
        "add_ons": {},
    }

    material = build_material_selection_from_catalog(rate_card_item)
    if material.options:
        material.selected = material.base_material
        item["material"] = material.model_dump()

    add_ons = build_add_ons_from_catalog(rate_card_item)
    if add_ons:
        item["add_ons"] = {name: a.model_dump() for name, a in add_ons.items()}

    return item
