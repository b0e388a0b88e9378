"""
Shared input handling for the quote calculator.

Line items reach the calculator in three shapes: pydantic schemas, ORM rows
and plain dicts (imported JSON, form payloads). The helpers below read all
three the same way and coerce numbers with a single parse-with-default rule.
"""

import math
from collections.abc import Mapping

from ..models import UnitOfMeasure, LEGACY_UOM_CODES


def get_field(obj, name: str, default=None):
    """Read `name` from a mapping or an attribute-style object."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def parse_number(value, default: float = 0.0) -> float:
    """Parse a numeric value from user input. Anything unusable becomes `default`."""
    if value is None:
        return default
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def parse_quantity(value) -> float:
    """Quantity is 1 when absent, otherwise parsed like any other number."""
    if value is None:
        return 1.0
    return parse_number(value)


def resolve_unit_of_measure(value) -> UnitOfMeasure:
    """
    Map a stored unit to the enum.

    Accepts the enum itself, its name ("AREA"), or the legacy codes
    SFT / RFT / NOS. Anything else prices as COUNT.
    """
    if isinstance(value, UnitOfMeasure):
        return value
    if not isinstance(value, str):
        return UnitOfMeasure.COUNT
    code = value.strip().upper()
    if code in LEGACY_UOM_CODES:
        return LEGACY_UOM_CODES[code]
    try:
        return UnitOfMeasure(code)
    except ValueError:
        return UnitOfMeasure.COUNT


def item_room(item) -> str:
    """Room name of a line item; a missing room groups under ""."""
    room = get_field(item, "room")
    return "" if room is None else str(room)


def item_unit(item) -> UnitOfMeasure:
    raw = get_field(item, "unit_of_measure")
    if raw is None:
        raw = get_field(item, "uom")
    return resolve_unit_of_measure(raw)


def unit_multiplier(unit: UnitOfMeasure, length: float, height: float, quantity: float) -> float:
    """
    Units of work a per-unit price applies to.

    AREA:   length x height x quantity
    LENGTH: length x quantity (height ignored)
    COUNT:  quantity
    """
    if unit == UnitOfMeasure.AREA:
        return length * height * quantity
    if unit == UnitOfMeasure.LENGTH:
        return length * quantity
    return quantity


def item_multiplier(item) -> tuple[UnitOfMeasure, float]:
    """Resolve the unit and its multiplier for a line item in one pass."""
    unit = item_unit(item)
    length = parse_number(get_field(item, "length"))
    height = parse_number(get_field(item, "height"))
    quantity = parse_quantity(get_field(item, "quantity"))
    return unit, unit_multiplier(unit, length, height, quantity)


def split_names(raw) -> list[str]:
    """Split a comma-separated name list, trimming and dropping blanks."""
    if not isinstance(raw, str):
        return []
    return [name.strip() for name in raw.split(",") if name.strip()]
