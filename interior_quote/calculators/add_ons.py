"""
Add-on resolution for line items.

`add_ons` is stored in one of two shapes:
- structured: {name: {"selected": bool, "rate_per_unit": float, "description": str}}
- legacy: a comma-separated string of names ("Lights, Profile Door")

The legacy form is read-only. It carries no rates of its own, so the
historical per-unit prices below apply, and only to AREA items, as when
those quotes were written. New items always use the
structured form; `upgrade_legacy_add_ons` converts on edit.
"""

from collections.abc import Mapping

from ..models import UnitOfMeasure
from .base import get_field, parse_number, resolve_unit_of_measure, split_names
from .catalog import AddOnKind, default_add_on

# Historical pricing for legacy string add-ons. Frozen; independent of the
# catalog defaults.
LEGACY_ADD_ON_RATES = {
    AddOnKind.PROFILE_DOOR.value: 150.0,
    AddOnKind.LIGHTS.value: 250.0,
}


class StructuredAddOns:
    """Add-ons stored as a name → selection mapping."""

    def __init__(self, entries: Mapping):
        self.entries = entries

    def applied_rates(self, unit: UnitOfMeasure) -> list[float]:
        """Per-unit rates of the selected add-ons. Applies to every unit of measure."""
        rates = []
        for entry in self.entries.values():
            if not get_field(entry, "selected"):
                continue
            rates.append(parse_number(get_field(entry, "rate_per_unit")))
        return rates


class LegacyAddOns:
    """Add-ons stored as a comma-separated name string."""

    def __init__(self, names: list[str]):
        self.names = names

    def applied_rates(self, unit: UnitOfMeasure) -> list[float]:
        if unit != UnitOfMeasure.AREA:
            return []
        return [LEGACY_ADD_ON_RATES[name] for name in self.names if name in LEGACY_ADD_ON_RATES]


def parse_legacy_add_ons(raw: str) -> list[str]:
    """Split, trim and lowercase a legacy add-on string."""
    return [name.lower() for name in split_names(raw)]


def resolve_add_ons(raw):
    """Pick the add-on representation from the stored shape. Anything else is empty."""
    if isinstance(raw, str):
        return LegacyAddOns(parse_legacy_add_ons(raw))
    if isinstance(raw, Mapping):
        return StructuredAddOns(raw)
    return StructuredAddOns({})


def upgrade_legacy_add_ons(raw: str, unit) -> dict[str, dict]:
    """
    Convert a legacy add-on string to the structured form without changing price.

    Recognized names keep their historical rate and stay selected on AREA
    items; on other units they are listed but unselected, since legacy
    pricing never charged them there. A name listed more than once was
    charged once per mention, so repeats merge into one entry with the
    rates summed. Unknown names are listed unselected at rate 0.
    """
    unit = resolve_unit_of_measure(unit)
    structured = {}
    keys = {}
    for name in split_names(raw):
        key = name.lower()
        if key in keys:
            structured[keys[key]]["rate_per_unit"] += LEGACY_ADD_ON_RATES.get(key, 0.0)
            continue
        keys[key] = name
        if key in LEGACY_ADD_ON_RATES:
            _, description = default_add_on(name)
            structured[name] = {
                "selected": unit == UnitOfMeasure.AREA,
                "rate_per_unit": LEGACY_ADD_ON_RATES[key],
                "description": description,
            }
        else:
            structured[name] = {
                "selected": False,
                "rate_per_unit": 0.0,
                "description": f"Additional {name} feature",
            }
    return structured
