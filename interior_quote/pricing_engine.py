"""
Quote calculator.

Turns line items into amounts, and amounts into a priced quote.
Pure math: no I/O, no rounding. Presentation rounds to 2 decimals for
display only.

Per line item:
    base      = rate x multiplier
    material  = price_additions[selected] x multiplier
    add-ons   = sum(rate_per_unit of each selected add-on) x multiplier
    amount    = base + material + add-ons

multiplier is length x height x quantity (AREA), length x quantity (LENGTH)
or quantity (COUNT).

Per quote:
    room totals -> subtotal -> tax, discount -> grand total
"""

from datetime import datetime, timezone

from .calculators.add_ons import resolve_add_ons
from .calculators.base import get_field, item_multiplier, item_room, item_unit, parse_number
from .schemas import LineItem, QuoteStats, QuoteSummary, QuoteTotals, RoomSummary


# --- Line items ---

def material_price_addition(material) -> float:
    """Per-unit addition for the selected material, 0 when unset or unpriced."""
    selected = get_field(material, "selected")
    if not selected:
        return 0.0
    additions = get_field(material, "price_additions") or {}
    try:
        if selected not in additions:
            return 0.0
        return parse_number(additions[selected])
    except TypeError:
        return 0.0


def compute_line_item_amount(item) -> float:
    """
    Amount for one line item. Never raises: missing or non-numeric fields
    count as 0, quantity as 1 when absent, unknown units as COUNT.
    """
    unit, multiplier = item_multiplier(item)
    rate = parse_number(get_field(item, "rate"))

    amount = rate * multiplier
    amount += material_price_addition(get_field(item, "material")) * multiplier
    for add_on_rate in resolve_add_ons(get_field(item, "add_ons")).applied_rates(unit):
        amount += add_on_rate * multiplier
    return amount


# --- Quote totals ---

def aggregate_room_totals(line_items) -> dict:
    """
    Sum cached `amount` per room, in order of first appearance.

    Amounts are not recomputed here; rooms without items don't appear.
    Items with no room are grouped under "".
    """
    room_totals = {}
    for item in line_items or []:
        room = item_room(item)
        room_totals[room] = room_totals.get(room, 0.0) + parse_number(get_field(item, "amount"))
    return room_totals


def compute_subtotal(room_totals: dict) -> float:
    """Sum of room totals, added in mapping order."""
    subtotal = 0.0
    for total in (room_totals or {}).values():
        subtotal += parse_number(total)
    return subtotal


def compute_tax(subtotal: float, tax_percent: float) -> float:
    return parse_number(subtotal) * parse_number(tax_percent) / 100.0


def compute_discount(subtotal: float, discount_percent: float) -> float:
    return parse_number(subtotal) * parse_number(discount_percent) / 100.0


def compute_grand_total(subtotal: float, tax: float, discount: float) -> float:
    """subtotal + tax - discount. Not clamped, may go negative."""
    return parse_number(subtotal) + parse_number(tax) - parse_number(discount)


def compute_quote_totals(line_items, tax_percent: float, discount_percent: float) -> QuoteTotals:
    """Run the whole chain: room totals, subtotal, tax, discount, grand total."""
    room_totals = aggregate_room_totals(line_items)
    subtotal = compute_subtotal(room_totals)
    tax = compute_tax(subtotal, tax_percent)
    discount = compute_discount(subtotal, discount_percent)
    return QuoteTotals(
        room_totals=room_totals,
        subtotal=subtotal,
        tax_percent=parse_number(tax_percent),
        tax=tax,
        discount_percent=parse_number(discount_percent),
        discount=discount,
        grand_total=compute_grand_total(subtotal, tax, discount),
    )


# --- Dashboard figures ---

UNIT_TOTAL_SORTS = ("value-desc", "value-asc", "name")


def compute_unit_totals(line_items, sort: str = None) -> dict:
    """
    Sum of amounts per unit of measure.

    sort: "value-desc" | "value-asc" | "name" | None (first appearance).
    """
    unit_totals = {}
    for item in line_items or []:
        unit = item_unit(item).value
        unit_totals[unit] = unit_totals.get(unit, 0.0) + parse_number(get_field(item, "amount"))

    entries = list(unit_totals.items())
    if sort == "value-desc":
        entries.sort(key=lambda e: e[1], reverse=True)
    elif sort == "value-asc":
        entries.sort(key=lambda e: e[1])
    elif sort == "name":
        entries.sort(key=lambda e: e[0])
    return dict(entries)


def compute_quote_stats(line_items, room_totals: dict = None) -> QuoteStats:
    """
    Counts, averages and the most expensive room and item.

    Only strictly positive totals can be "highest"; on ties the first one
    seen wins.
    """
    line_items = list(line_items or [])
    if room_totals is None:
        room_totals = aggregate_room_totals(line_items)
    subtotal = compute_subtotal(room_totals)

    stats = QuoteStats(
        total_rooms=len(room_totals),
        total_items=len(line_items),
        avg_room_cost=subtotal / len(room_totals) if room_totals else 0.0,
        avg_item_cost=subtotal / len(line_items) if line_items else 0.0,
    )

    for room, total in room_totals.items():
        if total > stats.highest_cost_room_total:
            stats.highest_cost_room = room
            stats.highest_cost_room_total = total

    for item in line_items:
        amount = parse_number(get_field(item, "amount"))
        if amount > stats.highest_cost_item_amount:
            stats.highest_cost_item = get_field(item, "item")
            stats.highest_cost_item_room = item_room(item)
            stats.highest_cost_item_amount = amount

    return stats


class PricingEngine:
    """
    Assembles a QuoteSummary from a stored project.

    Works from the cached line item amounts. Callers recompute on write
    (see project_service), so a summary is a read-only snapshot.
    """

    def build_quote_summary(self, project) -> QuoteSummary:
        """
        Args:
            project: models.Project (or anything with the same attributes)

        Returns:
            QuoteSummary with rooms in project order, followed by any room
            names that only appear on line items.
        """
        line_items = list(get_field(project, "line_items") or [])
        tax_percent = get_field(project, "tax_percent", 0.0)
        discount_percent = get_field(project, "discount_percent", 0.0)

        totals = compute_quote_totals(line_items, tax_percent, discount_percent)
        rooms = self._build_room_summaries(get_field(project, "rooms") or [], line_items, totals.room_totals)

        project_type = get_field(project, "project_type")
        return QuoteSummary(
            project_id=get_field(project, "id"),
            project_name=get_field(project, "name") or "",
            client_name=get_field(project, "client_name") or "",
            site_address=get_field(project, "site_address") or "",
            contact_info=get_field(project, "contact_info"),
            project_type=getattr(project_type, "value", project_type),
            rooms=rooms,
            totals=totals,
            unit_totals=compute_unit_totals(line_items, sort="value-desc"),
            stats=compute_quote_stats(line_items, totals.room_totals),
            created_at=datetime.now(timezone.utc),
        )

    def _build_room_summaries(self, rooms, line_items, room_totals: dict) -> list:
        room_types = {get_field(r, "name"): get_field(r, "type") for r in rooms}
        ordered = [get_field(r, "name") for r in rooms if get_field(r, "name") in room_totals]
        ordered += [name for name in room_totals if name not in room_types]

        summaries = []
        for name in ordered:
            items = [LineItem.model_validate(i) for i in line_items if item_room(i) == name]
            summaries.append(RoomSummary(
                name=name,
                type=room_types.get(name),
                items=items,
                total=room_totals[name],
            ))
        return summaries

    def recalculate_with_settings(self, summary: QuoteSummary, tax_percent: float,
                                  discount_percent: float) -> QuoteSummary:
        """Re-run tax / discount / grand total on an existing summary."""
        subtotal = summary.totals.subtotal
        tax = compute_tax(subtotal, tax_percent)
        discount = compute_discount(subtotal, discount_percent)
        summary.totals = summary.totals.model_copy(update={
            "tax_percent": parse_number(tax_percent),
            "tax": tax,
            "discount_percent": parse_number(discount_percent),
            "discount": discount,
            "grand_total": compute_grand_total(subtotal, tax, discount),
        })
        return summary
