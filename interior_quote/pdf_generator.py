"""
PDF Quote Generator.

Generates client-facing quote documents from a QuoteSummary.
Uses fpdf2 (pure Python, no system dependencies).

Sections:
1. Header (template header text, company details)
2. Project Details
3. One table per room, with room total
4. Quote Summary (subtotal, tax, discount, grand total)
5. Terms and Conditions (when the template includes them)
6. Footer text

White-labeled: colours and wording come from the export template.
"""

import logging

from fpdf import FPDF

from .calculators.base import get_field, parse_number
from .config import settings
from .currency import format_amount
from .models import UnitOfMeasure, LayoutType

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_COLOR = "#C62828"

UNIT_LABELS = {
    UnitOfMeasure.AREA.value: "Area",
    UnitOfMeasure.LENGTH.value: "Running",
    UnitOfMeasure.COUNT.value: "Nos",
}

# Built-in PDF fonts only
PDF_FONTS = {"helvetica", "times", "courier"}


def _fmt(amount) -> str:
    """Format a number as INR 1,23,456.78 (currency code, since built-in fonts lack ₹)."""
    return f"{settings.CURRENCY_CODE} {format_amount(amount)}"


def _num(value) -> str:
    """Dimension / quantity display: 12.5 -> '12.5', 3.0 -> '3'."""
    return f"{parse_number(value):g}"


def _safe(text) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        str(text)
        .replace("₹", f"{settings.CURRENCY_CODE} ")  # rupee sign
        .replace("×", "x")    # multiplication sign
        .replace("•", "-")    # bullet
        .replace("—", " - ")  # em dash
        .replace("–", "-")    # en dash
        .replace("“", '"')
        .replace("”", '"')
        .replace("‘", "'")
        .replace("’", "'")
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


def _hex_to_rgb(color: str) -> tuple:
    value = (color or DEFAULT_PRIMARY_COLOR).lstrip("#")
    try:
        return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))
    except (ValueError, IndexError):
        logger.warning("Invalid colour %r in export template, using default", color)
        return _hex_to_rgb(DEFAULT_PRIMARY_COLOR)


def format_dimensions(item) -> str:
    """'L x H' for area items, 'L' for running items, 'N/A' for counted items."""
    unit = get_field(item, "unit_of_measure")
    unit = getattr(unit, "value", unit)
    if unit == UnitOfMeasure.AREA.value:
        return f"{_num(get_field(item, 'length'))} x {_num(get_field(item, 'height'))}"
    if unit == UnitOfMeasure.LENGTH.value:
        return _num(get_field(item, "length"))
    return "N/A"


class QuotePDF(FPDF):
    """Custom PDF class for interior design quote documents."""

    def __init__(self, primary_color=DEFAULT_PRIMARY_COLOR, font_family="Helvetica", font_size=10):
        super().__init__()
        self.primary_rgb = _hex_to_rgb(primary_color)
        self.base_font = font_family if font_family.lower() in PDF_FONTS else "Helvetica"
        self.base_size = font_size
        self.set_auto_page_break(auto=True, margin=20)

    def header(self):
        pass  # Headers are rendered once, on the first page

    def footer(self):
        self.set_y(-15)
        self.set_font(self.base_font, "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        """Render a section header in the template colour."""
        self.ln(2)
        self.set_font(self.base_font, "B", self.base_size + 2)
        self.set_text_color(*self.primary_rgb)
        self.cell(0, 8, _safe(title), new_x="LMARGIN", new_y="NEXT")
        self.set_draw_color(221, 221, 221)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """Render a table header row. cols: [(label, width), ...]"""
        self.set_font(self.base_font, "B", self.base_size - 2)
        self.set_fill_color(242, 242, 242)
        for label, width in cols:
            align = "R" if label in ("Qty", "Rate", "Amount") else "L"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, widths, right_from=None):
        """Render a table data row; columns from `right_from` on are right-aligned."""
        self.set_font(self.base_font, "", self.base_size - 2)
        right_from = len(widths) - 2 if right_from is None else right_from
        for i, (val, width) in enumerate(zip(values, widths)):
            self.cell(width, 5.5, _safe(val), align="R" if i >= right_from else "L")
        self.ln()

    def total_row(self, label, amount, width=190, bold=True):
        self.set_font(self.base_font, "B" if bold else "", self.base_size - 1)
        self.cell(width - 45, 6, _safe(label), align="R", border="T")
        self.cell(45, 6, _fmt(amount), align="R", border="T")
        self.ln(8)


def generate_quote_pdf(summary, company=None, template=None) -> bytes:
    """
    Generate a PDF quote document.

    Args:
        summary: schemas.QuoteSummary (from PricingEngine.build_quote_summary)
        company: models.Company or dict (name, address, phone, email, website), optional
        template: models.ExportTemplate or dict, optional; defaults match a new template

    Returns:
        PDF bytes
    """
    primary_color = get_field(template, "primary_color") or get_field(company, "primary_color") or DEFAULT_PRIMARY_COLOR
    header_text = get_field(template, "header_text", "Interior Design Quote")
    footer_text = get_field(template, "footer_text", "Thank you for choosing our services.")
    include_company = get_field(template, "include_company_details", True)
    include_terms = get_field(template, "include_terms", True)
    terms_text = get_field(template, "terms_text") or settings.DEFAULT_TERMS
    layout_type = get_field(template, "layout_type", LayoutType.DETAILED.value)
    layout_type = getattr(layout_type, "value", layout_type)

    pdf = QuotePDF(
        primary_color=primary_color,
        font_family=get_field(template, "font_family") or "Helvetica",
        font_size=get_field(template, "font_size") or 10,
    )
    pdf.alias_nb_pages()
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin  # printable width

    # ── SECTION 1: Header ──
    if include_company and company is not None:
        pdf.set_font(pdf.base_font, "B", 16)
        pdf.cell(0, 8, _safe(get_field(company, "name", "")), align="C", new_x="LMARGIN", new_y="NEXT")
        details = [get_field(company, f) for f in ("address", "phone", "email", "website")]
        details = [d for d in details if d]
        if details:
            pdf.set_font(pdf.base_font, "", 9)
            pdf.set_text_color(100, 100, 100)
            pdf.multi_cell(0, 4.5, _safe(" | ".join(details)), align="C")
            pdf.set_text_color(0, 0, 0)
        pdf.ln(2)

    pdf.set_font(pdf.base_font, "B", 18)
    pdf.set_text_color(*pdf.primary_rgb)
    pdf.cell(0, 12, _safe(header_text), align="C", new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    # ── SECTION 2: Project Details ──
    pdf.section_header("Project Details")
    details = [
        ("Project Name", summary.project_name),
        ("Client Name", summary.client_name),
        ("Site Address", summary.site_address),
        ("Contact", summary.contact_info),
        ("Project Type", summary.project_type),
        ("Date", summary.created_at.strftime("%B %d, %Y")),
        ("Valid for", f"{settings.QUOTE_VALID_DAYS} days"),
    ]
    for label, value in details:
        pdf.set_font(pdf.base_font, "B", pdf.base_size - 1)
        pdf.cell(40, 5.5, f"{label}:")
        pdf.set_font(pdf.base_font, "", pdf.base_size - 1)
        pdf.multi_cell(pw - 40, 5.5, _safe(value or "(Not specified)"), new_x="LMARGIN", new_y="NEXT")

    # ── SECTION 3: Rooms ──
    if not summary.rooms:
        pdf.ln(4)
        pdf.set_font(pdf.base_font, "I", pdf.base_size)
        pdf.cell(0, 6, "No items added to quote yet.", new_x="LMARGIN", new_y="NEXT")
    else:
        pdf.section_header("Quote Details")
        if layout_type == LayoutType.COMPACT.value:
            _render_compact_rooms(pdf, summary)
        else:
            _render_detailed_rooms(pdf, summary)

    # ── SECTION 4: Quote Summary ──
    totals = summary.totals
    pdf.section_header("Quote Summary")
    pdf.set_font(pdf.base_font, "", pdf.base_size)
    rows = [
        ("Subtotal", totals.subtotal),
        (f"Tax ({totals.tax_percent:g}%)", totals.tax),
        (f"Discount ({totals.discount_percent:g}%)", totals.discount),
    ]
    for label, amount in rows:
        pdf.cell(pw - 50, 6, label)
        pdf.cell(50, 6, _fmt(amount), align="R")
        pdf.ln()

    pdf.ln(1)
    pdf.set_fill_color(*pdf.primary_rgb)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font(pdf.base_font, "B", 12)
    pdf.cell(pw - 50, 10, "  GRAND TOTAL", fill=True)
    pdf.cell(50, 10, f"{_fmt(totals.grand_total)}  ", fill=True, align="R")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(14)

    # ── SECTION 5: Terms ──
    if include_terms and terms_text:
        pdf.section_header("Terms and Conditions")
        pdf.set_font(pdf.base_font, "", pdf.base_size - 2)
        for line in terms_text.splitlines():
            pdf.set_x(pdf.l_margin)
            pdf.multi_cell(pw, 4.5, _safe(line), new_x="LMARGIN", new_y="NEXT")

    # ── SECTION 6: Footer text ──
    if footer_text:
        pdf.ln(6)
        pdf.set_font(pdf.base_font, "I", pdf.base_size - 1)
        pdf.set_fill_color(248, 248, 248)
        pdf.cell(0, 8, _safe(footer_text), align="C", fill=True, new_x="LMARGIN", new_y="NEXT")

    return bytes(pdf.output())


def _render_detailed_rooms(pdf: QuotePDF, summary):
    cols = [("Item", 50), ("UOM", 15), ("Dimensions", 25), ("Qty", 15),
            ("Material", 25), ("Rate", 25), ("Amount", 35)]
    widths = [c[1] for c in cols]

    for room in summary.rooms:
        pdf.set_font(pdf.base_font, "B", pdf.base_size)
        title = f"Room: {room.name}" + (f" ({room.type})" if room.type else "")
        pdf.cell(0, 7, _safe(title), new_x="LMARGIN", new_y="NEXT")
        pdf.table_header(cols)
        for item in room.items:
            material = item.material.selected if item.material and item.material.selected else ""
            pdf.table_row(
                [
                    item.item[:30],
                    UNIT_LABELS.get(item.unit_of_measure.value, item.unit_of_measure.value),
                    format_dimensions(item),
                    _num(item.quantity),
                    material[:15],
                    format_amount(item.rate),
                    format_amount(item.amount),
                ],
                widths,
                right_from=5,
            )
        pdf.total_row("Room Total:", room.total)


def _render_compact_rooms(pdf: QuotePDF, summary):
    """One line per room with its item count and total."""
    pw = pdf.w - pdf.l_margin - pdf.r_margin
    pdf.table_header([("Room", pw - 80), ("Items", 30), ("Amount", 50)])
    for room in summary.rooms:
        pdf.table_row([room.name, str(len(room.items)), _fmt(room.total)], [pw - 80, 30, 50], right_from=1)
    pdf.ln(4)
