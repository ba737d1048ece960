"""PDF rendering and money formatting for printable lists."""

import io
from xml.sax.saxutils import escape
from datetime import datetime
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from ..models.schemas import ListResponse

CURRENCY_SYMBOLS = {
    "BDT": "৳",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
}


def format_currency(amount: Optional[float], currency: str = "BDT", symbol: bool = True) -> str:
    """Format an amount as ``৳1,234.50`` (or ``BDT 1,234.50`` without symbols)."""
    amount = amount or 0.0
    if symbol and currency in CURRENCY_SYMBOLS:
        return f"{CURRENCY_SYMBOLS[currency]}{amount:,.2f}"
    return f"{currency} {amount:,.2f}"


def format_quantity(quantity: float) -> str:
    return f"{quantity:g}"


def generate_pdf_for_list(grocery_list: ListResponse, currency: str = "BDT") -> bytes:
    """Render a list as an A4 table: Item / Quantity / Unit / Est. Price, with a total row."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=A4,
        rightMargin=28, leftMargin=28, topMargin=28, bottomMargin=28,
        title=grocery_list.title,
    )

    # Built-in PDF fonts have no Bengali glyphs, so money is written with the ISO code
    styles = getSampleStyleSheet()
    elements = [
        Paragraph(escape(grocery_list.title), styles["Title"]),
        Paragraph(
            f"{grocery_list.month} {grocery_list.year} - "
            f"Created on {grocery_list.created_at.strftime('%Y-%m-%d')}",
            styles["Normal"],
        ),
        Spacer(1, 16),
    ]

    data = [["Item", "Quantity", "Unit", f"Est. Price ({currency})"]]
    for item in grocery_list.items:
        data.append([
            item.name,
            format_quantity(item.quantity),
            item.unit,
            format_currency(item.estimated_price, currency, symbol=False),
        ])
    data.append(["", "", "Total:", format_currency(grocery_list.total_estimated_price, currency, symbol=False)])

    table = Table(data, repeatRows=1, colWidths=[220, 80, 70, 150])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#EA580C")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -2), [colors.white, colors.HexColor("#F9F9F9")]),
        ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#F3F4F6")),
        ("ALIGN", (3, 0), (3, -1), "RIGHT"),
        ("ALIGN", (2, -1), (2, -1), "RIGHT"),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#DDDDDD")),
    ]))
    elements.append(table)

    elements.append(Spacer(1, 24))
    elements.append(Paragraph(f"Printed on {datetime.now().strftime('%Y-%m-%d')}", styles["Italic"]))

    doc.build(elements)
    return buf.getvalue()
