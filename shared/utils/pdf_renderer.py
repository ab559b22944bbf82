from io import BytesIO
from decimal import Decimal
from xml.sax.saxutils import escape
from reportlab.lib.pagesizes import A4
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Table, TableStyle, Spacer
)
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib import colors

from shared.core.config import settings

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December"
)

GRID_STYLE = [
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("LEFTPADDING", (0, 0), (-1, -1), 8),
    ("RIGHTPADDING", (0, 0), (-1, -1), 8),
    ("TOPPADDING", (0, 0), (-1, -1), 6),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
]


def _text(value, default="-"):
    if value is None or value == "":
        return default
    if hasattr(value, "value"):
        value = value.value
    return escape(str(value))


def _money(value, currency=None):
    currency = (currency or settings.CURRENCY or "").upper()
    try:
        amount = Decimal(str(value if value is not None else 0))
    except ArithmeticError:
        amount = Decimal(0)
    return f"{currency} {amount:,.2f}".strip()


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="Right", parent=styles["Normal"], alignment=TA_RIGHT))
    return styles


def _build(elements) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=40,
        leftMargin=40,
        topMargin=40,
        bottomMargin=40,
    )
    doc.build(elements)
    return buffer.getvalue()


def render_invoice_pdf(invoice: dict) -> bytes:
    """Render an invoice dict (InvoiceDetailOut.model_dump()) to PDF bytes."""
    styles = _styles()
    currency = invoice.get("currency")
    elements = []

    month = invoice.get("period_month")
    period = "-"
    if month and 1 <= month <= 12:
        period = f"{MONTH_NAMES[month - 1]} {invoice.get('period_year') or ''}".strip()

    # ==================================================
    # HEADER
    # ==================================================
    header = Table(
        [[
            Paragraph(f"<b>{_text(settings.APP_NAME)}</b><br/>Property Management",
                      styles["Normal"]),
            Paragraph(
                f"<b>INVOICE</b><br/>"
                f"Invoice ID: {_text(invoice.get('id'))}<br/>"
                f"Period: {_text(period)}<br/>"
                f"Due Date: {_text(invoice.get('due_date'))}<br/>"
                f"Status: {_text(invoice.get('status'))}",
                styles["Right"],
            )
        ]],
        colWidths=[250, 250]
    )
    elements.append(header)
    elements.append(Spacer(1, 20))

    bill_to = Table(
        [
            ["Lease", _text(invoice.get("lease_id"))],
            ["Unit", _text(invoice.get("unit_number"))],
            ["Currency", _text(currency or settings.CURRENCY).upper()],
        ],
        colWidths=[150, 350]
    )
    bill_to.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
    ]))
    elements.append(bill_to)
    elements.append(Spacer(1, 20))

    # ==================================================
    # LINE ITEMS
    # ==================================================
    elements.append(Paragraph("<b>Line Items</b>", styles["Heading2"]))
    rows = [["Description", "Amount"]]
    for item in invoice.get("line_items") or []:
        rows.append([_text(item.get("label")), _money(item.get("amount"), currency)])
    rows.append(["Amount Due", _money(invoice.get("amount_due"), currency)])
    rows.append(["Amount Paid", _money(invoice.get("amount_paid"), currency)])
    rows.append(["Balance", _money(invoice.get("balance"), currency)])

    items_table = Table(rows, colWidths=[350, 150])
    items_table.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("FONT", (0, -1), (-1, -1), "Helvetica-Bold"),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 20))

    payments = invoice.get("payments") or []
    if payments:
        elements.append(Paragraph("<b>Payments</b>", styles["Heading2"]))
        payment_rows = [["Date", "Method", "Status", "Amount"]]
        for p in payments:
            payment_rows.append([
                _text(p.get("paid_at")),
                _text(p.get("method")),
                _text(p.get("status")),
                _money(p.get("amount"), currency),
            ])
        payments_table = Table(payment_rows, colWidths=[160, 130, 90, 120])
        payments_table.setStyle(TableStyle(GRID_STYLE + [
            ("BACKGROUND", (0, 0), (-1, 0), colors.lightblue),
            ("ALIGN", (3, 1), (-1, -1), "RIGHT"),
        ]))
        elements.append(payments_table)

    if invoice.get("notes"):
        elements.append(Spacer(1, 15))
        elements.append(Paragraph(_text(invoice["notes"]), styles["Normal"]))

    return _build(elements)


def render_lease_pdf(lease: dict) -> bytes:
    """Render a lease dict (LeaseOut.model_dump()) to PDF bytes."""
    styles = _styles()
    elements = []

    elements.append(Paragraph(f"<b>{_text(lease.get('lease_title'), 'Residential Lease Agreement')}</b>",
                              styles["Title"]))
    elements.append(Spacer(1, 10))
    elements.append(Paragraph(
        f"Property: {_text(lease.get('property_name'))} &nbsp; Unit: {_text(lease.get('unit_number'))}",
        styles["Normal"]))
    elements.append(Paragraph(f"Status: {_text(lease.get('status'))}", styles["Normal"]))
    elements.append(Spacer(1, 20))

    # ==================================================
    # TERMS
    # ==================================================
    elements.append(Paragraph("<b>Terms</b>", styles["Heading2"]))
    terms = Table(
        [
            ["Start Date", _text(lease.get("start_date"))],
            ["End Date", _text(lease.get("end_date"))],
            ["Lease Type", _text(lease.get("lease_type"))],
            ["Rent", _money(lease.get("rent_amount"))],
            ["Rent Frequency", _text(lease.get("rent_frequency"))],
            ["Due Day", _text(lease.get("due_day"))],
            ["Deposit", _money(lease.get("deposit_amount"))],
            ["Payment Method", _text(lease.get("payment_method"))],
            ["Late Fee", f"{_text(lease.get('late_fee_type'))} {_text(lease.get('late_fee_value'), '')}".strip()],
        ],
        colWidths=[150, 350]
    )
    terms.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
    ]))
    elements.append(terms)
    elements.append(Spacer(1, 20))

    # ==================================================
    # HOUSE RULES
    # ==================================================
    elements.append(Paragraph("<b>House Rules</b>", styles["Heading2"]))
    utilities = lease.get("utilities_included") or []
    rules = Table(
        [
            ["Pets", _text(lease.get("pets_allowed"))],
            ["Smoking", _text(lease.get("smoking_allowed"))],
            ["Parking", _text(lease.get("parking_included"))],
            ["Furnished", _text(lease.get("furnished"))],
            ["Utilities Included", _text(", ".join(utilities))],
        ],
        colWidths=[150, 350]
    )
    rules.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
    ]))
    elements.append(rules)

    contact = lease.get("emergency_contact") or {}
    if any(contact.values()):
        elements.append(Spacer(1, 15))
        elements.append(Paragraph("<b>Emergency Contact</b>", styles["Heading2"]))
        elements.append(Paragraph(
            f"{_text(contact.get('name'))} ({_text(contact.get('relation'))}) {_text(contact.get('phone'))}",
            styles["Normal"]))

    for title, key in (("Discounts", "discount_notes"), ("Additional Terms", "additional_terms")):
        if lease.get(key):
            elements.append(Spacer(1, 15))
            elements.append(Paragraph(f"<b>{title}</b>", styles["Heading2"]))
            elements.append(Paragraph(_text(lease[key]), styles["Normal"]))

    elements.append(Spacer(1, 30))
    signatures = Table(
        [["Landlord signature", "Tenant signature"], ["", ""]],
        colWidths=[250, 250],
        rowHeights=[20, 40]
    )
    signatures.setStyle(TableStyle([
        ("LINEBELOW", (0, 1), (0, 1), 0.5, colors.black),
        ("LINEBELOW", (1, 1), (1, 1), 0.5, colors.black),
    ]))
    elements.append(signatures)

    return _build(elements)
