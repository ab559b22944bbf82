import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import NotFoundError, ForbiddenError, InvalidStateError, ConflictError
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from shared.utils.pdf_renderer import render_invoice_pdf
from ...models.financials.invoices import Invoice, InvoiceLine, Payment
from ...models.leasing_tenants.leases import Lease
from ...enum.revenue_enum import InvoiceStatus, PaymentStatus
from ...enum.leasing_tenants_enum import LeaseStatus
from ...schemas.financials.invoices_schemas import (
    InvoiceCreate, InvoiceLineIn, InvoiceOut, InvoiceDetailOut, InvoiceListResponse
)
from ...schemas.financials.payments_schemas import PaymentOut
from ..access_control.ownership_crud import landlord_owns_invoice, landlord_owns_lease, tenant_owns_invoice
from ..leasing_tenants.leases_crud import get_lease_or_404

logger = logging.getLogger(__name__)

DEFAULT_LINE_LABEL = "Monthly Rent"
ZERO = Decimal("0.00")


def _utcnow():
    return datetime.now(timezone.utc)


def _line_items(invoice: Invoice):
    return [{"label": line.label, "amount": line.amount} for line in invoice.lines]


def invoice_out(invoice: Invoice) -> InvoiceOut:
    lease = invoice.lease
    return InvoiceOut.model_validate({
        **invoice.__dict__,
        "line_items": _line_items(invoice),
        "tenant_id": lease.tenant_id if lease else None,
        "unit_number": lease.unit.unit_number if lease and lease.unit else None,
    })


def invoice_detail_out(invoice: Invoice) -> InvoiceDetailOut:
    payments = sorted(invoice.payments, key=lambda p: (p.created_at is None, p.created_at or 0))
    return InvoiceDetailOut.model_validate({
        **invoice_out(invoice).model_dump(),
        "payments": [PaymentOut.model_validate(p) for p in payments],
    })


def get_invoice_or_404(db: Session, invoice_id: UUID) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def _get_billable_lease(db: Session, landlord_id: UUID, lease_id: UUID) -> Lease:
    lease = get_lease_or_404(db, lease_id)
    if not landlord_owns_lease(db, landlord_id, lease.id):
        raise ForbiddenError("Not authorized for this lease")
    if lease.status != LeaseStatus.ACTIVE:
        raise InvalidStateError("Invoice can only be created for ACTIVE leases")
    return lease


def _period_exists(db: Session, lease_id: UUID, year: int, month: int) -> bool:
    return db.query(Invoice.id).filter(
        Invoice.lease_id == lease_id,
        Invoice.period_year == year,
        Invoice.period_month == month
    ).first() is not None


def _issue_invoice(
    db: Session,
    lease: Lease,
    year: int,
    month: int,
    due_date: date,
    items: Optional[List[InvoiceLineIn]] = None,
    notes: str = None,
) -> Invoice:
    if _period_exists(db, lease.id, year, month):
        raise ConflictError(f"Invoice for {year}-{month:02d} already exists for this lease")

    if items:
        lines = [InvoiceLine(position=i, label=item.label.strip(), amount=item.amount)
                 for i, item in enumerate(items)]
    else:
        lines = [InvoiceLine(position=0, label=DEFAULT_LINE_LABEL, amount=lease.rent_amount)]

    amount_due = sum((Decimal(line.amount) for line in lines), ZERO)

    invoice = Invoice(
        lease_id=lease.id,
        period_year=year,
        period_month=month,
        due_date=due_date,
        amount_due=amount_due,
        amount_paid=ZERO,
        balance=amount_due,
        status=InvoiceStatus.ISSUED,
        currency=settings.CURRENCY,
        notes=notes,
        lines=lines,
    )
    db.add(invoice)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Invoice for {year}-{month:02d} already exists for this lease")
    db.refresh(invoice)

    logger.info("Invoice %s issued for lease %s period %s-%02d amount %s",
                invoice.id, lease.id, year, month, amount_due)
    return invoice


def next_period(now: datetime):
    first_of_next = (now.date().replace(day=1) + relativedelta(months=1))
    return first_of_next.year, first_of_next.month


def due_date_for(lease: Lease, year: int, month: int) -> date:
    return date(year, month, lease.due_day or 1)


def create_invoice(db: Session, landlord_id: UUID, payload: InvoiceCreate, now: datetime = None) -> InvoiceOut:
    now = now or _utcnow()
    lease = _get_billable_lease(db, landlord_id, payload.lease_id)

    year = payload.period_year or now.year
    month = payload.period_month or now.month

    invoice = _issue_invoice(
        db, lease, year, month,
        due_date=payload.due_date or now.date(),
        items=payload.line_items,
        notes=payload.notes,
    )
    return invoice_out(invoice)


def generate_next_month(db: Session, landlord_id: UUID, lease_id: UUID, now: datetime = None) -> InvoiceOut:
    now = now or _utcnow()
    lease = _get_billable_lease(db, landlord_id, lease_id)

    year, month = next_period(now)
    invoice = _issue_invoice(db, lease, year, month, due_date=due_date_for(lease, year, month))
    return invoice_out(invoice)


def _derive_status(invoice: Invoice, today: date) -> InvoiceStatus:
    if invoice.balance <= 0:
        return InvoiceStatus.PAID
    if invoice.amount_paid > 0:
        return InvoiceStatus.PARTIALLY_PAID
    if invoice.due_date < today:
        return InvoiceStatus.OVERDUE
    return InvoiceStatus.ISSUED


def apply_payments(db: Session, invoice: Invoice, now: datetime = None) -> Invoice:
    """Recalculate paid/balance/status in the session without committing.

    VOID invoices are left untouched.
    """
    if invoice.status == InvoiceStatus.VOID:
        return invoice

    now = now or _utcnow()
    # partial refunds stay SUCCEEDED, only the kept part counts
    total_paid = db.query(func.coalesce(
        func.sum(Payment.amount - func.coalesce(Payment.amount_refunded, 0)), 0
    )).filter(
        Payment.invoice_id == invoice.id,
        Payment.status == PaymentStatus.SUCCEEDED
    ).scalar()

    amount_paid = Decimal(str(total_paid)).quantize(ZERO)
    amount_due = Decimal(str(invoice.amount_due)).quantize(ZERO)

    invoice.amount_paid = amount_paid
    invoice.balance = max(amount_due - amount_paid, ZERO)
    new_status = _derive_status(invoice, now.date())

    if invoice.status != new_status:
        logger.info("Invoice %s status %s -> %s", invoice.id, invoice.status.value, new_status.value)
    invoice.status = new_status
    return invoice


def recompute_status(db: Session, invoice_id: UUID, now: datetime = None) -> InvoiceOut:
    invoice = get_invoice_or_404(db, invoice_id)
    apply_payments(db, invoice, now)
    db.commit()
    db.refresh(invoice)
    return invoice_out(invoice)


def recompute_owned_invoice(db: Session, landlord_id: UUID, invoice_id: UUID, now: datetime = None) -> InvoiceOut:
    get_invoice_or_404(db, invoice_id)
    if not landlord_owns_invoice(db, landlord_id, invoice_id):
        raise ForbiddenError("Not authorized for this invoice")
    return recompute_status(db, invoice_id, now)


def void_invoice(db: Session, landlord_id: UUID, invoice_id: UUID) -> InvoiceOut:
    invoice = get_invoice_or_404(db, invoice_id)
    if not landlord_owns_invoice(db, landlord_id, invoice.id):
        raise ForbiddenError("Not authorized for this invoice")

    if invoice.status == InvoiceStatus.VOID:
        raise InvalidStateError("Invoice is already void")

    has_settled = db.query(Payment.id).filter(
        Payment.invoice_id == invoice.id,
        Payment.status == PaymentStatus.SUCCEEDED
    ).first() is not None
    if has_settled or invoice.amount_paid > 0:
        raise InvalidStateError("Invoice with payments cannot be voided")

    invoice.status = InvoiceStatus.VOID
    db.commit()
    db.refresh(invoice)

    logger.info("Invoice %s voided by landlord %s", invoice.id, landlord_id)
    return invoice_out(invoice)


def mark_overdue(db: Session, now: datetime = None) -> int:
    """Recompute ISSUED invoices whose due date has passed."""
    now = now or _utcnow()
    candidates = db.query(Invoice).filter(
        Invoice.status == InvoiceStatus.ISSUED,
        Invoice.due_date < now.date()
    ).all()

    changed = 0
    for invoice in candidates:
        apply_payments(db, invoice, now)
        if invoice.status != InvoiceStatus.ISSUED:
            changed += 1

    db.commit()
    return changed


def generate_for_active_leases(db: Session, now: datetime = None) -> int:
    """Issue next month's invoice for every ACTIVE lease that runs during it."""
    now = now or _utcnow()
    year, month = next_period(now)
    period_start = date(year, month, 1)
    period_end = period_start + relativedelta(months=1)

    leases = db.query(Lease).filter(
        Lease.status == LeaseStatus.ACTIVE,
        Lease.start_date < period_end,
        Lease.end_date >= period_start
    ).all()

    created = 0
    for lease in leases:
        if _period_exists(db, lease.id, year, month):
            continue
        try:
            _issue_invoice(db, lease, year, month, due_date=due_date_for(lease, year, month))
            created += 1
        except ConflictError:
            logger.info("Invoice for lease %s period %s-%02d created concurrently", lease.id, year, month)
    return created


def get_invoice_for_party(db: Session, current_user: UserToken, invoice_id: UUID) -> Invoice:
    invoice = get_invoice_or_404(db, invoice_id)

    if current_user.role == UserRole.LANDLORD and landlord_owns_invoice(db, current_user.user_id, invoice.id):
        return invoice
    if current_user.role == UserRole.TENANT and tenant_owns_invoice(db, current_user.user_id, invoice.id):
        return invoice
    raise ForbiddenError("Not authorized for this invoice")


def get_invoice(db: Session, current_user: UserToken, invoice_id: UUID) -> InvoiceDetailOut:
    return invoice_detail_out(get_invoice_for_party(db, current_user, invoice_id))


def get_invoice_pdf(db: Session, current_user: UserToken, invoice_id: UUID) -> bytes:
    invoice = get_invoice_for_party(db, current_user, invoice_id)
    return render_invoice_pdf(invoice_detail_out(invoice).model_dump())


def _list(query) -> InvoiceListResponse:
    total = query.with_entities(func.count(Invoice.id)).scalar()
    invoices = query.order_by(
        Invoice.period_year.desc(), Invoice.period_month.desc(), Invoice.created_at.desc()
    ).all()
    return InvoiceListResponse(invoices=[invoice_out(i) for i in invoices], total=total)


def get_tenant_invoices(db: Session, tenant_id: UUID, status: InvoiceStatus = None) -> InvoiceListResponse:
    query = db.query(Invoice).join(Lease, Lease.id == Invoice.lease_id).filter(Lease.tenant_id == tenant_id)
    if status:
        query = query.filter(Invoice.status == status)
    return _list(query)


def get_landlord_invoices(db: Session, landlord_id: UUID, status: InvoiceStatus = None) -> InvoiceListResponse:
    query = db.query(Invoice).join(Lease, Lease.id == Invoice.lease_id).filter(Lease.landlord_id == landlord_id)
    if status:
        query = query.filter(Invoice.status == status)
    return _list(query)
