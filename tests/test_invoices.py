from datetime import date, datetime, timezone
from decimal import Decimal
import uuid

import pytest

from shared.core.exceptions import ConflictError, ForbiddenError, InvalidStateError
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from rental_service.app.crud.financials import invoices_crud, payments_crud
from rental_service.app.enum.revenue_enum import InvoiceStatus, PaymentMethod
from rental_service.app.schemas.financials.invoices_schemas import InvoiceCreate, InvoiceLineIn
from rental_service.app.schemas.financials.payments_schemas import PaymentCreate

NOW = datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc)


def _invoice(db, landlord_id, lease, **kwargs):
    return invoices_crud.create_invoice(db, landlord_id, InvoiceCreate(lease_id=lease.id, **kwargs), now=NOW)


def test_default_invoice_bills_monthly_rent(db, seed, landlord_id, tenant_id):
    lease = seed.active_lease()
    invoice = _invoice(db, landlord_id, lease)

    assert [(l.label, l.amount) for l in invoice.line_items] == [("Monthly Rent", Decimal("1000.00"))]
    assert invoice.amount_due == Decimal("1000.00")
    assert invoice.amount_paid == Decimal("0.00")
    assert invoice.balance == Decimal("1000.00")
    assert invoice.status == InvoiceStatus.ISSUED
    assert (invoice.period_year, invoice.period_month) == (2026, 3)
    assert invoice.due_date == date(2026, 3, 15)
    assert invoice.tenant_id == tenant_id


def test_line_items_are_summed_in_order(db, seed, landlord_id):
    lease = seed.active_lease()
    invoice = _invoice(db, landlord_id, lease, period_month=4, line_items=[
        InvoiceLineIn(label="Rent", amount=Decimal("1000")),
        InvoiceLineIn(label="Parking", amount=Decimal("75.50")),
    ])

    assert [l.label for l in invoice.line_items] == ["Rent", "Parking"]
    assert invoice.amount_due == Decimal("1075.50")
    assert invoice.balance == invoice.amount_due


def test_one_invoice_per_lease_period(db, seed, landlord_id):
    lease = seed.active_lease()
    _invoice(db, landlord_id, lease)
    with pytest.raises(ConflictError):
        _invoice(db, landlord_id, lease)


def test_invoice_requires_active_owned_lease(db, seed, landlord_id):
    pending = seed.pending_lease()
    with pytest.raises(InvalidStateError):
        _invoice(db, landlord_id, pending)

    active = seed.active_lease(tenant_id=uuid.uuid4())
    with pytest.raises(ForbiddenError):
        _invoice(db, uuid.uuid4(), active)


def test_generate_next_month_uses_lease_due_day(db, seed, landlord_id):
    lease = seed.active_lease(due_day=5)
    invoice = invoices_crud.generate_next_month(db, landlord_id, lease.id, now=NOW)

    assert (invoice.period_year, invoice.period_month) == (2026, 4)
    assert invoice.due_date == date(2026, 4, 5)
    with pytest.raises(ConflictError):
        invoices_crud.generate_next_month(db, landlord_id, lease.id, now=NOW)


def test_next_period_rolls_over_year():
    assert invoices_crud.next_period(datetime(2026, 12, 31, tzinfo=timezone.utc)) == (2027, 1)
    assert invoices_crud.next_period(datetime(2026, 1, 31, tzinfo=timezone.utc)) == (2026, 2)


def test_recompute_marks_overdue_and_is_idempotent(db, seed, landlord_id):
    lease = seed.active_lease()
    invoice = _invoice(db, landlord_id, lease)
    later = datetime(2026, 3, 20, tzinfo=timezone.utc)

    first = invoices_crud.recompute_status(db, invoice.id, now=later)
    second = invoices_crud.recompute_status(db, invoice.id, now=later)

    assert first.status == second.status == InvoiceStatus.OVERDUE
    assert second.balance == Decimal("1000.00")


def test_recompute_requires_owner(db, seed, landlord_id):
    invoice = _invoice(db, landlord_id, seed.active_lease())
    with pytest.raises(ForbiddenError):
        invoices_crud.recompute_owned_invoice(db, uuid.uuid4(), invoice.id)


def test_mark_overdue_only_touches_past_due(db, seed, landlord_id):
    lease = seed.active_lease()
    _invoice(db, landlord_id, lease, due_date=date(2026, 3, 10))
    _invoice(db, landlord_id, lease, period_month=4, due_date=date(2026, 4, 1))

    assert invoices_crud.mark_overdue(db, NOW) == 1

    statuses = {i.period_month: i.status for i in invoices_crud.get_landlord_invoices(db, landlord_id).invoices}
    assert statuses == {3: InvoiceStatus.OVERDUE, 4: InvoiceStatus.ISSUED}


def test_void_unpaid_invoice(db, seed, landlord_id):
    invoice = _invoice(db, landlord_id, seed.active_lease())

    voided = invoices_crud.void_invoice(db, landlord_id, invoice.id)
    assert voided.status == InvoiceStatus.VOID

    with pytest.raises(InvalidStateError):
        invoices_crud.void_invoice(db, landlord_id, invoice.id)
    # recompute leaves a void invoice alone
    assert invoices_crud.recompute_status(db, invoice.id).status == InvoiceStatus.VOID


def test_paid_invoice_cannot_be_voided(db, seed, landlord_id, tenant_id):
    invoice = _invoice(db, landlord_id, seed.active_lease())
    payments_crud.create_payment(db, tenant_id, PaymentCreate(
        invoice_id=invoice.id, method=PaymentMethod.MANUAL_CASH, amount=Decimal("100")))

    with pytest.raises(InvalidStateError):
        invoices_crud.void_invoice(db, landlord_id, invoice.id)


def test_generate_for_active_leases(db, seed, landlord_id, other_tenant_id):
    billed = seed.active_lease()
    fresh = seed.active_lease(tenant_id=other_tenant_id)
    ending = seed.active_lease(tenant_id=uuid.uuid4(), end_date=date(2026, 3, 31))
    invoices_crud.generate_next_month(db, landlord_id, billed.id, now=NOW)

    assert invoices_crud.generate_for_active_leases(db, NOW) == 1
    assert invoices_crud.generate_for_active_leases(db, NOW) == 0

    periods = {(i.lease_id, i.period_month) for i in invoices_crud.get_landlord_invoices(db, landlord_id).invoices}
    assert periods == {(billed.id, 4), (fresh.id, 4)}
    assert ending.id not in {lease_id for lease_id, _ in periods}


def test_generate_for_active_leases_waits_for_lease_start(db, seed, landlord_id):
    future = seed.active_lease(start_date=date(2026, 6, 1), end_date=date(2026, 12, 31))
    mid_month = seed.active_lease(tenant_id=uuid.uuid4(), start_date=date(2026, 2, 15), end_date=date(2026, 12, 31))

    # only the lease running during February is billed for it
    assert invoices_crud.generate_for_active_leases(db, datetime(2026, 1, 15, tzinfo=timezone.utc)) == 1
    [invoice] = invoices_crud.get_landlord_invoices(db, landlord_id).invoices
    assert invoice.lease_id == mid_month.id
    assert (invoice.period_year, invoice.period_month) == (2026, 2)

    assert invoices_crud.generate_for_active_leases(db, datetime(2026, 5, 20, tzinfo=timezone.utc)) == 2
    june = {i.lease_id for i in invoices_crud.get_landlord_invoices(db, landlord_id, InvoiceStatus.ISSUED).invoices
            if i.period_month == 6}
    assert june == {future.id, mid_month.id}


def test_invoice_visibility(db, seed, landlord_id, tenant_id, other_tenant_id):
    invoice = _invoice(db, landlord_id, seed.active_lease())

    tenant = UserToken(user_id=tenant_id, role=UserRole.TENANT)
    stranger = UserToken(user_id=other_tenant_id, role=UserRole.TENANT)

    detail = invoices_crud.get_invoice(db, tenant, invoice.id)
    assert detail.payments == []
    with pytest.raises(ForbiddenError):
        invoices_crud.get_invoice(db, stranger, invoice.id)

    assert invoices_crud.get_tenant_invoices(db, tenant_id).total == 1
    assert invoices_crud.get_tenant_invoices(db, other_tenant_id).total == 0
    pdf = invoices_crud.get_invoice_pdf(db, tenant, invoice.id)
    assert pdf.startswith(b"%PDF")
