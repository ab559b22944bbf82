import hashlib
import hmac
import json
import time
from datetime import datetime, timezone
from decimal import Decimal
import uuid

import pytest

from shared.core.config import settings
from shared.core.exceptions import (
    ConflictError, ForbiddenError, InvalidStateError, ValidationError, WebhookSignatureError
)
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from rental_service.app.crud.financials import invoices_crud, payments_crud
from rental_service.app.enum.revenue_enum import InvoiceStatus, PaymentMethod, PaymentStatus
from rental_service.app.schemas.financials.invoices_schemas import InvoiceCreate
from rental_service.app.schemas.financials.payments_schemas import PaymentCreate

NOW = datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def invoice(db, seed, landlord_id):
    lease = seed.active_lease()
    return invoices_crud.create_invoice(db, landlord_id, InvoiceCreate(lease_id=lease.id), now=NOW)


def _pay(db, payer_id, invoice, method=PaymentMethod.MANUAL_CASH, **kwargs):
    return payments_crud.create_payment(
        db, payer_id, PaymentCreate(invoice_id=invoice.id, method=method, **kwargs), now=NOW)


def _event(event_type, obj):
    return json.dumps({"id": "evt_1", "type": event_type, "data": {"object": obj}}).encode()


def _reload(db, invoice_id):
    db.expire_all()
    return invoices_crud.get_invoice_or_404(db, invoice_id)


def test_cash_payment_settles_invoice(db, tenant_id, invoice):
    payment = _pay(db, tenant_id, invoice)

    assert payment.status == PaymentStatus.SUCCEEDED
    assert payment.amount == Decimal("1000.00")
    assert payment.paid_at is not None

    stored = _reload(db, invoice.id)
    assert stored.amount_paid == Decimal("1000.00")
    assert stored.balance == Decimal("0.00")
    assert stored.status == InvoiceStatus.PAID


def test_partial_payments_accumulate(db, tenant_id, invoice):
    _pay(db, tenant_id, invoice, method=PaymentMethod.MANUAL_ETRANSFER, amount=Decimal("400"))
    stored = _reload(db, invoice.id)
    assert stored.status == InvoiceStatus.PARTIALLY_PAID
    assert stored.balance == Decimal("600.00")

    # no amount means the remaining balance
    rest = _pay(db, tenant_id, invoice)
    assert rest.amount == Decimal("600.00")
    stored = _reload(db, invoice.id)
    assert stored.status == InvoiceStatus.PAID
    assert stored.amount_paid + stored.balance == stored.amount_due


def test_amount_must_fit_balance(db, tenant_id, invoice):
    with pytest.raises(ValidationError):
        _pay(db, tenant_id, invoice, amount=Decimal("1000.01"))
    with pytest.raises(ValidationError):
        _pay(db, tenant_id, invoice, amount=Decimal("0"))


def test_paid_invoice_rejects_payment(db, tenant_id, invoice):
    _pay(db, tenant_id, invoice)
    with pytest.raises(InvalidStateError):
        _pay(db, tenant_id, invoice)


def test_void_invoice_rejects_payment(db, landlord_id, tenant_id, invoice):
    invoices_crud.void_invoice(db, landlord_id, invoice.id)
    with pytest.raises(InvalidStateError):
        _pay(db, tenant_id, invoice)


def test_only_the_lease_tenant_pays(db, other_tenant_id, invoice):
    with pytest.raises(ForbiddenError):
        _pay(db, other_tenant_id, invoice)


def test_stripe_without_reference_needs_provider(db, tenant_id, invoice):
    with pytest.raises(ValidationError) as exc:
        _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE)
    assert exc.value.details == [{"path": "provider_ref", "msg": "required"}]


def test_stripe_payment_waits_for_webhook(db, tenant_id, invoice):
    payment = _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_123")

    assert payment.status == PaymentStatus.PENDING
    assert payment.paid_at is None
    assert _reload(db, invoice.id).status == InvoiceStatus.ISSUED

    with pytest.raises(ConflictError):
        _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_123")


def test_succeeded_webhook_is_idempotent(db, tenant_id, invoice):
    payment = _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_123")
    body = _event("payment_intent.succeeded", {"id": "pi_123", "object": "payment_intent"})

    first = payments_crud.confirm_from_webhook(db, body, now=NOW)
    assert first.handled is True
    assert first.payment_id == payment.id

    second = payments_crud.confirm_from_webhook(db, body, now=NOW)
    assert second.handled is False

    stored = _reload(db, invoice.id)
    assert stored.status == InvoiceStatus.PAID
    assert stored.amount_paid == Decimal("1000.00")


def test_failed_webhook_marks_pending_payment(db, tenant_id, invoice):
    payment = _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_fail")
    payments_crud.confirm_from_webhook(
        db, _event("payment_intent.payment_failed", {"id": "pi_fail"}), now=NOW)

    tenant = UserToken(user_id=tenant_id, role=UserRole.TENANT)
    assert payments_crud.get_payment(db, tenant, payment.id).status == PaymentStatus.FAILED
    assert _reload(db, invoice.id).status == InvoiceStatus.ISSUED


def test_refund_reopens_invoice(db, tenant_id, invoice):
    _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_refund")
    payments_crud.confirm_from_webhook(db, _event("payment_intent.succeeded", {"id": "pi_refund"}), now=NOW)
    result = payments_crud.confirm_from_webhook(
        db, _event("charge.refunded", {"id": "ch_1", "payment_intent": "pi_refund"}), now=NOW)

    assert result.handled is True
    stored = _reload(db, invoice.id)
    assert stored.status == InvoiceStatus.ISSUED
    assert stored.balance == Decimal("1000.00")


def _refund(db, intent_id, cents):
    return payments_crud.confirm_from_webhook(db, _event("charge.refunded", {
        "id": "ch_1", "payment_intent": intent_id, "amount_refunded": cents}), now=NOW)


def _stored_payment(db, payment_id):
    db.expire_all()
    return payments_crud.get_payment_or_404(db, payment_id)


def test_partial_refund_keeps_payment_and_reopens_balance(db, tenant_id, invoice):
    payment = _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_part")
    payments_crud.confirm_from_webhook(db, _event("payment_intent.succeeded", {"id": "pi_part"}), now=NOW)

    assert _refund(db, "pi_part", 40000).handled is True
    stored = _stored_payment(db, payment.id)
    assert stored.status == PaymentStatus.SUCCEEDED
    assert stored.amount_refunded == Decimal("400.00")
    reopened = _reload(db, invoice.id)
    assert reopened.status == InvoiceStatus.PARTIALLY_PAID
    assert reopened.amount_paid == Decimal("600.00")
    assert reopened.balance == Decimal("400.00")

    # the charge reports the cumulative refund, a replay changes nothing
    assert _refund(db, "pi_part", 40000).handled is False

    assert _refund(db, "pi_part", 100000).handled is True
    assert _stored_payment(db, payment.id).status == PaymentStatus.REFUNDED
    assert _reload(db, invoice.id).status == InvoiceStatus.ISSUED


def test_refund_ignored_unless_payment_succeeded(db, tenant_id, invoice):
    payment = _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_open")

    result = _refund(db, "pi_open", 100000)

    assert result.handled is False
    assert result.payment_id == payment.id
    assert _stored_payment(db, payment.id).status == PaymentStatus.PENDING
    assert _reload(db, invoice.id).status == InvoiceStatus.ISSUED


def test_applied_webhooks_are_logged_on_payment(db, tenant_id, invoice):
    payment = _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_log")
    succeeded = _event("payment_intent.succeeded", {"id": "pi_log"})
    payments_crud.confirm_from_webhook(db, succeeded, now=NOW)
    payments_crud.confirm_from_webhook(db, succeeded, now=NOW)
    _refund(db, "pi_log", 25000)

    events = _stored_payment(db, payment.id).meta["events"]
    assert [e["type"] for e in events] == ["payment_intent.succeeded", "charge.refunded"]
    assert events[0]["id"] == "evt_1"


def test_unknown_events_are_acknowledged(db):
    ignored = payments_crud.confirm_from_webhook(db, _event("customer.created", {"id": "cus_1"}))
    assert ignored.received is True
    assert ignored.handled is False

    orphan = payments_crud.confirm_from_webhook(db, _event("payment_intent.succeeded", {"id": "pi_missing"}))
    assert orphan.handled is False
    assert orphan.payment_id is None


def test_malformed_webhook_body(db):
    with pytest.raises(ValidationError):
        payments_crud.confirm_from_webhook(db, b"not json")
    with pytest.raises(ValidationError):
        payments_crud.confirm_from_webhook(db, b"{}")


def _sign(body: bytes, secret: str) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{body.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def test_webhook_signature_is_checked_when_configured(db, monkeypatch, tenant_id, invoice):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    _pay(db, tenant_id, invoice, method=PaymentMethod.STRIPE, provider_ref="pi_signed")
    body = _event("payment_intent.succeeded", {"id": "pi_signed"})

    with pytest.raises(WebhookSignatureError):
        payments_crud.confirm_from_webhook(db, body, _sign(body, "whsec_other"), now=NOW)

    result = payments_crud.confirm_from_webhook(db, body, _sign(body, "whsec_test"), now=NOW)
    assert result.handled is True


def test_payment_listing(db, landlord_id, tenant_id, invoice):
    _pay(db, tenant_id, invoice, amount=Decimal("250"))

    assert payments_crud.get_tenant_payments(db, tenant_id).total == 1
    assert payments_crud.get_landlord_payments(db, landlord_id).total == 1
    assert payments_crud.get_landlord_payments(db, uuid.uuid4()).total == 0
    assert payments_crud.get_landlord_payments(db, landlord_id, PaymentStatus.PENDING).total == 0
