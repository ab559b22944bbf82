import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID
import stripe
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import (
    NotFoundError, ForbiddenError, InvalidStateError, ValidationError, ConflictError, WebhookSignatureError
)
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from ...models.financials.invoices import Invoice, Payment
from ...models.leasing_tenants.leases import Lease
from ...enum.revenue_enum import InvoiceStatus, PaymentMethod, PaymentStatus, MANUAL_PAYMENT_METHODS
from ...schemas.financials.payments_schemas import (
    PaymentCreate, PaymentOut, PaymentListResponse, WebhookResult
)
from ..access_control.ownership_crud import tenant_owns_invoice, landlord_owns_invoice
from .invoices_crud import apply_payments, get_invoice_or_404

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

EVENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_FAILED = "payment_intent.payment_failed"
EVENT_REFUNDED = "charge.refunded"


def _utcnow():
    return datetime.now(timezone.utc)


def payment_out(payment: Payment, client_secret: str = None) -> PaymentOut:
    return PaymentOut.model_validate({**payment.__dict__, "client_secret": client_secret})


def get_payment_or_404(db: Session, payment_id: UUID) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def _resolve_amount(invoice: Invoice, requested: Optional[Decimal]) -> Decimal:
    balance = Decimal(str(invoice.balance)).quantize(CENTS)
    amount = balance if requested is None else Decimal(str(requested)).quantize(CENTS, ROUND_HALF_UP)

    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero",
                              [{"path": "amount", "msg": "must be greater than zero"}])
    if amount > balance:
        raise ValidationError("Payment amount exceeds the outstanding balance",
                              [{"path": "amount", "msg": f"must not exceed {balance}"}])
    return amount


def _create_payment_intent(invoice: Invoice, amount: Decimal, payer_id: UUID):
    stripe.api_key = settings.STRIPE_SECRET_KEY
    try:
        return stripe.PaymentIntent.create(
            amount=int((amount * 100).to_integral_value(ROUND_HALF_UP)),
            currency=(invoice.currency or settings.CURRENCY).lower(),
            metadata={
                "invoice_id": str(invoice.id),
                "lease_id": str(invoice.lease_id),
                "payer_id": str(payer_id),
            },
        )
    except stripe.StripeError as e:
        logger.error("Stripe payment intent creation failed for invoice %s: %s", invoice.id, e)
        raise ValidationError(f"Payment provider error: {e.user_message or str(e)}")


def create_payment(db: Session, payer_id: UUID, payload: PaymentCreate, now: datetime = None) -> PaymentOut:
    now = now or _utcnow()
    invoice = get_invoice_or_404(db, payload.invoice_id)

    if not tenant_owns_invoice(db, payer_id, invoice.id):
        raise ForbiddenError("Not authorized to pay this invoice")
    if invoice.status in (InvoiceStatus.PAID, InvoiceStatus.VOID):
        raise InvalidStateError(f"Invoice is {invoice.status.value}")

    amount = _resolve_amount(invoice, payload.amount)

    provider_ref = payload.provider_ref
    client_secret = None
    if payload.method == PaymentMethod.STRIPE and not provider_ref:
        if not settings.STRIPE_SECRET_KEY:
            raise ValidationError("provider_ref is required for STRIPE payments",
                                  [{"path": "provider_ref", "msg": "required"}])
        intent = _create_payment_intent(invoice, amount, payer_id)
        provider_ref = intent.id
        client_secret = intent.client_secret

    if provider_ref and db.query(Payment.id).filter(Payment.provider_ref == provider_ref).first():
        raise ConflictError("A payment with this provider reference already exists")

    payment = Payment(
        invoice_id=invoice.id,
        payer_id=payer_id,
        amount=amount,
        method=payload.method,
        provider_ref=provider_ref,
        status=PaymentStatus.PENDING,
    )
    if payload.method in MANUAL_PAYMENT_METHODS:
        payment.status = PaymentStatus.SUCCEEDED
        payment.paid_at = now

    db.add(payment)
    try:
        # the ledger sum must see the new row
        db.flush()
        if payment.status == PaymentStatus.SUCCEEDED:
            apply_payments(db, invoice, now)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A payment with this provider reference already exists")
    except Exception:
        db.rollback()
        raise

    db.refresh(payment)
    logger.info("Payment %s (%s, %s) recorded for invoice %s: %s",
                payment.id, payment.method.value, payment.status.value, invoice.id, amount)
    return payment_out(payment, client_secret)


def parse_webhook_event(payload: bytes, signature: Optional[str]) -> dict:
    """Verify the provider signature when a secret is configured, return the event."""
    if settings.STRIPE_WEBHOOK_SECRET:
        try:
            stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        except ValueError:
            logger.warning("Rejected webhook: invalid payload")
            raise ValidationError("Invalid webhook payload")
        except stripe.SignatureVerificationError:
            logger.warning("Rejected webhook: signature verification failed")
            raise WebhookSignatureError("Invalid webhook signature")

    try:
        event = json.loads(payload)
    except ValueError:
        logger.warning("Rejected webhook: body is not JSON")
        raise ValidationError("Invalid webhook payload")

    if not isinstance(event, dict) or not event.get("type"):
        raise ValidationError("Invalid webhook payload")
    return event


def _intent_id(event: dict) -> Optional[str]:
    obj = (event.get("data") or {}).get("object") or {}
    if event["type"] == EVENT_REFUNDED:
        return obj.get("payment_intent")
    return obj.get("id")


def _refunded_amount(event: dict, payment: Payment) -> Decimal:
    """Cumulative refund reported on the charge, capped at the payment amount."""
    amount = Decimal(str(payment.amount)).quantize(CENTS)
    cents = ((event.get("data") or {}).get("object") or {}).get("amount_refunded")
    if cents is None:
        return amount
    return min((Decimal(int(cents)) / 100).quantize(CENTS), amount)


def _record_event(payment: Payment, event: dict):
    meta = dict(payment.meta or {})
    meta["events"] = [*meta.get("events", []), {"id": event.get("id"), "type": event["type"]}]
    payment.meta = meta


def confirm_from_webhook(db: Session, payload: bytes, signature: Optional[str] = None,
                         now: datetime = None) -> WebhookResult:
    now = now or _utcnow()
    event = parse_webhook_event(payload, signature)
    event_type = event["type"]
    result = WebhookResult(event_type=event_type)

    if event_type not in (EVENT_SUCCEEDED, EVENT_FAILED, EVENT_REFUNDED):
        logger.debug("Ignoring webhook event %s", event_type)
        return result

    intent_id = _intent_id(event)
    payment = None
    if intent_id:
        payment = db.query(Payment).filter(Payment.provider_ref == intent_id).first()
    if not payment:
        logger.info("Webhook %s for unknown payment intent %s ignored", event_type, intent_id)
        return result

    result.payment_id = payment.id

    if event_type == EVENT_SUCCEEDED:
        if payment.status == PaymentStatus.SUCCEEDED:
            logger.info("Payment %s already succeeded, webhook is a no-op", payment.id)
            return result
        payment.status = PaymentStatus.SUCCEEDED
        payment.paid_at = now
    elif event_type == EVENT_FAILED:
        if payment.status != PaymentStatus.PENDING:
            return result
        payment.status = PaymentStatus.FAILED
    else:
        if payment.status != PaymentStatus.SUCCEEDED:
            logger.info("Refund for payment %s in status %s ignored", payment.id, payment.status.value)
            return result
        refunded = _refunded_amount(event, payment)
        if refunded <= Decimal(str(payment.amount_refunded or 0)):
            return result
        payment.amount_refunded = refunded
        if refunded >= Decimal(str(payment.amount)):
            payment.status = PaymentStatus.REFUNDED

    _record_event(payment, event)
    try:
        db.flush()
        apply_payments(db, payment.invoice, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    result.handled = True
    logger.info("Payment %s -> %s via webhook %s", payment.id, payment.status.value, event_type)
    return result


def get_payment(db: Session, current_user: UserToken, payment_id: UUID) -> PaymentOut:
    payment = get_payment_or_404(db, payment_id)

    if current_user.role == UserRole.TENANT and payment.payer_id == current_user.user_id:
        return payment_out(payment)
    if current_user.role == UserRole.LANDLORD and landlord_owns_invoice(db, current_user.user_id, payment.invoice_id):
        return payment_out(payment)
    raise ForbiddenError("Not authorized for this payment")


def get_tenant_payments(db: Session, tenant_id: UUID) -> PaymentListResponse:
    query = db.query(Payment).filter(Payment.payer_id == tenant_id)
    total = query.with_entities(func.count(Payment.id)).scalar()
    payments = query.order_by(Payment.created_at.desc()).all()
    return PaymentListResponse(payments=[payment_out(p) for p in payments], total=total)


def get_landlord_payments(db: Session, landlord_id: UUID, status: PaymentStatus = None) -> PaymentListResponse:
    query = (
        db.query(Payment)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .join(Lease, Lease.id == Invoice.lease_id)
        .filter(Lease.landlord_id == landlord_id)
    )
    if status:
        query = query.filter(Payment.status == status)

    total = query.with_entities(func.count(Payment.id)).scalar()
    payments = query.order_by(Payment.created_at.desc()).all()
    return PaymentListResponse(payments=[payment_out(p) for p in payments], total=total)
