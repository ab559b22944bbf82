import uuid
from sqlalchemy import (
    Column, Integer, String, Text, Date, Numeric, ForeignKey, DateTime, Enum, Index, UniqueConstraint, func, Uuid, JSON
)
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.revenue_enum import InvoiceStatus, PaymentMethod, PaymentStatus


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lease_id = Column(Uuid, ForeignKey("leases.id", ondelete="CASCADE"), nullable=False)
    period_year = Column(Integer, nullable=False)
    period_month = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    amount_due = Column(Numeric(14, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(
        Enum(
            InvoiceStatus,
            name="invoice_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=InvoiceStatus.ISSUED,
        nullable=False,
    )
    currency = Column(String(8), default="cad")
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    lease = relationship("Lease", back_populates="invoices")
    lines = relationship("InvoiceLine", back_populates="invoice",
                         cascade="all, delete-orphan", order_by="InvoiceLine.position")
    payments = relationship("Payment", back_populates="invoice", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("lease_id", "period_year", "period_month",
                         name="uq_invoice_lease_period"),
        Index("ix_invoice_status_due", "status", "due_date"),
    )


# -------------------
# Invoice Lines
# -------------------
class InvoiceLine(Base):
    __tablename__ = "invoice_lines"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id = Column(Uuid, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, default=0, nullable=False)
    label = Column(String(200), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="lines")


# -------------------
# Payments
# -------------------
class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id = Column(Uuid, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    payer_id = Column(Uuid, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    method = Column(
        Enum(
            PaymentMethod,
            name="payment_method_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    status = Column(
        Enum(
            PaymentStatus,
            name="payment_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    provider_ref = Column(String(128), unique=True, nullable=True)  # stripe payment intent id
    paid_at = Column(DateTime(timezone=True), nullable=True)
    amount_refunded = Column(Numeric(14, 2), default=0, nullable=False)
    meta = Column("metadata", JSON)  # provider events applied to this payment

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    invoice = relationship("Invoice", back_populates="payments")

    __table_args__ = (
        Index("ix_payment_invoice_status", "invoice_id", "status"),
        Index("ix_payment_payer", "payer_id"),
    )
