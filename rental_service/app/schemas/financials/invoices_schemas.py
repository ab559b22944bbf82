from datetime import datetime, date
from decimal import Decimal
from uuid import UUID
from typing import Optional, List
from pydantic import BaseModel, Field

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.revenue_enum import InvoiceStatus
from .payments_schemas import PaymentOut


class InvoiceLineIn(BaseModel):
    label: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)


class InvoiceLineOut(BaseModel):
    label: str
    amount: Decimal

    model_config = {"from_attributes": True}


class InvoiceCreate(EmptyStringModel):
    lease_id: UUID
    due_date: Optional[date] = None
    line_items: Optional[List[InvoiceLineIn]] = None
    period_year: Optional[int] = Field(default=None, ge=2000, le=2100)
    period_month: Optional[int] = Field(default=None, ge=1, le=12)
    notes: Optional[str] = None


class InvoiceGenerate(BaseModel):
    lease_id: UUID


class InvoiceOut(BaseModel):
    id: UUID
    lease_id: UUID
    period_year: int
    period_month: int
    due_date: date
    line_items: List[InvoiceLineOut] = []
    amount_due: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: InvoiceStatus
    currency: Optional[str] = None
    notes: Optional[str] = None
    tenant_id: Optional[UUID] = None
    unit_number: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InvoiceDetailOut(InvoiceOut):
    payments: List[PaymentOut] = []


class InvoiceListResponse(BaseModel):
    invoices: List[InvoiceOut]
    total: int
