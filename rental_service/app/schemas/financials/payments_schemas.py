from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Optional, List
from pydantic import BaseModel, Field

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.revenue_enum import PaymentMethod, PaymentStatus


class PaymentCreate(EmptyStringModel):
    invoice_id: UUID
    method: PaymentMethod
    provider_ref: Optional[str] = None
    # defaults to the outstanding balance
    amount: Optional[Decimal] = None


class PaymentOut(BaseModel):
    id: UUID
    invoice_id: UUID
    payer_id: UUID
    amount: Decimal
    amount_refunded: Decimal = Decimal("0.00")
    method: PaymentMethod
    status: PaymentStatus
    provider_ref: Optional[str] = None
    client_secret: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PaymentListResponse(BaseModel):
    payments: List[PaymentOut]
    total: int


class WebhookResult(BaseModel):
    received: bool = True
    event_type: Optional[str] = None
    payment_id: Optional[UUID] = None
    handled: bool = Field(default=False)
