from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from shared.core.database import get_rental_db as get_db
from shared.core.auth import allow_landlord, allow_tenant, validate_current_token
from shared.core.schemas import JsonOutResult, UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...enum.revenue_enum import PaymentStatus
from ...schemas.financials.payments_schemas import (
    PaymentCreate, PaymentOut, PaymentListResponse, WebhookResult
)
from ...crud.financials import payments_crud as crud

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("", response_model=JsonOutResult[PaymentOut], status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    result = crud.create_payment(db, current_user.user_id, payload)
    return success_response(data=result, message="Payment recorded",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.post("/webhook/stripe", response_model=JsonOutResult[WebhookResult])
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    result = await run_in_threadpool(crud.confirm_from_webhook, db, payload, stripe_signature)
    return success_response(data=result, message="Webhook received",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.get("/my", response_model=JsonOutResult[PaymentListResponse])
def get_my_payments(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    return success_response(data=crud.get_tenant_payments(db, current_user.user_id))


@router.get("/landlord", response_model=JsonOutResult[PaymentListResponse])
def get_landlord_payments(
    status: Optional[PaymentStatus] = None,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    return success_response(data=crud.get_landlord_payments(db, current_user.user_id, status))


@router.get("/{payment_id}", response_model=JsonOutResult[PaymentOut])
def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=crud.get_payment(db, current_user, payment_id))
