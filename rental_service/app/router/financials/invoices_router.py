from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from shared.core.database import get_rental_db as get_db
from shared.core.auth import allow_landlord, allow_tenant, validate_current_token
from shared.core.schemas import JsonOutResult, UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...enum.revenue_enum import InvoiceStatus
from ...schemas.financials.invoices_schemas import (
    InvoiceCreate, InvoiceGenerate, InvoiceOut, InvoiceDetailOut, InvoiceListResponse
)
from ...crud.financials import invoices_crud as crud

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post("", response_model=JsonOutResult[InvoiceOut], status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.create_invoice(db, current_user.user_id, payload)
    return success_response(data=result, message="Invoice created successfully",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.post("/generate", response_model=JsonOutResult[InvoiceOut], status_code=status.HTTP_201_CREATED)
def generate_next_month_invoice(
    payload: InvoiceGenerate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.generate_next_month(db, current_user.user_id, payload.lease_id)
    return success_response(data=result, message="Next month's invoice generated",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.get("/my", response_model=JsonOutResult[InvoiceListResponse])
def get_my_invoices(
    status: Optional[InvoiceStatus] = None,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    return success_response(data=crud.get_tenant_invoices(db, current_user.user_id, status))


@router.get("/landlord", response_model=JsonOutResult[InvoiceListResponse])
def get_landlord_invoices(
    status: Optional[InvoiceStatus] = None,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    return success_response(data=crud.get_landlord_invoices(db, current_user.user_id, status))


@router.get("/{invoice_id}", response_model=JsonOutResult[InvoiceDetailOut])
def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=crud.get_invoice(db, current_user, invoice_id))


@router.put("/{invoice_id}/status", response_model=JsonOutResult[InvoiceOut])
def recompute_invoice_status(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.recompute_owned_invoice(db, current_user.user_id, invoice_id)
    return success_response(data=result, message="Invoice status updated",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.put("/{invoice_id}/void", response_model=JsonOutResult[InvoiceOut])
def void_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.void_invoice(db, current_user.user_id, invoice_id)
    return success_response(data=result, message="Invoice voided",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.get("/{invoice_id}/pdf")
def download_invoice_pdf(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    content = crud.get_invoice_pdf(db, current_user, invoice_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice_{invoice_id}.pdf"'},
    )
