from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from shared.core.database import get_rental_db as get_db
from shared.core.auth import allow_landlord, allow_tenant, validate_current_token
from shared.core.schemas import JsonOutResult, UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...enum.leasing_tenants_enum import LeaseStatus
from ...schemas.leasing_tenants.leases_schemas import (
    LeaseCreate, LeaseRespond, LeaseOut, LeaseListResponse
)
from ...crud.leasing_tenants import leases_crud as crud

router = APIRouter(prefix="/api/leases", tags=["leases"])


@router.post("", response_model=JsonOutResult[LeaseOut], status_code=status.HTTP_201_CREATED)
def create_lease(
    payload: LeaseCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.create_lease(db, current_user.user_id, payload)
    return success_response(data=result, message="Lease created and pending tenant confirmation",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.get("/my", response_model=JsonOutResult[LeaseListResponse])
def get_my_leases(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    return success_response(data=crud.get_tenant_leases(db, current_user.user_id))


@router.get("/landlord", response_model=JsonOutResult[LeaseListResponse])
def get_landlord_leases(
    status: Optional[LeaseStatus] = None,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    return success_response(data=crud.get_landlord_leases(db, current_user.user_id, status))


@router.put("/{lease_id}/respond", response_model=JsonOutResult[LeaseOut])
def respond_to_lease(
    lease_id: UUID,
    payload: LeaseRespond,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    result = crud.respond_to_lease(db, current_user.user_id, lease_id, payload.decision)
    return success_response(data=result, message=f"Lease {result.status.value.lower()}",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.put("/{lease_id}/terminate", response_model=JsonOutResult[LeaseOut])
def terminate_lease(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.terminate_lease(db, current_user.user_id, lease_id)
    return success_response(data=result, message="Lease terminated",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.get("/{lease_id}/pdf")
def download_lease_pdf(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    content = crud.get_lease_pdf(db, current_user, lease_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="lease_{lease_id}.pdf"'},
    )
