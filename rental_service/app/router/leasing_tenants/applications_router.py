from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.database import get_rental_db as get_db
from shared.core.auth import allow_landlord, allow_tenant
from shared.core.schemas import JsonOutResult, UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...enum.leasing_tenants_enum import ApplicationStatus
from ...schemas.leasing_tenants.applications_schemas import (
    ApplicationCreate, ApplicationOut, ApplicationListResponse
)
from ...crud.leasing_tenants import applications_crud as crud

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.post("", response_model=JsonOutResult[ApplicationOut], status_code=status.HTTP_201_CREATED)
def submit_application(
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    result = crud.submit_application(db, current_user.user_id, payload)
    return success_response(data=result, message="Application submitted",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.get("/my", response_model=JsonOutResult[ApplicationListResponse])
def get_my_applications(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    return success_response(data=crud.get_tenant_applications(db, current_user.user_id))


@router.get("/landlord", response_model=JsonOutResult[ApplicationListResponse])
def get_landlord_applications(
    status: Optional[ApplicationStatus] = None,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    return success_response(data=crud.get_landlord_applications(db, current_user.user_id, status))


@router.patch("/{application_id}/approve", response_model=JsonOutResult[ApplicationOut])
def approve_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.approve_application(db, current_user.user_id, application_id)
    return success_response(data=result, message="Application approved",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.patch("/{application_id}/reject", response_model=JsonOutResult[ApplicationOut])
def reject_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.reject_application(db, current_user.user_id, application_id)
    return success_response(data=result, message="Application rejected",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.patch("/{application_id}/withdraw", response_model=JsonOutResult[ApplicationOut])
def withdraw_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    result = crud.withdraw_application(db, current_user.user_id, application_id)
    return success_response(data=result, message="Application withdrawn",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.get("/{application_id}", response_model=JsonOutResult[ApplicationOut])
def get_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    return success_response(data=crud.get_tenant_application(db, current_user.user_id, application_id))


@router.delete("/{application_id}", response_model=JsonOutResult[UUID])
def delete_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    result = crud.delete_pending_application(db, current_user.user_id, application_id)
    return success_response(data=result, message="Application deleted",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)
