from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.database import get_rental_db as get_db
from shared.core.auth import allow_landlord, validate_current_token
from shared.core.schemas import JsonOutResult, UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from ...schemas.space_sites.units_schemas import (
    UnitCreate, UnitUpdate, UnitStatusUpdate, UnitOut, UnitRequest, UnitListResponse
)
from ...crud.space_sites import units_crud as crud

router = APIRouter(prefix="/api/units", tags=["units"])


@router.post("", response_model=JsonOutResult[UnitOut], status_code=status.HTTP_201_CREATED)
def create_unit(
    payload: UnitCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.create_unit(db, current_user.user_id, payload)
    return success_response(data=result, message="Unit created successfully",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.get("", response_model=JsonOutResult[UnitListResponse])
def get_units(
    params: UnitRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    # landlords see their own units, everyone else browses the catalogue
    landlord_id = current_user.user_id if current_user.role == UserRole.LANDLORD else None
    return success_response(data=crud.get_units(db, params, landlord_id))


@router.get("/{unit_id}", response_model=JsonOutResult[UnitOut])
def get_unit(
    unit_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=crud.get_unit(db, unit_id))


@router.put("/{unit_id}", response_model=JsonOutResult[UnitOut])
def update_unit(
    unit_id: UUID,
    payload: UnitUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.update_unit(db, current_user.user_id, unit_id, payload)
    return success_response(data=result, message="Unit updated successfully",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.patch("/{unit_id}/status", response_model=JsonOutResult[UnitOut])
def update_unit_status(
    unit_id: UUID,
    payload: UnitStatusUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.update_unit_status(db, current_user.user_id, unit_id, payload.status)
    return success_response(data=result, message="Unit status updated",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.delete("/{unit_id}", response_model=JsonOutResult[UnitOut])
def archive_unit(
    unit_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.archive_unit(db, current_user.user_id, unit_id)
    return success_response(data=result, message="Unit archived",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)
