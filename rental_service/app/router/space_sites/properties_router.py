from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.database import get_rental_db as get_db
from shared.core.auth import allow_landlord
from shared.core.schemas import JsonOutResult, UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...schemas.space_sites.properties_schemas import (
    PropertyCreate, PropertyUpdate, PropertyOut, PropertyRequest, PropertyListResponse
)
from ...crud.space_sites import properties_crud as crud

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.post("", response_model=JsonOutResult[PropertyOut], status_code=status.HTTP_201_CREATED)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.create_property(db, current_user.user_id, payload)
    return success_response(data=result, message="Property created successfully",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.get("", response_model=JsonOutResult[PropertyListResponse])
def get_properties(
    params: PropertyRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    return success_response(data=crud.get_properties(db, current_user.user_id, params))


@router.get("/{property_id}", response_model=JsonOutResult[PropertyOut])
def get_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    return success_response(data=crud.get_property(db, current_user.user_id, property_id))


@router.put("/{property_id}", response_model=JsonOutResult[PropertyOut])
def update_property(
    property_id: UUID,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.update_property(db, current_user.user_id, property_id, payload)
    return success_response(data=result, message="Property updated successfully",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.delete("/{property_id}", response_model=JsonOutResult[PropertyOut])
def archive_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.archive_property(db, current_user.user_id, property_id)
    return success_response(data=result, message="Property archived",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)
