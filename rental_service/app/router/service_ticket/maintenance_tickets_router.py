from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.core.database import get_rental_db as get_db
from shared.core.auth import allow_landlord, allow_tenant, allow_maintenance, validate_current_token
from shared.core.schemas import JsonOutResult, Lookup, UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...schemas.service_ticket.maintenance_tickets_schemas import (
    MaintenanceTicketCreate, MaintenanceTicketOut, MaintenanceTicketDetailOut,
    MaintenanceTicketRequest, MaintenanceTicketListResponse, TicketAssign, TicketStatusUpdate
)
from ...crud.service_ticket import maintenance_tickets_crud as crud

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.post("", response_model=JsonOutResult[MaintenanceTicketOut], status_code=status.HTTP_201_CREATED)
def create_ticket(
    payload: MaintenanceTicketCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    result = crud.create_ticket(db, current_user.user_id, payload)
    return success_response(data=result, message="Maintenance ticket created",
                            status_code=AppStatusCode.CREATED_SUCCESSFULLY)


@router.get("/my", response_model=JsonOutResult[MaintenanceTicketListResponse])
def get_my_tickets(
    params: MaintenanceTicketRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_tenant)
):
    return success_response(data=crud.get_tenant_tickets(db, current_user.user_id, params))


@router.get("/landlord", response_model=JsonOutResult[MaintenanceTicketListResponse])
def get_landlord_tickets(
    params: MaintenanceTicketRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    return success_response(data=crud.get_landlord_tickets(db, current_user.user_id, params))


@router.get("/assigned", response_model=JsonOutResult[MaintenanceTicketListResponse])
def get_assigned_tickets(
    params: MaintenanceTicketRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_maintenance)
):
    return success_response(data=crud.get_assigned_tickets(db, current_user.user_id, params))


@router.put("/{ticket_id}/assign", response_model=JsonOutResult[MaintenanceTicketOut])
def assign_ticket(
    ticket_id: UUID,
    payload: TicketAssign,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.assign_ticket(db, current_user.user_id, ticket_id, payload.staff_id)
    return success_response(data=result, message="Ticket assigned successfully",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.put("/{ticket_id}/status", response_model=JsonOutResult[MaintenanceTicketOut])
def update_ticket_status(
    ticket_id: UUID,
    payload: TicketStatusUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_maintenance)
):
    result = crud.update_ticket_status(db, current_user.user_id, ticket_id, payload.status, payload.note)
    return success_response(data=result, message="Status updated",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.put("/{ticket_id}/close", response_model=JsonOutResult[MaintenanceTicketOut])
def close_ticket(
    ticket_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_landlord)
):
    result = crud.close_ticket(db, current_user.user_id, ticket_id)
    return success_response(data=result, message="Ticket closed successfully",
                            status_code=AppStatusCode.OPERATION_SUCCESSFUL)


@router.get("/{ticket_id}", response_model=JsonOutResult[MaintenanceTicketDetailOut])
def get_ticket(
    ticket_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=crud.get_ticket(db, current_user, ticket_id))


@router.get("/{ticket_id}/next-statuses", response_model=JsonOutResult[List[Lookup]])
def get_next_statuses(
    ticket_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return success_response(data=crud.get_possible_next_statuses(db, current_user, ticket_id))
