from datetime import datetime
from uuid import UUID
from typing import Optional, List
from pydantic import BaseModel

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.ticket_service_enum import TicketStatus, TicketCategory, TicketPriority, TimelineAction


class MaintenanceTicketCreate(EmptyStringModel):
    unit_id: UUID
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    attachments: Optional[List[str]] = None


class TicketAssign(BaseModel):
    staff_id: UUID


class TicketStatusUpdate(EmptyStringModel):
    status: TicketStatus
    note: Optional[str] = None


class TimelineEntryOut(BaseModel):
    action: TimelineAction
    action_by: UUID
    old_status: Optional[TicketStatus] = None
    new_status: Optional[TicketStatus] = None
    note: Optional[str] = None
    action_time: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MaintenanceTicketOut(BaseModel):
    id: UUID
    unit_id: UUID
    created_by: UUID
    assigned_to: Optional[UUID] = None
    title: str
    description: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    attachments: List[str] = []
    unit_number: Optional[str] = None
    requested_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MaintenanceTicketDetailOut(MaintenanceTicketOut):
    timeline: List[TimelineEntryOut] = []


class MaintenanceTicketRequest(CommonQueryParams):
    status: Optional[TicketStatus] = None


class MaintenanceTicketListResponse(BaseModel):
    tickets: List[MaintenanceTicketOut]
    total: int
