from datetime import datetime
from uuid import UUID
from typing import Optional, List
from pydantic import BaseModel

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.leasing_tenants_enum import ApplicationStatus


class ApplicationCreate(EmptyStringModel):
    unit_id: UUID
    note: Optional[str] = None
    documents: Optional[List[str]] = None


class ApplicationOut(BaseModel):
    id: UUID
    unit_id: UUID
    tenant_id: UUID
    status: ApplicationStatus
    note: Optional[str] = None
    documents: List[str] = []
    unit_number: Optional[str] = None
    property_name: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationOut]
    total: int
