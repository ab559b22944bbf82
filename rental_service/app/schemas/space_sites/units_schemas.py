from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Optional, List
from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.space_sites_enum import UnitStatus


class UnitBase(EmptyStringModel):
    unit_number: Optional[str] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    sqft: Optional[int] = Field(default=None, ge=0)
    rent_amount: Optional[Decimal] = Field(default=None, ge=0)
    deposit_amount: Optional[Decimal] = Field(default=None, ge=0)
    images: Optional[List[str]] = None


class UnitCreate(UnitBase):
    property_id: UUID
    unit_number: str
    rent_amount: Decimal = Field(ge=0)


class UnitUpdate(UnitBase):
    pass


class UnitStatusUpdate(BaseModel):
    status: UnitStatus


class UnitOut(BaseModel):
    id: UUID
    property_id: UUID
    landlord_id: UUID
    unit_number: str
    bedrooms: int
    bathrooms: int
    sqft: Optional[int] = None
    rent_amount: Decimal
    deposit_amount: Optional[Decimal] = None
    status: UnitStatus
    images: List[str] = []
    is_archived: bool
    property_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnitRequest(CommonQueryParams):
    property_id: Optional[UUID] = None
    status: Optional[UnitStatus] = None


class UnitListResponse(BaseModel):
    units: List[UnitOut]
    total: int
