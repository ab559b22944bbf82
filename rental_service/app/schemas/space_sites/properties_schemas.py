from datetime import datetime
from uuid import UUID
from typing import Optional, List
from pydantic import BaseModel

from shared.core.schemas import CommonQueryParams
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.space_sites_enum import PropertyType


class AddressIn(EmptyStringModel):
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class PropertyBase(EmptyStringModel):
    name: Optional[str] = None
    property_type: Optional[PropertyType] = None
    # either nested `address` or the flat fields below
    address: Optional[AddressIn] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    amenities: Optional[List[str]] = None
    notes: Optional[str] = None


class PropertyCreate(PropertyBase):
    name: str


class PropertyUpdate(PropertyBase):
    pass


class AddressOut(BaseModel):
    line1: str
    line2: Optional[str] = None
    city: str
    state: str
    country: str
    postal_code: str


class PropertyOut(BaseModel):
    id: UUID
    landlord_id: UUID
    name: str
    property_type: PropertyType
    address: AddressOut
    amenities: List[str] = []
    notes: Optional[str] = None
    unit_count: int = 0
    is_archived: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PropertyRequest(CommonQueryParams):
    include_archived: bool = False


class PropertyListResponse(BaseModel):
    properties: List[PropertyOut]
    total: int
