from datetime import datetime, date
from decimal import Decimal
from uuid import UUID
from typing import Optional, List
from pydantic import BaseModel, Field

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel
from ...enum.leasing_tenants_enum import (
    LeaseStatus, LeaseDecision, LeaseType, RentFrequency, LeasePaymentMethod, LateFeeType,
    PetsAllowed, SmokingAllowed, ParkingIncluded, Furnished
)


class EmergencyContact(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    relation: Optional[str] = None


class LeaseTerms(EmptyStringModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rent_amount: Optional[Decimal] = Field(default=None, ge=0)
    deposit_amount: Optional[Decimal] = Field(default=None, ge=0)
    due_day: Optional[int] = None
    lease_title: Optional[str] = None
    lease_type: Optional[LeaseType] = None
    rent_frequency: Optional[RentFrequency] = None
    payment_method: Optional[LeasePaymentMethod] = None
    late_fee_type: Optional[LateFeeType] = None
    late_fee_value: Optional[Decimal] = Field(default=None, ge=0)
    discount_notes: Optional[str] = None
    pets_allowed: Optional[PetsAllowed] = None
    smoking_allowed: Optional[SmokingAllowed] = None
    parking_included: Optional[ParkingIncluded] = None
    furnished: Optional[Furnished] = None
    utilities_included: Optional[List[str]] = None
    emergency_contact: Optional[EmergencyContact] = None
    additional_terms: Optional[str] = None
    documents: Optional[List[str]] = None


class LeaseCreate(LeaseTerms):
    application_id: UUID


class LeaseRespond(BaseModel):
    decision: LeaseDecision


class LeaseOut(BaseModel):
    id: UUID
    application_id: Optional[UUID] = None
    unit_id: UUID
    landlord_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    rent_amount: Decimal
    deposit_amount: Decimal
    due_day: int
    status: LeaseStatus
    lease_title: Optional[str] = None
    lease_type: Optional[LeaseType] = None
    rent_frequency: Optional[RentFrequency] = None
    payment_method: Optional[LeasePaymentMethod] = None
    late_fee_type: Optional[LateFeeType] = None
    late_fee_value: Optional[Decimal] = None
    discount_notes: Optional[str] = None
    pets_allowed: Optional[PetsAllowed] = None
    smoking_allowed: Optional[SmokingAllowed] = None
    parking_included: Optional[ParkingIncluded] = None
    furnished: Optional[Furnished] = None
    utilities_included: List[str] = []
    emergency_contact: Optional[EmergencyContact] = None
    additional_terms: Optional[str] = None
    documents: List[str] = []
    unit_number: Optional[str] = None
    property_name: Optional[str] = None
    accepted_at: Optional[datetime] = None
    terminated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LeaseListResponse(BaseModel):
    leases: List[LeaseOut]
    total: int
