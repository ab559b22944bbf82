import logging
from uuid import UUID
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from shared.core.exceptions import NotFoundError, InvalidStateError
from ...models.space_sites.units import Unit
from ...models.leasing_tenants.leases import Lease
from ...enum.space_sites_enum import UnitStatus
from ...enum.leasing_tenants_enum import OPEN_LEASE_STATUSES
from ...schemas.space_sites.units_schemas import (
    UnitCreate, UnitUpdate, UnitOut, UnitRequest, UnitListResponse
)
from ..access_control.ownership_crud import landlord_owns_unit
from .properties_crud import get_owned_property

logger = logging.getLogger(__name__)

# OCCUPIED belongs to the lease lifecycle
LANDLORD_SETTABLE_STATUSES = (UnitStatus.AVAILABLE, UnitStatus.MAINTENANCE)


def unit_out(unit: Unit) -> UnitOut:
    return UnitOut.model_validate({
        **unit.__dict__,
        "images": unit.images or [],
        "property_name": unit.property.name if unit.property else None,
    })


def get_unit_or_404(db: Session, unit_id: UUID, include_archived: bool = False) -> Unit:
    query = db.query(Unit).filter(Unit.id == unit_id)
    if not include_archived:
        query = query.filter(Unit.is_archived == False)
    unit = query.first()
    if not unit:
        raise NotFoundError("Unit not found")
    return unit


def get_owned_unit(db: Session, landlord_id: UUID, unit_id: UUID) -> Unit:
    unit = get_unit_or_404(db, unit_id)
    if not landlord_owns_unit(db, landlord_id, unit.id):
        raise NotFoundError("Unit not found")
    return unit


def has_open_lease(db: Session, unit_id: UUID) -> bool:
    return db.query(Lease.id).filter(
        Lease.unit_id == unit_id,
        Lease.status.in_(OPEN_LEASE_STATUSES)
    ).first() is not None


def set_status(db: Session, unit_id: UUID, status: UnitStatus) -> Unit:
    """Write the unit status without committing; callers own the transaction."""
    unit = get_unit_or_404(db, unit_id, include_archived=True)
    if unit.status != status:
        logger.info("Unit %s status %s -> %s", unit.id, unit.status.value, status.value)
    unit.status = status
    return unit


def create_unit(db: Session, landlord_id: UUID, payload: UnitCreate) -> UnitOut:
    prop = get_owned_property(db, landlord_id, payload.property_id)

    unit = Unit(
        property_id=prop.id,
        landlord_id=prop.landlord_id,
        unit_number=payload.unit_number.strip(),
        bedrooms=payload.bedrooms or 0,
        bathrooms=payload.bathrooms or 0,
        sqft=payload.sqft,
        rent_amount=payload.rent_amount,
        deposit_amount=payload.deposit_amount if payload.deposit_amount is not None else payload.rent_amount,
        images=payload.images or [],
        status=UnitStatus.AVAILABLE,
    )
    db.add(unit)
    db.commit()
    db.refresh(unit)

    logger.info("Unit %s created on property %s", unit.id, prop.id)
    return unit_out(unit)


def update_unit(db: Session, landlord_id: UUID, unit_id: UUID, payload: UnitUpdate) -> UnitOut:
    unit = get_owned_unit(db, landlord_id, unit_id)

    update_data = payload.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if value is not None:
            setattr(unit, key, value)

    db.commit()
    db.refresh(unit)
    return unit_out(unit)


def update_unit_status(db: Session, landlord_id: UUID, unit_id: UUID, status: UnitStatus) -> UnitOut:
    unit = get_owned_unit(db, landlord_id, unit_id)

    if status not in LANDLORD_SETTABLE_STATUSES:
        raise InvalidStateError(f"Unit status cannot be set to {status.value} manually")
    if unit.status == UnitStatus.OCCUPIED or has_open_lease(db, unit.id):
        raise InvalidStateError("Unit has an open lease")

    set_status(db, unit.id, status)
    db.commit()
    db.refresh(unit)
    return unit_out(unit)


def archive_unit(db: Session, landlord_id: UUID, unit_id: UUID) -> UnitOut:
    unit = get_owned_unit(db, landlord_id, unit_id)
    if has_open_lease(db, unit.id):
        raise InvalidStateError("Unit has an open lease")

    unit.is_archived = True
    db.commit()
    db.refresh(unit)

    logger.info("Unit %s archived", unit.id)
    return unit_out(unit)


def get_unit(db: Session, unit_id: UUID) -> UnitOut:
    return unit_out(get_unit_or_404(db, unit_id))


def get_units(db: Session, params: UnitRequest, landlord_id: UUID = None) -> UnitListResponse:
    query = db.query(Unit).filter(Unit.is_archived == False)

    if landlord_id:
        query = query.filter(Unit.landlord_id == landlord_id)
    if params.property_id:
        query = query.filter(Unit.property_id == params.property_id)
    if params.status:
        query = query.filter(Unit.status == params.status)
    if params.search:
        query = query.filter(or_(Unit.unit_number.ilike(f"%{params.search}%")))

    total = query.with_entities(func.count(Unit.id)).scalar()
    units = (
        query.order_by(Unit.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return UnitListResponse(units=[unit_out(u) for u in units], total=total)
