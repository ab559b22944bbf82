import logging
from typing import Dict, List
from uuid import UUID
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from shared.core.exceptions import NotFoundError, ValidationError
from ...models.space_sites.properties import Property
from ...models.space_sites.units import Unit
from ...enum.space_sites_enum import PropertyType
from ...schemas.space_sites.properties_schemas import (
    PropertyCreate, PropertyUpdate, PropertyOut, PropertyRequest, PropertyListResponse
)

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("line1", "line2", "city", "state", "country", "postal_code")
REQUIRED_ADDRESS_FIELDS = {
    "line1": "Address line 1 is required",
    "city": "City is required",
    "state": "State is required",
    "country": "Country is required",
}


def normalize_address(payload: PropertyCreate | PropertyUpdate, existing: Dict = None) -> Dict:
    """Merge nested `address`, flat fields and the stored address.

    Nested values win over flat ones, which win over what is stored. The
    postal code loses all whitespace and is upper-cased.
    """
    nested = payload.address.model_dump() if payload.address else {}
    flat = {
        "line1": payload.address_line1,
        "line2": payload.address_line2,
        "city": payload.city,
        "state": payload.state,
        "country": payload.country,
        "postal_code": payload.postal_code,
    }
    existing = existing or {}

    address = {}
    for key in ADDRESS_FIELDS:
        value = nested.get(key)
        if value is None:
            value = flat.get(key)
        if value is None:
            value = existing.get(key)
        address[key] = value

    if address["postal_code"] is not None:
        address["postal_code"] = "".join(str(address["postal_code"]).split()).upper()

    return address


def validate_address(address: Dict) -> List[Dict]:
    errors = []
    for key, msg in REQUIRED_ADDRESS_FIELDS.items():
        if not (address.get(key) or "").strip():
            errors.append({"path": f"address.{key}", "msg": msg})

    postal_code = address.get("postal_code") or ""
    if not postal_code:
        errors.append({"path": "address.postal_code", "msg": "Postal code is required"})
    elif len(postal_code) != 6 or not postal_code.isascii() or not postal_code.isalnum():
        errors.append({"path": "address.postal_code",
                       "msg": "Postal code must be exactly 6 alphanumeric characters"})
    return errors


def _stored_address(prop: Property) -> Dict:
    return {
        "line1": prop.address_line1,
        "line2": prop.address_line2,
        "city": prop.city,
        "state": prop.state,
        "country": prop.country,
        "postal_code": prop.postal_code,
    }


def _apply_address(prop: Property, address: Dict):
    prop.address_line1 = address["line1"]
    prop.address_line2 = address["line2"]
    prop.city = address["city"]
    prop.state = address["state"]
    prop.country = address["country"]
    prop.postal_code = address["postal_code"]


def property_out(db: Session, prop: Property) -> PropertyOut:
    unit_count = db.query(func.count(Unit.id)).filter(
        Unit.property_id == prop.id,
        Unit.is_archived == False
    ).scalar()

    return PropertyOut.model_validate({
        **prop.__dict__,
        "address": _stored_address(prop),
        "amenities": prop.amenities or [],
        "unit_count": unit_count or 0,
    })


def get_owned_property(db: Session, landlord_id: UUID, property_id: UUID) -> Property:
    prop = db.query(Property).filter(
        Property.id == property_id,
        Property.landlord_id == landlord_id,
        Property.is_archived == False
    ).first()
    if not prop:
        raise NotFoundError("Property not found")
    return prop


def create_property(db: Session, landlord_id: UUID, payload: PropertyCreate) -> PropertyOut:
    errors = []
    if not (payload.name or "").strip():
        errors.append({"path": "name", "msg": "Name is required"})

    address = normalize_address(payload)
    errors.extend(validate_address(address))
    if errors:
        raise ValidationError("Validation failed", errors)

    prop = Property(
        landlord_id=landlord_id,
        name=payload.name.strip(),
        property_type=payload.property_type or PropertyType.APARTMENT,
        amenities=payload.amenities or [],
        notes=payload.notes,
    )
    _apply_address(prop, address)

    db.add(prop)
    db.commit()
    db.refresh(prop)

    logger.info("Property %s created by landlord %s", prop.id, landlord_id)
    return property_out(db, prop)


def update_property(db: Session, landlord_id: UUID, property_id: UUID, payload: PropertyUpdate) -> PropertyOut:
    prop = get_owned_property(db, landlord_id, property_id)

    address = normalize_address(payload, _stored_address(prop))
    errors = validate_address(address)
    if errors:
        raise ValidationError("Validation failed", errors)

    update_data = payload.model_dump(
        exclude_unset=True,
        exclude={"address", "address_line1", "address_line2", "city", "state", "country", "postal_code"}
    )
    if "name" in update_data and not (update_data["name"] or "").strip():
        raise ValidationError("Name is required")

    for key, value in update_data.items():
        if value is not None:
            setattr(prop, key, value)
    _apply_address(prop, address)

    db.commit()
    db.refresh(prop)
    return property_out(db, prop)


def archive_property(db: Session, landlord_id: UUID, property_id: UUID) -> PropertyOut:
    prop = get_owned_property(db, landlord_id, property_id)
    prop.is_archived = True
    db.commit()
    db.refresh(prop)

    logger.info("Property %s archived", prop.id)
    return property_out(db, prop)


def get_property(db: Session, landlord_id: UUID, property_id: UUID) -> PropertyOut:
    return property_out(db, get_owned_property(db, landlord_id, property_id))


def get_properties(db: Session, landlord_id: UUID, params: PropertyRequest) -> PropertyListResponse:
    query = db.query(Property).filter(Property.landlord_id == landlord_id)

    if not params.include_archived:
        query = query.filter(Property.is_archived == False)

    if params.search:
        search_term = f"%{params.search}%"
        query = query.filter(or_(
            Property.name.ilike(search_term),
            Property.city.ilike(search_term),
            Property.postal_code.ilike(search_term),
        ))

    total = query.with_entities(func.count(Property.id)).scalar()
    properties = (
        query.order_by(Property.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return PropertyListResponse(
        properties=[property_out(db, p) for p in properties],
        total=total
    )
