from decimal import Decimal
import uuid

import pytest

from shared.core.exceptions import ValidationError, NotFoundError, InvalidStateError
from rental_service.app.crud.space_sites import properties_crud, units_crud
from rental_service.app.enum.space_sites_enum import UnitStatus
from rental_service.app.schemas.space_sites.properties_schemas import PropertyCreate, PropertyUpdate
from rental_service.app.schemas.space_sites.units_schemas import UnitRequest


def test_address_accepts_flat_fields_and_normalizes_postal_code(db, landlord_id):
    prop = properties_crud.create_property(db, landlord_id, PropertyCreate(
        name="  Birch House ",
        address_line1="4 Birch Rd",
        city="Ottawa",
        state="ON",
        country="Canada",
        postal_code=" k1a 0b1 ",
    ))

    assert prop.name == "Birch House"
    assert prop.address.postal_code == "K1A0B1"
    assert prop.address.line1 == "4 Birch Rd"


def test_nested_address_wins_over_flat_fields(db, landlord_id):
    prop = properties_crud.create_property(db, landlord_id, PropertyCreate(
        name="Cedar",
        city="Flat City",
        address={"line1": "1 Cedar", "city": "Nested City", "state": "BC",
                 "country": "Canada", "postal_code": "V6B1A1"},
    ))
    assert prop.address.city == "Nested City"


def test_invalid_postal_code_is_rejected(db, landlord_id):
    with pytest.raises(ValidationError) as exc:
        properties_crud.create_property(db, landlord_id, PropertyCreate(
            name="Bad", address={"line1": "1 A St", "city": "X", "state": "Y",
                                 "country": "Z", "postal_code": "12345"},
        ))
    paths = [e["path"] for e in exc.value.details]
    assert paths == ["address.postal_code"]


def test_missing_address_fields_are_all_reported(db, landlord_id):
    with pytest.raises(ValidationError) as exc:
        properties_crud.create_property(db, landlord_id, PropertyCreate(name="Empty"))
    paths = {e["path"] for e in exc.value.details}
    assert paths == {"address.line1", "address.city", "address.state",
                     "address.country", "address.postal_code"}


def test_update_merges_with_stored_address(db, seed, landlord_id):
    prop = seed.property()
    updated = properties_crud.update_property(db, landlord_id, prop.id, PropertyUpdate(city="Montreal"))
    assert updated.address.city == "Montreal"
    assert updated.address.line1 == "12 Maple St"
    assert updated.address.postal_code == "M5V2T6"


def test_other_landlord_cannot_see_property(db, seed):
    prop = seed.property()
    with pytest.raises(NotFoundError):
        properties_crud.get_property(db, uuid.uuid4(), prop.id)


def test_unit_deposit_defaults_to_rent_and_copies_landlord(db, seed, landlord_id):
    unit = seed.unit(rent=Decimal("1250.00"))
    assert unit.deposit_amount == Decimal("1250.00")
    assert unit.landlord_id == landlord_id
    assert unit.status == UnitStatus.AVAILABLE


def test_landlord_can_toggle_maintenance_but_not_occupied(db, seed, landlord_id):
    unit = seed.unit()
    out = units_crud.update_unit_status(db, landlord_id, unit.id, UnitStatus.MAINTENANCE)
    assert out.status == UnitStatus.MAINTENANCE

    with pytest.raises(InvalidStateError):
        units_crud.update_unit_status(db, landlord_id, unit.id, UnitStatus.OCCUPIED)


def test_unit_with_open_lease_cannot_be_archived(db, seed, landlord_id):
    lease = seed.pending_lease()
    with pytest.raises(InvalidStateError):
        units_crud.archive_unit(db, landlord_id, lease.unit_id)


def test_list_units_filters_by_status(db, seed, landlord_id):
    prop = seed.property()
    seed.unit(unit_number="1", property_id=prop.id)
    second = seed.unit(unit_number="2", property_id=prop.id)
    units_crud.update_unit_status(db, landlord_id, second.id, UnitStatus.MAINTENANCE)

    result = units_crud.get_units(db, UnitRequest(status=UnitStatus.AVAILABLE), landlord_id)
    assert result.total == 1
    assert result.units[0].unit_number == "1"
