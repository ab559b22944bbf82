import os
import tempfile
import uuid
from datetime import date
from decimal import Decimal

# must be set before the app reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="rental-uploads-")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core.auth import create_access_token
from shared.core.database import Base, get_rental_db
from shared.utils.enums import UserRole
from rental_service.app.main import app
from rental_service.app.crud.space_sites import properties_crud, units_crud
from rental_service.app.crud.leasing_tenants import applications_crud, leases_crud
from rental_service.app.enum.leasing_tenants_enum import LeaseDecision
from rental_service.app.schemas.space_sites.properties_schemas import PropertyCreate
from rental_service.app.schemas.space_sites.units_schemas import UnitCreate
from rental_service.app.schemas.leasing_tenants.applications_schemas import ApplicationCreate
from rental_service.app.schemas.leasing_tenants.leases_schemas import LeaseCreate

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_rental_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def landlord_id():
    return uuid.uuid4()


@pytest.fixture()
def tenant_id():
    return uuid.uuid4()


@pytest.fixture()
def other_tenant_id():
    return uuid.uuid4()


@pytest.fixture()
def staff_id():
    return uuid.uuid4()


def auth_headers(user_id, role: UserRole):
    token = create_access_token({"user_id": user_id, "role": role, "name": role.value.title()})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def landlord_headers(landlord_id):
    return auth_headers(landlord_id, UserRole.LANDLORD)


@pytest.fixture()
def other_landlord_headers():
    return auth_headers(uuid.uuid4(), UserRole.LANDLORD)


@pytest.fixture()
def tenant_headers(tenant_id):
    return auth_headers(tenant_id, UserRole.TENANT)


@pytest.fixture()
def other_tenant_headers(other_tenant_id):
    return auth_headers(other_tenant_id, UserRole.TENANT)


@pytest.fixture()
def staff_headers(staff_id):
    return auth_headers(staff_id, UserRole.MAINTENANCE)


class Seed:
    """Builds the records a lifecycle test starts from, through the crud layer."""

    def __init__(self, db, landlord_id, tenant_id):
        self.db = db
        self.landlord_id = landlord_id
        self.tenant_id = tenant_id

    def property(self, name="Maple Court"):
        return properties_crud.create_property(self.db, self.landlord_id, PropertyCreate(
            name=name,
            address={
                "line1": "12 Maple St",
                "city": "Toronto",
                "state": "ON",
                "country": "Canada",
                "postal_code": "m5v 2t6",
            },
        ))

    def unit(self, rent=Decimal("1000.00"), unit_number="101", property_id=None):
        property_id = property_id or self.property().id
        return units_crud.create_unit(self.db, self.landlord_id, UnitCreate(
            property_id=property_id,
            unit_number=unit_number,
            bedrooms=2,
            bathrooms=1,
            rent_amount=rent,
        ))

    def application(self, unit_id, tenant_id=None):
        return applications_crud.submit_application(
            self.db, tenant_id or self.tenant_id, ApplicationCreate(unit_id=unit_id, note="Looking to move in"))

    def pending_lease(self, unit_id=None, tenant_id=None, **terms):
        unit_id = unit_id or self.unit().id
        application = self.application(unit_id, tenant_id)
        terms.setdefault("start_date", date(2026, 1, 1))
        terms.setdefault("end_date", date(2026, 12, 31))
        return leases_crud.create_lease(self.db, self.landlord_id, LeaseCreate(
            application_id=application.id, **terms))

    def active_lease(self, unit_id=None, tenant_id=None, **terms):
        lease = self.pending_lease(unit_id, tenant_id, **terms)
        return leases_crud.respond_to_lease(self.db, lease.tenant_id, lease.id, LeaseDecision.ACCEPT)


@pytest.fixture()
def seed(db, landlord_id, tenant_id):
    return Seed(db, landlord_id, tenant_id)
