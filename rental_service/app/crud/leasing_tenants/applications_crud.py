import logging
from datetime import datetime, timezone
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.exceptions import NotFoundError, ForbiddenError, InvalidStateError, ConflictError
from ...models.leasing_tenants.applications import Application
from ...models.space_sites.units import Unit
from ...enum.leasing_tenants_enum import ApplicationStatus
from ...enum.space_sites_enum import UnitStatus
from ...schemas.leasing_tenants.applications_schemas import (
    ApplicationCreate, ApplicationOut, ApplicationListResponse
)
from ..access_control.ownership_crud import landlord_owns_application

logger = logging.getLogger(__name__)


def application_out(app: Application) -> ApplicationOut:
    unit = app.unit
    return ApplicationOut.model_validate({
        **app.__dict__,
        "documents": app.documents or [],
        "unit_number": unit.unit_number if unit else None,
        "property_name": unit.property.name if unit and unit.property else None,
    })


def get_application_or_404(db: Session, application_id: UUID) -> Application:
    app = db.query(Application).filter(Application.id == application_id).first()
    if not app:
        raise NotFoundError("Application not found")
    return app


def _transition_pending(db: Session, app: Application, new_status: ApplicationStatus) -> Application:
    # only moves the row if it is still PENDING
    updated = (
        db.query(Application)
        .filter(Application.id == app.id, Application.status == ApplicationStatus.PENDING)
        .update({
            Application.status: new_status,
            Application.decided_at: datetime.now(timezone.utc),
        }, synchronize_session=False)
    )
    if updated == 0:
        db.rollback()
        raise InvalidStateError("Application is no longer pending")

    db.commit()
    db.refresh(app)
    logger.info("Application %s -> %s", app.id, new_status.value)
    return app


def submit_application(db: Session, tenant_id: UUID, payload: ApplicationCreate) -> ApplicationOut:
    unit = db.query(Unit).filter(
        Unit.id == payload.unit_id,
        Unit.is_archived == False
    ).first()
    if not unit:
        raise NotFoundError("Unit not found")

    if unit.status != UnitStatus.AVAILABLE:
        raise InvalidStateError("Unit is not available")

    duplicate = db.query(Application.id).filter(
        Application.tenant_id == tenant_id,
        Application.unit_id == unit.id,
        Application.status == ApplicationStatus.PENDING
    ).first()
    if duplicate:
        raise ConflictError("You already have a pending application for this unit")

    app = Application(
        unit_id=unit.id,
        tenant_id=tenant_id,
        status=ApplicationStatus.PENDING,
        note=payload.note,
        documents=payload.documents or [],
    )
    db.add(app)
    try:
        db.commit()
    except IntegrityError:
        # lost the race against a concurrent submit
        db.rollback()
        raise ConflictError("You already have a pending application for this unit")
    db.refresh(app)

    logger.info("Application %s submitted by tenant %s for unit %s", app.id, tenant_id, unit.id)
    return application_out(app)


def _get_decidable(db: Session, landlord_id: UUID, application_id: UUID) -> Application:
    app = get_application_or_404(db, application_id)
    if not landlord_owns_application(db, landlord_id, app.id):
        raise ForbiddenError("Not authorized for this application")
    if app.status != ApplicationStatus.PENDING:
        raise InvalidStateError(f"Application is {app.status.value}, expected PENDING")
    return app


def approve_application(db: Session, landlord_id: UUID, application_id: UUID) -> ApplicationOut:
    app = _get_decidable(db, landlord_id, application_id)
    return application_out(_transition_pending(db, app, ApplicationStatus.APPROVED))


def reject_application(db: Session, landlord_id: UUID, application_id: UUID) -> ApplicationOut:
    app = _get_decidable(db, landlord_id, application_id)
    return application_out(_transition_pending(db, app, ApplicationStatus.REJECTED))


def _get_own_pending(db: Session, tenant_id: UUID, application_id: UUID) -> Application:
    app = get_application_or_404(db, application_id)
    if app.tenant_id != tenant_id:
        raise ForbiddenError("Not authorized for this application")
    if app.status != ApplicationStatus.PENDING:
        raise InvalidStateError("Only pending applications can be changed")
    return app


def withdraw_application(db: Session, tenant_id: UUID, application_id: UUID) -> ApplicationOut:
    app = _get_own_pending(db, tenant_id, application_id)
    return application_out(_transition_pending(db, app, ApplicationStatus.WITHDRAWN))


def delete_pending_application(db: Session, tenant_id: UUID, application_id: UUID) -> UUID:
    app = _get_own_pending(db, tenant_id, application_id)

    deleted = (
        db.query(Application)
        .filter(Application.id == app.id, Application.status == ApplicationStatus.PENDING)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise InvalidStateError("Only pending applications can be changed")
    db.commit()

    logger.info("Pending application %s deleted by tenant %s", application_id, tenant_id)
    return application_id


def get_tenant_application(db: Session, tenant_id: UUID, application_id: UUID) -> ApplicationOut:
    app = get_application_or_404(db, application_id)
    if app.tenant_id != tenant_id:
        raise ForbiddenError("Not authorized for this application")
    return application_out(app)


def get_tenant_applications(db: Session, tenant_id: UUID) -> ApplicationListResponse:
    query = db.query(Application).filter(Application.tenant_id == tenant_id)
    total = query.with_entities(func.count(Application.id)).scalar()
    applications = query.order_by(Application.created_at.desc()).all()
    return ApplicationListResponse(
        applications=[application_out(a) for a in applications],
        total=total
    )


def get_landlord_applications(db: Session, landlord_id: UUID, status: ApplicationStatus = None) -> ApplicationListResponse:
    query = (
        db.query(Application)
        .join(Unit, Unit.id == Application.unit_id)
        .filter(Unit.landlord_id == landlord_id)
    )
    if status:
        query = query.filter(Application.status == status)

    total = query.with_entities(func.count(Application.id)).scalar()
    applications = query.order_by(Application.created_at.desc()).all()
    return ApplicationListResponse(
        applications=[application_out(a) for a in applications],
        total=total
    )
