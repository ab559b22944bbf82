import logging
from datetime import date, datetime, timezone
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.exceptions import (
    NotFoundError, ForbiddenError, InvalidStateError, ConflictError, ValidationError
)
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from shared.utils.pdf_renderer import render_lease_pdf
from ...models.leasing_tenants.leases import Lease
from ...models.leasing_tenants.applications import Application
from ...enum.leasing_tenants_enum import (
    ApplicationStatus, LeaseStatus, LeaseDecision, OPEN_LEASE_STATUSES, TERMINAL_LEASE_STATUSES
)
from ...enum.space_sites_enum import UnitStatus
from ...schemas.leasing_tenants.leases_schemas import LeaseCreate, LeaseOut, LeaseListResponse
from ..access_control.ownership_crud import landlord_owns_application, landlord_owns_lease
from ..space_sites.units_crud import get_unit_or_404, has_open_lease, set_status
from .applications_crud import get_application_or_404

logger = logging.getLogger(__name__)

MIN_DUE_DAY = 1
MAX_DUE_DAY = 28

# descriptive terms copied verbatim from the request when supplied
TERM_FIELDS = (
    "lease_title", "lease_type", "rent_frequency", "payment_method", "late_fee_type",
    "late_fee_value", "discount_notes", "pets_allowed", "smoking_allowed",
    "parking_included", "furnished", "utilities_included", "additional_terms",
)


def lease_out(lease: Lease) -> LeaseOut:
    unit = lease.unit
    return LeaseOut.model_validate({
        **lease.__dict__,
        "utilities_included": lease.utilities_included or [],
        "documents": lease.documents or [],
        "unit_number": unit.unit_number if unit else None,
        "property_name": unit.property.name if unit and unit.property else None,
    })


def get_lease_or_404(db: Session, lease_id: UUID) -> Lease:
    lease = db.query(Lease).filter(Lease.id == lease_id).first()
    if not lease:
        raise NotFoundError("Lease not found")
    return lease


def _validate_terms(payload: LeaseCreate):
    errors = []
    if payload.start_date is None:
        errors.append({"path": "start_date", "msg": "Start date is required"})
    if payload.end_date is None:
        errors.append({"path": "end_date", "msg": "End date is required"})
    if payload.start_date and payload.end_date and payload.end_date < payload.start_date:
        errors.append({"path": "end_date", "msg": "End date must not be before start date"})
    if payload.due_day is not None and not (MIN_DUE_DAY <= payload.due_day <= MAX_DUE_DAY):
        errors.append({"path": "due_day", "msg": f"Due day must be between {MIN_DUE_DAY} and {MAX_DUE_DAY}"})
    if errors:
        raise ValidationError("Validation failed", errors)


def create_lease(db: Session, landlord_id: UUID, payload: LeaseCreate) -> LeaseOut:
    application = get_application_or_404(db, payload.application_id)

    if not landlord_owns_application(db, landlord_id, application.id):
        raise ForbiddenError("Not authorized for this application")

    if application.status not in (ApplicationStatus.PENDING, ApplicationStatus.APPROVED):
        raise InvalidStateError(f"Application is {application.status.value}")

    unit = get_unit_or_404(db, application.unit_id, include_archived=True)
    if has_open_lease(db, unit.id):
        raise ConflictError("A lease already exists for this unit")

    _validate_terms(payload)

    rent_amount = payload.rent_amount if payload.rent_amount is not None else unit.rent_amount
    deposit_amount = payload.deposit_amount if payload.deposit_amount is not None else rent_amount

    lease = Lease(
        application_id=application.id,
        unit_id=unit.id,
        landlord_id=landlord_id,
        tenant_id=application.tenant_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        rent_amount=rent_amount,
        deposit_amount=deposit_amount,
        due_day=payload.due_day or MIN_DUE_DAY,
        status=LeaseStatus.PENDING,
        emergency_contact=payload.emergency_contact.model_dump() if payload.emergency_contact else None,
        documents=payload.documents or [],
    )
    for field in TERM_FIELDS:
        value = getattr(payload, field)
        if value is not None:
            setattr(lease, field, value)

    if application.status != ApplicationStatus.APPROVED:
        application.status = ApplicationStatus.APPROVED
        application.decided_at = datetime.now(timezone.utc)

    db.add(lease)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A lease already exists for this unit")
    db.refresh(lease)

    logger.info("Lease %s created for unit %s (application %s)", lease.id, unit.id, application.id)
    return lease_out(lease)


def respond_to_lease(db: Session, tenant_id: UUID, lease_id: UUID, decision: LeaseDecision) -> LeaseOut:
    lease = get_lease_or_404(db, lease_id)

    if lease.tenant_id != tenant_id:
        raise ForbiddenError("Not authorized for this lease")
    if lease.status != LeaseStatus.PENDING:
        raise InvalidStateError(f"Lease is {lease.status.value}, expected PENDING")

    if decision == LeaseDecision.ACCEPT:
        new_status, unit_status = LeaseStatus.ACTIVE, UnitStatus.OCCUPIED
        values = {Lease.status: new_status, Lease.accepted_at: datetime.now(timezone.utc)}
    else:
        new_status, unit_status = LeaseStatus.REJECTED, UnitStatus.AVAILABLE
        values = {Lease.status: new_status}

    try:
        updated = (
            db.query(Lease)
            .filter(Lease.id == lease.id, Lease.status == LeaseStatus.PENDING)
            .update(values, synchronize_session=False)
        )
        if updated == 0:
            raise InvalidStateError("Lease is no longer pending")

        set_status(db, lease.unit_id, unit_status)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(lease)
    logger.info("Lease %s %s by tenant %s", lease.id, new_status.value, tenant_id)
    return lease_out(lease)


def terminate_lease(db: Session, landlord_id: UUID, lease_id: UUID) -> LeaseOut:
    lease = get_lease_or_404(db, lease_id)

    if not landlord_owns_lease(db, landlord_id, lease.id):
        raise ForbiddenError("Not authorized for this lease")

    if lease.status in TERMINAL_LEASE_STATUSES:
        logger.info("Lease %s already %s, terminate is a no-op", lease.id, lease.status.value)
        return lease_out(lease)

    try:
        updated = (
            db.query(Lease)
            .filter(Lease.id == lease.id, Lease.status.in_(OPEN_LEASE_STATUSES))
            .update({
                Lease.status: LeaseStatus.TERMINATED,
                Lease.terminated_at: datetime.now(timezone.utc),
            }, synchronize_session=False)
        )
        if updated:
            set_status(db, lease.unit_id, UnitStatus.AVAILABLE)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(lease)
    logger.info("Lease %s terminated by landlord %s", lease.id, landlord_id)
    return lease_out(lease)


def expire_due_leases(db: Session, today: date = None) -> int:
    """ACTIVE leases whose end date has passed become EXPIRED and free their unit."""
    today = today or date.today()

    due = db.query(Lease).filter(
        Lease.status == LeaseStatus.ACTIVE,
        Lease.end_date < today
    ).all()

    for lease in due:
        lease.status = LeaseStatus.EXPIRED
        set_status(db, lease.unit_id, UnitStatus.AVAILABLE)
        logger.info("Lease %s expired (ended %s)", lease.id, lease.end_date)

    db.commit()
    return len(due)


def get_tenant_leases(db: Session, tenant_id: UUID) -> LeaseListResponse:
    query = db.query(Lease).filter(
        Lease.tenant_id == tenant_id,
        Lease.is_archived == False
    )
    total = query.with_entities(func.count(Lease.id)).scalar()
    leases = query.order_by(Lease.created_at.desc()).all()
    return LeaseListResponse(leases=[lease_out(l) for l in leases], total=total)


def get_landlord_leases(db: Session, landlord_id: UUID, status: LeaseStatus = None) -> LeaseListResponse:
    query = db.query(Lease).filter(
        Lease.landlord_id == landlord_id,
        Lease.is_archived == False
    )
    if status:
        query = query.filter(Lease.status == status)

    total = query.with_entities(func.count(Lease.id)).scalar()
    leases = query.order_by(Lease.created_at.desc()).all()
    return LeaseListResponse(leases=[lease_out(l) for l in leases], total=total)


def get_lease_for_party(db: Session, current_user: UserToken, lease_id: UUID) -> Lease:
    lease = get_lease_or_404(db, lease_id)

    if current_user.role == UserRole.LANDLORD and landlord_owns_lease(db, current_user.user_id, lease.id):
        return lease
    if current_user.role == UserRole.TENANT and lease.tenant_id == current_user.user_id:
        return lease
    raise ForbiddenError("Not authorized for this lease")


def get_lease_pdf(db: Session, current_user: UserToken, lease_id: UUID) -> bytes:
    lease = get_lease_for_party(db, current_user, lease_id)
    return render_lease_pdf(lease_out(lease).model_dump())
