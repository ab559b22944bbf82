import logging
from datetime import datetime, timezone
from uuid import UUID
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import (
    NotFoundError, ForbiddenError, InvalidStateError, ValidationError, CapacityError
)
from shared.core.schemas import Lookup, UserToken
from shared.utils.enums import UserRole
from ...models.service_ticket.maintenance_tickets import MaintenanceTicket
from ...models.service_ticket.tickets_timeline import TicketTimeline
from ...models.space_sites.units import Unit
from ...models.leasing_tenants.leases import Lease
from ...enum.leasing_tenants_enum import LeaseStatus
from ...enum.ticket_service_enum import (
    TicketStatus, TicketCategory, TicketPriority, TimelineAction,
    ACTIVE_TICKET_STATUSES, STAFF_SETTABLE_STATUSES
)
from ...schemas.service_ticket.maintenance_tickets_schemas import (
    MaintenanceTicketCreate, MaintenanceTicketOut, MaintenanceTicketDetailOut,
    MaintenanceTicketRequest, MaintenanceTicketListResponse, TimelineEntryOut
)
from ..access_control.ownership_crud import landlord_owns_ticket, tenant_holds_active_lease

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc)


def ticket_out(ticket: MaintenanceTicket) -> MaintenanceTicketOut:
    return MaintenanceTicketOut.model_validate({
        **ticket.__dict__,
        "attachments": ticket.attachments or [],
        "unit_number": ticket.unit.unit_number if ticket.unit else None,
    })


def ticket_detail_out(ticket: MaintenanceTicket) -> MaintenanceTicketDetailOut:
    return MaintenanceTicketDetailOut.model_validate({
        **ticket_out(ticket).model_dump(),
        "timeline": [TimelineEntryOut.model_validate(entry) for entry in ticket.timeline],
    })


def get_ticket_or_404(db: Session, ticket_id: UUID) -> MaintenanceTicket:
    ticket = db.query(MaintenanceTicket).filter(MaintenanceTicket.id == ticket_id).first()
    if not ticket:
        raise NotFoundError("Ticket not found")
    return ticket


def _log(ticket: MaintenanceTicket, action: TimelineAction, actor_id: UUID,
         old_status: TicketStatus = None, note: str = None):
    ticket.timeline.append(TicketTimeline(
        action=action,
        action_by=actor_id,
        old_status=old_status,
        new_status=ticket.status,
        note=note,
        action_time=_utcnow(),
    ))


def count_active_tickets(db: Session, unit_id: UUID) -> int:
    return db.query(func.count(MaintenanceTicket.id)).filter(
        MaintenanceTicket.unit_id == unit_id,
        MaintenanceTicket.status.in_(ACTIVE_TICKET_STATUSES)
    ).scalar() or 0


def create_ticket(db: Session, tenant_id: UUID, payload: MaintenanceTicketCreate) -> MaintenanceTicketOut:
    errors = []
    if not (payload.title or "").strip():
        errors.append({"path": "title", "msg": "Title is required"})
    if not (payload.description or "").strip():
        errors.append({"path": "description", "msg": "Description is required"})
    if errors:
        raise ValidationError("Validation failed", errors)

    if not tenant_holds_active_lease(db, tenant_id, payload.unit_id):
        raise ForbiddenError("You can only create tickets for units you currently lease.")

    if count_active_tickets(db, payload.unit_id) >= settings.MAX_OPEN_TICKETS_PER_UNIT:
        raise CapacityError("Too many open tickets for this unit. Please wait until others are resolved.")

    ticket = MaintenanceTicket(
        unit_id=payload.unit_id,
        created_by=tenant_id,
        title=payload.title.strip(),
        description=payload.description.strip(),
        category=payload.category or TicketCategory.GENERAL,
        priority=payload.priority or TicketPriority.MEDIUM,
        status=TicketStatus.OPEN,
        attachments=payload.attachments or [],
        requested_at=_utcnow(),
    )
    _log(ticket, TimelineAction.CREATED, tenant_id, note="Ticket submitted by tenant")

    db.add(ticket)
    db.commit()
    db.refresh(ticket)

    logger.info("Ticket %s created on unit %s by tenant %s", ticket.id, ticket.unit_id, tenant_id)
    return ticket_out(ticket)


def assign_ticket(db: Session, landlord_id: UUID, ticket_id: UUID, staff_id: UUID) -> MaintenanceTicketOut:
    ticket = get_ticket_or_404(db, ticket_id)

    if not landlord_owns_ticket(db, landlord_id, ticket.id):
        raise ForbiddenError("Not authorized for this ticket")
    if ticket.status == TicketStatus.CLOSED:
        raise InvalidStateError("Ticket is closed")

    old_status = ticket.status
    ticket.assigned_to = staff_id
    ticket.status = TicketStatus.IN_PROGRESS
    if ticket.acknowledged_at is None:
        ticket.acknowledged_at = _utcnow()
    _log(ticket, TimelineAction.ASSIGNED, landlord_id, old_status,
         note=f"Assigned to maintenance user {staff_id}")

    db.commit()
    db.refresh(ticket)

    logger.info("Ticket %s assigned to %s", ticket.id, staff_id)
    return ticket_out(ticket)


def update_ticket_status(db: Session, staff_id: UUID, ticket_id: UUID,
                         status: TicketStatus, note: str = None) -> MaintenanceTicketOut:
    ticket = get_ticket_or_404(db, ticket_id)

    if ticket.assigned_to != staff_id:
        raise ForbiddenError("Not assigned to you")
    if status not in STAFF_SETTABLE_STATUSES:
        allowed = ", ".join(s.value for s in STAFF_SETTABLE_STATUSES)
        raise InvalidStateError(f"Invalid status. Allowed: {allowed}")
    if ticket.status == TicketStatus.CLOSED:
        raise InvalidStateError("Ticket is closed")

    old_status = ticket.status
    ticket.status = status
    if status == TicketStatus.RESOLVED:
        ticket.resolved_at = _utcnow()
    _log(ticket, TimelineAction(f"STATUS_{status.value}"), staff_id, old_status, note=note)

    db.commit()
    db.refresh(ticket)

    logger.info("Ticket %s status %s -> %s by %s", ticket.id, old_status.value, status.value, staff_id)
    return ticket_out(ticket)


def close_ticket(db: Session, landlord_id: UUID, ticket_id: UUID) -> MaintenanceTicketOut:
    ticket = get_ticket_or_404(db, ticket_id)

    if not landlord_owns_ticket(db, landlord_id, ticket.id):
        raise ForbiddenError("Not authorized for this ticket")
    if ticket.status != TicketStatus.RESOLVED:
        raise InvalidStateError("Ticket must be resolved before closing")

    ticket.status = TicketStatus.CLOSED
    ticket.closed_at = _utcnow()
    _log(ticket, TimelineAction.CLOSED, landlord_id, TicketStatus.RESOLVED,
         note="Ticket closed by landlord")

    db.commit()
    db.refresh(ticket)

    logger.info("Ticket %s closed", ticket.id)
    return ticket_out(ticket)


def get_ticket_for_party(db: Session, current_user: UserToken, ticket_id: UUID) -> MaintenanceTicket:
    ticket = get_ticket_or_404(db, ticket_id)
    user_id = current_user.user_id

    if current_user.role == UserRole.TENANT and ticket.created_by == user_id:
        return ticket
    if current_user.role == UserRole.MAINTENANCE and ticket.assigned_to == user_id:
        return ticket
    if current_user.role == UserRole.LANDLORD and landlord_owns_ticket(db, user_id, ticket.id):
        return ticket
    raise ForbiddenError("Not authorized for this ticket")


def get_ticket(db: Session, current_user: UserToken, ticket_id: UUID) -> MaintenanceTicketDetailOut:
    return ticket_detail_out(get_ticket_for_party(db, current_user, ticket_id))


def get_possible_next_statuses(db: Session, current_user: UserToken, ticket_id: UUID):
    """Statuses the caller could move the ticket to from its current status."""
    ticket = get_ticket_for_party(db, current_user, ticket_id)

    if ticket.status == TicketStatus.CLOSED:
        next_statuses = []
    elif current_user.role == UserRole.MAINTENANCE:
        next_statuses = [s for s in STAFF_SETTABLE_STATUSES if s != ticket.status]
    elif current_user.role == UserRole.LANDLORD:
        # assigning always moves the ticket to IN_PROGRESS
        next_statuses = [TicketStatus.IN_PROGRESS] if ticket.status != TicketStatus.RESOLVED else [
            TicketStatus.IN_PROGRESS, TicketStatus.CLOSED]
    else:
        next_statuses = []

    return [Lookup(id=s.value, name=s.value.replace("_", " ").title()) for s in next_statuses]


def _list(query, params: MaintenanceTicketRequest) -> MaintenanceTicketListResponse:
    if params.status:
        query = query.filter(MaintenanceTicket.status == params.status)
    if params.search:
        search_term = f"%{params.search}%"
        query = query.filter(or_(
            MaintenanceTicket.title.ilike(search_term),
            MaintenanceTicket.description.ilike(search_term),
        ))

    total = query.with_entities(func.count(MaintenanceTicket.id)).scalar()
    tickets = (
        query.order_by(MaintenanceTicket.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )
    return MaintenanceTicketListResponse(tickets=[ticket_out(t) for t in tickets], total=total)


def get_tenant_tickets(db: Session, tenant_id: UUID, params: MaintenanceTicketRequest) -> MaintenanceTicketListResponse:
    leased_units = select(Lease.unit_id).where(
        Lease.tenant_id == tenant_id,
        Lease.status == LeaseStatus.ACTIVE
    )
    query = db.query(MaintenanceTicket).filter(or_(
        MaintenanceTicket.created_by == tenant_id,
        MaintenanceTicket.unit_id.in_(leased_units),
    ))
    return _list(query, params)


def get_landlord_tickets(db: Session, landlord_id: UUID, params: MaintenanceTicketRequest) -> MaintenanceTicketListResponse:
    query = (
        db.query(MaintenanceTicket)
        .join(Unit, Unit.id == MaintenanceTicket.unit_id)
        .filter(Unit.landlord_id == landlord_id)
    )
    return _list(query, params)


def get_assigned_tickets(db: Session, staff_id: UUID, params: MaintenanceTicketRequest) -> MaintenanceTicketListResponse:
    query = db.query(MaintenanceTicket).filter(MaintenanceTicket.assigned_to == staff_id)
    return _list(query, params)
