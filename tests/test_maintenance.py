import uuid

import pytest

from shared.core.exceptions import (
    CapacityError, ForbiddenError, InvalidStateError, ValidationError
)
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from rental_service.app.crud.leasing_tenants import leases_crud
from rental_service.app.crud.service_ticket import maintenance_tickets_crud as tickets_crud
from rental_service.app.enum.ticket_service_enum import (
    TicketStatus, TicketPriority, TicketCategory, TimelineAction
)
from rental_service.app.schemas.service_ticket.maintenance_tickets_schemas import (
    MaintenanceTicketCreate, MaintenanceTicketRequest
)


def _ticket(db, tenant_id, unit_id, title="Leaking tap", **kwargs):
    return tickets_crud.create_ticket(db, tenant_id, MaintenanceTicketCreate(
        unit_id=unit_id, title=title, description="Kitchen tap drips all night", **kwargs))


@pytest.fixture()
def lease(seed):
    return seed.active_lease()


def test_tenant_opens_ticket(db, tenant_id, lease):
    ticket = _ticket(db, tenant_id, lease.unit_id, priority=TicketPriority.HIGH)

    assert ticket.status == TicketStatus.OPEN
    assert ticket.priority == TicketPriority.HIGH
    assert ticket.category == TicketCategory.GENERAL
    assert ticket.created_by == tenant_id
    assert ticket.requested_at is not None


def test_title_and_description_required(db, tenant_id, lease):
    with pytest.raises(ValidationError) as exc:
        tickets_crud.create_ticket(db, tenant_id, MaintenanceTicketCreate(unit_id=lease.unit_id, title="  "))
    assert [e["path"] for e in exc.value.details] == ["title", "description"]


def test_ticket_needs_active_lease(db, seed, tenant_id, other_tenant_id, landlord_id, lease):
    with pytest.raises(ForbiddenError):
        _ticket(db, other_tenant_id, lease.unit_id)

    pending = seed.pending_lease()
    with pytest.raises(ForbiddenError):
        _ticket(db, tenant_id, pending.unit_id)

    leases_crud.terminate_lease(db, landlord_id, lease.id)
    with pytest.raises(ForbiddenError):
        _ticket(db, tenant_id, lease.unit_id)


def test_sixth_active_ticket_hits_capacity(db, tenant_id, lease):
    for n in range(5):
        _ticket(db, tenant_id, lease.unit_id, title=f"Issue {n}")

    with pytest.raises(CapacityError):
        _ticket(db, tenant_id, lease.unit_id, title="One too many")
    assert tickets_crud.count_active_tickets(db, lease.unit_id) == 5


def test_resolved_tickets_free_capacity(db, landlord_id, tenant_id, staff_id, lease):
    tickets = [_ticket(db, tenant_id, lease.unit_id, title=f"Issue {n}") for n in range(5)]
    tickets_crud.assign_ticket(db, landlord_id, tickets[0].id, staff_id)
    tickets_crud.update_ticket_status(db, staff_id, tickets[0].id, TicketStatus.RESOLVED)

    assert _ticket(db, tenant_id, lease.unit_id, title="Next issue").status == TicketStatus.OPEN


def test_full_workflow_records_timeline(db, landlord_id, tenant_id, staff_id, lease):
    ticket = _ticket(db, tenant_id, lease.unit_id)

    assigned = tickets_crud.assign_ticket(db, landlord_id, ticket.id, staff_id)
    assert assigned.status == TicketStatus.IN_PROGRESS
    assert assigned.assigned_to == staff_id
    assert assigned.acknowledged_at is not None

    held = tickets_crud.update_ticket_status(db, staff_id, ticket.id, TicketStatus.ON_HOLD, note="Waiting on parts")
    assert held.status == TicketStatus.ON_HOLD

    resolved = tickets_crud.update_ticket_status(db, staff_id, ticket.id, TicketStatus.RESOLVED)
    assert resolved.resolved_at is not None

    closed = tickets_crud.close_ticket(db, landlord_id, ticket.id)
    assert closed.status == TicketStatus.CLOSED
    assert closed.closed_at is not None

    detail = tickets_crud.get_ticket(db, UserToken(user_id=tenant_id, role=UserRole.TENANT), ticket.id)
    assert [e.action for e in detail.timeline] == [
        TimelineAction.CREATED,
        TimelineAction.ASSIGNED,
        TimelineAction.STATUS_ON_HOLD,
        TimelineAction.STATUS_RESOLVED,
        TimelineAction.CLOSED,
    ]
    assert detail.timeline[2].note == "Waiting on parts"
    assert detail.timeline[2].old_status == TicketStatus.IN_PROGRESS


def test_only_assignee_updates_status(db, landlord_id, tenant_id, staff_id, lease):
    ticket = _ticket(db, tenant_id, lease.unit_id)
    with pytest.raises(ForbiddenError):
        tickets_crud.update_ticket_status(db, staff_id, ticket.id, TicketStatus.RESOLVED)

    tickets_crud.assign_ticket(db, landlord_id, ticket.id, staff_id)
    with pytest.raises(ForbiddenError):
        tickets_crud.update_ticket_status(db, uuid.uuid4(), ticket.id, TicketStatus.RESOLVED)


def test_staff_cannot_open_or_close(db, landlord_id, tenant_id, staff_id, lease):
    ticket = _ticket(db, tenant_id, lease.unit_id)
    tickets_crud.assign_ticket(db, landlord_id, ticket.id, staff_id)

    for target in (TicketStatus.OPEN, TicketStatus.CLOSED):
        with pytest.raises(InvalidStateError):
            tickets_crud.update_ticket_status(db, staff_id, ticket.id, target)


def test_close_requires_resolved_and_owner(db, landlord_id, tenant_id, staff_id, lease):
    ticket = _ticket(db, tenant_id, lease.unit_id)
    with pytest.raises(InvalidStateError):
        tickets_crud.close_ticket(db, landlord_id, ticket.id)

    tickets_crud.assign_ticket(db, landlord_id, ticket.id, staff_id)
    tickets_crud.update_ticket_status(db, staff_id, ticket.id, TicketStatus.RESOLVED)
    with pytest.raises(ForbiddenError):
        tickets_crud.close_ticket(db, uuid.uuid4(), ticket.id)

    tickets_crud.close_ticket(db, landlord_id, ticket.id)
    with pytest.raises(InvalidStateError):
        tickets_crud.assign_ticket(db, landlord_id, ticket.id, staff_id)


def test_next_statuses_depend_on_role(db, landlord_id, tenant_id, staff_id, lease):
    ticket = _ticket(db, tenant_id, lease.unit_id)
    tickets_crud.assign_ticket(db, landlord_id, ticket.id, staff_id)

    staff = UserToken(user_id=staff_id, role=UserRole.MAINTENANCE)
    options = tickets_crud.get_possible_next_statuses(db, staff, ticket.id)
    assert [o.id for o in options] == ["ON_HOLD", "RESOLVED"]

    tenant = UserToken(user_id=tenant_id, role=UserRole.TENANT)
    assert tickets_crud.get_possible_next_statuses(db, tenant, ticket.id) == []


def test_ticket_lists_are_scoped(db, landlord_id, tenant_id, staff_id, lease):
    first = _ticket(db, tenant_id, lease.unit_id, title="Broken heater")
    _ticket(db, tenant_id, lease.unit_id, title="Leaking tap")
    tickets_crud.assign_ticket(db, landlord_id, first.id, staff_id)
    params = MaintenanceTicketRequest()

    assert tickets_crud.get_tenant_tickets(db, tenant_id, params).total == 2
    assert tickets_crud.get_landlord_tickets(db, landlord_id, params).total == 2
    assert tickets_crud.get_landlord_tickets(db, uuid.uuid4(), params).total == 0

    assigned = tickets_crud.get_assigned_tickets(db, staff_id, params)
    assert [t.title for t in assigned.tickets] == ["Broken heater"]

    searched = tickets_crud.get_landlord_tickets(db, landlord_id, MaintenanceTicketRequest(search="heater"))
    assert searched.total == 1
    open_only = tickets_crud.get_landlord_tickets(db, landlord_id, MaintenanceTicketRequest(status=TicketStatus.OPEN))
    assert open_only.total == 1
