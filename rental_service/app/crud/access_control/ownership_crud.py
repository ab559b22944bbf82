"""Ownership predicates.

Each check takes (actor_id, resource_id) and answers with a bool. Unit
ownership is read from ``units.landlord_id`` so no check walks the property.
"""
from uuid import UUID
from sqlalchemy import exists, and_
from sqlalchemy.orm import Session

from ...models.space_sites.units import Unit
from ...models.leasing_tenants.applications import Application
from ...models.leasing_tenants.leases import Lease
from ...models.financials.invoices import Invoice
from ...models.service_ticket.maintenance_tickets import MaintenanceTicket
from ...enum.leasing_tenants_enum import LeaseStatus


def landlord_owns_unit(db: Session, landlord_id: UUID, unit_id: UUID) -> bool:
    return db.query(
        exists().where(and_(Unit.id == unit_id, Unit.landlord_id == landlord_id))
    ).scalar()


def landlord_owns_application(db: Session, landlord_id: UUID, application_id: UUID) -> bool:
    return db.query(
        exists().where(and_(
            Application.id == application_id,
            Application.unit_id == Unit.id,
            Unit.landlord_id == landlord_id,
        ))
    ).scalar()


def landlord_owns_lease(db: Session, landlord_id: UUID, lease_id: UUID) -> bool:
    return db.query(
        exists().where(and_(Lease.id == lease_id, Lease.landlord_id == landlord_id))
    ).scalar()


def landlord_owns_invoice(db: Session, landlord_id: UUID, invoice_id: UUID) -> bool:
    return db.query(
        exists().where(and_(
            Invoice.id == invoice_id,
            Invoice.lease_id == Lease.id,
            Lease.landlord_id == landlord_id,
        ))
    ).scalar()


def landlord_owns_ticket(db: Session, landlord_id: UUID, ticket_id: UUID) -> bool:
    return db.query(
        exists().where(and_(
            MaintenanceTicket.id == ticket_id,
            MaintenanceTicket.unit_id == Unit.id,
            Unit.landlord_id == landlord_id,
        ))
    ).scalar()


def tenant_holds_active_lease(db: Session, tenant_id: UUID, unit_id: UUID) -> bool:
    return db.query(
        exists().where(and_(
            Lease.unit_id == unit_id,
            Lease.tenant_id == tenant_id,
            Lease.status == LeaseStatus.ACTIVE,
        ))
    ).scalar()


def tenant_owns_invoice(db: Session, tenant_id: UUID, invoice_id: UUID) -> bool:
    return db.query(
        exists().where(and_(
            Invoice.id == invoice_id,
            Invoice.lease_id == Lease.id,
            Lease.tenant_id == tenant_id,
        ))
    ).scalar()
