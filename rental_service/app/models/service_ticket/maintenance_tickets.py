import uuid
from sqlalchemy import TIMESTAMP, Column, String, Text, ForeignKey, Enum, Index, func, Uuid, JSON
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.ticket_service_enum import TicketStatus, TicketCategory, TicketPriority


class MaintenanceTicket(Base):
    __tablename__ = "maintenance_tickets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_id = Column(Uuid, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    created_by = Column(Uuid, nullable=False)
    assigned_to = Column(Uuid, nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(
        Enum(
            TicketCategory,
            name="ticket_category_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=TicketCategory.GENERAL,
        nullable=False,
    )
    priority = Column(
        Enum(
            TicketPriority,
            name="ticket_priority_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=TicketPriority.MEDIUM,
        nullable=False,
    )
    status = Column(
        Enum(
            TicketStatus,
            name="ticket_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=TicketStatus.OPEN,
        nullable=False,
    )
    attachments = Column(JSON, default=list)

    requested_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    acknowledged_at = Column(TIMESTAMP(timezone=True), nullable=True)
    resolved_at = Column(TIMESTAMP(timezone=True), nullable=True)
    closed_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    unit = relationship("Unit", back_populates="tickets")
    timeline = relationship("TicketTimeline", back_populates="ticket",
                            cascade="all, delete-orphan",
                            order_by="TicketTimeline.action_time")

    __table_args__ = (
        Index("ix_maintenance_unit_status", "unit_id", "status"),
        Index("ix_maintenance_assigned", "assigned_to"),
    )
