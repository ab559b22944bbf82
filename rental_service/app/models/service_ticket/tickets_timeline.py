from datetime import datetime, timezone
from sqlalchemy import TIMESTAMP, Column, Text, ForeignKey, Enum, func, Uuid
from sqlalchemy.orm import relationship
import uuid
from ...enum.ticket_service_enum import TicketStatus, TimelineAction
from shared.core.database import Base


class TicketTimeline(Base):
    """Append-only history row of a maintenance ticket."""
    __tablename__ = "ticket_timeline"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id = Column(Uuid, ForeignKey(
        "maintenance_tickets.id", ondelete="CASCADE"), nullable=False)
    action = Column(Enum(TimelineAction, native_enum=False,
                    values_callable=lambda x: [e.value for e in x]), nullable=False)
    action_by = Column(Uuid, nullable=False)
    old_status = Column(Enum(TicketStatus, native_enum=False,
                        values_callable=lambda x: [e.value for e in x]))
    new_status = Column(Enum(TicketStatus, native_enum=False,
                        values_callable=lambda x: [e.value for e in x]))
    note = Column(Text)
    action_time = Column(TIMESTAMP(timezone=True), default=lambda: datetime.now(timezone.utc),
                         server_default=func.now())

    ticket = relationship("MaintenanceTicket", back_populates="timeline")
