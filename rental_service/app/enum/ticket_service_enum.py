from enum import Enum


class TicketStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


# count against the per-unit open ticket limit
ACTIVE_TICKET_STATUSES = (
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.ON_HOLD)

# targets the assignee may set
STAFF_SETTABLE_STATUSES = (
    TicketStatus.IN_PROGRESS, TicketStatus.ON_HOLD, TicketStatus.RESOLVED)


class TicketCategory(str, Enum):
    PLUMBING = "PLUMBING"
    ELECTRICAL = "ELECTRICAL"
    HVAC = "HVAC"
    APPLIANCE = "APPLIANCE"
    GENERAL = "GENERAL"


class TicketPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TimelineAction(str, Enum):
    CREATED = "CREATED"
    ASSIGNED = "ASSIGNED"
    STATUS_IN_PROGRESS = "STATUS_IN_PROGRESS"
    STATUS_ON_HOLD = "STATUS_ON_HOLD"
    STATUS_RESOLVED = "STATUS_RESOLVED"
    CLOSED = "CLOSED"
