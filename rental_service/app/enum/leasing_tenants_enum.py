from enum import Enum


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class LeaseStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    TERMINATED = "TERMINATED"
    EXPIRED = "EXPIRED"
    REJECTED = "REJECTED"


# a unit can hold at most one lease in these states
OPEN_LEASE_STATUSES = (LeaseStatus.PENDING, LeaseStatus.ACTIVE)
TERMINAL_LEASE_STATUSES = (
    LeaseStatus.TERMINATED, LeaseStatus.EXPIRED, LeaseStatus.REJECTED)


class LeaseDecision(str, Enum):
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


class LeaseType(str, Enum):
    FIXED = "FIXED"
    MONTH_TO_MONTH = "MONTH_TO_MONTH"


class RentFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"
    YEARLY = "YEARLY"


class LeasePaymentMethod(str, Enum):
    E_TRANSFER = "E_TRANSFER"
    POST_DATED_CHEQUES = "POST_DATED_CHEQUES"
    CASH = "CASH"
    OTHER = "OTHER"


class LateFeeType(str, Enum):
    FLAT = "FLAT"
    PERCENTAGE = "PERCENTAGE"
    NONE = "NONE"


class PetsAllowed(str, Enum):
    NO = "NO"
    YES = "YES"
    WITH_RESTRICTIONS = "WITH_RESTRICTIONS"


class SmokingAllowed(str, Enum):
    NO = "NO"
    OUTDOORS_ONLY = "OUTDOORS_ONLY"


class ParkingIncluded(str, Enum):
    YES = "YES"
    NO = "NO"
    PAID_EXTRA = "PAID_EXTRA"


class Furnished(str, Enum):
    NO = "NO"
    PARTIALLY = "PARTIALLY"
    FULLY = "FULLY"
