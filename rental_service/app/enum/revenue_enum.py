from enum import Enum


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    ISSUED = "ISSUED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    VOID = "VOID"


class PaymentMethod(str, Enum):
    STRIPE = "STRIPE"
    MANUAL_CASH = "MANUAL_CASH"
    MANUAL_ETRANSFER = "MANUAL_ETRANSFER"


# settle at creation, no provider confirmation
MANUAL_PAYMENT_METHODS = (PaymentMethod.MANUAL_CASH,
                          PaymentMethod.MANUAL_ETRANSFER)


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
