from enum import Enum


class InvoiceType(str, Enum):
    RENT = "rent"
    WATER = "water"
    ELECTRICITY = "electricity"
    GAS = "gas"
    INTERNET = "internet"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"


# Recomputed from payments and time on every reconciliation.
DERIVED_STATUSES = frozenset(
    s.value for s in (InvoiceStatus.OPEN, InvoiceStatus.PARTIAL, InvoiceStatus.PAID, InvoiceStatus.OVERDUE)
)
# Only ever set by an explicit landlord action; reconciliation leaves them alone.
ADMINISTRATIVE_STATUSES = frozenset(s.value for s in (InvoiceStatus.DRAFT, InvoiceStatus.VOID))


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class ExtensionStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExtensionPolicy(str, Enum):
    APPROVED_OR_NONE = "approved_or_none"
    APPROVED_ONLY = "approved_only"
    ALWAYS = "always"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
