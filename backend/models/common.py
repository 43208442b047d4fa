from enum import Enum


class UserRole(str, Enum):
    USER  = "user"
    MITRA = "mitra"    # service provider
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING     = "pending"
    ACCEPTED    = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED   = "completed"
    CANCELLED   = "cancelled"


class PaymentMethod(str, Enum):
    BALANCE = "balance"   # prepaid from the ledger at creation
    CASH    = "cash"


class TransactionType(str, Enum):
    TOPUP      = "topup"
    PAYMENT    = "payment"      # order prepayment, mitra deposit and their refunds
    COMMISSION = "commission"   # mitra payout on completion
    VOUCHER    = "voucher"
    WITHDRAWAL = "withdrawal"
    TRANSFER   = "transfer"


class TransactionStatus(str, Enum):
    PENDING  = "pending"    # not counted in the balance
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewStatus(str, Enum):
    """Admin-gated workflows: top-ups and mitra verifications."""
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
