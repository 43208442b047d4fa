from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from models.common import TransactionType, TransactionStatus


class BalanceTransaction(BaseModel):
    """Immutable ledger entry. Negative amount = debit."""
    tx_id:       str
    user_id:     str
    type:        TransactionType
    amount:      float
    status:      TransactionStatus = TransactionStatus.APPROVED
    description: Optional[str] = None
    order_id:    Optional[str] = None
    voucher_id:  Optional[str] = None
    topup_id:    Optional[str] = None
    reference:   Optional[str] = None    # unique idempotency key for system entries
    metadata:    dict = Field(default_factory=dict)
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at:  datetime


class BalanceResponse(BaseModel):
    user_id:  str
    balance:  float
    currency: str = "IDR"


class TransferRequest(BaseModel):
    from_user_id: str
    to_user_id:   str
    amount:       float = Field(..., gt=0)
    description:  str = ""


class TransferResult(BaseModel):
    debit:  BalanceTransaction
    credit: BalanceTransaction


class WithdrawalCreate(BaseModel):
    amount:  float = Field(..., gt=0)
    method:  str      # "bank_transfer", "gopay", "ovo", "dana"
    account: str      # destination account number / phone


class WithdrawalResult(BaseModel):
    outcome:     Literal["requested", "approved", "rejected"]
    transaction: BalanceTransaction
