from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from models.ledger import BalanceTransaction


class VoucherCreate(BaseModel):
    code:            str = Field(..., min_length=3)
    title:           str
    discount_amount: float = Field(..., gt=0)     # fixed credit, IDR
    usage_limit:     Optional[int] = Field(None, gt=0)   # None = unlimited
    valid_until:     Optional[datetime] = None
    is_active:       bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.upper().strip()


class Voucher(VoucherCreate):
    voucher_id: str
    used_count: int = 0
    created_at: datetime


class VoucherUsage(BaseModel):
    usage_id:   str
    voucher_id: str
    user_id:    str
    used_at:    datetime


class VoucherRedemption(BaseModel):
    usage:       VoucherUsage
    transaction: BalanceTransaction
