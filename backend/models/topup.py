from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from models.common import ReviewStatus
from models.ledger import BalanceTransaction


class TopUpCreate(BaseModel):
    amount: float = Field(..., gt=0)


class TopUpRequest(BaseModel):
    topup_id:    str
    user_id:     str
    amount:      float
    status:      ReviewStatus = ReviewStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at:  datetime


class TopUpResult(BaseModel):
    outcome:     Literal["approved", "rejected"]
    request:     TopUpRequest
    transaction: Optional[BalanceTransaction] = None    # only on approval
