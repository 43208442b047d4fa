from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from models.common import OrderStatus, PaymentMethod


class Order(BaseModel):
    order_id:         str
    # Actors
    user_id:          str
    mitra_id:         Optional[str] = None     # set on acceptance
    # Service snapshot
    service_id:       str
    service_name:     str
    duration_minutes: int
    total_price:      float                    # IDR
    payment_method:   PaymentMethod
    # Schedule and place
    scheduled_date:   str                      # "2024-01-20"
    scheduled_time:   str                      # "09:30"
    address:          str
    latitude:         Optional[float] = None
    longitude:        Optional[float] = None
    notes:            Optional[str] = None
    # State machine
    status:           OrderStatus = OrderStatus.PENDING
    deposit_amount:   Optional[float] = None   # held from the mitra on acceptance
    # Review
    rating:           Optional[int] = None
    review:           Optional[str] = None
    # Invoice
    invoice_number:   Optional[str] = None
    invoice_url:      Optional[str] = None
    # Timestamps
    created_at:       datetime
    updated_at:       datetime
    accepted_at:      Optional[datetime] = None
    started_at:       Optional[datetime] = None
    completed_at:     Optional[datetime] = None
    cancelled_at:     Optional[datetime] = None


class OrderCreate(BaseModel):
    service_id:     str
    payment_method: PaymentMethod
    scheduled_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    scheduled_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    address:        str = Field(..., min_length=1)
    latitude:       Optional[float] = None
    longitude:      Optional[float] = None
    notes:          Optional[str] = None


class OrderUpdate(BaseModel):
    """Editable by the owner while the order is still pending."""
    scheduled_date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    scheduled_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    address:        Optional[str] = None
    latitude:       Optional[float] = None
    longitude:      Optional[float] = None
    notes:          Optional[str] = None


class AcceptRequest(BaseModel):
    mitra_id: Optional[str] = None    # admin only; a mitra always accepts for itself


class RateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None
