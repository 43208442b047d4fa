from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    name:             str
    description:      Optional[str] = None
    base_price:       float = Field(..., gt=0)   # IDR
    duration_minutes: int   = Field(..., gt=0)
    is_active:        bool  = True


class ServiceUpdate(BaseModel):
    name:             Optional[str] = None
    description:      Optional[str] = None
    base_price:       Optional[float] = Field(None, gt=0)
    duration_minutes: Optional[int]   = Field(None, gt=0)
    is_active:        Optional[bool]  = None


class Service(ServiceCreate):
    service_id: str
    created_at: datetime


class BannerCreate(BaseModel):
    title:       str
    image_url:   str
    link_url:    Optional[str] = None
    order_index: int
    is_active:   bool = True


class BannerUpdate(BaseModel):
    title:       Optional[str] = None
    image_url:   Optional[str] = None
    link_url:    Optional[str] = None
    order_index: Optional[int] = None
    is_active:   Optional[bool] = None


class Banner(BannerCreate):
    banner_id:  str
    created_at: datetime


class ChatMessageCreate(BaseModel):
    order_id: str
    message:  str = Field(..., min_length=1, max_length=2000)


class ChatMessage(BaseModel):
    message_id:  str
    order_id:    str
    sender_id:   str
    receiver_id: Optional[str] = None
    message:     str
    is_read:     bool = False
    created_at:  datetime
