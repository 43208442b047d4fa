"""
Router orders: booking, lifecycle (accept → start → complete), rating, cancellation.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.dependencies import Principal, get_current_principal, require_role, require_mitra
from core.exceptions import bad_request_exception
from models.common import OrderStatus, UserRole
from models.order import Order, OrderCreate, OrderUpdate, AcceptRequest, RateRequest, CancelRequest
from services import order_service

router = APIRouter()


@router.get("", response_model=list[Order], summary="Orders visible to the caller")
async def list_orders(
    user_id: Optional[str] = None,
    mitra_id: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_current_principal),
):
    return await order_service.list_orders(
        principal, user_id=user_id, mitra_id=mitra_id, status=status, skip=skip, limit=limit,
    )


@router.post("", response_model=Order, status_code=201, summary="Book a service")
async def create_order(
    body: OrderCreate,
    principal: Principal = Depends(require_role(UserRole.USER, UserRole.ADMIN)),
):
    return await order_service.create_order(body, principal.id)


@router.get("/{order_id}", response_model=Order, summary="Order detail")
async def get_order(order_id: str, principal: Principal = Depends(get_current_principal)):
    return await order_service.get_order(order_id, principal)


@router.put("/{order_id}", response_model=Order, summary="Edit schedule, address or notes")
async def update_order(
    order_id: str,
    body: OrderUpdate,
    principal: Principal = Depends(get_current_principal),
):
    return await order_service.update_order(order_id, principal, body)


# ── Lifecycle ────────────────────────────────────────────────────────────────

@router.post("/{order_id}/accept", response_model=Order, summary="Accept a pending order")
async def accept_order(
    order_id: str,
    body: Optional[AcceptRequest] = None,
    principal: Principal = Depends(require_mitra),
):
    if principal.is_admin:
        if not body or not body.mitra_id:
            raise bad_request_exception("mitra_id is required when an admin accepts an order")
        mitra_id = body.mitra_id
    else:
        mitra_id = principal.id
    return await order_service.accept_order(order_id, mitra_id)


@router.post("/{order_id}/start", response_model=Order, summary="Start work")
async def start_work(order_id: str, principal: Principal = Depends(require_mitra)):
    return await order_service.start_work(order_id, principal)


@router.post("/{order_id}/complete", response_model=Order, summary="Complete work and pay the mitra")
async def complete_work(order_id: str, principal: Principal = Depends(require_mitra)):
    return await order_service.complete_work(order_id, principal)


@router.post("/{order_id}/rate", response_model=Order, summary="Rate a completed order")
async def rate_order(
    order_id: str,
    body: RateRequest,
    principal: Principal = Depends(get_current_principal),
):
    return await order_service.rate_order(order_id, principal, body.rating, body.review)


@router.post("/{order_id}/cancel", response_model=Order, summary="Cancel and refund")
async def cancel_order(
    order_id: str,
    body: Optional[CancelRequest] = None,
    principal: Principal = Depends(get_current_principal),
):
    reason = body.reason if body else None
    return await order_service.cancel_order(order_id, principal, reason)
