"""
Router topups: users ask for credit, an admin approves or rejects it.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.dependencies import Principal, get_current_principal, require_admin
from models.common import ReviewStatus
from models.topup import TopUpCreate, TopUpRequest, TopUpResult
from services import topup_service

topup_router = APIRouter()
requests_router = APIRouter()


@topup_router.post("", response_model=TopUpRequest, status_code=201, summary="Request a top-up")
async def request_topup(body: TopUpCreate, principal: Principal = Depends(get_current_principal)):
    return await topup_service.create_topup_request(principal.id, body.amount)


@requests_router.get("", response_model=list[TopUpRequest], summary="Top-up requests")
async def list_topups(
    status: Optional[ReviewStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(get_current_principal),
):
    # Admin sees every request, others only their own
    user_id = None if principal.is_admin else principal.id
    return await topup_service.list_topup_requests(user_id=user_id, status=status, skip=skip, limit=limit)


@requests_router.post("/{topup_id}/approve", response_model=TopUpResult, summary="Approve a top-up (admin)")
async def approve(topup_id: str, admin: Principal = Depends(require_admin)):
    return await topup_service.approve_topup(topup_id, admin.id)


@requests_router.post("/{topup_id}/reject", response_model=TopUpResult, summary="Reject a top-up (admin)")
async def reject(topup_id: str, admin: Principal = Depends(require_admin)):
    return await topup_service.reject_topup(topup_id, admin.id)
