"""
Router withdrawals: cash-out requests held as pending ledger entries until an admin decides.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.dependencies import Principal, get_current_principal, require_admin
from models.common import TransactionStatus
from models.ledger import BalanceTransaction, WithdrawalCreate, WithdrawalResult
from services import withdrawal_service

router = APIRouter()


@router.post("", response_model=WithdrawalResult, status_code=201, summary="Request a withdrawal")
async def request_withdrawal(body: WithdrawalCreate, principal: Principal = Depends(get_current_principal)):
    return await withdrawal_service.request_withdrawal(
        principal.id, body.amount, body.method, body.account,
    )


@router.get("", response_model=list[BalanceTransaction], summary="Withdrawals")
async def list_withdrawals(
    status: Optional[TransactionStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(get_current_principal),
):
    if principal.is_admin:
        return await withdrawal_service.list_withdrawals(
            status=status or TransactionStatus.PENDING, skip=skip, limit=limit,
        )
    return await withdrawal_service.list_withdrawals(
        user_id=principal.id, status=status, skip=skip, limit=limit,
    )


@router.post("/{tx_id}/approve", response_model=WithdrawalResult, summary="Approve a withdrawal (admin)")
async def approve(tx_id: str, admin: Principal = Depends(require_admin)):
    return await withdrawal_service.approve_withdrawal(tx_id, admin.id)


@router.post("/{tx_id}/reject", response_model=WithdrawalResult, summary="Reject a withdrawal (admin)")
async def reject(tx_id: str, admin: Principal = Depends(require_admin)):
    return await withdrawal_service.reject_withdrawal(tx_id, admin.id)
