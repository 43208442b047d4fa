"""
Router balance: derived balance and ledger history per user.
"""
from fastapi import APIRouter, Depends, Query

from config import settings
from core.dependencies import Principal, get_current_principal, ensure_self_or_admin
from models.ledger import BalanceResponse, BalanceTransaction
from services.ledger_service import get_balance, list_transactions

balance_router = APIRouter()
transactions_router = APIRouter()


@balance_router.get("/{user_id}", response_model=BalanceResponse, summary="Current balance")
async def read_balance(user_id: str, principal: Principal = Depends(get_current_principal)):
    ensure_self_or_admin(principal, user_id)
    return {
        "user_id":  user_id,
        "balance":  await get_balance(user_id),
        "currency": settings.CURRENCY,
    }


@transactions_router.get("/{user_id}", response_model=list[BalanceTransaction], summary="Ledger history, newest first")
async def read_transactions(
    user_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_admin(principal, user_id)
    return await list_transactions(user_id, skip=skip, limit=limit)
