"""
Withdrawals: a pending debit that only counts once an admin approves it.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument

from config import settings
from database import db, transaction
from core.exceptions import not_found_exception, precondition_exception, bad_request_exception
from core.utils import round_money
from models.common import TransactionStatus, TransactionType
from services.ledger_service import record_transaction, get_balance, pending_debits, lock_ledger

logger = logging.getLogger(__name__)


async def request_withdrawal(user_id: str, amount: float, method: str, account: str) -> dict:
    if amount < settings.MIN_WITHDRAWAL_AMOUNT:
        raise bad_request_exception(
            f"Minimum withdrawal is {settings.MIN_WITHDRAWAL_AMOUNT:.0f} {settings.CURRENCY}"
        )
    amount = round_money(amount)

    async with transaction() as session:
        profile = await lock_ledger(user_id, session=session)
        if profile.get("is_blocked"):
            raise precondition_exception("Account is blocked")

        balance = await get_balance(user_id, session=session)
        reserved = await pending_debits(user_id, TransactionType.WITHDRAWAL, session=session)
        available = round_money(balance - reserved)
        if available < amount:
            raise precondition_exception(
                f"Insufficient balance: requested {amount}, available {available}"
            )

        tx = await record_transaction(
            user_id,
            TransactionType.WITHDRAWAL,
            -amount,
            status=TransactionStatus.PENDING,
            description=f"Withdrawal to {method} {account}",
            metadata={"method": method, "account": account},
            session=session,
        )

    logger.info("Withdrawal requested: %s user=%s amount=%s", tx["tx_id"], user_id, amount)
    return {"outcome": "requested", "transaction": tx}


async def list_withdrawals(
    user_id: Optional[str] = None,
    status: Optional[TransactionStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> list:
    query: dict = {"type": TransactionType.WITHDRAWAL.value}
    if user_id:
        query["user_id"] = user_id
    if status:
        query["status"] = status.value
    cursor = db.balance_transactions.find(query, {"_id": 0}).sort("created_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)


async def _decide(tx_id: str, decision: TransactionStatus, admin_id: str) -> dict:
    now = datetime.now(timezone.utc)
    fields = {"status": decision.value, "reviewed_by": admin_id, "reviewed_at": now}
    if decision == TransactionStatus.APPROVED:
        fields.update({"approved_by": admin_id, "approved_at": now})

    tx = await db.balance_transactions.find_one_and_update(
        {
            "tx_id":  tx_id,
            "type":   TransactionType.WITHDRAWAL.value,
            "status": TransactionStatus.PENDING.value,
        },
        {"$set": fields},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if tx is None:
        existing = await db.balance_transactions.find_one(
            {"tx_id": tx_id, "type": TransactionType.WITHDRAWAL.value}, {"_id": 0}
        )
        if not existing:
            raise not_found_exception("Withdrawal")
        raise precondition_exception(f"Withdrawal already {existing['status']}")
    return tx


async def approve_withdrawal(tx_id: str, admin_id: str) -> dict:
    tx = await _decide(tx_id, TransactionStatus.APPROVED, admin_id)
    logger.info("Withdrawal %s approved by %s (%s)", tx_id, admin_id, tx["amount"])
    return {"outcome": "approved", "transaction": tx}


async def reject_withdrawal(tx_id: str, admin_id: str) -> dict:
    tx = await _decide(tx_id, TransactionStatus.REJECTED, admin_id)
    logger.info("Withdrawal %s rejected by %s", tx_id, admin_id)
    return {"outcome": "rejected", "transaction": tx}
