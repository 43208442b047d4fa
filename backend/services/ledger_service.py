"""
Ledger service: append-only balance transactions, balance derived by summing
approved entries. No balance counter is ever stored.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import db
from core.exceptions import not_found_exception, precondition_exception
from core.utils import new_id, round_money, strip_mongo_id
from models.common import TransactionType, TransactionStatus

logger = logging.getLogger(__name__)


def _tx_id() -> str:
    return new_id("btx")


async def record_transaction(
    user_id: str,
    tx_type: TransactionType,
    amount: float,
    status: TransactionStatus = TransactionStatus.APPROVED,
    description: Optional[str] = None,
    order_id: Optional[str] = None,
    voucher_id: Optional[str] = None,
    topup_id: Optional[str] = None,
    reference: Optional[str] = None,
    approved_by: Optional[str] = None,
    metadata: Optional[dict] = None,
    session=None,
) -> dict:
    """
    Append one signed entry. `reference` is a unique key: a second entry
    with the same reference is refused, so a retried effect cannot credit twice.
    """
    now = datetime.now(timezone.utc)
    tx = {
        "tx_id":       _tx_id(),
        "user_id":     user_id,
        "type":        tx_type.value,
        "amount":      round_money(amount),
        "status":      status.value,
        "description": description,
        "order_id":    order_id,
        "voucher_id":  voucher_id,
        "topup_id":    topup_id,
        "reference":   reference,
        "metadata":    metadata or {},
        "approved_by": approved_by,
        "approved_at": now if status == TransactionStatus.APPROVED else None,
        "created_at":  now,
    }
    try:
        await db.balance_transactions.insert_one(tx, session=session)
    except DuplicateKeyError:
        raise precondition_exception(f"Ledger entry already recorded ({reference})")
    logger.info(
        "Ledger entry: user=%s type=%s amount=%s status=%s ref=%s",
        user_id, tx_type.value, tx["amount"], status.value, reference,
    )
    return strip_mongo_id(tx)


async def get_balance(user_id: str, session=None) -> float:
    """Sum of approved amounts. Pending and rejected entries never count."""
    cursor = db.balance_transactions.find(
        {"user_id": user_id, "status": TransactionStatus.APPROVED.value},
        {"_id": 0, "amount": 1},
        session=session,
    )
    total = 0.0
    async for tx in cursor:
        total += tx["amount"]
    return round_money(total)


async def pending_debits(user_id: str, tx_type: TransactionType, session=None) -> float:
    """Sum of pending debits of one type (returned as a positive number)."""
    cursor = db.balance_transactions.find(
        {
            "user_id": user_id,
            "type":    tx_type.value,
            "status":  TransactionStatus.PENDING.value,
        },
        {"_id": 0, "amount": 1},
        session=session,
    )
    total = 0.0
    async for tx in cursor:
        total += tx["amount"]
    return round_money(-total)


async def list_transactions(
    user_id: str,
    skip: int = 0,
    limit: int = 100,
) -> list:
    cursor = db.balance_transactions.find(
        {"user_id": user_id},
        {"_id": 0},
    ).sort([("created_at", -1), ("_id", -1)]).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)


async def lock_ledger(user_id: str, session=None) -> dict:
    """
    Bump the profile's ledger_version inside the caller's transaction.
    Two transactions that check the same user's balance then write-conflict,
    so a check-then-debit sequence cannot be interleaved.
    Returns the profile.
    """
    profile = await db.profiles.find_one_and_update(
        {"user_id": user_id},
        {"$inc": {"ledger_version": 1}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if not profile:
        raise not_found_exception("Profile")
    return profile
