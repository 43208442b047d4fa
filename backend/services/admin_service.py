"""
Admin service: sensitive operations (manual transfers, mitra blocking, dashboard).
"""
import logging
from datetime import datetime, timezone

from pymongo import ReturnDocument

from database import db, transaction
from core.exceptions import not_found_exception, bad_request_exception
from core.utils import round_money
from models.common import (
    OrderStatus,
    ReviewStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
)
from services.ledger_service import record_transaction

logger = logging.getLogger(__name__)


async def transfer_balance(
    from_user_id: str,
    to_user_id: str,
    amount: float,
    description: str,
    admin_id: str,
) -> dict:
    """
    Administrative override: debit one user, credit another, both approved by
    the same admin. The sender's balance is deliberately not checked.
    """
    if amount <= 0:
        raise bad_request_exception("Amount must be positive")
    if from_user_id == to_user_id:
        raise bad_request_exception("Sender and receiver must differ")
    amount = round_money(amount)

    async with transaction() as session:
        for user_id in (from_user_id, to_user_id):
            if not await db.profiles.find_one({"user_id": user_id}, {"_id": 0, "user_id": 1}, session=session):
                raise not_found_exception(f"Profile {user_id}")

        debit = await record_transaction(
            from_user_id,
            TransactionType.TRANSFER,
            -amount,
            description=f"Transfer to user: {description}",
            approved_by=admin_id,
            metadata={"counterparty": to_user_id},
            session=session,
        )
        credit = await record_transaction(
            to_user_id,
            TransactionType.TRANSFER,
            amount,
            description=f"Transfer from admin: {description}",
            approved_by=admin_id,
            metadata={"counterparty": from_user_id},
            session=session,
        )

    logger.info("Admin transfer: %s → %s, %s (by %s)", from_user_id, to_user_id, amount, admin_id)
    return {"debit": debit, "credit": credit}


async def toggle_mitra_status(mitra_id: str) -> dict:
    """Block or unblock a mitra."""
    profile = await db.profiles.find_one(
        {"user_id": mitra_id, "role": UserRole.MITRA.value}, {"_id": 0}
    )
    if not profile:
        raise not_found_exception("Mitra")

    updated = await db.profiles.find_one_and_update(
        {"user_id": mitra_id},
        {"$set": {
            "is_blocked": not profile.get("is_blocked", False),
            "updated_at": datetime.now(timezone.utc),
        }},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Mitra %s is_blocked → %s", mitra_id, updated["is_blocked"])
    return updated


async def get_admin_stats() -> dict:
    total_orders = await db.orders.count_documents({})
    total_users  = await db.profiles.count_documents({"role": UserRole.USER.value})
    total_mitras = await db.profiles.count_documents({"role": UserRole.MITRA.value})

    revenue = 0.0
    cursor = db.orders.find(
        {"status": OrderStatus.COMPLETED.value},
        {"_id": 0, "total_price": 1},
    )
    async for order in cursor:
        revenue += order["total_price"]

    return {
        "total_orders":          total_orders,
        "total_users":           total_users,
        "total_mitras":          total_mitras,
        "total_revenue":         round_money(revenue),
        "pending_topups":        await db.topup_requests.count_documents({"status": ReviewStatus.PENDING.value}),
        "pending_verifications": await db.mitra_verifications.count_documents({"status": ReviewStatus.PENDING.value}),
        "pending_withdrawals":   await db.balance_transactions.count_documents({
            "type":   TransactionType.WITHDRAWAL.value,
            "status": TransactionStatus.PENDING.value,
        }),
    }
