"""
Top-up service: user asks, admin approves or rejects (once).
pending → approved | rejected, both terminal.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument

from config import settings
from database import db, transaction
from core.exceptions import not_found_exception, precondition_exception, bad_request_exception
from core.utils import new_id, round_money, strip_mongo_id
from models.common import ReviewStatus, TransactionType
from services.ledger_service import record_transaction

logger = logging.getLogger(__name__)


async def create_topup_request(user_id: str, amount: float) -> dict:
    if amount < settings.MIN_TOPUP_AMOUNT:
        raise bad_request_exception(
            f"Minimum top-up is {settings.MIN_TOPUP_AMOUNT:.0f} {settings.CURRENCY}"
        )
    profile = await db.profiles.find_one({"user_id": user_id}, {"_id": 0})
    if not profile:
        raise not_found_exception("Profile")

    doc = {
        "topup_id":    new_id("top"),
        "user_id":     user_id,
        "amount":      round_money(amount),
        "status":      ReviewStatus.PENDING.value,
        "approved_by": None,
        "approved_at": None,
        "created_at":  datetime.now(timezone.utc),
    }
    await db.topup_requests.insert_one(doc)
    logger.info("Top-up requested: %s user=%s amount=%s", doc["topup_id"], user_id, doc["amount"])
    return strip_mongo_id(doc)


async def list_topup_requests(
    user_id: Optional[str] = None,
    status: Optional[ReviewStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> list:
    query: dict = {}
    if user_id:
        query["user_id"] = user_id
    if status:
        query["status"] = status.value
    cursor = db.topup_requests.find(query, {"_id": 0}).sort("created_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)


async def _decide(topup_id: str, decision: ReviewStatus, admin_id: str, session=None) -> dict:
    """Claim a pending request for one decision. A second call finds nothing to claim."""
    request = await db.topup_requests.find_one_and_update(
        {"topup_id": topup_id, "status": ReviewStatus.PENDING.value},
        {"$set": {
            "status":      decision.value,
            "approved_by": admin_id,
            "approved_at": datetime.now(timezone.utc),
        }},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if request is None:
        existing = await db.topup_requests.find_one({"topup_id": topup_id}, {"_id": 0}, session=session)
        if not existing:
            raise not_found_exception("Top-up request")
        raise precondition_exception(f"Top-up request already {existing['status']}")
    return request


async def approve_topup(topup_id: str, admin_id: str) -> dict:
    async with transaction() as session:
        request = await _decide(topup_id, ReviewStatus.APPROVED, admin_id, session=session)
        tx = await record_transaction(
            request["user_id"],
            TransactionType.TOPUP,
            request["amount"],
            description="Top-up approved by admin",
            topup_id=topup_id,
            reference=f"topup:{topup_id}",
            approved_by=admin_id,
            session=session,
        )
    logger.info("Top-up %s approved by %s (%s)", topup_id, admin_id, request["amount"])
    return {"outcome": "approved", "request": request, "transaction": tx}


async def reject_topup(topup_id: str, admin_id: str) -> dict:
    request = await _decide(topup_id, ReviewStatus.REJECTED, admin_id)
    logger.info("Top-up %s rejected by %s", topup_id, admin_id)
    return {"outcome": "rejected", "request": request, "transaction": None}
