"""
Mitra verification: mitra submits identity documents, admin approves or rejects.
Approval also flips the profile's is_verified flag, in the same transaction.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument

from database import db, transaction
from core.exceptions import not_found_exception, precondition_exception
from core.utils import new_id, strip_mongo_id
from models.common import ReviewStatus, UserRole
from models.verification import VerificationCreate

logger = logging.getLogger(__name__)


async def submit_verification(mitra_id: str, data: VerificationCreate) -> dict:
    profile = await db.profiles.find_one({"user_id": mitra_id}, {"_id": 0})
    if not profile:
        raise not_found_exception("Profile")
    if profile.get("role") != UserRole.MITRA.value:
        raise precondition_exception("Only mitra accounts can request verification")
    if profile.get("is_verified"):
        raise precondition_exception("Account is already verified")

    existing = await db.mitra_verifications.find_one({
        "mitra_id": mitra_id,
        "status":   ReviewStatus.PENDING.value,
    })
    if existing:
        raise precondition_exception("A verification request is already pending")

    doc = {
        "verification_id":  new_id("mvf"),
        "mitra_id":         mitra_id,
        "ktp_image":        data.ktp_image,
        "kk_image":         data.kk_image,
        "status":           ReviewStatus.PENDING.value,
        "rejection_reason": None,
        "submitted_at":     datetime.now(timezone.utc),
        "reviewed_at":      None,
        "reviewed_by":      None,
    }
    await db.mitra_verifications.insert_one(doc)
    logger.info("Verification submitted: %s mitra=%s", doc["verification_id"], mitra_id)
    return strip_mongo_id(doc)


async def list_verifications(
    mitra_id: Optional[str] = None,
    status: Optional[ReviewStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> list:
    query: dict = {}
    if mitra_id:
        query["mitra_id"] = mitra_id
    if status:
        query["status"] = status.value
    cursor = db.mitra_verifications.find(query, {"_id": 0}).sort("submitted_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)


async def _review(
    verification_id: str,
    decision: ReviewStatus,
    admin_id: str,
    rejection_reason: Optional[str] = None,
    session=None,
) -> dict:
    verification = await db.mitra_verifications.find_one_and_update(
        {"verification_id": verification_id, "status": ReviewStatus.PENDING.value},
        {"$set": {
            "status":           decision.value,
            "reviewed_by":      admin_id,
            "reviewed_at":      datetime.now(timezone.utc),
            "rejection_reason": rejection_reason,
        }},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if verification is None:
        existing = await db.mitra_verifications.find_one(
            {"verification_id": verification_id}, {"_id": 0}, session=session
        )
        if not existing:
            raise not_found_exception("Verification")
        raise precondition_exception(f"Verification already {existing['status']}")
    return verification


async def approve_verification(verification_id: str, admin_id: str) -> dict:
    async with transaction() as session:
        verification = await _review(verification_id, ReviewStatus.APPROVED, admin_id, session=session)
        profile = await db.profiles.find_one_and_update(
            {"user_id": verification["mitra_id"]},
            {"$set": {"is_verified": True, "updated_at": datetime.now(timezone.utc)}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if profile is None:
            raise not_found_exception("Profile")
    logger.info("Mitra %s verified by %s", verification["mitra_id"], admin_id)
    return {"outcome": "approved", "verification": verification, "profile": profile}


async def reject_verification(
    verification_id: str,
    admin_id: str,
    reason: Optional[str] = None,
) -> dict:
    verification = await _review(verification_id, ReviewStatus.REJECTED, admin_id, rejection_reason=reason)
    logger.info("Verification %s rejected by %s", verification_id, admin_id)
    return {"outcome": "rejected", "verification": verification, "profile": None}
