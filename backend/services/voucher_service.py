"""
Voucher service: fixed-value credits, redeemable at most once per user.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import db, transaction
from core.exceptions import not_found_exception, precondition_exception
from core.utils import new_id, strip_mongo_id
from models.common import TransactionType
from models.voucher import VoucherCreate
from services.ledger_service import record_transaction

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def list_vouchers(include_inactive: bool = False) -> list:
    query = {} if include_inactive else {"is_active": True}
    cursor = db.vouchers.find(query, {"_id": 0}).sort("created_at", -1)
    return await cursor.to_list(length=200)


async def create_voucher(data: VoucherCreate, admin_id: str) -> dict:
    existing = await db.vouchers.find_one({"code": data.code})
    if existing:
        raise precondition_exception(f"Voucher code {data.code} already exists")

    doc = data.model_dump()
    if doc["valid_until"] is not None:
        doc["valid_until"] = _as_utc(doc["valid_until"])
    doc.update({
        "voucher_id": new_id("vch"),
        "used_count": 0,
        "created_by": admin_id,
        "created_at": datetime.now(timezone.utc),
    })
    await db.vouchers.insert_one(doc)
    logger.info("Voucher created: %s (%s)", doc["code"], doc["discount_amount"])
    return strip_mongo_id(doc)


async def redeem_voucher(voucher_id: str, user_id: str) -> dict:
    """
    Record the (voucher, user) usage and credit discount_amount, together.
    The unique index on voucher_usages(voucher_id, user_id) is the final guard
    against a concurrent second redemption.
    """
    now = datetime.now(timezone.utc)
    async with transaction() as session:
        voucher = await db.vouchers.find_one({"voucher_id": voucher_id}, {"_id": 0}, session=session)
        if not voucher:
            raise not_found_exception("Voucher")
        if not voucher.get("is_active"):
            raise precondition_exception("Voucher is not active")
        valid_until: Optional[datetime] = voucher.get("valid_until")
        if valid_until and _as_utc(valid_until) < now:
            raise precondition_exception("Voucher has expired")

        used = await db.voucher_usages.find_one(
            {"voucher_id": voucher_id, "user_id": user_id}, session=session
        )
        if used:
            raise precondition_exception("Voucher already used by this user")

        query: dict = {"voucher_id": voucher_id, "is_active": True}
        if voucher.get("usage_limit"):
            query["used_count"] = {"$lt": voucher["usage_limit"]}
        claimed = await db.vouchers.find_one_and_update(
            query,
            {"$inc": {"used_count": 1}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if claimed is None:
            raise precondition_exception("Voucher usage limit reached")

        usage = {
            "usage_id":   new_id("vus"),
            "voucher_id": voucher_id,
            "user_id":    user_id,
            "used_at":    now,
        }
        try:
            await db.voucher_usages.insert_one(usage, session=session)
        except DuplicateKeyError:
            if session is None:
                await db.vouchers.update_one({"voucher_id": voucher_id}, {"$inc": {"used_count": -1}})
            raise precondition_exception("Voucher already used by this user")

        tx = await record_transaction(
            user_id,
            TransactionType.VOUCHER,
            voucher["discount_amount"],
            description=f"Voucher: {voucher['code']}",
            voucher_id=voucher_id,
            reference=f"voucher:{voucher_id}:{user_id}",
            session=session,
        )

    logger.info("Voucher %s redeemed by %s (+%s)", voucher["code"], user_id, voucher["discount_amount"])
    return {"usage": strip_mongo_id(usage), "transaction": tx}
