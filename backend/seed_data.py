"""
Bootstrap data: the admin account, the service catalog, banners and vouchers.
Safe to run repeatedly; existing records are left as they are.

    python seed_data.py
"""
import asyncio
import os
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorClient

from config import settings
from core.security import hash_password
from core.utils import new_id

ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@getlife.id")
ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin12345")

SERVICES = [
    {"name": "Cleaning Service", "description": "Professional home cleaning service",      "base_price": 150000, "duration_minutes": 120},
    {"name": "AC Repair",        "description": "Air conditioner maintenance and repair", "base_price": 250000, "duration_minutes": 90},
    {"name": "Plumbing Service", "description": "Professional plumbing solutions",        "base_price": 200000, "duration_minutes": 60},
]

BANNERS = [
    {"title": "Welcome to GetLife", "image_url": "/placeholder-banner-1.jpg", "order_index": 1},
    {"title": "Special Discount",   "image_url": "/placeholder-banner-2.jpg", "order_index": 2},
]

VOUCHERS = [
    {"code": "WELCOME20", "title": "Welcome Bonus", "discount_amount": 20000},
    {"code": "SAVE50K",   "title": "Save 50K",      "discount_amount": 50000},
]


async def _insert_missing(collection, key: str, items: list, id_field: str, prefix: str, extra: dict) -> int:
    created = 0
    for item in items:
        result = await collection.update_one(
            {key: item[key]},
            {"$setOnInsert": {**item, **extra, id_field: new_id(prefix)}},
            upsert=True,
        )
        if result.upserted_id is not None:
            created += 1
    return created


async def seed(database) -> dict:
    """Seed `database` (a Motor database handle). Returns what was created."""
    now = datetime.now(timezone.utc)
    summary = {"admin": False, "services": 0, "banners": 0, "vouchers": 0}

    if not await database.credentials.find_one({"email": ADMIN_EMAIL}):
        user_id = new_id("usr")
        await database.credentials.insert_one({
            "user_id":       user_id,
            "email":         ADMIN_EMAIL,
            "password_hash": hash_password(ADMIN_PASSWORD),
            "created_at":    now,
        })
        await database.profiles.insert_one({
            "user_id":        user_id,
            "email":          ADMIN_EMAIL,
            "full_name":      "GetLife Admin",
            "phone":          None,
            "role":           "admin",
            "is_verified":    True,
            "is_blocked":     False,
            "ledger_version": 0,
            "created_at":     now,
            "updated_at":     now,
        })
        summary["admin"] = True

    summary["services"] = await _insert_missing(
        database.services, "name", SERVICES, "service_id", "svc",
        {"is_active": True, "created_at": now},
    )
    summary["banners"] = await _insert_missing(
        database.banners, "title", BANNERS, "banner_id", "bnr",
        {"link_url": None, "is_active": True, "created_at": now},
    )
    summary["vouchers"] = await _insert_missing(
        database.vouchers, "code", VOUCHERS, "voucher_id", "vch",
        {"usage_limit": None, "valid_until": None, "is_active": True,
         "used_count": 0, "created_by": None, "created_at": now},
    )
    return summary


async def main():
    print(f"Connecting to MongoDB: {settings.DB_NAME}")
    client = AsyncIOMotorClient(settings.MONGO_URL)
    try:
        summary = await seed(client[settings.DB_NAME])
    finally:
        client.close()

    print(f"Admin account created: {'yes' if summary['admin'] else 'already present'} ({ADMIN_EMAIL})")
    print(f"Services: {summary['services']} new, banners: {summary['banners']} new, vouchers: {summary['vouchers']} new")


if __name__ == "__main__":
    asyncio.run(main())
