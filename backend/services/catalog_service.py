"""
Catalog: bookable services and home-screen banners.
"""
from datetime import datetime, timezone

from pymongo import ReturnDocument

from database import db
from core.exceptions import not_found_exception
from core.utils import new_id, strip_mongo_id


async def list_services(include_inactive: bool = False) -> list:
    query = {} if include_inactive else {"is_active": True}
    cursor = db.services.find(query, {"_id": 0}).sort("name", 1)
    return await cursor.to_list(length=200)


async def get_service(service_id: str) -> dict:
    service = await db.services.find_one({"service_id": service_id}, {"_id": 0})
    if not service:
        raise not_found_exception("Service")
    return service


async def create_service(data: dict) -> dict:
    doc = {
        **data,
        "service_id": new_id("svc"),
        "created_at": datetime.now(timezone.utc),
    }
    await db.services.insert_one(doc)
    return strip_mongo_id(doc)


async def update_service(service_id: str, updates: dict) -> dict:
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        return await get_service(service_id)
    updated = await db.services.find_one_and_update(
        {"service_id": service_id},
        {"$set": updates},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise not_found_exception("Service")
    return updated


async def list_banners() -> list:
    cursor = db.banners.find({"is_active": True}, {"_id": 0}).sort("order_index", 1)
    return await cursor.to_list(length=50)


async def create_banner(data: dict) -> dict:
    doc = {
        **data,
        "banner_id":  new_id("bnr"),
        "created_at": datetime.now(timezone.utc),
    }
    await db.banners.insert_one(doc)
    return strip_mongo_id(doc)


async def update_banner(banner_id: str, updates: dict) -> dict:
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        banner = await db.banners.find_one({"banner_id": banner_id}, {"_id": 0})
        if not banner:
            raise not_found_exception("Banner")
        return banner
    updated = await db.banners.find_one_and_update(
        {"banner_id": banner_id},
        {"$set": updates},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise not_found_exception("Banner")
    return updated
