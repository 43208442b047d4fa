"""
Order chat: a flat, append-only message log per order.
"""
from datetime import datetime, timezone

from database import db
from core.dependencies import Principal
from core.exceptions import not_found_exception, forbidden_exception
from core.utils import new_id, strip_mongo_id


async def _order_participants(order_id: str) -> dict:
    order = await db.orders.find_one(
        {"order_id": order_id}, {"_id": 0, "user_id": 1, "mitra_id": 1}
    )
    if not order:
        raise not_found_exception("Order")
    return order


def _ensure_participant(order: dict, actor: Principal) -> None:
    if actor.is_admin:
        return
    if actor.id not in (order.get("user_id"), order.get("mitra_id")):
        raise forbidden_exception()


async def list_messages(order_id: str, actor: Principal) -> list:
    order = await _order_participants(order_id)
    _ensure_participant(order, actor)
    cursor = db.chat_messages.find({"order_id": order_id}, {"_id": 0}).sort("created_at", 1)
    return await cursor.to_list(length=500)


async def send_message(order_id: str, actor: Principal, message: str) -> dict:
    order = await _order_participants(order_id)
    _ensure_participant(order, actor)

    if actor.id == order.get("user_id"):
        receiver_id = order.get("mitra_id")
    else:
        receiver_id = order.get("user_id")

    doc = {
        "message_id":  new_id("msg"),
        "order_id":    order_id,
        "sender_id":   actor.id,
        "receiver_id": receiver_id,
        "message":     message,
        "is_read":     False,
        "created_at":  datetime.now(timezone.utc),
    }
    await db.chat_messages.insert_one(doc)
    return strip_mongo_id(doc)
