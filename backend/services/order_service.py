"""
Order service: lifecycle state machine and its ledger side effects.

pending → accepted → in_progress → completed, pending|accepted → cancelled.
Every transition claims the order with a conditional update on its current
status, so a repeated call cannot apply the same effect twice.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument

from config import settings
from database import db, transaction
from core.dependencies import Principal
from core.exceptions import (
    not_found_exception,
    precondition_exception,
    forbidden_exception,
)
from core.utils import new_id, round_money, strip_mongo_id
from models.common import OrderStatus, PaymentMethod, TransactionType, UserRole
from models.order import OrderCreate, OrderUpdate
from services.ledger_service import record_transaction, get_balance, pending_debits, lock_ledger

logger = logging.getLogger(__name__)

# ── State machine ─────────────────────────────────────────────────────────────
ALLOWED_TRANSITIONS: dict[OrderStatus, list[OrderStatus]] = {
    OrderStatus.PENDING: [
        OrderStatus.ACCEPTED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.ACCEPTED: [
        OrderStatus.IN_PROGRESS,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.IN_PROGRESS: [
        OrderStatus.COMPLETED,
    ],
    # Terminal states
    OrderStatus.COMPLETED: [],
    OrderStatus.CANCELLED: [],
}


def _order_id() -> str:
    return new_id("ord")


def _sources_of(new_status: OrderStatus) -> list[str]:
    return [
        status.value
        for status, targets in ALLOWED_TRANSITIONS.items()
        if new_status in targets
    ]


def invoice_number(order_id: str, issued_at: datetime) -> str:
    """INV-20240120-3F9A1C2B7D4E"""
    return f"INV-{issued_at:%Y%m%d}-{order_id.split('_')[-1].upper()}"


async def _get_order(order_id: str, session=None) -> dict:
    order = await db.orders.find_one({"order_id": order_id}, {"_id": 0}, session=session)
    if not order:
        raise not_found_exception("Order")
    return order


async def _transition(
    order_id: str,
    new_status: OrderStatus,
    fields: Optional[dict] = None,
    session=None,
) -> dict:
    """
    Move the order to new_status only if its current status allows it.
    Returns the updated order; raises 404 when it is missing and 400 when
    the current status forbids the move (including a repeated call).
    """
    now = datetime.now(timezone.utc)
    updated = await db.orders.find_one_and_update(
        {"order_id": order_id, "status": {"$in": _sources_of(new_status)}},
        {"$set": {"status": new_status.value, "updated_at": now, **(fields or {})}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if updated is None:
        current = await _get_order(order_id, session=session)
        raise precondition_exception(
            f"Forbidden transition: {current['status']} → {new_status.value}"
        )
    return updated


def _ensure_assigned_mitra(order: dict, actor: Principal) -> None:
    if actor.is_admin:
        return
    if order.get("mitra_id") != actor.id:
        raise forbidden_exception("Only the assigned mitra can do this")


def _ensure_owner(order: dict, actor: Principal) -> None:
    if actor.is_admin:
        return
    if order["user_id"] != actor.id:
        raise forbidden_exception()


# ── Creation ──────────────────────────────────────────────────────────────────

async def create_order(data: OrderCreate, user_id: str) -> dict:
    """
    Insert a pending order. Balance-paid orders are prepaid right away:
    an approved debit of total_price is written with the order.
    """
    service = await db.services.find_one(
        {"service_id": data.service_id, "is_active": True}, {"_id": 0}
    )
    if not service:
        raise not_found_exception("Service")

    profile = await db.profiles.find_one({"user_id": user_id}, {"_id": 0})
    if not profile:
        raise not_found_exception("Profile")
    if profile.get("is_blocked"):
        raise precondition_exception("Account is blocked")

    now = datetime.now(timezone.utc)
    order_id = _order_id()
    total_price = round_money(service["base_price"])

    order_doc = {
        "order_id":         order_id,
        "user_id":          user_id,
        "mitra_id":         None,
        "service_id":       service["service_id"],
        "service_name":     service["name"],
        "duration_minutes": service["duration_minutes"],
        "total_price":      total_price,
        "payment_method":   data.payment_method.value,
        "scheduled_date":   data.scheduled_date,
        "scheduled_time":   data.scheduled_time,
        "address":          data.address,
        "latitude":         data.latitude,
        "longitude":        data.longitude,
        "notes":            data.notes,
        "status":           OrderStatus.PENDING.value,
        "deposit_amount":   None,
        "rating":           None,
        "review":           None,
        "invoice_number":   None,
        "invoice_url":      None,
        "created_at":       now,
        "updated_at":       now,
        "accepted_at":      None,
        "started_at":       None,
        "completed_at":     None,
        "cancelled_at":     None,
    }

    async with transaction() as session:
        await db.orders.insert_one(order_doc, session=session)
        if data.payment_method == PaymentMethod.BALANCE:
            await record_transaction(
                user_id,
                TransactionType.PAYMENT,
                -total_price,
                description=f"Payment for {service['name']}",
                order_id=order_id,
                reference=f"order:{order_id}:payment",
                session=session,
            )

    logger.info(
        "Order created: %s user=%s price=%s method=%s",
        order_id, user_id, total_price, data.payment_method.value,
    )
    return strip_mongo_id(order_doc)


# ── Lifecycle ─────────────────────────────────────────────────────────────────

async def accept_order(order_id: str, mitra_id: str) -> dict:
    """
    The mitra must hold MITRA_DEPOSIT_RATE × total_price on top of any
    pending withdrawals. On success the deposit is debited and the order
    moves to accepted; on any failure neither happens.
    """
    async with transaction() as session:
        order = await _get_order(order_id, session=session)
        if order["status"] != OrderStatus.PENDING.value:
            raise precondition_exception(
                f"Order is {order['status']}, only pending orders can be accepted"
            )

        mitra = await lock_ledger(mitra_id, session=session)
        if mitra.get("role") != UserRole.MITRA.value:
            raise precondition_exception("Only mitra accounts can accept orders")
        if mitra.get("is_blocked"):
            raise precondition_exception("Mitra account is blocked")

        deposit = round_money(order["total_price"] * settings.MITRA_DEPOSIT_RATE)
        # Pending withdrawals are already promised away
        balance = await get_balance(mitra_id, session=session)
        reserved = await pending_debits(mitra_id, TransactionType.WITHDRAWAL, session=session)
        available = round_money(balance - reserved)
        if available < deposit:
            raise precondition_exception(
                f"Insufficient balance: deposit of {deposit} required, available {available}"
            )

        now = datetime.now(timezone.utc)
        updated = await _transition(
            order_id,
            OrderStatus.ACCEPTED,
            {"mitra_id": mitra_id, "deposit_amount": deposit, "accepted_at": now},
            session=session,
        )
        await record_transaction(
            mitra_id,
            TransactionType.PAYMENT,
            -deposit,
            description=f"Deposit for order {order_id}",
            order_id=order_id,
            reference=f"order:{order_id}:deposit",
            session=session,
        )

    logger.info("Order %s accepted by mitra %s (deposit %s)", order_id, mitra_id, deposit)
    return updated


async def start_work(order_id: str, actor: Principal) -> dict:
    order = await _get_order(order_id)
    _ensure_assigned_mitra(order, actor)
    updated = await _transition(
        order_id,
        OrderStatus.IN_PROGRESS,
        {"started_at": datetime.now(timezone.utc)},
    )
    logger.info("Order %s started", order_id)
    return updated


async def complete_work(order_id: str, actor: Principal) -> dict:
    """
    Close the order, issue the invoice reference and pay the mitra
    MITRA_PAYOUT_RATE × total_price in a single commission entry
    (deposit returned + full order price).
    """
    async with transaction() as session:
        order = await _get_order(order_id, session=session)
        _ensure_assigned_mitra(order, actor)

        now = datetime.now(timezone.utc)
        updated = await _transition(
            order_id,
            OrderStatus.COMPLETED,
            {
                "completed_at":   now,
                "invoice_number": invoice_number(order_id, now),
                "invoice_url":    f"{settings.INVOICE_BASE_PATH}/{order_id}.pdf",
            },
            session=session,
        )
        payout = round_money(updated["total_price"] * settings.MITRA_PAYOUT_RATE)
        await record_transaction(
            updated["mitra_id"],
            TransactionType.COMMISSION,
            payout,
            description=f"Payment for completed order {order_id}",
            order_id=order_id,
            reference=f"order:{order_id}:payout",
            session=session,
        )

    logger.info("Order %s completed, mitra %s credited %s", order_id, updated["mitra_id"], payout)
    return updated


async def cancel_order(order_id: str, actor: Principal, reason: Optional[str] = None) -> dict:
    """
    pending|accepted → cancelled, writing the offsetting entries: the
    prepayment back to the user and the deposit back to the mitra.
    """
    async with transaction() as session:
        order = await _get_order(order_id, session=session)
        _ensure_owner(order, actor)

        updated = await _transition(
            order_id,
            OrderStatus.CANCELLED,
            {"cancelled_at": datetime.now(timezone.utc), "cancel_reason": reason},
            session=session,
        )

        if updated["payment_method"] == PaymentMethod.BALANCE.value:
            await record_transaction(
                updated["user_id"],
                TransactionType.PAYMENT,
                updated["total_price"],
                description=f"Refund for cancelled order {order_id}",
                order_id=order_id,
                reference=f"order:{order_id}:refund",
                session=session,
            )
        if updated.get("mitra_id") and updated.get("deposit_amount"):
            await record_transaction(
                updated["mitra_id"],
                TransactionType.PAYMENT,
                updated["deposit_amount"],
                description=f"Deposit returned for cancelled order {order_id}",
                order_id=order_id,
                reference=f"order:{order_id}:deposit-return",
                session=session,
            )

    logger.info("Order %s cancelled by %s", order_id, actor.id)
    return updated


async def rate_order(
    order_id: str,
    actor: Principal,
    rating: int,
    review: Optional[str] = None,
) -> dict:
    order = await _get_order(order_id)
    if order["user_id"] != actor.id:
        raise forbidden_exception("Only the customer can rate this order")
    if order["status"] != OrderStatus.COMPLETED.value:
        raise precondition_exception("Only completed orders can be rated")

    now = datetime.now(timezone.utc)
    updated = await db.orders.find_one_and_update(
        {"order_id": order_id, "status": OrderStatus.COMPLETED.value, "rating": None},
        {"$set": {"rating": rating, "review": review, "rated_at": now, "updated_at": now}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise precondition_exception("Order already rated")
    return updated


# ── Queries and edits ─────────────────────────────────────────────────────────

async def update_order(order_id: str, actor: Principal, data: OrderUpdate) -> dict:
    order = await _get_order(order_id)
    _ensure_owner(order, actor)

    updates = data.model_dump(exclude_none=True)
    if not updates:
        return order
    updates["updated_at"] = datetime.now(timezone.utc)

    updated = await db.orders.find_one_and_update(
        {"order_id": order_id, "status": OrderStatus.PENDING.value},
        {"$set": updates},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise precondition_exception("Only pending orders can be edited")
    return updated


def can_view_order(order: dict, actor: Principal) -> bool:
    if actor.is_admin or order["user_id"] == actor.id:
        return True
    if actor.role == UserRole.MITRA:
        return order.get("mitra_id") == actor.id or order["status"] == OrderStatus.PENDING.value
    return False


async def get_order(order_id: str, actor: Principal) -> dict:
    order = await _get_order(order_id)
    if not can_view_order(order, actor):
        raise forbidden_exception()
    return order


async def list_orders(
    actor: Principal,
    user_id: Optional[str] = None,
    mitra_id: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    skip: int = 0,
    limit: int = 50,
) -> list:
    """
    Admin: everything, with optional filters.
    Mitra: its own assignments plus open pending jobs.
    User: its own orders.
    """
    if actor.is_admin:
        query: dict = {}
        if user_id:
            query["user_id"] = user_id
        if mitra_id:
            query["mitra_id"] = mitra_id
    elif actor.role == UserRole.MITRA:
        query = {
            "$or": [
                {"mitra_id": actor.id},
                {"status": OrderStatus.PENDING.value},
            ]
        }
    else:
        query = {"user_id": actor.id}

    if status:
        query["status"] = status.value

    cursor = db.orders.find(query, {"_id": 0}).sort("created_at", -1).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)
