"""
Compound operations with transactions enabled: every write goes through the
operation's session, and a storage failure part way leaves nothing behind.
"""
import pytest
from pymongo.errors import OperationFailure

from core.dependencies import Principal
from core.exceptions import InternalError
from models.common import PaymentMethod, UserRole
from models.voucher import VoucherCreate
from services import order_service, topup_service, voucher_service
from services.ledger_service import get_balance
from support import fund, make_profile, make_service, order_payload

ADMIN_ID = "usr_admin"
MITRA = Principal(id="usr_m", role=UserRole.MITRA)


def _disk_full() -> OperationFailure:
    return OperationFailure("disk full", code=14031)


async def _pending_order() -> dict:
    await make_profile("usr_u")
    await make_profile(MITRA.id, UserRole.MITRA)
    await fund(MITRA.id, 50000)
    service = await make_service(base_price=100000)
    return await order_service.create_order(order_payload(service["service_id"], PaymentMethod.CASH), "usr_u")


async def _stored_order(fake_db, order_id: str) -> dict:
    return await fake_db.orders.find_one({"order_id": order_id}, {"_id": 0})


# ── Orders ────────────────────────────────────────────────────────────────────

async def test_accept_writes_through_its_session(fake_db, mongo_client):
    order = await _pending_order()
    await order_service.accept_order(order["order_id"], MITRA.id)

    assert mongo_client.session.committed
    assert fake_db.stray_writes == []
    assert await get_balance(MITRA.id) == 30000


async def test_failed_deposit_rolls_back_acceptance(fake_db, mongo_client):
    order = await _pending_order()
    fake_db.balance_transactions.fail_on_insert = _disk_full()

    with pytest.raises(InternalError):
        await order_service.accept_order(order["order_id"], MITRA.id)

    assert mongo_client.session.aborted
    stored = await _stored_order(fake_db, order["order_id"])
    assert stored["status"] == "pending"
    assert stored["mitra_id"] is None
    assert await get_balance(MITRA.id) == 50000

    # nothing half-done blocks a retry
    accepted = await order_service.accept_order(order["order_id"], MITRA.id)
    assert accepted["status"] == "accepted"


async def test_failed_payout_rolls_back_completion(fake_db, mongo_client):
    order = await _pending_order()
    await order_service.accept_order(order["order_id"], MITRA.id)
    await order_service.start_work(order["order_id"], MITRA)
    fake_db.balance_transactions.fail_on_insert = _disk_full()

    with pytest.raises(InternalError):
        await order_service.complete_work(order["order_id"], MITRA)

    assert mongo_client.session.aborted
    stored = await _stored_order(fake_db, order["order_id"])
    assert stored["status"] == "in_progress"
    assert stored["invoice_number"] is None
    assert await get_balance(MITRA.id) == 30000

    await order_service.complete_work(order["order_id"], MITRA)
    assert mongo_client.session.committed
    assert fake_db.stray_writes == []
    assert await get_balance(MITRA.id) == 150000


# ── Vouchers ──────────────────────────────────────────────────────────────────

async def test_failed_voucher_credit_rolls_back_usage(fake_db, mongo_client):
    voucher = await voucher_service.create_voucher(
        VoucherCreate(code="save50k", title="Save 50K", discount_amount=50000, usage_limit=1),
        ADMIN_ID,
    )
    fake_db.balance_transactions.fail_on_insert = _disk_full()

    with pytest.raises(InternalError):
        await voucher_service.redeem_voucher(voucher["voucher_id"], "usr_a")

    assert mongo_client.session.aborted
    assert fake_db.voucher_usages.docs == []
    stored = await fake_db.vouchers.find_one({"voucher_id": voucher["voucher_id"]})
    assert stored["used_count"] == 0

    # the single use is still available
    await voucher_service.redeem_voucher(voucher["voucher_id"], "usr_a")
    assert fake_db.stray_writes == []
    assert await get_balance("usr_a") == 50000


# ── Top-ups ───────────────────────────────────────────────────────────────────

async def test_failed_topup_credit_keeps_request_pending(fake_db, mongo_client):
    await make_profile("usr_a")
    request = await topup_service.create_topup_request("usr_a", 50000)
    fake_db.balance_transactions.fail_on_insert = _disk_full()

    with pytest.raises(InternalError):
        await topup_service.approve_topup(request["topup_id"], ADMIN_ID)

    assert mongo_client.session.aborted
    stored = await fake_db.topup_requests.find_one({"topup_id": request["topup_id"]})
    assert stored["status"] == "pending"
    assert await get_balance("usr_a") == 0

    result = await topup_service.approve_topup(request["topup_id"], ADMIN_ID)
    assert result["outcome"] == "approved"
    assert fake_db.stray_writes == []
    assert await get_balance("usr_a") == 50000
