"""
Shared helpers for tests: profiles, tokens, catalog entries and starting balances.
"""
from typing import Optional

from core.security import issue_access_token
from models.common import PaymentMethod, TransactionType, UserRole
from models.order import OrderCreate
from services.catalog_service import create_service
from services.ledger_service import record_transaction
from services.profile_service import create_profile


async def make_profile(user_id: str, role: UserRole = UserRole.USER, full_name: Optional[str] = None) -> dict:
    return await create_profile(user_id, role, full_name=full_name or user_id, phone="+6281234567890")


def auth_headers(user_id: str, role: UserRole = UserRole.USER) -> dict:
    token = issue_access_token(user_id, role.value)
    return {"Authorization": f"Bearer {token}"}


async def make_service(base_price: float = 100000, name: str = "Cleaning Service") -> dict:
    return await create_service({
        "name":             name,
        "description":      "Home cleaning",
        "base_price":       base_price,
        "duration_minutes": 120,
        "is_active":        True,
    })


async def fund(user_id: str, amount: float) -> dict:
    return await record_transaction(
        user_id,
        TransactionType.TOPUP,
        amount,
        description="Opening balance",
        approved_by="usr_admin",
    )


def order_payload(service_id: str, payment_method: PaymentMethod = PaymentMethod.BALANCE) -> OrderCreate:
    return OrderCreate(
        service_id=service_id,
        payment_method=payment_method,
        scheduled_date="2024-01-20",
        scheduled_time="09:30",
        address="Jl. Sudirman 1, Jakarta",
        latitude=-6.2,
        longitude=106.8,
    )
