"""
Router admin: dashboard figures, manual balance transfers, mitra blocking.
"""
from fastapi import APIRouter, Depends

from core.dependencies import Principal, require_admin
from models.ledger import TransferRequest, TransferResult
from models.profile import Profile
from services.admin_service import get_admin_stats, transfer_balance, toggle_mitra_status

router = APIRouter()
mitra_router = APIRouter()


@router.get("/stats", summary="Dashboard KPIs")
async def stats(_admin=Depends(require_admin)):
    return await get_admin_stats()


@router.post("/transfer-balance", response_model=TransferResult, summary="Move balance between users")
async def transfer(body: TransferRequest, admin: Principal = Depends(require_admin)):
    return await transfer_balance(
        body.from_user_id,
        body.to_user_id,
        body.amount,
        body.description,
        admin.id,
    )


@mitra_router.post("/{mitra_id}/toggle-status", response_model=Profile, summary="Block or unblock a mitra")
async def toggle_status(mitra_id: str, _admin=Depends(require_admin)):
    return await toggle_mitra_status(mitra_id)
