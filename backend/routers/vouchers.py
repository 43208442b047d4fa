"""
Router vouchers: catalog of credit codes and one-time redemption.
"""
from fastapi import APIRouter, Depends

from core.dependencies import Principal, get_current_principal, require_admin
from models.voucher import Voucher, VoucherCreate, VoucherRedemption
from services import voucher_service

router = APIRouter()


@router.get("", response_model=list[Voucher], summary="Active vouchers")
async def list_vouchers(include_inactive: bool = False, principal: Principal = Depends(get_current_principal)):
    return await voucher_service.list_vouchers(include_inactive=include_inactive and principal.is_admin)


@router.post("", response_model=Voucher, status_code=201, summary="Create a voucher (admin)")
async def create_voucher(body: VoucherCreate, admin: Principal = Depends(require_admin)):
    return await voucher_service.create_voucher(body, admin.id)


@router.post("/{voucher_id}/use", response_model=VoucherRedemption, summary="Redeem a voucher")
async def use_voucher(voucher_id: str, principal: Principal = Depends(get_current_principal)):
    return await voucher_service.redeem_voucher(voucher_id, principal.id)
