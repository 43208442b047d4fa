"""
Router mitra verifications.
Workflow: mitra submits KTP + KK → admin reviews → approves (profile verified) or rejects.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.dependencies import Principal, require_admin, require_mitra
from models.common import ReviewStatus
from models.verification import (
    MitraVerification,
    RejectRequest,
    VerificationCreate,
    VerificationResult,
)
from services import verification_service

router = APIRouter()


# ── Mitra endpoints ──────────────────────────────────────────────────────────

@router.post("", response_model=MitraVerification, status_code=201, summary="Submit identity documents")
async def submit(body: VerificationCreate, principal: Principal = Depends(require_mitra)):
    return await verification_service.submit_verification(principal.id, body)


@router.get("", response_model=list[MitraVerification], summary="Verification requests")
async def list_all(
    status: Optional[ReviewStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(require_mitra),
):
    mitra_id = None if principal.is_admin else principal.id
    return await verification_service.list_verifications(
        mitra_id=mitra_id, status=status, skip=skip, limit=limit,
    )


# ── Admin endpoints ──────────────────────────────────────────────────────────

@router.post("/{verification_id}/approve", response_model=VerificationResult, summary="Approve (admin)")
async def approve(verification_id: str, admin: Principal = Depends(require_admin)):
    return await verification_service.approve_verification(verification_id, admin.id)


@router.post("/{verification_id}/reject", response_model=VerificationResult, summary="Reject (admin)")
async def reject(
    verification_id: str,
    body: Optional[RejectRequest] = None,
    admin: Principal = Depends(require_admin),
):
    reason = body.reason if body else None
    return await verification_service.reject_verification(verification_id, admin.id, reason)
