from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel

from models.common import ReviewStatus
from models.profile import Profile


class VerificationCreate(BaseModel):
    ktp_image: str     # identity card (KTP) upload URL
    kk_image:  str     # family card (KK) upload URL


class MitraVerification(BaseModel):
    verification_id:  str
    mitra_id:         str
    ktp_image:        Optional[str] = None
    kk_image:         Optional[str] = None
    status:           ReviewStatus = ReviewStatus.PENDING
    rejection_reason: Optional[str] = None
    submitted_at:     datetime
    reviewed_at:      Optional[datetime] = None
    reviewed_by:      Optional[str] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class VerificationResult(BaseModel):
    outcome:      Literal["approved", "rejected"]
    verification: MitraVerification
    profile:      Optional[Profile] = None    # updated profile on approval
