"""
Router profiles: read, create and edit user profiles.
"""
from fastapi import APIRouter, Depends

from core.dependencies import Principal, get_current_principal, ensure_self_or_admin
from core.exceptions import forbidden_exception
from core.utils import mask_phone
from models.common import UserRole
from models.profile import Profile, ProfileCreate, AdminProfileUpdate
from services.profile_service import get_profile, create_profile, update_profile

router = APIRouter()


@router.get("/{user_id}", response_model=Profile, summary="Profile detail")
async def read_profile(user_id: str, principal: Principal = Depends(get_current_principal)):
    profile = await get_profile(user_id)
    # Others only see a masked phone number
    if not principal.is_admin and principal.id != user_id:
        profile["phone"] = mask_phone(profile.get("phone") or "") or None
    return profile


@router.post("/{user_id}", response_model=Profile, status_code=201, summary="Create a missing profile")
async def post_profile(
    user_id: str,
    body: ProfileCreate,
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_admin(principal, user_id)
    role = principal.role if principal.id == user_id else UserRole.USER
    return await create_profile(user_id, role, full_name=body.full_name, phone=body.phone)


@router.put("/{user_id}", response_model=Profile, summary="Edit a profile")
async def put_profile(
    user_id: str,
    body: AdminProfileUpdate,
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_admin(principal, user_id)
    updates = body.model_dump(exclude_none=True)
    if not principal.is_admin:
        restricted = {"is_verified", "is_blocked", "role"} & updates.keys()
        if restricted:
            raise forbidden_exception(f"Only an admin may change: {', '.join(sorted(restricted))}")
    return await update_profile(user_id, updates)
