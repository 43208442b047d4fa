"""
Router auth: email/password signup and login, bearer token issuance.
"""
import logging

from fastapi import APIRouter, Depends

from core.dependencies import Principal, get_current_principal
from core.security import issue_access_token
from models.common import UserRole
from models.profile import SignupRequest, LoginRequest, TokenResponse
from services.profile_service import register_account, authenticate

logger = logging.getLogger(__name__)
router = APIRouter()


def _token_for(profile: dict) -> TokenResponse:
    token = issue_access_token(profile["user_id"], profile["role"])
    return TokenResponse(access_token=token, profile=profile)


@router.post("/signup", response_model=TokenResponse, summary="Create a user or mitra account")
async def signup(body: SignupRequest):
    profile = await register_account(
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=UserRole(body.role),
        phone=body.phone,
    )
    return _token_for(profile)


@router.post("/login", response_model=TokenResponse, summary="Exchange credentials for a token")
async def login(body: LoginRequest):
    profile = await authenticate(body.email, body.password)
    logger.info("Login: %s", profile["user_id"])
    return _token_for(profile)


@router.get("/me", summary="Current principal")
async def me(principal: Principal = Depends(get_current_principal)):
    return {"id": principal.id, "role": principal.role.value}
