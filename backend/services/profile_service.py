"""
Profiles and credentials: signup, login, profile edits.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import db, transaction
from core.exceptions import (
    not_found_exception,
    precondition_exception,
    credentials_exception,
    forbidden_exception,
)
from core.security import hash_password, verify_password
from core.utils import new_id, strip_mongo_id
from models.common import UserRole

logger = logging.getLogger(__name__)


def _profile_doc(
    user_id: str,
    role: UserRole,
    email: Optional[str] = None,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "user_id":        user_id,
        "email":          email,
        "full_name":      full_name,
        "phone":          phone,
        "role":           role.value,
        "is_verified":    False,
        "is_blocked":     False,
        "ledger_version": 0,
        "created_at":     now,
        "updated_at":     now,
    }


async def register_account(
    email: str,
    password: str,
    full_name: str,
    role: UserRole = UserRole.USER,
    phone: Optional[str] = None,
) -> dict:
    """Create the credential record and its profile. Returns the profile."""
    if await db.credentials.find_one({"email": email}):
        raise precondition_exception("Email already registered")

    user_id = new_id("usr")
    credential = {
        "user_id":       user_id,
        "email":         email,
        "password_hash": hash_password(password),
        "created_at":    datetime.now(timezone.utc),
    }
    profile = _profile_doc(user_id, role, email=email, full_name=full_name, phone=phone)

    async with transaction() as session:
        try:
            await db.credentials.insert_one(credential, session=session)
        except DuplicateKeyError:
            raise precondition_exception("Email already registered")
        await db.profiles.insert_one(profile, session=session)

    logger.info("Account registered: %s role=%s", user_id, role.value)
    return strip_mongo_id(profile)


async def authenticate(email: str, password: str) -> dict:
    credential = await db.credentials.find_one({"email": email}, {"_id": 0})
    if not credential or not verify_password(password, credential["password_hash"]):
        raise credentials_exception()
    profile = await get_profile(credential["user_id"])
    if profile.get("is_blocked"):
        raise forbidden_exception("Account is blocked")
    return profile


async def get_profile(user_id: str) -> dict:
    profile = await db.profiles.find_one({"user_id": user_id}, {"_id": 0})
    if not profile:
        raise not_found_exception("Profile")
    return profile


async def create_profile(
    user_id: str,
    role: UserRole,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> dict:
    if await db.profiles.find_one({"user_id": user_id}):
        raise precondition_exception("Profile already exists")
    profile = _profile_doc(user_id, role, full_name=full_name, phone=phone)
    await db.profiles.insert_one(profile)
    return strip_mongo_id(profile)


async def update_profile(user_id: str, updates: dict) -> dict:
    updates = {k: v for k, v in updates.items() if v is not None}
    if "role" in updates:
        updates["role"] = UserRole(updates["role"]).value
    if not updates:
        return await get_profile(user_id)
    updates["updated_at"] = datetime.now(timezone.utc)

    updated = await db.profiles.find_one_and_update(
        {"user_id": user_id},
        {"$set": updates},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise not_found_exception("Profile")
    return updated
