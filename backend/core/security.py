from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from config import settings

# ── Passwords ─────────────────────────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ── Access tokens ─────────────────────────────────────────────────────────────
ALGORITHM = "HS256"
TOKEN_ISSUER = "getlife-api"


def issue_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signed bearer token carrying the account id (`sub`) and its role."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub":  user_id,
        "role": role,
        "iss":  TOKEN_ISSUER,
        "iat":  now,
        "exp":  now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)


def read_access_token(token: str) -> Optional[dict]:
    """Claims of a valid token, or None when it is malformed, expired or foreign."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM], issuer=TOKEN_ISSUER)
    except JWTError:
        return None
    if not claims.get("sub") or not claims.get("role"):
        return None
    return claims
