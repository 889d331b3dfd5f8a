"""Staff credentials and bearer tokens.

Only pod-house staff authenticate; customers reach the scan and group
endpoints anonymously. A token names the staff user, their role and the
location they manage, which is what location-scoped pod operations check.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from fastapi import HTTPException
from jose import JWTError, ExpiredSignatureError, jwt
from passlib.context import CryptContext

from .config import settings

# superadmin manages every location; location_admin and staff only their own
STAFF_ROLES = ("superadmin", "location_admin", "staff")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str,
    role: str,
    location_id: str | None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token for a staff user.

    ``location_id`` is the location whose pods the user may pair, clean and
    reserve; it is ``None`` for superadmins.
    """
    if role not in STAFF_ROLES:
        raise ValueError(f"Unknown staff role: {role}")
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=int(settings.JWT_EXPIRES_MINUTES)))
    payload: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "location_id": location_id,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Claims of a valid staff token, or 401.

    A token whose role is not a staff role is refused even when the
    signature checks out.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or role not in STAFF_ROLES:
        raise HTTPException(status_code=401, detail="Invalid token")

    return {
        "sub": str(sub),
        "role": role,
        "location_id": payload.get("location_id"),
    }
