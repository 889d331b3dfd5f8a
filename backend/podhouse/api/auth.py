from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db
from ..core.security import create_access_token, verify_password
from ..models.db import User
from ..models.schemas import LoginIn, LoginOut, UserOut

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _as_str(v: Any) -> str:
    return cast(str, v)


def _as_bool(v: Any) -> bool:
    return bool(cast(bool, v))


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)) -> LoginOut:
    user = db.query(User).filter(User.username == payload.username.strip()).first()

    if (user is None) or (not _as_bool(user.is_active)):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not verify_password(payload.password, _as_str(user.password_hash)):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(
        subject=str(user.id),
        role=_as_str(user.role),
        location_id=cast(str | None, user.location_id),
    )
    return LoginOut(access_token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(user)
