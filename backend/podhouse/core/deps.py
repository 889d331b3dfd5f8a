from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session as DBSession

from .config import settings
from .db import SessionLocal
from .exceptions import ErrorMessages
from .security import STAFF_ROLES, decode_token
from .store import store
from ..models.db import User
from ..services.group_orders import GroupOrderCoordinator
from ..services.notifier import HttpKitchenNotifier, KitchenNotifier, LoggingKitchenNotifier
from ..services.order_client import HttpOrderService, InMemoryOrderService, OrderService
from ..services.pod_checkin import PodCheckInService
from ..services.seat_inventory import SeatInventory
from ..services.settlement import GroupSettlementService


bearer = HTTPBearer(auto_error=False)



def _as_bool(v: Any) -> bool:
    return bool(cast(bool, v))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    db: DBSession = Depends(get_db),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> User:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    payload = decode_token(creds.credentials)

    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not _as_bool(user.is_active):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return user


def require_roles(*roles: str) -> Callable[[User], User]:
    allowed = set(roles)

    def _dep(user: User = Depends(get_current_user)) -> User:
        role = cast(str, user.role)
        if role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _dep


def require_location_access(user: User, location_id: str) -> None:
    """Superadmins see every location; everyone else only their own."""
    if cast(str, user.role) == "superadmin":
        return
    if user.location_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.NO_LOCATION_ASSIGNED)
    if str(user.location_id) != location_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.FORBIDDEN_FOR_LOCATION)


# Upstream services


@lru_cache
def get_order_service() -> OrderService:
    if settings.ORDER_SERVICE_URL:
        return HttpOrderService(settings.ORDER_SERVICE_URL, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    return InMemoryOrderService(store)


@lru_cache
def get_kitchen_notifier() -> KitchenNotifier:
    if settings.KITCHEN_WEBHOOK_URL:
        return HttpKitchenNotifier(settings.KITCHEN_WEBHOOK_URL, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    return LoggingKitchenNotifier()


def get_seat_inventory(db: DBSession = Depends(get_db)) -> SeatInventory:
    return SeatInventory(db)


def get_checkin_service(
    db: DBSession = Depends(get_db),
    orders: OrderService = Depends(get_order_service),
) -> PodCheckInService:
    return PodCheckInService(db, orders)


def get_group_coordinator(
    db: DBSession = Depends(get_db),
    orders: OrderService = Depends(get_order_service),
) -> GroupOrderCoordinator:
    return GroupOrderCoordinator(db, orders)


def get_settlement_service(
    db: DBSession = Depends(get_db),
    orders: OrderService = Depends(get_order_service),
    notifier: KitchenNotifier = Depends(get_kitchen_notifier),
) -> GroupSettlementService:
    return GroupSettlementService(db, orders, notifier)
