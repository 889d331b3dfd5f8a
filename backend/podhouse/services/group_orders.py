from __future__ import annotations

import datetime as dt
import logging
import secrets
from typing import Any, cast

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from ..core.config import settings
from ..core.exceptions import (
    GroupCodeExhausted,
    GroupExpired,
    GroupFull,
    GroupNotFound,
    GroupNotOpen,
    InvalidSeatingOption,
    InvalidState,
    OrderLocationMismatch,
    OrderNotFound,
)
from ..models.db import GroupOrder, GroupOrderMember, GroupSeatAssignment
from ..models.entities import (
    GROUP_TRANSITIONS,
    SEATING_OPTIONS,
    GroupStatus,
    PaymentMode,
    PaymentStatus,
)
from .order_client import OrderService
from .seat_inventory import SeatInventory

logger = logging.getLogger(__name__)

# No I, O, 0, 1 to avoid confusion when read aloud
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6
CODE_ATTEMPTS = 10


def generate_group_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def advance(group: GroupOrder, target: GroupStatus) -> None:
    current = GroupStatus(cast(str, group.status))
    if target not in GROUP_TRANSITIONS[current]:
        raise InvalidState(
            f"Group cannot move from {current.value} to {target.value}",
            group_code=str(group.code),
        )
    group.status = cast(Any, target.value)


class GroupOrderCoordinator:
    """Membership, host and seating preference of a group before payment."""

    def __init__(self, db: DBSession, orders: OrderService):
        self.db = db
        self.orders = orders
        self.inventory = SeatInventory(db)

    # Lookups

    def get_group(self, code: str) -> GroupOrder:
        group = self.db.query(GroupOrder).filter(GroupOrder.code == code.strip().upper()).first()
        if group is None:
            raise GroupNotFound(code)
        return group

    def total_cents(self, group: GroupOrder) -> int:
        return sum(self.orders.get_order(oid).total_cents for oid in group.member_order_ids)

    def assigned_seat_ids(self, group: GroupOrder) -> list[str]:
        return [str(a.seat_id) for a in group.seat_assignments if a.released_at is None]

    def describe(self, group: GroupOrder) -> dict[str, Any]:
        return {
            "code": group.code,
            "location_id": group.location_id,
            "tenant_id": group.tenant_id,
            "status": group.status,
            "payment_mode": group.payment_mode,
            "host_order_id": group.host_order_id,
            "seating_option": group.seating_option,
            "member_order_ids": group.member_order_ids,
            "total_cents": self.total_cents(group),
            "assigned_seat_ids": self.assigned_seat_ids(group),
            "created_at": group.created_at,
            "expires_at": group.expires_at,
            "paid_at": group.paid_at,
            "completed_at": group.completed_at,
        }

    def require_open(self, group: GroupOrder, now: dt.datetime | None = None) -> None:
        now = now or dt.datetime.utcnow()
        if group.status != GroupStatus.OPEN.value:
            raise GroupNotOpen(str(group.code), str(group.status))
        if group.expires_at is not None and now > group.expires_at:
            seat_ids = self._expire(group, now)
            self.db.commit()
            if seat_ids:
                self.inventory.release(seat_ids)
            raise GroupExpired(str(group.code))

    def _check_order(self, group: GroupOrder, order_id: str):
        order = self.orders.get_order(order_id)
        if order.location_id != group.location_id:
            raise OrderLocationMismatch(order_id)
        return order

    # Commands

    def create_group(
        self,
        host_order_id: str,
        location_id: str,
        payment_mode: PaymentMode = PaymentMode.HOST_PAYS_ALL,
        tenant_id: str | None = None,
    ) -> GroupOrder:
        host = self.orders.get_order(host_order_id)
        if host.location_id != location_id:
            raise OrderLocationMismatch(host_order_id)

        now = dt.datetime.utcnow()
        for _ in range(CODE_ATTEMPTS):
            code = generate_group_code()
            if self.db.query(GroupOrder.id).filter(GroupOrder.code == code).first():
                continue

            group = GroupOrder(
                code=code,
                location_id=location_id,
                tenant_id=tenant_id or host.tenant_id,
                status=GroupStatus.OPEN.value,
                payment_mode=PaymentMode(payment_mode).value,
                host_order_id=host_order_id,
                created_at=now,
                expires_at=now + dt.timedelta(minutes=settings.GROUP_EXPIRY_MINUTES),
            )
            group.members.append(GroupOrderMember(order_id=host_order_id, position=0, joined_at=now))
            self.db.add(group)
            try:
                self.db.commit()
            except IntegrityError:
                # Lost a race for the same code
                self.db.rollback()
                continue
            self.db.refresh(group)
            logger.info(f"Group {code} created at location {location_id} by order {host_order_id}")
            return group

        raise GroupCodeExhausted()

    def join_group(self, code: str, member_order_id: str) -> GroupOrder:
        group = self.get_group(code)
        self.require_open(group)

        if member_order_id in group.member_order_ids:
            return group
        if len(group.members) >= settings.GROUP_MAX_MEMBERS:
            raise GroupFull(str(group.code), settings.GROUP_MAX_MEMBERS)
        self._check_order(group, member_order_id)

        position = max((int(m.position) for m in group.members), default=-1) + 1
        group.members.append(GroupOrderMember(order_id=member_order_id, position=position))
        try:
            self.db.commit()
        except IntegrityError:
            # Concurrent join of the same order
            self.db.rollback()
            return self.get_group(code)
        self.db.refresh(group)
        logger.info(f"Order {member_order_id} joined group {group.code}")
        return group

    def choose_seating_option(self, code: str, option: int) -> GroupOrder:
        if option not in SEATING_OPTIONS:
            raise InvalidSeatingOption(option)
        group = self.get_group(code)
        self.require_open(group)
        group.seating_option = cast(Any, option)
        self.db.commit()
        self.db.refresh(group)
        return group

    def set_payment_mode(self, code: str, mode: PaymentMode) -> GroupOrder:
        group = self.get_group(code)
        self.require_open(group)
        group.payment_mode = cast(Any, PaymentMode(mode).value)
        self.db.commit()
        self.db.refresh(group)
        return group

    def remove_member(self, code: str, order_id: str) -> GroupOrder:
        group = self.get_group(code)
        self.require_open(group)
        if order_id == group.host_order_id:
            raise InvalidState("Host order cannot be removed; transfer host first", order_id=order_id)

        member = next((m for m in group.members if m.order_id == order_id), None)
        if member is None:
            raise OrderNotFound(order_id)
        if self.orders.get_order(order_id).payment_status == PaymentStatus.PAID.value:
            raise InvalidState("Cannot remove paid orders", order_id=order_id)

        group.members.remove(member)
        for position, m in enumerate(group.members):
            m.position = cast(Any, position)
        self.db.commit()
        self.db.refresh(group)
        logger.info(f"Order {order_id} removed from group {group.code}")
        return group

    def transfer_host(self, code: str, new_host_order_id: str) -> GroupOrder:
        group = self.get_group(code)
        self.require_open(group)
        if new_host_order_id not in group.member_order_ids:
            raise InvalidState("New host must have an order in the group", order_id=new_host_order_id)
        group.host_order_id = cast(Any, new_host_order_id)
        self.db.commit()
        self.db.refresh(group)
        logger.info(f"Group {group.code} host is now order {new_host_order_id}")
        return group

    # Expiry

    def _expire(self, group: GroupOrder, now: dt.datetime) -> list[str]:
        advance(group, GroupStatus.EXPIRED)
        held = [a for a in group.seat_assignments if a.released_at is None]
        for a in held:
            a.released_at = cast(Any, now)
        seat_ids = [str(a.seat_id) for a in held]
        logger.info(f"Group {group.code} expired")
        return seat_ids

    def expire_stale_groups(self, now: dt.datetime | None = None) -> tuple[list[str], list[str]]:
        """Move overdue OPEN groups to EXPIRED and free any seats they hold."""
        now = now or dt.datetime.utcnow()
        stale = (
            self.db.query(GroupOrder)
            .filter(GroupOrder.status == GroupStatus.OPEN.value, GroupOrder.expires_at < now)
            .all()
        )
        codes: list[str] = []
        seat_ids: list[str] = []
        for group in stale:
            seat_ids.extend(self._expire(group, now))
            codes.append(str(group.code))
        self.db.commit()

        released = self.inventory.release(seat_ids) if seat_ids else []
        return codes, released

    def record_assignment(self, group: GroupOrder, seat_ids: list[str]) -> list[GroupSeatAssignment]:
        members = group.member_order_ids
        rows = []
        for i, seat_id in enumerate(seat_ids):
            row = GroupSeatAssignment(seat_id=seat_id, order_id=members[i] if i < len(members) else None)
            group.seat_assignments.append(row)
            rows.append(row)
        self.db.commit()
        return rows
