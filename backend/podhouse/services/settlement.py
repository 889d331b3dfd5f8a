"""Host-pays-all settlement of a group order.

Runs as a best-effort saga. Payment is the irrevocable step: once every
member order is marked paid the group is committed to PAID and nothing
afterwards can fail the settlement. Seating and kitchen notification only
add warnings to the receipt.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, cast

from sqlalchemy.orm import Session as DBSession

from ..core.exceptions import (
    GroupNotOpen,
    InsufficientSeats,
    InvalidState,
    PartialPaymentFailure,
    PodError,
    ReservationConflict,
)
from ..models.db import GroupOrder, Seat
from ..models.entities import (
    GROUP_TRANSITIONS,
    GroupStatus,
    PaymentMode,
    PaymentStatus,
    SeatingRequest,
    SettlementReceipt,
)
from .group_orders import GroupOrderCoordinator
from .notifier import KitchenNotifier
from .order_client import OrderService
from .seat_inventory import SeatInventory
from .seat_selection import select_seats

logger = logging.getLogger(__name__)

SEATING_ATTEMPTS = 2

WARNING_INSUFFICIENT_SEATS = "Not enough pods are free for the whole group; please wait to be seated"
WARNING_SEATS_TAKEN = "The selected pods were taken by another group; please see staff to be seated"
WARNING_ORDER_SEAT = "Pods were reserved but could not be attached to every order"


class GroupSettlementService:
    def __init__(self, db: DBSession, orders: OrderService, notifier: KitchenNotifier):
        self.db = db
        self.orders = orders
        self.notifier = notifier
        self.inventory = SeatInventory(db)
        self.groups = GroupOrderCoordinator(db, orders)

    def pay_for_group(self, group_code: str) -> SettlementReceipt:
        group = self.groups.get_group(group_code)
        code = str(group.code)
        self.groups.require_open(group)
        if group.payment_mode != PaymentMode.HOST_PAYS_ALL.value:
            raise GroupNotOpen(code, str(group.status))

        member_ids = group.member_order_ids
        total_cents = self.groups.total_cents(group)

        # Step 2: payment, abort on the first failure
        paid: list[str] = []
        for order_id in member_ids:
            try:
                self.orders.set_payment_status(order_id, PaymentStatus.PAID)
            except PodError as e:
                logger.error(f"Group {code}: payment of order {order_id} failed after {paid}: {e.message}")
                raise PartialPaymentFailure(code, list(paid), order_id) from e
            paid.append(order_id)

        # Step 3: claim the group; a concurrent settlement loses here
        try:
            self._move(group, GroupStatus.OPEN, GroupStatus.PAID, paid_at=dt.datetime.utcnow())
        except GroupNotOpen as e:
            status = e.extra.get("status")
            logger.error(f"Group {code} became {status} after orders {paid} were paid; refunds needed")
            raise GroupNotOpen(code, str(status), paid_order_ids=list(paid)) from e
        logger.info(f"Group {code} paid: {len(paid)} order(s), {total_cents} cents")

        # Steps 4-5: seating, never fatal
        warnings: list[str] = []
        assigned = None
        if group.seating_option is not None:
            assigned = self._seat_group(group, warnings)

        # Step 6: fire-and-forget
        self._notify(code, assigned or [], group.seating_option)

        # Step 7
        self._move(group, GroupStatus.PAID, GroupStatus.COMPLETED, completed_at=dt.datetime.utcnow())
        logger.info(f"Group {code} completed, seats: {assigned}")

        return SettlementReceipt(
            group_code=code,
            group_status=GroupStatus.COMPLETED,
            paid_order_ids=paid,
            total_cents=total_cents,
            assigned_seat_ids=assigned,
            warning="; ".join(warnings) if warnings else None,
        )

    def _move(self, group: GroupOrder, expected: GroupStatus, target: GroupStatus, **stamps: Any) -> None:
        if target not in GROUP_TRANSITIONS[expected]:
            raise InvalidState(f"Group cannot move from {expected.value} to {target.value}", group_code=str(group.code))
        values: dict[Any, Any] = {GroupOrder.status: target.value}
        for name, value in stamps.items():
            values[getattr(GroupOrder, name)] = value
        updated = (
            self.db.query(GroupOrder)
            .filter(GroupOrder.id == group.id, GroupOrder.status == expected.value)
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            self.db.rollback()
            current = self.db.query(GroupOrder.status).filter(GroupOrder.id == group.id).scalar()
            raise GroupNotOpen(str(group.code), str(current))
        self.db.commit()
        self.db.refresh(group)

    def _seat_group(self, group: GroupOrder, warnings: list[str]) -> list[str] | None:
        code = str(group.code)
        request = SeatingRequest(
            group_size=len(group.member_order_ids),
            seating_option=int(cast(int, group.seating_option)),
        )

        for attempt in range(1, SEATING_ATTEMPTS + 1):
            available = self.inventory.list_available(str(group.location_id))
            partners = self.inventory.partner_ids(available)
            by_id = {str(s.id): s for s in available}
            try:
                chosen = select_seats(available, request, partner=lambda s: by_id.get(partners.get(str(s.id), "")))
            except InsufficientSeats as e:
                logger.warning(f"Group {code}: {e.message} (needed {e.needed}, free {e.available})")
                warnings.append(WARNING_INSUFFICIENT_SEATS)
                return None

            seat_ids = [str(s.id) for s in chosen]
            try:
                self.inventory.reserve(seat_ids)
            except ReservationConflict as e:
                logger.warning(f"Group {code}: reservation attempt {attempt} lost seats {e.unavailable}")
                continue

            self.groups.record_assignment(group, seat_ids)
            self._attach_to_orders(group, chosen, warnings)
            return seat_ids

        warnings.append(WARNING_SEATS_TAKEN)
        return None

    def _attach_to_orders(self, group: GroupOrder, seats: list[Seat], warnings: list[str]) -> None:
        for order_id, seat in zip(group.member_order_ids, seats):
            try:
                self.orders.assign_seat(order_id, str(seat.qr_code))
            except PodError as e:
                logger.error(f"Group {group.code}: could not attach pod {seat.number} to order {order_id}: {e.message}")
                if WARNING_ORDER_SEAT not in warnings:
                    warnings.append(WARNING_ORDER_SEAT)

    def _notify(self, code: str, seat_ids: list[str], seating_option: int | None) -> None:
        try:
            self.notifier.notify_group_seated(code, seat_ids, seating_option)
        except Exception as e:
            logger.error(f"Group {code}: kitchen notification failed: {e}")
