from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from ..core.exceptions import AlreadyConfirmed, NoActiveOrder
from ..models.db import PodConfirmation, Seat
from ..models.entities import ConfirmedOrder, PodInfo, PodState
from ..models.schemas import Order
from .order_client import OrderService
from .seat_inventory import SeatInventory

logger = logging.getLogger(__name__)


def _confirmed(row: PodConfirmation) -> ConfirmedOrder:
    return ConfirmedOrder(
        order_id=str(row.order_id),
        order_number=str(row.order_number),
        seat_id=str(row.seat_id),
        seat_number=str(row.seat_number),
        location_id=str(row.location_id),
        confirmed_at=row.confirmed_at,
    )


def _confirmed_upstream(seat: Seat, order: Order) -> ConfirmedOrder:
    # Confirmed through another channel (kiosk); nothing stored locally
    return ConfirmedOrder(
        order_id=order.id,
        order_number=order.order_number,
        seat_id=str(seat.id),
        seat_number=str(seat.number),
        location_id=str(seat.location_id),
        confirmed_at=order.pod_confirmed_at,
    )


class PodCheckInService:
    """Scan-a-pod flow: resolve the pod's active order, then confirm arrival."""

    def __init__(self, db: DBSession, orders: OrderService):
        self.db = db
        self.orders = orders
        self.inventory = SeatInventory(db)

    def _confirmation(self, seat_id: str, order_id: str) -> PodConfirmation | None:
        return (
            self.db.query(PodConfirmation)
            .filter(PodConfirmation.seat_id == seat_id, PodConfirmation.order_id == order_id)
            .first()
        )

    def _active_order(self, seat: Seat, user_id: str | None) -> Order | None:
        return self.orders.find_active_order_for_seat(str(seat.qr_code), user_id=user_id)

    def resolve_pod(self, scanned_code: str, user_id: str | None = None) -> PodInfo:
        seat = self.inventory.get_by_code(scanned_code)
        info = PodInfo(
            seat_id=str(seat.id),
            seat_number=str(seat.number),
            qr_code=str(seat.qr_code),
            seat_status=str(seat.status),
            location_id=str(seat.location_id),
            state=PodState.NO_ACTIVE_ORDER,
        )

        order = self._active_order(seat, user_id)
        if order is None:
            return info

        row = self._confirmation(str(seat.id), order.id)
        already = row is not None or order.pod_confirmed_at is not None
        info.active_order = {
            "id": order.id,
            "order_number": order.order_number,
            "already_confirmed": already,
            "user_id": order.user_id,
        }
        if row is not None:
            info.state = PodState.CONFIRMED
            info.confirmation = _confirmed(row)
        elif order.pod_confirmed_at is not None:
            info.state = PodState.CONFIRMED
            info.confirmation = _confirmed_upstream(seat, order)
        else:
            info.state = PodState.AWAITING_CONFIRMATION
        return info

    def confirm_arrival(self, scanned_code: str, user_id: str | None = None) -> ConfirmedOrder:
        """Confirm the customer is at the pod.

        Raises ``AlreadyConfirmed`` carrying the first confirmation when the
        pod/order pair was confirmed before, including by a concurrent scan.
        """
        seat = self.inventory.get_by_code(scanned_code)
        order = self._active_order(seat, user_id)
        if order is None:
            raise NoActiveOrder(pod_number=str(seat.number), location_id=str(seat.location_id))

        existing = self._confirmation(str(seat.id), order.id)
        if existing is not None:
            raise AlreadyConfirmed(_confirmed(existing))
        if order.pod_confirmed_at is not None:
            raise AlreadyConfirmed(_confirmed_upstream(seat, order))

        # Upstream first, so a retry after a failure here still reaches it
        self.orders.mark_arrived(order.id)

        row = PodConfirmation(
            seat_id=str(seat.id),
            order_id=order.id,
            order_number=order.order_number,
            seat_number=str(seat.number),
            location_id=str(seat.location_id),
            user_id=user_id,
            confirmed_at=dt.datetime.utcnow(),
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            winner = self._confirmation(str(seat.id), order.id)
            if winner is None:
                raise
            raise AlreadyConfirmed(_confirmed(winner))

        self.inventory.occupy([str(seat.id)])
        self.db.commit()

        logger.info(f"Order {order.order_number}: customer confirmed arrival at Pod {seat.number}")
        return _confirmed(row)
