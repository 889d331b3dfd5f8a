"""
Scan-a-pod check-in: resolving the active order and confirming arrival.
"""
import datetime as dt

import pytest

from podhouse.core.exceptions import AlreadyConfirmed, NoActiveOrder, UnknownCode
from podhouse.models.db import PodConfirmation
from podhouse.models.entities import PodState, SeatStatus
from podhouse.services.pod_checkin import PodCheckInService


@pytest.fixture
def checkin(db, orders) -> PodCheckInService:
    return PodCheckInService(db, orders)


@pytest.fixture
def pod(make_seat):
    return make_seat("4", col=4)


def _paid_order_at(make_order, pod, order_id="o1", **fields):
    return make_order(order_id, payment_status="PAID", seat_code=pod.qr_code, **fields)


class TestResolvePod:
    def test_no_active_order(self, checkin, pod):
        info = checkin.resolve_pod(pod.qr_code)
        assert info.state == PodState.NO_ACTIVE_ORDER
        assert info.active_order is None

    def test_unpaid_order_is_not_active(self, checkin, pod, make_order):
        make_order("o1", seat_code=pod.qr_code)
        assert checkin.resolve_pod(pod.qr_code).state == PodState.NO_ACTIVE_ORDER

    def test_awaiting_confirmation(self, checkin, pod, make_order):
        _paid_order_at(make_order, pod)
        info = checkin.resolve_pod(pod.qr_code)

        assert info.state == PodState.AWAITING_CONFIRMATION
        assert info.active_order["order_number"] == "ORD-o1"
        assert info.active_order["already_confirmed"] is False

    def test_prefers_the_scanning_users_order(self, checkin, pod, make_order):
        _paid_order_at(make_order, pod, "o1", user_id="u1")
        _paid_order_at(make_order, pod, "o2", user_id="u2")

        assert checkin.resolve_pod(pod.qr_code, user_id="u2").active_order["id"] == "o2"

    def test_unknown_code(self, checkin):
        with pytest.raises(UnknownCode):
            checkin.resolve_pod("POD-does-not-exist")


class TestConfirmArrival:
    def test_confirms_and_occupies_pod(self, checkin, inventory, orders, pod, make_order):
        _paid_order_at(make_order, pod)

        confirmed = checkin.confirm_arrival(pod.qr_code)

        assert confirmed.order_id == "o1"
        assert confirmed.seat_number == "4"
        assert inventory.get(str(pod.id)).status == SeatStatus.OCCUPIED.value
        assert orders.get_order("o1").pod_confirmed_at is not None
        assert orders.get_order("o1").status == "QUEUED"
        assert checkin.resolve_pod(pod.qr_code).state == PodState.CONFIRMED

    def test_second_confirmation_returns_the_first(self, db, checkin, pod, make_order):
        # Given: a confirmed pod
        _paid_order_at(make_order, pod)
        first = checkin.confirm_arrival(pod.qr_code)

        # When: the customer scans again
        with pytest.raises(AlreadyConfirmed) as exc:
            checkin.confirm_arrival(pod.qr_code)

        # Then: same payload, one stored confirmation
        assert exc.value.confirmation == first
        assert db.query(PodConfirmation).count() == 1

    def test_order_confirmed_elsewhere_is_not_confirmed_again(self, db, checkin, orders, pod, make_order):
        # Given: the order was confirmed at a kiosk, nothing stored here
        kiosk_time = dt.datetime(2024, 5, 1, 12, 30)
        _paid_order_at(make_order, pod, pod_confirmed_at=kiosk_time)

        # When
        with pytest.raises(AlreadyConfirmed) as exc:
            checkin.confirm_arrival(pod.qr_code)

        # Then: the kiosk confirmation comes back untouched
        assert exc.value.confirmation == checkin.resolve_pod(pod.qr_code).confirmation
        assert exc.value.confirmation.confirmed_at == kiosk_time
        assert orders.get_order("o1").pod_confirmed_at == kiosk_time
        assert db.query(PodConfirmation).count() == 0

    def test_dual_pod_occupies_both_halves(self, checkin, inventory, make_seat, make_order):
        a = make_seat("1", col=1)
        b = make_seat("2", col=2)
        inventory.link_dual(str(a.id), str(b.id))
        _paid_order_at(make_order, b)

        checkin.confirm_arrival(b.qr_code)

        assert inventory.get(str(a.id)).status == SeatStatus.OCCUPIED.value
        assert inventory.get(str(b.id)).status == SeatStatus.OCCUPIED.value

    def test_no_active_order(self, checkin, pod):
        with pytest.raises(NoActiveOrder) as exc:
            checkin.confirm_arrival(pod.qr_code)
        assert exc.value.extra["pod_number"] == "4"
