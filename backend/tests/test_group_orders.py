"""
Group order lifecycle before payment: create, join, preferences, expiry.
"""
import datetime as dt

import pytest

from podhouse.core.exceptions import (
    GroupExpired,
    GroupFull,
    GroupNotFound,
    GroupNotOpen,
    InvalidSeatingOption,
    InvalidState,
    OrderLocationMismatch,
    OrderNotFound,
)
from podhouse.models.db import GroupOrder, GroupSeatAssignment
from podhouse.models.entities import GroupStatus, PaymentMode, SeatStatus
from podhouse.services.group_orders import CODE_ALPHABET, CODE_LENGTH, GroupOrderCoordinator


@pytest.fixture
def coordinator(db, orders) -> GroupOrderCoordinator:
    return GroupOrderCoordinator(db, orders)


@pytest.fixture
def group(coordinator, make_order) -> GroupOrder:
    make_order("host", total_cents=1500)
    return coordinator.create_group("host", "loc-1")


def _expire_now(db, group):
    group.expires_at = dt.datetime.utcnow() - dt.timedelta(minutes=1)
    db.commit()


class TestCreateGroup:
    def test_host_is_first_member(self, coordinator, group):
        assert group.status == GroupStatus.OPEN.value
        assert group.payment_mode == PaymentMode.HOST_PAYS_ALL.value
        assert group.member_order_ids == ["host"]
        assert len(group.code) == CODE_LENGTH
        assert set(group.code) <= set(CODE_ALPHABET)
        assert group.expires_at > group.created_at

    def test_host_order_must_belong_to_location(self, coordinator, make_order):
        make_order("far", location_id="loc-2")
        with pytest.raises(OrderLocationMismatch):
            coordinator.create_group("far", "loc-1")

    def test_unknown_host_order(self, coordinator):
        with pytest.raises(OrderNotFound):
            coordinator.create_group("ghost", "loc-1")

    def test_describe_totals_member_orders(self, coordinator, group, make_order):
        make_order("guest", total_cents=700)
        coordinator.join_group(group.code, "guest")

        described = coordinator.describe(coordinator.get_group(group.code))
        assert described["total_cents"] == 2200
        assert described["member_order_ids"] == ["host", "guest"]


class TestJoinGroup:
    def test_code_is_case_insensitive(self, coordinator, group, make_order):
        make_order("guest")
        joined = coordinator.join_group(group.code.lower(), "guest")
        assert joined.member_order_ids == ["host", "guest"]

    def test_rejoin_is_a_no_op(self, coordinator, group, make_order):
        make_order("guest")
        coordinator.join_group(group.code, "guest")
        again = coordinator.join_group(group.code, "guest")
        assert again.member_order_ids == ["host", "guest"]

    def test_unknown_code(self, coordinator):
        with pytest.raises(GroupNotFound):
            coordinator.join_group("ZZZZZZ", "guest")

    def test_order_from_another_location(self, coordinator, group, make_order):
        make_order("far", location_id="loc-2")
        with pytest.raises(OrderLocationMismatch):
            coordinator.join_group(group.code, "far")

    def test_group_full(self, coordinator, group, make_order, monkeypatch):
        monkeypatch.setattr("podhouse.services.group_orders.settings.GROUP_MAX_MEMBERS", 2)
        make_order("g1")
        make_order("g2")
        coordinator.join_group(group.code, "g1")
        with pytest.raises(GroupFull):
            coordinator.join_group(group.code, "g2")

    def test_expired_group_moves_to_expired(self, db, coordinator, group, make_order):
        make_order("late")
        _expire_now(db, group)

        with pytest.raises(GroupExpired):
            coordinator.join_group(group.code, "late")
        assert coordinator.get_group(group.code).status == GroupStatus.EXPIRED.value

        # Expiry is terminal
        with pytest.raises(GroupNotOpen):
            coordinator.join_group(group.code, "late")


class TestPreferences:
    def test_seating_option_recorded_without_touching_seats(self, coordinator, group, inventory, make_seat):
        seat = make_seat("1", col=1)
        updated = coordinator.choose_seating_option(group.code, 2)

        assert updated.seating_option == 2
        assert inventory.get(str(seat.id)).status == SeatStatus.AVAILABLE.value

    def test_invalid_seating_option(self, coordinator, group):
        with pytest.raises(InvalidSeatingOption):
            coordinator.choose_seating_option(group.code, 0)

    def test_payment_mode(self, coordinator, group):
        updated = coordinator.set_payment_mode(group.code, PaymentMode.EACH_PAYS_OWN)
        assert updated.payment_mode == PaymentMode.EACH_PAYS_OWN.value


class TestMembership:
    def test_remove_member_renumbers(self, coordinator, group, make_order):
        for oid in ("g1", "g2"):
            make_order(oid)
            coordinator.join_group(group.code, oid)

        updated = coordinator.remove_member(group.code, "g1")

        assert updated.member_order_ids == ["host", "g2"]
        assert [m.position for m in updated.members] == [0, 1]

    def test_host_cannot_be_removed(self, coordinator, group):
        with pytest.raises(InvalidState):
            coordinator.remove_member(group.code, "host")

    def test_paid_member_cannot_be_removed(self, coordinator, group, make_order):
        make_order("g1", payment_status="PAID")
        coordinator.join_group(group.code, "g1")
        with pytest.raises(InvalidState):
            coordinator.remove_member(group.code, "g1")

    def test_transfer_host(self, coordinator, group, make_order):
        make_order("g1")
        coordinator.join_group(group.code, "g1")

        assert coordinator.transfer_host(group.code, "g1").host_order_id == "g1"
        with pytest.raises(InvalidState):
            coordinator.transfer_host(group.code, "stranger")


class TestExpireStaleGroups:
    def test_expires_and_releases_held_seats(self, db, coordinator, group, inventory, make_seat):
        seat = make_seat("1", col=1)
        inventory.reserve([str(seat.id)])
        coordinator.record_assignment(group, [str(seat.id)])
        _expire_now(db, group)

        codes, released = coordinator.expire_stale_groups()

        assert codes == [group.code]
        assert released == [str(seat.id)]
        assert inventory.get(str(seat.id)).status == SeatStatus.AVAILABLE.value
        assignment = db.query(GroupSeatAssignment).one()
        assert assignment.released_at is not None

    def test_fresh_groups_are_left_alone(self, coordinator, group):
        assert coordinator.expire_stale_groups() == ([], [])
        assert coordinator.get_group(group.code).status == GroupStatus.OPEN.value
