"""Error taxonomy for pod seating.

Every domain failure raised by the services derives from ``PodError`` and
belongs to exactly one category (``NotFound``, ``Conflict``, ``InvalidState``,
``InsufficientResources``, ``UpstreamFailure``, ``AlreadyDone``). The category
decides the HTTP status; ``main.create_app`` registers a handler for
``PodError`` so routes can let these propagate.
"""
from __future__ import annotations

from typing import Any


class ErrorMessages:
    SEAT_NOT_FOUND = "Seat not found"
    UNKNOWN_CODE = "Pod not found. Please check the QR code."
    GROUP_NOT_FOUND = "Group not found"
    ORDER_NOT_FOUND = "Order not found"
    NO_ACTIVE_ORDER = "No pending order found for this pod"
    ALREADY_LINKED = "One or both seats are already linked to a partner"
    CROSS_LOCATION = "Seats must be at the same location"
    SAME_SEAT = "Cannot link a seat to itself"
    NOT_LINKED = "Seat is not part of a dual pod"
    SEAT_OCCUPIED = "Cannot change pairing of occupied seats"
    RESERVATION_CONFLICT = "One or more seats are no longer available"
    GROUP_NOT_OPEN = "Group is no longer open"
    GROUP_EXPIRED = "Group order has expired"
    GROUP_FULL = "Group is full"
    ORDER_LOCATION_MISMATCH = "Order belongs to a different location"
    INVALID_SEATING_OPTION = "Seating option must be 1, 2 or 3"
    INSUFFICIENT_SEATS = "Not enough available seats for the group"
    ALREADY_CONFIRMED = "You've already confirmed arrival at this pod"
    PARTIAL_PAYMENT = "Group payment failed part way through"
    ORDER_SERVICE_UNAVAILABLE = "Order service request failed"
    NO_LOCATION_ASSIGNED = "No location assigned"
    FORBIDDEN_FOR_LOCATION = "Forbidden for this location"


class PodError(Exception):
    status_code = 400
    code = "pod_error"

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extra}


# Categories


class NotFound(PodError):
    status_code = 404
    code = "not_found"


class Conflict(PodError):
    status_code = 409
    code = "conflict"


class InvalidState(PodError):
    status_code = 400
    code = "invalid_state"


class InsufficientResources(PodError):
    status_code = 409
    code = "insufficient_resources"


class UpstreamFailure(PodError):
    status_code = 502
    code = "upstream_failure"


class AlreadyDone(PodError):
    status_code = 200
    code = "already_done"


# Concrete errors


class SeatNotFound(NotFound):
    def __init__(self, seat_id: str | None = None):
        super().__init__(ErrorMessages.SEAT_NOT_FOUND, seat_id=seat_id)


class UnknownCode(NotFound):
    def __init__(self, code: str):
        super().__init__(ErrorMessages.UNKNOWN_CODE, scanned_code=code)


class GroupNotFound(NotFound):
    def __init__(self, group_code: str):
        super().__init__(ErrorMessages.GROUP_NOT_FOUND, group_code=group_code)


class OrderNotFound(NotFound):
    def __init__(self, order_id: str):
        super().__init__(ErrorMessages.ORDER_NOT_FOUND, order_id=order_id)


class NoActiveOrder(NotFound):
    def __init__(self, pod_number: str, location_id: str):
        super().__init__(ErrorMessages.NO_ACTIVE_ORDER, pod_number=pod_number, location_id=location_id)


class AlreadyLinked(Conflict):
    def __init__(self, *seat_ids: str):
        super().__init__(ErrorMessages.ALREADY_LINKED, seat_ids=list(seat_ids))


class ReservationConflict(Conflict):
    def __init__(self, unavailable: list[str]):
        self.unavailable = unavailable
        super().__init__(ErrorMessages.RESERVATION_CONFLICT, unavailable_seat_ids=unavailable)


class CrossLocation(InvalidState):
    def __init__(self):
        super().__init__(ErrorMessages.CROSS_LOCATION)


class SameSeat(InvalidState):
    def __init__(self):
        super().__init__(ErrorMessages.SAME_SEAT)


class NotLinked(InvalidState):
    def __init__(self, seat_id: str):
        super().__init__(ErrorMessages.NOT_LINKED, seat_id=seat_id)


class SeatOccupied(InvalidState):
    def __init__(self, *seat_ids: str):
        super().__init__(ErrorMessages.SEAT_OCCUPIED, seat_ids=list(seat_ids))


class GroupNotOpen(InvalidState):
    def __init__(self, group_code: str, status: str, **extra: Any):
        super().__init__(ErrorMessages.GROUP_NOT_OPEN, group_code=group_code, status=status, **extra)


class GroupExpired(InvalidState):
    def __init__(self, group_code: str):
        super().__init__(ErrorMessages.GROUP_EXPIRED, group_code=group_code)


class GroupFull(InvalidState):
    def __init__(self, group_code: str, max_members: int):
        super().__init__(ErrorMessages.GROUP_FULL, group_code=group_code, max_members=max_members)


class OrderLocationMismatch(InvalidState):
    def __init__(self, order_id: str):
        super().__init__(ErrorMessages.ORDER_LOCATION_MISMATCH, order_id=order_id)


class InvalidSeatingOption(InvalidState):
    def __init__(self, option: Any):
        super().__init__(ErrorMessages.INVALID_SEATING_OPTION, seating_option=option)


class InsufficientSeats(InsufficientResources):
    def __init__(self, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(ErrorMessages.INSUFFICIENT_SEATS, needed=needed, available=available)


class OrderServiceError(UpstreamFailure):
    def __init__(self, message: str = ErrorMessages.ORDER_SERVICE_UNAVAILABLE, **extra: Any):
        super().__init__(message, **extra)


class PartialPaymentFailure(UpstreamFailure):
    def __init__(self, group_code: str, paid_order_ids: list[str], failed_order_id: str):
        self.paid_order_ids = paid_order_ids
        self.failed_order_id = failed_order_id
        super().__init__(
            ErrorMessages.PARTIAL_PAYMENT,
            group_code=group_code,
            paid_order_ids=paid_order_ids,
            failed_order_id=failed_order_id,
        )


class AlreadyConfirmed(AlreadyDone):
    """Re-confirmation of a pod; ``confirmation`` is the first call's payload."""

    def __init__(self, confirmation: Any):
        self.confirmation = confirmation
        super().__init__(ErrorMessages.ALREADY_CONFIRMED)


class GroupCodeExhausted(Conflict):
    def __init__(self):
        super().__init__("Failed to generate unique group code")
