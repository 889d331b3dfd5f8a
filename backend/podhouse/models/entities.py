from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any


class SeatStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"
    CLEANING = "CLEANING"


class PodType(str, enum.Enum):
    SINGLE = "SINGLE"
    DUAL = "DUAL"


class GroupStatus(str, enum.Enum):
    OPEN = "OPEN"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"


# Forward-only lifecycle
GROUP_TRANSITIONS: dict[GroupStatus, set[GroupStatus]] = {
    GroupStatus.OPEN: {GroupStatus.PAID, GroupStatus.EXPIRED},
    GroupStatus.PAID: {GroupStatus.COMPLETED},
    GroupStatus.COMPLETED: set(),
    GroupStatus.EXPIRED: set(),
}


class PaymentMode(str, enum.Enum):
    EACH_PAYS_OWN = "EACH_PAYS_OWN"
    HOST_PAYS_ALL = "HOST_PAYS_ALL"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class PodState(str, enum.Enum):
    NO_ACTIVE_ORDER = "NO_ACTIVE_ORDER"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"
    CONFIRMED = "CONFIRMED"


SEATING_OPTIONS = (1, 2, 3)


@dataclass(frozen=True)
class SeatingRequest:
    group_size: int
    seating_option: int


@dataclass(frozen=True)
class ConfirmedOrder:
    order_id: str
    order_number: str
    seat_id: str
    seat_number: str
    location_id: str
    confirmed_at: datetime


@dataclass
class PodInfo:
    seat_id: str
    seat_number: str
    qr_code: str
    seat_status: str
    location_id: str
    state: PodState
    active_order: dict[str, Any] | None = None
    confirmation: ConfirmedOrder | None = None


@dataclass
class SettlementReceipt:
    group_code: str
    group_status: GroupStatus
    paid_order_ids: list[str]
    total_cents: int = 0
    assigned_seat_ids: list[str] | None = None
    warning: str | None = None
