from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .entities import GroupStatus, PaymentMode, PodState


UserRole = Literal["superadmin", "location_admin", "staff"]


class UserOut(BaseModel):
    id: int
    username: str
    role: UserRole
    location_id: str | None
    is_active: bool

    class Config:
        from_attributes = True


class LoginIn(BaseModel):
    username: str
    password: str


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# External order shape (owned by the order service)


class OrderItem(BaseModel):
    menu_item_id: str
    quantity: int = Field(default=1, ge=1)
    price_cents: int = 0
    selected_value: str | None = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Order(BaseModel):
    id: str
    order_number: str
    location_id: str
    tenant_id: str | None = None
    total_cents: int = 0
    items: list[OrderItem] = []
    payment_status: str = "PENDING"
    status: str = "PENDING"
    is_group_host: bool = False
    user_id: str | None = None
    seat_code: str | None = None
    pod_confirmed_at: dt.datetime | None = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# Seats


class SeatOut(BaseModel):
    id: str
    location_id: str
    number: str
    qr_code: str
    status: str
    pod_type: str
    dual_partner_id: str | None = None
    grid_row: int | None = None
    grid_col: int | None = None
    side: str | None = None
    reserved_until: dt.datetime | None = None

    class Config:
        from_attributes = True


class SeatCreateIn(BaseModel):
    location_id: str = Field(min_length=1, max_length=64)
    number: str = Field(min_length=1, max_length=16)
    grid_row: int | None = None
    grid_col: int | None = None
    side: str | None = Field(default=None, max_length=16)


class LinkDualIn(BaseModel):
    seat_id_1: str = Field(min_length=1)
    seat_id_2: str = Field(min_length=1)


class UnlinkDualIn(BaseModel):
    seat_id: str = Field(min_length=1)


class PairOut(BaseModel):
    success: bool = True
    seat1: SeatOut
    seat2: SeatOut


class SeatIdsIn(BaseModel):
    seat_ids: list[str] = Field(min_length=1)


class SeatIdsOut(BaseModel):
    success: bool = True
    seat_ids: list[str]


# Pods


class ConfirmedOrderOut(BaseModel):
    order_id: str
    order_number: str
    seat_id: str
    seat_number: str
    location_id: str
    confirmed_at: dt.datetime

    class Config:
        from_attributes = True


class ActiveOrderOut(BaseModel):
    id: str
    order_number: str
    already_confirmed: bool
    user_id: str | None = None


class PodInfoOut(BaseModel):
    seat_id: str
    seat_number: str
    qr_code: str
    seat_status: str
    location_id: str
    state: PodState
    active_order: ActiveOrderOut | None = None
    confirmation: ConfirmedOrderOut | None = None

    class Config:
        from_attributes = True


class ConfirmArrivalIn(BaseModel):
    pod_qr_code: str = Field(min_length=1)
    user_id: str | None = None


class ConfirmArrivalOut(BaseModel):
    success: bool = True
    already_confirmed: bool = False
    message: str
    order: ConfirmedOrderOut


# Group orders


class GroupCreateIn(BaseModel):
    host_order_id: str = Field(min_length=1)
    location_id: str = Field(min_length=1)
    tenant_id: str | None = None
    payment_mode: PaymentMode = PaymentMode.HOST_PAYS_ALL


class GroupJoinIn(BaseModel):
    order_id: str = Field(min_length=1)


class SeatingOptionIn(BaseModel):
    seating_option: int = Field(ge=1, le=3)


class PaymentModeIn(BaseModel):
    payment_mode: PaymentMode


class TransferHostIn(BaseModel):
    order_id: str = Field(min_length=1)


class GroupOut(BaseModel):
    code: str
    location_id: str
    tenant_id: str | None = None
    status: GroupStatus
    payment_mode: PaymentMode
    host_order_id: str
    seating_option: int | None = None
    member_order_ids: list[str]
    total_cents: int
    assigned_seat_ids: list[str] = []
    created_at: dt.datetime
    expires_at: dt.datetime
    paid_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None


class SettlementReceiptOut(BaseModel):
    group_code: str
    group_status: GroupStatus
    paid_order_ids: list[str]
    total_cents: int
    assigned_seat_ids: list[str] | None = None
    warning: str | None = None

    class Config:
        from_attributes = True


class MaintenanceOut(BaseModel):
    expired_groups: list[str]
    released_seat_ids: list[str]
