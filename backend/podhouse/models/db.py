from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from .entities import GroupStatus, PodType, SeatStatus

Base = declarative_base()


def _utcnow() -> dt.datetime:
    return dt.datetime.utcnow()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(120), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False)  # superadmin | location_admin | staff
    location_id = Column(String(64), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Seat(Base):
    __tablename__ = "seats"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    location_id = Column(String(64), nullable=False, index=True)
    number = Column(String(16), nullable=False)
    qr_code = Column(String(128), nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default=SeatStatus.AVAILABLE.value, index=True)
    pod_type = Column(String(8), nullable=False, default=PodType.SINGLE.value)

    # Forward half of a dual pod; the partner finds it by reverse lookup
    dual_partner_id = Column(String(36), ForeignKey("seats.id"), nullable=True, unique=True, index=True)

    grid_row = Column(Integer, nullable=True)
    grid_col = Column(Integer, nullable=True)
    side = Column(String(16), nullable=True)

    reserved_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("location_id", "number", name="uq_seat_location_number"),
    )


class GroupOrder(Base):
    __tablename__ = "group_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(6), nullable=False, unique=True, index=True)
    location_id = Column(String(64), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=True)
    status = Column(String(16), nullable=False, default=GroupStatus.OPEN.value, index=True)
    payment_mode = Column(String(16), nullable=False)
    host_order_id = Column(String(64), nullable=False)
    seating_option = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=_utcnow)
    expires_at = Column(DateTime, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    members = relationship(
        "GroupOrderMember",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupOrderMember.position",
    )
    seat_assignments = relationship(
        "GroupSeatAssignment",
        back_populates="group",
        cascade="all, delete-orphan",
    )

    @property
    def member_order_ids(self) -> list[str]:
        return [str(m.order_id) for m in self.members]


class GroupOrderMember(Base):
    __tablename__ = "group_order_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(Integer, ForeignKey("group_orders.id"), nullable=False, index=True)
    order_id = Column(String(64), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    joined_at = Column(DateTime, nullable=False, default=_utcnow)

    group = relationship("GroupOrder", back_populates="members")

    __table_args__ = (
        UniqueConstraint("group_id", "order_id", name="uq_group_member_order"),
    )


class GroupSeatAssignment(Base):
    __tablename__ = "group_seat_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(Integer, ForeignKey("group_orders.id"), nullable=False, index=True)
    seat_id = Column(String(36), ForeignKey("seats.id"), nullable=False, index=True)
    order_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    released_at = Column(DateTime, nullable=True)

    group = relationship("GroupOrder", back_populates="seat_assignments")
    seat = relationship("Seat")


class PodConfirmation(Base):
    __tablename__ = "pod_confirmations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    seat_id = Column(String(36), ForeignKey("seats.id"), nullable=False, index=True)
    order_id = Column(String(64), nullable=False, index=True)
    order_number = Column(String(64), nullable=False)
    seat_number = Column(String(16), nullable=False)
    location_id = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=True)
    confirmed_at = Column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("seat_id", "order_id", name="uq_pod_confirmation_seat_order"),
    )
