"""Seat/pod inventory for a location.

Pairing is stored as a single directional edge: the seat with the
lexicographically smaller id holds ``dual_partner_id``, the other half is
found by reverse lookup on the (unique, indexed) column. Status changes that
must not interleave are expressed as conditional UPDATEs so that the row
count tells us whether every row matched.
"""
from __future__ import annotations

import datetime as dt
import logging
import secrets
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from ..core.config import settings
from ..core.exceptions import (
    AlreadyLinked,
    Conflict,
    CrossLocation,
    InvalidState,
    NotLinked,
    ReservationConflict,
    SameSeat,
    SeatNotFound,
    SeatOccupied,
    UnknownCode,
)
from ..models.db import Seat
from ..models.entities import PodType, SeatStatus

logger = logging.getLogger(__name__)


def _allocation_key(seat: Seat):
    # Column first, seats without a grid position last
    return (
        seat.grid_col is None,
        seat.grid_col or 0,
        seat.grid_row or 0,
        str(seat.number),
    )


def _dedupe(seat_ids: Iterable[str]) -> list[str]:
    ids = [str(x) for x in seat_ids]
    if not ids:
        raise ValueError("seat_ids must contain at least one seat")
    if len(set(ids)) != len(ids):
        raise ValueError("seat_ids must not contain duplicates")
    return ids


class SeatInventory:
    def __init__(self, db: DBSession):
        self.db = db

    # Lookups

    def get(self, seat_id: str) -> Seat:
        seat = self.db.get(Seat, seat_id)
        if seat is None:
            raise SeatNotFound(seat_id)
        return seat

    def get_by_code(self, code: str) -> Seat:
        seat = self.db.query(Seat).filter(Seat.qr_code == code.strip()).first()
        if seat is None:
            raise UnknownCode(code)
        return seat

    def partner_of(self, seat: Seat) -> Seat | None:
        if seat.dual_partner_id:
            return self.db.get(Seat, seat.dual_partner_id)
        return self.db.query(Seat).filter(Seat.dual_partner_id == seat.id).first()

    def partner_ids(self, seats: list[Seat]) -> dict[str, str]:
        partners: dict[str, str] = {}
        for s in seats:
            if s.dual_partner_id:
                partners[str(s.id)] = str(s.dual_partner_id)
                partners[str(s.dual_partner_id)] = str(s.id)
        return partners

    def list_seats(self, location_id: str) -> list[tuple[Seat, str | None]]:
        """All seats of a location with their resolved partner id (either direction)."""
        seats = self.db.query(Seat).filter(Seat.location_id == location_id).all()
        seats.sort(key=_allocation_key)
        partners = self.partner_ids(seats)
        return [(s, partners.get(str(s.id))) for s in seats]

    def list_available(self, location_id: str) -> list[Seat]:
        """AVAILABLE seats ordered by column; a dual seat only when both halves are AVAILABLE."""
        seats = self.db.query(Seat).filter(Seat.location_id == location_id).all()
        by_id = {str(s.id): s for s in seats}
        partners = self.partner_ids(seats)

        available = []
        for s in seats:
            if s.status != SeatStatus.AVAILABLE.value:
                continue
            partner_id = partners.get(str(s.id))
            if partner_id is not None:
                partner = by_id.get(partner_id) or self.db.get(Seat, partner_id)
                if partner is None or partner.status != SeatStatus.AVAILABLE.value:
                    continue
            available.append(s)

        available.sort(key=_allocation_key)
        return available

    # Setup

    def create_seat(
        self,
        location_id: str,
        number: str,
        *,
        qr_code: str | None = None,
        grid_row: int | None = None,
        grid_col: int | None = None,
        side: str | None = None,
    ) -> Seat:
        code = qr_code or f"POD-{location_id}-{number}-{secrets.token_hex(3).upper()}"
        seat = Seat(
            location_id=location_id,
            number=number,
            qr_code=code,
            status=SeatStatus.AVAILABLE.value,
            pod_type=PodType.SINGLE.value,
            grid_row=grid_row,
            grid_col=grid_col,
            side=side,
        )
        self.db.add(seat)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Pod number already exists for this location", number=number)
        self.db.refresh(seat)
        return seat

    # Pairing

    def _lock(self, seat_ids: list[str]) -> dict[str, Seat]:
        # Row locks on PostgreSQL; SQLite relies on the conditional updates below
        rows = (
            self.db.query(Seat)
            .filter(Seat.id.in_(sorted(seat_ids)))
            .order_by(Seat.id.asc())
            .with_for_update()
            .all()
        )
        return {str(s.id): s for s in rows}

    def link_dual(self, seat_a_id: str, seat_b_id: str) -> tuple[Seat, Seat]:
        if seat_a_id == seat_b_id:
            raise SameSeat()

        locked = self._lock([seat_a_id, seat_b_id])
        for sid in (seat_a_id, seat_b_id):
            if sid not in locked:
                self.db.rollback()
                raise SeatNotFound(sid)
        a, b = locked[seat_a_id], locked[seat_b_id]

        if a.location_id != b.location_id:
            self.db.rollback()
            raise CrossLocation()

        taken = [str(s.id) for s in (a, b) if self.partner_of(s) is not None]
        if taken:
            self.db.rollback()
            raise AlreadyLinked(*taken)

        occupied = [str(s.id) for s in (a, b) if s.status == SeatStatus.OCCUPIED.value]
        if occupied:
            self.db.rollback()
            raise SeatOccupied(*occupied)

        forward, backward = sorted((str(a.id), str(b.id)))

        flipped = (
            self.db.query(Seat)
            .filter(
                Seat.id.in_([forward, backward]),
                Seat.pod_type == PodType.SINGLE.value,
                Seat.dual_partner_id.is_(None),
            )
            .update({Seat.pod_type: PodType.DUAL.value}, synchronize_session=False)
        )
        if flipped != 2:
            self.db.rollback()
            raise AlreadyLinked(forward, backward)

        self.db.query(Seat).filter(Seat.id == forward).update(
            {Seat.dual_partner_id: backward}, synchronize_session=False
        )
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyLinked(forward, backward)

        logger.info(f"Linked seats {forward} -> {backward} as dual pod")
        return self.get(forward), self.get(backward)

    def unlink_dual(self, seat_id: str) -> tuple[Seat, Seat]:
        seat = self.get(seat_id)
        partner = self.partner_of(seat)
        if partner is None:
            raise NotLinked(seat_id)

        locked = self._lock([str(seat.id), str(partner.id)])
        occupied = [sid for sid, s in locked.items() if s.status == SeatStatus.OCCUPIED.value]
        if occupied:
            self.db.rollback()
            raise SeatOccupied(*occupied)

        cleared = (
            self.db.query(Seat)
            .filter(
                Seat.id.in_([str(seat.id), str(partner.id)]),
                Seat.pod_type == PodType.DUAL.value,
            )
            .update(
                {Seat.pod_type: PodType.SINGLE.value, Seat.dual_partner_id: None},
                synchronize_session=False,
            )
        )
        if cleared != 2:
            self.db.rollback()
            raise NotLinked(seat_id)
        self.db.commit()

        logger.info(f"Unlinked dual pod {seat.id} / {partner.id}")
        return self.get(str(seat.id)), self.get(str(partner.id))

    # Status transitions

    def with_partners(self, seat_ids: Iterable[str]) -> list[str]:
        """Requested ids plus the other half of every dual pod among them."""
        ids: list[str] = []
        for seat_id in seat_ids:
            seat = self.get(str(seat_id))
            partner = self.partner_of(seat)
            for sid in (str(seat.id), str(partner.id) if partner is not None else None):
                if sid is not None and sid not in ids:
                    ids.append(sid)
        return ids

    def reserve(self, seat_ids: Iterable[str], hold_minutes: int | None = None) -> list[str]:
        """AVAILABLE -> RESERVED for the whole set, or for none of it.

        Dual pods are held as a pair; the returned ids include partners.
        """
        ids = self.with_partners(_dedupe(seat_ids))

        minutes = settings.SEAT_HOLD_MINUTES if hold_minutes is None else hold_minutes
        reserved_until = dt.datetime.utcnow() + dt.timedelta(minutes=minutes)

        updated = (
            self.db.query(Seat)
            .filter(Seat.id.in_(ids), Seat.status == SeatStatus.AVAILABLE.value)
            .update(
                {Seat.status: SeatStatus.RESERVED.value, Seat.reserved_until: reserved_until},
                synchronize_session=False,
            )
        )
        if updated != len(ids):
            self.db.rollback()
            unavailable = [
                str(s.id)
                for s in self.db.query(Seat).filter(Seat.id.in_(ids)).all()
                if s.status != SeatStatus.AVAILABLE.value
            ]
            logger.info(f"Reservation conflict on seats {unavailable}")
            raise ReservationConflict(unavailable)

        self.db.commit()
        logger.info(f"Reserved seats {ids} until {reserved_until.isoformat()}")
        return ids

    def release(self, seat_ids: Iterable[str]) -> list[str]:
        ids = self.with_partners(_dedupe(seat_ids))
        rows = (
            self.db.query(Seat)
            .filter(Seat.id.in_(ids), Seat.status != SeatStatus.AVAILABLE.value)
            .all()
        )
        released = [str(s.id) for s in rows]
        if released:
            self.db.query(Seat).filter(Seat.id.in_(released)).update(
                {Seat.status: SeatStatus.AVAILABLE.value, Seat.reserved_until: None},
                synchronize_session=False,
            )
        self.db.commit()
        if released:
            logger.info(f"Released seats {released}")
        return released

    def occupy(self, seat_ids: Iterable[str]) -> int:
        """Mark seats (and their partners) OCCUPIED inside the caller's transaction (no commit)."""
        return (
            self.db.query(Seat)
            .filter(Seat.id.in_(self.with_partners(seat_ids)), Seat.status != SeatStatus.OCCUPIED.value)
            .update(
                {Seat.status: SeatStatus.OCCUPIED.value, Seat.reserved_until: None},
                synchronize_session=False,
            )
        )

    def _transition(self, seat_id: str, allowed: set[SeatStatus], target: SeatStatus) -> Seat:
        seat = self.get(seat_id)
        ids = self.with_partners([seat_id])
        updated = (
            self.db.query(Seat)
            .filter(Seat.id.in_(ids), Seat.status.in_([s.value for s in allowed]))
            .update({Seat.status: target.value, Seat.reserved_until: None}, synchronize_session=False)
        )
        if updated != len(ids):
            self.db.rollback()
            raise InvalidState(
                f"Pod {seat.number} cannot move from {seat.status} to {target.value}",
                seat_id=str(seat.id),
            )
        self.db.commit()
        self.db.refresh(seat)
        logger.info(f"Pod {seat.number} is now {target.value}")
        return seat

    def mark_cleaning(self, seat_id: str) -> Seat:
        return self._transition(seat_id, {SeatStatus.OCCUPIED}, SeatStatus.CLEANING)

    def mark_clean(self, seat_id: str) -> Seat:
        return self._transition(seat_id, {SeatStatus.CLEANING, SeatStatus.OCCUPIED}, SeatStatus.AVAILABLE)

    def release_expired_reservations(self, now: dt.datetime | None = None) -> list[str]:
        now = now or dt.datetime.utcnow()
        expired = [
            str(s.id)
            for s in self.db.query(Seat)
            .filter(
                Seat.status == SeatStatus.RESERVED.value,
                Seat.reserved_until.isnot(None),
                Seat.reserved_until < now,
            )
            .all()
        ]
        if not expired:
            return []
        # Re-check status so a seat confirmed meanwhile is left alone
        self.db.query(Seat).filter(
            Seat.id.in_(expired), Seat.status == SeatStatus.RESERVED.value
        ).update(
            {Seat.status: SeatStatus.AVAILABLE.value, Seat.reserved_until: None},
            synchronize_session=False,
        )
        self.db.commit()
        logger.info(f"Released {len(expired)} expired pod reservation(s)")
        return expired
