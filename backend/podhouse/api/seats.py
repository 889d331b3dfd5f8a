from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.deps import STAFF_ROLES, get_current_user, get_seat_inventory, require_location_access, require_roles
from ..models.db import Seat, User
from ..models.schemas import LinkDualIn, PairOut, SeatCreateIn, SeatIdsIn, SeatIdsOut, SeatOut, UnlinkDualIn
from ..services.seat_inventory import SeatInventory

router = APIRouter(prefix="/api", tags=["seats"])

staff_only = [Depends(require_roles(*STAFF_ROLES))]


def _seat_out(seat: Seat, partner_id: str | None) -> SeatOut:
    out = SeatOut.model_validate(seat)
    out.dual_partner_id = partner_id
    return out


def _with_partner(inv: SeatInventory, seat: Seat) -> SeatOut:
    partner = inv.partner_of(seat)
    return _seat_out(seat, str(partner.id) if partner is not None else None)


def _check_seats(inv: SeatInventory, user: User, seat_ids: list[str]) -> None:
    for seat_id in seat_ids:
        require_location_access(user, str(inv.get(seat_id).location_id))


@router.get("/locations/{location_id}/seats", response_model=list[SeatOut])
def list_seats(location_id: str, inv: SeatInventory = Depends(get_seat_inventory)):
    return [_seat_out(seat, partner_id) for seat, partner_id in inv.list_seats(location_id)]


@router.get("/locations/{location_id}/seats/available", response_model=list[SeatOut])
def list_available_seats(location_id: str, inv: SeatInventory = Depends(get_seat_inventory)):
    return [_with_partner(inv, seat) for seat in inv.list_available(location_id)]


@router.post(
    "/seats",
    response_model=SeatOut,
    dependencies=[Depends(require_roles("superadmin", "location_admin"))],
)
def create_seat(
    payload: SeatCreateIn,
    inv: SeatInventory = Depends(get_seat_inventory),
    user: User = Depends(get_current_user),
):
    require_location_access(user, payload.location_id)
    seat = inv.create_seat(
        payload.location_id,
        payload.number,
        grid_row=payload.grid_row,
        grid_col=payload.grid_col,
        side=payload.side,
    )
    return _seat_out(seat, None)


@router.post("/seats/link-dual", response_model=PairOut, dependencies=staff_only)
def link_dual(
    payload: LinkDualIn,
    inv: SeatInventory = Depends(get_seat_inventory),
    user: User = Depends(get_current_user),
):
    _check_seats(inv, user, [payload.seat_id_1, payload.seat_id_2])
    forward, backward = inv.link_dual(payload.seat_id_1, payload.seat_id_2)
    return PairOut(seat1=_seat_out(forward, str(backward.id)), seat2=_seat_out(backward, str(forward.id)))


@router.post("/seats/unlink-dual", response_model=PairOut, dependencies=staff_only)
def unlink_dual(
    payload: UnlinkDualIn,
    inv: SeatInventory = Depends(get_seat_inventory),
    user: User = Depends(get_current_user),
):
    _check_seats(inv, user, [payload.seat_id])
    seat, partner = inv.unlink_dual(payload.seat_id)
    return PairOut(seat1=_seat_out(seat, None), seat2=_seat_out(partner, None))


@router.post("/seats/{seat_id}/cleaning", response_model=SeatOut, dependencies=staff_only)
def mark_cleaning(
    seat_id: str,
    inv: SeatInventory = Depends(get_seat_inventory),
    user: User = Depends(get_current_user),
):
    _check_seats(inv, user, [seat_id])
    return _with_partner(inv, inv.mark_cleaning(seat_id))


@router.post("/seats/{seat_id}/clean", response_model=SeatOut, dependencies=staff_only)
def mark_clean(
    seat_id: str,
    inv: SeatInventory = Depends(get_seat_inventory),
    user: User = Depends(get_current_user),
):
    _check_seats(inv, user, [seat_id])
    return _with_partner(inv, inv.mark_clean(seat_id))


@router.post("/seats/reserve", response_model=SeatIdsOut, dependencies=staff_only)
def reserve_seats(
    payload: SeatIdsIn,
    inv: SeatInventory = Depends(get_seat_inventory),
    user: User = Depends(get_current_user),
):
    _check_seats(inv, user, payload.seat_ids)
    return SeatIdsOut(seat_ids=inv.reserve(payload.seat_ids))


@router.post("/seats/release", response_model=SeatIdsOut, dependencies=staff_only)
def release_seats(
    payload: SeatIdsIn,
    inv: SeatInventory = Depends(get_seat_inventory),
    user: User = Depends(get_current_user),
):
    _check_seats(inv, user, payload.seat_ids)
    return SeatIdsOut(seat_ids=inv.release(payload.seat_ids))
