from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.deps import STAFF_ROLES, get_group_coordinator, get_seat_inventory, require_roles
from ..models.schemas import MaintenanceOut
from ..services.group_orders import GroupOrderCoordinator
from ..services.seat_inventory import SeatInventory

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.post(
    "/expire",
    response_model=MaintenanceOut,
    dependencies=[Depends(require_roles(*STAFF_ROLES))],
)
def expire(
    coord: GroupOrderCoordinator = Depends(get_group_coordinator),
    inv: SeatInventory = Depends(get_seat_inventory),
):
    """Expire overdue groups, then free reservations whose hold has lapsed."""
    codes, from_groups = coord.expire_stale_groups()
    lapsed = inv.release_expired_reservations()
    released = list(dict.fromkeys(from_groups + lapsed))
    return MaintenanceOut(expired_groups=codes, released_seat_ids=released)
