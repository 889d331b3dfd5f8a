from __future__ import annotations

import dataclasses

from fastapi import APIRouter, Depends, Query

from ..core.deps import get_checkin_service
from ..core.exceptions import AlreadyConfirmed, ErrorMessages
from ..models.entities import ConfirmedOrder
from ..models.schemas import ConfirmArrivalIn, ConfirmArrivalOut, ConfirmedOrderOut, PodInfoOut
from ..services.pod_checkin import PodCheckInService

router = APIRouter(prefix="/api/pods", tags=["pods"])


def _order_out(confirmed: ConfirmedOrder) -> ConfirmedOrderOut:
    return ConfirmedOrderOut(**dataclasses.asdict(confirmed))


@router.get("/info", response_model=PodInfoOut)
def pod_info(
    code: str = Query(min_length=1),
    user_id: str | None = Query(default=None),
    svc: PodCheckInService = Depends(get_checkin_service),
):
    info = svc.resolve_pod(code, user_id=user_id)
    return PodInfoOut(
        seat_id=info.seat_id,
        seat_number=info.seat_number,
        qr_code=info.qr_code,
        seat_status=info.seat_status,
        location_id=info.location_id,
        state=info.state,
        active_order=info.active_order,
        confirmation=_order_out(info.confirmation) if info.confirmation else None,
    )


@router.post("/confirm-arrival", response_model=ConfirmArrivalOut)
def confirm_arrival(payload: ConfirmArrivalIn, svc: PodCheckInService = Depends(get_checkin_service)):
    try:
        confirmed = svc.confirm_arrival(payload.pod_qr_code, user_id=payload.user_id)
    except AlreadyConfirmed as e:
        return ConfirmArrivalOut(
            already_confirmed=True,
            message=ErrorMessages.ALREADY_CONFIRMED,
            order=_order_out(e.confirmation),
        )
    return ConfirmArrivalOut(
        message=f"Pod {confirmed.seat_number} confirmed. Order {confirmed.order_number} is on its way.",
        order=_order_out(confirmed),
    )
