from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.deps import get_group_coordinator, get_settlement_service
from ..models.schemas import (
    GroupCreateIn,
    GroupJoinIn,
    GroupOut,
    PaymentModeIn,
    SeatingOptionIn,
    SettlementReceiptOut,
    TransferHostIn,
)
from ..services.group_orders import GroupOrderCoordinator
from ..services.settlement import GroupSettlementService

router = APIRouter(prefix="/api/group-orders", tags=["group-orders"])


@router.post("", response_model=GroupOut)
def create_group(payload: GroupCreateIn, coord: GroupOrderCoordinator = Depends(get_group_coordinator)):
    group = coord.create_group(
        payload.host_order_id,
        payload.location_id,
        payment_mode=payload.payment_mode,
        tenant_id=payload.tenant_id,
    )
    return GroupOut(**coord.describe(group))


@router.get("/{code}", response_model=GroupOut)
def get_group(code: str, coord: GroupOrderCoordinator = Depends(get_group_coordinator)):
    return GroupOut(**coord.describe(coord.get_group(code)))


@router.post("/{code}/join", response_model=GroupOut)
def join_group(code: str, payload: GroupJoinIn, coord: GroupOrderCoordinator = Depends(get_group_coordinator)):
    return GroupOut(**coord.describe(coord.join_group(code, payload.order_id)))


@router.put("/{code}/seating-option", response_model=GroupOut)
def choose_seating_option(
    code: str,
    payload: SeatingOptionIn,
    coord: GroupOrderCoordinator = Depends(get_group_coordinator),
):
    return GroupOut(**coord.describe(coord.choose_seating_option(code, payload.seating_option)))


@router.put("/{code}/payment-mode", response_model=GroupOut)
def set_payment_mode(
    code: str,
    payload: PaymentModeIn,
    coord: GroupOrderCoordinator = Depends(get_group_coordinator),
):
    return GroupOut(**coord.describe(coord.set_payment_mode(code, payload.payment_mode)))


@router.delete("/{code}/orders/{order_id}", response_model=GroupOut)
def remove_member(code: str, order_id: str, coord: GroupOrderCoordinator = Depends(get_group_coordinator)):
    return GroupOut(**coord.describe(coord.remove_member(code, order_id)))


@router.post("/{code}/transfer-host", response_model=GroupOut)
def transfer_host(
    code: str,
    payload: TransferHostIn,
    coord: GroupOrderCoordinator = Depends(get_group_coordinator),
):
    return GroupOut(**coord.describe(coord.transfer_host(code, payload.order_id)))


@router.post("/{code}/pay", response_model=SettlementReceiptOut)
def pay_for_group(code: str, svc: GroupSettlementService = Depends(get_settlement_service)):
    return SettlementReceiptOut.model_validate(svc.pay_for_group(code))
