"""Clients for the external order service.

Seating never owns orders; it reads them and asks the order service to
change payment status, record arrival and attach a pod. ``HttpOrderService``
talks to the real service; ``InMemoryOrderService`` backs the demo payment
path and the test suite.
"""
from __future__ import annotations

import datetime as dt
import logging
import secrets
from typing import Any, Protocol

import httpx

from ..core.exceptions import OrderNotFound, OrderServiceError
from ..core.store import InMemoryOrderStore
from ..models.entities import PaymentStatus
from ..models.schemas import Order, OrderItem

logger = logging.getLogger(__name__)

# Orders in these states no longer hold a pod
CLOSED_ORDER_STATUSES = {"COMPLETED", "CANCELLED"}


class OrderService(Protocol):
    def get_order(self, order_id: str) -> Order: ...

    def set_payment_status(self, order_id: str, status: PaymentStatus) -> Order: ...

    def create_reorder(self, items: list[OrderItem], location_id: str) -> Order: ...

    def find_active_order_for_seat(self, seat_code: str, user_id: str | None = None) -> Order | None: ...

    def mark_arrived(self, order_id: str) -> Order: ...

    def assign_seat(self, order_id: str, seat_code: str) -> Order: ...


def _order_number() -> str:
    stamp = int(dt.datetime.utcnow().timestamp() * 1000)
    return f"ORD-{stamp}-{secrets.token_hex(3).upper()}"


class InMemoryOrderService:
    def __init__(self, store: InMemoryOrderStore):
        self.store = store

    def add(self, order: Order) -> Order:
        return self.store.put(order)

    def get_order(self, order_id: str) -> Order:
        order = self.store.orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _update(self, order_id: str, **changes: Any) -> Order:
        with self.store.lock:
            order = self.get_order(order_id)
            updated = order.model_copy(update=changes)
            self.store.orders[order_id] = updated
            return updated

    def set_payment_status(self, order_id: str, status: PaymentStatus) -> Order:
        # Demo payment path: the capture always succeeds
        return self._update(order_id, payment_status=PaymentStatus(status).value)

    def create_reorder(self, items: list[OrderItem], location_id: str) -> Order:
        order = Order(
            id=secrets.token_hex(12),
            order_number=_order_number(),
            location_id=location_id,
            items=list(items),
            total_cents=sum(i.price_cents for i in items),
        )
        return self.store.put(order)

    def find_active_order_for_seat(self, seat_code: str, user_id: str | None = None) -> Order | None:
        with self.store.lock:
            candidates = [
                o
                for o in self.store.orders.values()
                if o.seat_code == seat_code
                and o.payment_status == PaymentStatus.PAID.value
                and o.status not in CLOSED_ORDER_STATUSES
            ]
        if user_id:
            own = [o for o in candidates if o.user_id == user_id]
            if own:
                return own[0]
        return candidates[0] if candidates else None

    def mark_arrived(self, order_id: str) -> Order:
        with self.store.lock:
            order = self.get_order(order_id)
            if order.pod_confirmed_at is not None:
                return order
            status = "QUEUED" if order.status in ("PENDING", "PAID") else order.status
            return self._update(order_id, pod_confirmed_at=dt.datetime.utcnow(), status=status)

    def assign_seat(self, order_id: str, seat_code: str) -> Order:
        return self._update(order_id, seat_code=seat_code)


class HttpOrderService:
    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.Client | None = None):
        self.client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Order service {method} {path} failed: {e}")
            raise OrderServiceError(path=path) from e
        if response.status_code >= 500:
            logger.error(f"Order service {method} {path} returned {response.status_code}")
            raise OrderServiceError(path=path, upstream_status=response.status_code)
        return response

    def _order(self, response: httpx.Response, order_id: str) -> Order:
        if response.status_code == 404:
            raise OrderNotFound(order_id)
        if response.status_code >= 400:
            raise OrderServiceError(order_id=order_id, upstream_status=response.status_code)
        return Order.model_validate(response.json())

    def get_order(self, order_id: str) -> Order:
        return self._order(self._request("GET", f"/orders/{order_id}"), order_id)

    def set_payment_status(self, order_id: str, status: PaymentStatus) -> Order:
        response = self._request(
            "PATCH", f"/orders/{order_id}", json={"paymentStatus": PaymentStatus(status).value}
        )
        return self._order(response, order_id)

    def create_reorder(self, items: list[OrderItem], location_id: str) -> Order:
        payload = {
            "locationId": location_id,
            "items": [i.model_dump(by_alias=True) for i in items],
        }
        response = self._request("POST", "/orders/reorder", json=payload)
        return self._order(response, "reorder")

    def find_active_order_for_seat(self, seat_code: str, user_id: str | None = None) -> Order | None:
        params = {"seatCode": seat_code}
        if user_id:
            params["userId"] = user_id
        response = self._request("GET", "/orders/active-for-seat", params=params)
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise OrderServiceError(seat_code=seat_code, upstream_status=response.status_code)
        body = response.json()
        return Order.model_validate(body) if body else None

    def mark_arrived(self, order_id: str) -> Order:
        return self._order(self._request("POST", f"/orders/{order_id}/arrived"), order_id)

    def assign_seat(self, order_id: str, seat_code: str) -> Order:
        response = self._request("PATCH", f"/orders/{order_id}", json={"seatCode": seat_code})
        return self._order(response, order_id)
