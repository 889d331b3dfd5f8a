"""
Order service and kitchen webhook clients against a mocked HTTP transport.
"""
import json

import httpx
import pytest

from podhouse.core.exceptions import OrderNotFound, OrderServiceError
from podhouse.models.entities import PaymentStatus
from podhouse.models.schemas import OrderItem
from podhouse.services.notifier import HttpKitchenNotifier
from podhouse.services.order_client import HttpOrderService

ORDER = {
    "id": "o1",
    "orderNumber": "ORD-1",
    "locationId": "loc-1",
    "totalCents": 1250,
    "paymentStatus": "PENDING",
    "status": "PENDING",
}


def _service(handler) -> HttpOrderService:
    client = httpx.Client(base_url="http://orders.test", transport=httpx.MockTransport(handler))
    return HttpOrderService("http://orders.test", client=client)


class TestHttpOrderService:
    def test_parses_camel_case_order(self):
        svc = _service(lambda request: httpx.Response(200, json=ORDER))
        order = svc.get_order("o1")
        assert (order.order_number, order.location_id, order.total_cents) == ("ORD-1", "loc-1", 1250)

    def test_set_payment_status_patches_order(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={**ORDER, "paymentStatus": "PAID"})

        order = _service(handler).set_payment_status("o1", PaymentStatus.PAID)

        assert order.payment_status == "PAID"
        assert seen == [("PATCH", "/orders/o1", {"paymentStatus": "PAID"})]

    def test_missing_order(self):
        svc = _service(lambda request: httpx.Response(404))
        with pytest.raises(OrderNotFound):
            svc.get_order("nope")

    def test_server_error_is_upstream_failure(self):
        svc = _service(lambda request: httpx.Response(503))
        with pytest.raises(OrderServiceError) as exc:
            svc.mark_arrived("o1")
        assert exc.value.status_code == 502

    def test_transport_error_is_upstream_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(OrderServiceError):
            _service(handler).get_order("o1")

    def test_no_active_order_for_seat(self):
        svc = _service(lambda request: httpx.Response(404))
        assert svc.find_active_order_for_seat("POD-loc-1-1") is None

    def test_active_order_lookup_sends_user(self):
        seen = []

        def handler(request):
            seen.append(dict(request.url.params))
            return httpx.Response(200, json=ORDER)

        _service(handler).find_active_order_for_seat("POD-loc-1-1", user_id="u1")
        assert seen == [{"seatCode": "POD-loc-1-1", "userId": "u1"}]

    def test_reorder_posts_items(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={**ORDER, "id": "o2"})

        order = _service(handler).create_reorder(
            [OrderItem(menu_item_id="ramen", quantity=2, price_cents=900)], "loc-1"
        )

        assert order.id == "o2"
        assert seen[0]["locationId"] == "loc-1"
        assert seen[0]["items"][0]["menuItemId"] == "ramen"


class TestInMemoryOrderService:
    def test_reorder_totals_items(self, orders):
        order = orders.create_reorder([OrderItem(menu_item_id="ramen", price_cents=900)], "loc-1")
        assert orders.get_order(order.id).total_cents == 900
        assert order.order_number.startswith("ORD-")

    def test_mark_arrived_is_idempotent(self, orders, make_order):
        make_order("o1", payment_status="PAID")
        first = orders.mark_arrived("o1")
        second = orders.mark_arrived("o1")
        assert first.pod_confirmed_at == second.pod_confirmed_at
        assert second.status == "QUEUED"


class TestHttpKitchenNotifier:
    def test_posts_group_seated_event(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(204)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        HttpKitchenNotifier("http://kitchen.test/hook", client=client).notify_group_seated("ABC234", ["s1"], 2)

        assert seen == [{"event": "group_seated", "groupCode": "ABC234", "seatIds": ["s1"], "seatingOption": 2}]

    def test_webhook_error_is_raised(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        with pytest.raises(httpx.HTTPStatusError):
            HttpKitchenNotifier("http://kitchen.test/hook", client=client).notify_group_seated("ABC234", [], None)
