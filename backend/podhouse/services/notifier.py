from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class KitchenNotifier(Protocol):
    def notify_group_seated(self, group_code: str, seat_ids: list[str], seating_option: int | None) -> None: ...


class LoggingKitchenNotifier:
    def notify_group_seated(self, group_code: str, seat_ids: list[str], seating_option: int | None) -> None:
        logger.info(
            f"[Group Order Completed] Code: {group_code}, Seats: {seat_ids or 'none'}, "
            f"Seating Option: {seating_option}, Kitchen notified"
        )


class HttpKitchenNotifier:
    def __init__(self, webhook_url: str, timeout: float = 5.0, client: httpx.Client | None = None):
        self.webhook_url = webhook_url
        self.client = client or httpx.Client(timeout=timeout)

    def notify_group_seated(self, group_code: str, seat_ids: list[str], seating_option: int | None) -> None:
        response = self.client.post(
            self.webhook_url,
            json={
                "event": "group_seated",
                "groupCode": group_code,
                "seatIds": seat_ids,
                "seatingOption": seating_option,
            },
        )
        response.raise_for_status()
