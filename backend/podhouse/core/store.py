from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict

from ..models.schemas import Order


@dataclass
class InMemoryOrderStore:
    """Order records for the demo/test order service (no external service configured)."""

    orders: Dict[str, Order] = field(default_factory=dict)  # key = order id
    lock: threading.RLock = field(default_factory=threading.RLock)

    def put(self, order: Order) -> Order:
        with self.lock:
            self.orders[order.id] = order
        return order


store = InMemoryOrderStore()
