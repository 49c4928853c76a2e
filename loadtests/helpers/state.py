"""Per-user and shared state for Locust load test scenarios.

Each Locust user keeps its own ``OrderState``. ``ContentionTally`` is shared
by every user of the stock contention scenario so the final stock level can
be checked against what the API accepted.
"""

import threading
from dataclasses import dataclass, field


@dataclass
class OrderState:
    """Tracks state for a single order lifecycle."""

    order_id: str | None = None
    order_number: str | None = None
    current_status: str = "pending"


@dataclass
class ContentionTally:
    """Units accepted and rejected against one hot product."""

    product_id: str | None = None
    initial_stock: int = 0
    units_sold: int = 0
    units_returned: int = 0
    accepted: int = 0
    rejected: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_sale(self, quantity: int) -> None:
        with self.lock:
            self.units_sold += quantity
            self.accepted += 1

    def record_rejection(self) -> None:
        with self.lock:
            self.rejected += 1

    def record_return(self, quantity: int) -> None:
        with self.lock:
            self.units_returned += quantity

    @property
    def expected_stock(self) -> int:
        return self.initial_stock - self.units_sold + self.units_returned
