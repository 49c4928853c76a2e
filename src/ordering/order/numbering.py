"""Order Number Generator — ``<PREFIX><YYYYMMDD><NNNN>``, day-scoped.

One ``DailyOrderSequence`` row per prefix and UTC day keeps the highest
sequence value handed out. Allocation advances it with a compare-and-set on
the observed value, inside the unit of work of the order being placed, so a
number is only consumed when that order commits. A missing row is seeded
from the highest order number that already exists for the day.

The suffix is zero-padded to four digits and widens past 9999 instead of
wrapping.
"""

from datetime import UTC, datetime

from protean.fields import Integer, String
from protean.utils.globals import current_domain
from protean.utils.query import Q

from ordering.domain import ordering
from ordering.errors import ConcurrencyConflict
from ordering.order.order import Order
from ordering.utils.logging import get_logger
from ordering.utils.settings import order_number_prefix, stock_cas_max_attempts

logger = get_logger(__name__)

SEQUENCE_WIDTH = 4


@ordering.aggregate
class DailyOrderSequence:
    key = String(identifier=True, max_length=64)  # <prefix><YYYYMMDD>
    prefix = String(required=True, max_length=20)
    day = String(required=True, max_length=8)
    last_value = Integer(default=0, min_value=0)


@ordering.repository(part_of=DailyOrderSequence)
class DailyOrderSequenceRepository:
    def find(self, key: str) -> DailyOrderSequence | None:
        results = self._dao.query.filter(key=key).limit(1).all().items
        return results[0] if results else None

    def advance(self, key: str, observed: int, new: int) -> bool:
        """Conditionally move ``last_value`` from ``observed`` to ``new``."""
        return self._dao._update_all(Q(key=key, last_value=observed), last_value=new) == 1


class OrderNumberGenerator:
    def __init__(self, prefix: str | None = None, clock=None, max_attempts: int | None = None):
        self.prefix = prefix if prefix is not None else order_number_prefix()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.max_attempts = max_attempts or stock_cas_max_attempts()

    @staticmethod
    def format(prefix: str, day: str, value: int) -> str:
        return f"{prefix}{day}{value:0{SEQUENCE_WIDTH}d}"

    @staticmethod
    def parse(order_number: str, stem: str) -> int | None:
        """Sequence value of ``order_number`` when it belongs to ``stem``, else None."""
        if not order_number or not order_number.startswith(stem):
            return None
        suffix = order_number[len(stem) :]
        if len(suffix) < SEQUENCE_WIDTH or not suffix.isdigit():
            return None
        return int(suffix)

    def today(self) -> str:
        return self.clock().astimezone(UTC).strftime("%Y%m%d")

    def highest_existing(self, stem: str) -> int:
        numbers = current_domain.repository_for(Order).numbers_starting_with(stem)
        values = [value for value in (self.parse(number, stem) for number in numbers) if value is not None]
        return max(values, default=0)

    def next_number(self) -> str:
        """Allocate the next order number for today.

        Must run inside the unit of work that persists the order.
        """
        day = self.today()
        stem = f"{self.prefix}{day}"
        repo = current_domain.repository_for(DailyOrderSequence)

        for attempt in range(1, self.max_attempts + 1):
            sequence = repo.find(stem)
            if sequence is None:
                value = self.highest_existing(stem) + 1
                # A concurrent first allocation of the day collides on the key at commit
                repo.add(DailyOrderSequence(key=stem, prefix=self.prefix, day=day, last_value=value))
                return self.format(self.prefix, day, value)

            value = sequence.last_value + 1
            if repo.advance(stem, sequence.last_value, value):
                return self.format(self.prefix, day, value)

            logger.info("order_sequence_compare_and_set_missed", key=stem, observed=sequence.last_value, attempt=attempt)

        raise ConcurrencyConflict(f"Order sequence {stem} kept changing after {self.max_attempts} attempts")
