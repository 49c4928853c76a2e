"""Repository for the Order aggregate: row claims, removal and number lookups."""

from protean.utils.globals import current_domain
from protean.utils.query import Q

from ordering.domain import ordering
from ordering.errors import ConcurrencyConflict
from ordering.order.order import Order, OrderItem

_SCAN_PAGE_SIZE = 500


@ordering.repository(part_of=Order)
class OrderRepository:
    def claim(self, order) -> None:
        """Take the order row for one lifecycle mutation.

        Bumps ``revision`` with a conditional update on the revision that was
        read. When another mutation claimed the row first no row matches and
        ``ConcurrencyConflict`` is raised.
        """
        observed = order.revision or 0
        updated = self._dao._update_all(Q(id=str(order.id), revision=observed), revision=observed + 1)
        if updated != 1:
            raise ConcurrencyConflict(f"Order {order.id} was modified concurrently (revision {observed})")
        order.revision = observed + 1

    def remove(self, order) -> None:
        """Delete the order's items, then the order itself."""
        item_dao = current_domain.repository_for(OrderItem)._dao
        for item in list(order.items):
            item_dao.delete(item)
        self._dao.delete(order)

    def numbers_starting_with(self, stem: str) -> list[str]:
        """All order numbers that begin with ``stem``, in no particular order."""
        numbers = []
        offset = 0
        while True:
            page = (
                self._dao.query.filter(order_number__startswith=stem)
                .offset(offset)
                .limit(_SCAN_PAGE_SIZE)
                .all()
            )
            numbers.extend(order.order_number for order in page.items)
            if len(page.items) < _SCAN_PAGE_SIZE:
                return numbers
            offset += _SCAN_PAGE_SIZE
