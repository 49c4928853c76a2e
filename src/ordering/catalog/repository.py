"""Repository for the Product aggregate with the stock compare-and-set primitive."""

from datetime import UTC, datetime

from protean.utils.query import Q

from ordering.catalog.product import Product
from ordering.domain import ordering


@ordering.repository(part_of=Product)
class ProductRepository:
    def compare_and_set_stock(self, product_id, expected: int, new: int) -> bool:
        """Set ``stock`` to ``new`` only if it still equals ``expected``.

        Runs as a single conditional UPDATE in the current unit of work
        (``... SET stock = :new WHERE id = :id AND stock = :expected``).
        Returns False when no row matched, i.e. another transaction moved the
        stock after it was read.
        """
        if new < 0:
            raise ValueError(f"Stock cannot go negative (product {product_id}, new value {new})")

        updated = self._dao._update_all(
            Q(id=str(product_id), stock=expected), stock=new, updated_at=datetime.now(UTC)
        )
        return updated == 1

    def find_by_sku(self, sku: str) -> Product | None:
        results = self._dao.query.filter(sku=sku).limit(1).all().items
        return results[0] if results else None
