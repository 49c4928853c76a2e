"""Stock Ledger — guarded movements of the per-product available quantity.

Every movement is a read followed by a compare-and-set on the product row.
When the conditional update matches no row, a concurrent transaction moved
the stock in between; the row is re-read and the movement retried a bounded
number of times before ``ConcurrencyConflict`` is raised.

Products are always visited in ascending product-id order so concurrent
multi-product movements acquire row locks in the same order.

Movements must run inside an active unit of work (a command handler); they
commit or roll back together with the order that caused them.
"""

from protean.utils.globals import current_domain

from ordering.catalog.lookup import CatalogLookup
from ordering.catalog.product import Product
from ordering.errors import ConcurrencyConflict, InsufficientStockError, NotFoundError
from ordering.utils.logging import get_logger
from ordering.utils.settings import stock_cas_max_attempts

logger = get_logger(__name__)


class StockLedger:
    def __init__(self, max_attempts: int | None = None, lookup: CatalogLookup | None = None):
        self.max_attempts = max_attempts or stock_cas_max_attempts()
        self.lookup = lookup or CatalogLookup()

    def withdraw(self, quantities: dict) -> dict:
        """Take ``quantities`` (product id -> units) out of stock.

        Returns the new stock level per product. Raises ``NotFoundError`` for
        an unknown product and ``InsufficientStockError`` when the current
        stock cannot cover the request.
        """
        levels = {}
        for product_id in sorted(quantities, key=str):
            levels[product_id] = self._move(product_id, -quantities[product_id])
        return levels

    def deposit(self, product_id, quantity: int) -> int:
        """Add ``quantity`` units to one product and return its new stock level."""
        return self._move(product_id, quantity)

    def restore(self, quantities: dict, missing_ok: bool = True) -> list[str]:
        """Put ``quantities`` back into stock.

        Products that no longer exist are skipped with a warning when
        ``missing_ok`` is set. Returns the ids of skipped products.
        """
        skipped = []
        for product_id in sorted(quantities, key=str):
            try:
                self._move(product_id, quantities[product_id])
            except NotFoundError:
                if not missing_ok:
                    raise
                logger.warning(
                    "stock_restore_skipped_missing_product",
                    product_id=str(product_id),
                    quantity=quantities[product_id],
                )
                skipped.append(str(product_id))
        return skipped

    def _move(self, product_id, delta: int) -> int:
        repo = current_domain.repository_for(Product)

        for attempt in range(1, self.max_attempts + 1):
            snapshot = self.lookup.find(product_id)
            if snapshot is None:
                raise NotFoundError(f"Product not found: {product_id}")

            new_level = snapshot.stock + delta
            if new_level < 0:
                raise InsufficientStockError(
                    product_id=snapshot.id,
                    product_name=snapshot.name,
                    requested=-delta,
                    available=snapshot.stock,
                )

            if repo.compare_and_set_stock(snapshot.id, snapshot.stock, new_level):
                logger.debug(
                    "stock_moved",
                    product_id=snapshot.id,
                    delta=delta,
                    stock_before=snapshot.stock,
                    stock_after=new_level,
                    attempt=attempt,
                )
                return new_level

            logger.info(
                "stock_compare_and_set_missed",
                product_id=snapshot.id,
                observed=snapshot.stock,
                attempt=attempt,
            )

        raise ConcurrencyConflict(f"Stock for product {product_id} kept changing after {self.max_attempts} attempts")
