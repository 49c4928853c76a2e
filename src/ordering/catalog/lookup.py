"""Read-only catalog lookup used by order validation and the stock ledger.

Always reads the current row from the store, so repeated lookups within one
unit of work observe stock movements made by conditional updates.
"""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from ordering.catalog.product import Product


@dataclass(frozen=True)
class ProductSnapshot:
    """Point-in-time view of a catalog row.

    ``is_active`` and ``unit_price`` are taken from the aggregate when the
    snapshot is built, so the pricing rule lives only on ``Product``.
    """

    id: str
    name: str
    sku: str
    price: float
    sale_price: float | None
    stock: int
    status: str
    is_active: bool
    unit_price: float


class CatalogLookup:
    def find(self, product_id) -> ProductSnapshot | None:
        if product_id is None or str(product_id).strip() == "":
            return None

        repo = current_domain.repository_for(Product)
        results = repo._dao.query.filter(id=str(product_id)).limit(1).all().items
        if not results:
            return None

        product = results[0]
        return ProductSnapshot(
            id=str(product.id),
            name=product.name,
            sku=product.sku,
            price=product.price,
            sale_price=product.sale_price,
            stock=product.stock,
            status=product.status,
            is_active=product.is_active,
            unit_price=product.unit_price,
        )
