"""Product aggregate — catalog row carrying the stock ledger column.

Name, SKU, prices and status belong to the catalog and are only read by
order placement. ``stock`` is the Stock Ledger: the authoritative available
quantity, never negative. It is never assigned through the aggregate once
the product is registered; every movement goes through
``ordering.stock.ledger.StockLedger`` as a conditional update.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String

from ordering.catalog.events import (
    ProductActivated,
    ProductDeactivated,
    ProductRegistered,
    ProductRepriced,
)
from ordering.domain import ordering


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@ordering.aggregate
class Product:
    name = String(required=True, max_length=255)
    sku = String(required=True, max_length=50, unique=True)
    price = Float(required=True, min_value=0.0)
    sale_price = Float(min_value=0.0)
    stock = Integer(default=0, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, name, sku, price, sale_price=None, stock=0, status=None):
        if stock is None or stock < 0:
            raise ValidationError({"stock": ["Opening stock must be zero or more"]})
        _check_sale_price(price, sale_price)

        now = datetime.now(UTC)
        product = cls(
            name=name,
            sku=sku,
            price=price,
            sale_price=sale_price,
            stock=stock,
            status=status or ProductStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                name=name,
                sku=sku,
                price=price,
                sale_price=sale_price,
                stock=stock,
                status=product.status,
                registered_at=now,
            )
        )
        return product

    @property
    def unit_price(self) -> float:
        """Price charged per unit: the sale price when one is set."""
        return self.sale_price if self.sale_price is not None else self.price

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    def activate(self):
        if self.is_active:
            raise ValidationError({"status": ["Product is already active"]})

        now = datetime.now(UTC)
        self.status = ProductStatus.ACTIVE.value
        self.updated_at = now
        self.raise_(ProductActivated(product_id=str(self.id), activated_at=now))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"status": ["Product is already inactive"]})

        now = datetime.now(UTC)
        self.status = ProductStatus.INACTIVE.value
        self.updated_at = now
        self.raise_(ProductDeactivated(product_id=str(self.id), deactivated_at=now))

    def reprice(self, price, sale_price=None):
        _check_sale_price(price, sale_price)

        previous_price, previous_sale_price = self.price, self.sale_price
        now = datetime.now(UTC)
        self.price = price
        self.sale_price = sale_price
        self.updated_at = now
        self.raise_(
            ProductRepriced(
                product_id=str(self.id),
                previous_price=previous_price,
                new_price=price,
                previous_sale_price=previous_sale_price,
                new_sale_price=sale_price,
                repriced_at=now,
            )
        )


def _check_sale_price(price, sale_price):
    if sale_price is not None and price is not None and sale_price > price:
        raise ValidationError({"sale_price": ["Sale price cannot exceed the regular price"]})
