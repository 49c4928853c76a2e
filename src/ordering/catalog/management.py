"""Catalog management — commands and handler used to seed and maintain products.

Stock is never written through the aggregate here: restocking goes through
the Stock Ledger so it races safely with order placement.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.catalog.product import Product
from ordering.domain import ordering
from ordering.stock.ledger import StockLedger
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Product")
class RegisterProduct:
    name: String(required=True, max_length=255)
    sku: String(required=True, max_length=50)
    price: Float(required=True, min_value=0.0)
    sale_price: Float(min_value=0.0)
    stock: Integer(default=0, min_value=0)
    status: String(max_length=20)


@ordering.command(part_of="Product")
class RestockProduct:
    product_id: Identifier(required=True)
    quantity: Integer(required=True, min_value=1)


@ordering.command(part_of="Product")
class UpdateProductPricing:
    product_id: Identifier(required=True)
    price: Float(required=True, min_value=0.0)
    sale_price: Float(min_value=0.0)


@ordering.command(part_of="Product")
class ActivateProduct:
    product_id: Identifier(required=True)


@ordering.command(part_of="Product")
class DeactivateProduct:
    product_id: Identifier(required=True)


@ordering.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.find_by_sku(command.sku) is not None:
            raise ValidationError({"sku": [f"A product with SKU {command.sku} already exists"]})

        product = Product.register(
            name=command.name,
            sku=command.sku,
            price=command.price,
            sale_price=command.sale_price,
            stock=command.stock or 0,
            status=command.status,
        )
        repo.add(product)
        logger.info("product_registered", product_id=str(product.id), sku=product.sku, stock=product.stock)
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        new_level = StockLedger().deposit(command.product_id, command.quantity)
        logger.info(
            "product_restocked",
            product_id=str(command.product_id),
            quantity=command.quantity,
            stock=new_level,
        )
        return new_level

    @handle(UpdateProductPricing)
    def update_pricing(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.reprice(price=command.price, sale_price=command.sale_price)
        repo.add(product)

    @handle(ActivateProduct)
    def activate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.activate()
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)
