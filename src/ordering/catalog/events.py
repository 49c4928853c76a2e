"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Product")
class ProductRegistered:
    """A product row was added to the catalog with its opening stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    sku = String(required=True)
    price = Float(required=True)
    sale_price = Float()
    stock = Integer(required=True)
    status = String(required=True)
    registered_at = DateTime(required=True)


@ordering.event(part_of="Product")
class ProductActivated:
    """The product can be ordered again."""

    __version__ = 1

    product_id = Identifier(required=True)
    activated_at = DateTime(required=True)


@ordering.event(part_of="Product")
class ProductDeactivated:
    """The product can no longer be ordered."""

    __version__ = 1

    product_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@ordering.event(part_of="Product")
class ProductRepriced:
    """Regular or sale price changed. Existing orders keep their captured prices."""

    __version__ = 1

    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)
    previous_sale_price = Float()
    new_sale_price = Float()
    repriced_at = DateTime(required=True)
