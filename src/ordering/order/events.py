"""Domain events for the Order aggregate.

Events are versioned, immutable facts raised by the aggregate and published
when the unit of work that raised them commits.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was created and stock for all its lines was reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier()
    customer_email = String(required=True)
    status = String(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity, price}
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    tax_amount = Float()
    shipping_amount = Float()
    total_amount = Float(required=True)
    placed_by = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved from one lifecycle status to another."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled and its reserved stock returned to the ledger."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    restored_items = Text(required=True)  # JSON: {product_id: quantity}
    stock_restored = Boolean(default=True)
    cancelled_by = String()
    cancelled_at = DateTime(required=True)
