"""Order placement — command and handler (the order transaction coordinator).

One unit of work covers the whole sequence:

    validate → withdraw stock (ascending product id) → allocate order number
    → build the order with its items → persist

If any step fails nothing is written: no order, no items, no stock change,
no consumed order number.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.numbering import OrderNumberGenerator
from ordering.order.order import Order
from ordering.order.transaction import process_atomically
from ordering.order.validation import OrderValidator
from ordering.stock.ledger import StockLedger
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class CreateOrder:
    customer_id = Identifier()
    customer_name = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=255)
    customer_phone = String(max_length=50)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    tax_amount = Float(default=0.0)
    shipping_amount = Float(default=0.0)
    payment_method = String(max_length=50)
    shipping_address = Text()
    billing_address = Text()
    notes = Text()
    status = String(max_length=20)
    placed_by = String(max_length=255)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(CreateOrder)
    def place_order(self, command):
        items = json.loads(command.items) if isinstance(command.items, str) else command.items

        validated = OrderValidator().validate(
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            items=items,
            tax_amount=command.tax_amount,
            shipping_amount=command.shipping_amount,
        )
        StockLedger().withdraw(validated.quantities)
        order_number = OrderNumberGenerator().next_number()

        order = Order.place(
            order_number=order_number,
            customer_name=command.customer_name.strip(),
            customer_email=command.customer_email.strip(),
            lines=validated.lines,
            subtotal=validated.subtotal,
            tax_amount=validated.tax_amount,
            shipping_amount=validated.shipping_amount,
            status=command.status,
            customer_id=command.customer_id,
            customer_phone=command.customer_phone,
            payment_method=command.payment_method,
            shipping_address=command.shipping_address,
            billing_address=command.billing_address,
            notes=command.notes,
            placed_by=command.placed_by,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(validated.lines),
            total_amount=order.total_amount,
            placed_by=command.placed_by,
        )
        return {"order_id": str(order.id), "order_number": order.order_number}


def place_order(**fields) -> dict:
    """Place an order, retrying the whole unit on concurrency conflicts.

    ``items`` may be given as a list; it is serialized for the command.
    Returns ``{"order_id": ..., "order_number": ...}``.
    """
    if not isinstance(fields.get("items"), str):
        fields["items"] = json.dumps(fields.get("items") or [])
    return process_atomically(CreateOrder(**fields))
