"""Order aggregate with its OrderItem entities.

An Order is created fully formed by the placement coordinator: header,
priced line items and captured totals in one unit of work. Afterwards only
its lifecycle status moves, along a forward-only state machine:

    pending → processing → shipped → delivered
    pending | processing | shipped → cancelled

Skipping forward (e.g. pending → delivered) is allowed; nothing leaves
``delivered`` or ``cancelled``. Re-submitting the current status is an
acknowledgement that only touches ``updated_at``.

Reserved stock is handed back exactly once. The ``stock_restored`` flag
records that it happened, whether through cancellation or deletion.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States an order may be placed in
_INITIAL_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

# States from which an order may be deleted
_DELETABLE_STATES = {OrderStatus.PENDING, OrderStatus.CANCELLED}


def round_money(amount) -> float:
    """Round a money amount to cents."""
    return round(float(amount), 2)


def parse_status(value) -> OrderStatus:
    """Return the ``OrderStatus`` named by ``value`` or raise ``ValidationError``."""
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError({"status": [f"Invalid status: {value}. Allowed values: {allowed}"]}) from None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """One purchased line: a product, the unit price captured at purchase and a quantity.

    Product name and SKU are copied from the catalog so the line reads the
    same after the product changes or disappears.
    """

    line_number = Integer(required=True, min_value=1)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_sku = String(max_length=50)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    total = Float(required=True, min_value=0.0)

    @invariant.post
    def total_is_price_times_quantity(self):
        if self.price is None or self.quantity is None or self.total is None:
            return
        if abs(round_money(self.price * self.quantity) - self.total) >= 0.005:
            raise ValidationError({"total": ["Line total must equal price multiplied by quantity"]})


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    customer_id = Identifier()
    customer_name = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=255)
    customer_phone = String(max_length=50)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    subtotal = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    shipping_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    payment_method = String(max_length=50)
    shipping_address = Text()
    billing_address = Text()
    notes = Text()
    stock_restored = Boolean(default=False)
    revision = Integer(default=0, min_value=0)
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_is_sum_of_components(self):
        if None in (self.subtotal, self.tax_amount, self.shipping_amount, self.total_amount):
            return
        expected = round_money(self.subtotal + self.tax_amount + self.shipping_amount)
        if abs(expected - self.total_amount) >= 0.005:
            raise ValidationError({"total_amount": ["Total must equal subtotal plus tax plus shipping"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        customer_name,
        customer_email,
        lines,
        subtotal,
        tax_amount=0.0,
        shipping_amount=0.0,
        status=None,
        customer_id=None,
        customer_phone=None,
        payment_method=None,
        shipping_address=None,
        billing_address=None,
        notes=None,
        placed_by=None,
    ):
        """Build a new order from validated, priced lines.

        Args:
            order_number: Number handed out by the order number generator.
            lines: Sequence of priced lines, each with ``line_number``,
                ``product_id``, ``product_name``, ``product_sku``, ``price``,
                ``quantity`` and ``total``.
            status: ``pending`` (default) or ``processing``.
            placed_by: Principal that placed the order, recorded on the event.
        """
        initial = parse_status(status) if status else OrderStatus.PENDING
        if initial not in _INITIAL_STATES:
            raise ValidationError({"status": [f"An order cannot be placed as {initial.value}"]})
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        tax_amount = round_money(tax_amount or 0.0)
        shipping_amount = round_money(shipping_amount or 0.0)
        subtotal = round_money(subtotal)

        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            status=initial.value,
            subtotal=subtotal,
            tax_amount=tax_amount,
            shipping_amount=shipping_amount,
            total_amount=round_money(subtotal + tax_amount + shipping_amount),
            payment_method=payment_method,
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    line_number=line.line_number,
                    product_id=str(line.product_id),
                    product_name=line.product_name,
                    product_sku=line.product_sku,
                    price=line.price,
                    quantity=line.quantity,
                    total=line.total,
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=customer_id,
                customer_email=customer_email,
                status=initial.value,
                items=json.dumps(
                    [
                        {"product_id": str(line.product_id), "quantity": line.quantity, "price": line.price}
                        for line in lines
                    ]
                ),
                item_count=len(lines),
                subtotal=order.subtotal,
                tax_amount=order.tax_amount,
                shipping_amount=order.shipping_amount,
                total_amount=order.total_amount,
                placed_by=placed_by,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries on state
    # -------------------------------------------------------------------
    @property
    def is_deletable(self) -> bool:
        return OrderStatus(self.status) in _DELETABLE_STATES

    def reserved_quantities(self) -> dict:
        """Units per product held by this order, summed across its lines."""
        quantities = {}
        for item in self.items:
            key = str(item.product_id)
            quantities[key] = quantities.get(key, 0) + item.quantity
        return quantities

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot change order status from {current.value} to {target_status.value}"]})

    def change_status(self, new_status, changed_by=None) -> bool:
        """Move the order to ``new_status``.

        Returns False when the order already had that status (nothing but
        ``updated_at`` changes), True when a transition happened.
        """
        target = parse_status(new_status)
        current = OrderStatus(self.status)
        now = datetime.now(UTC)

        if target == current:
            self.updated_at = now
            return False

        self._assert_can_transition(target)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                changed_by=changed_by,
                changed_at=now,
            )
        )
        return True

    def mark_stock_restored(self, restored_items, previous_status, cancelled_by=None):
        """Record that the reserved stock of a cancelled order went back to the ledger."""
        if OrderStatus(self.status) != OrderStatus.CANCELLED:
            raise ValidationError({"status": ["Stock is only restored for cancelled orders"]})
        if self.stock_restored:
            raise ValidationError({"stock_restored": ["Stock for this order was already restored"]})

        now = datetime.now(UTC)
        self.stock_restored = True
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous_status,
                restored_items=json.dumps(restored_items),
                cancelled_by=cancelled_by,
                cancelled_at=now,
            )
        )

    def ensure_deletable(self):
        if not self.is_deletable:
            raise ValidationError({"status": ["Cannot delete processed orders"]})
