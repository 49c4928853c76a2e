"""Order Validator — checks a placement request against the catalog and prices it.

Read-only: nothing is written here. Stock is checked against the current
ledger value, but the authoritative check happens again when the stock is
withdrawn inside the unit of work.
"""

import re
from dataclasses import dataclass, field

from protean.exceptions import ValidationError

from ordering.catalog.lookup import CatalogLookup
from ordering.errors import InsufficientStockError, NotFoundError
from ordering.order.order import round_money

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class OrderLineRequest:
    """A requested line as submitted by the caller."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    """A validated line carrying the price captured from the catalog."""

    line_number: int
    product_id: str
    product_name: str
    product_sku: str
    price: float
    quantity: int
    total: float


@dataclass(frozen=True)
class ValidatedOrder:
    lines: list[PricedLine] = field(default_factory=list)
    subtotal: float = 0.0
    tax_amount: float = 0.0
    shipping_amount: float = 0.0

    @property
    def total_amount(self) -> float:
        return round_money(self.subtotal + self.tax_amount + self.shipping_amount)

    @property
    def quantities(self) -> dict:
        """Units requested per product, summed across lines."""
        totals = {}
        for line in self.lines:
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return totals


def _is_number(value) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


class OrderValidator:
    def __init__(self, lookup: CatalogLookup | None = None):
        self.lookup = lookup or CatalogLookup()

    def validate(self, customer_name, customer_email, items, tax_amount=None, shipping_amount=None) -> ValidatedOrder:
        """Validate a placement request and price its lines.

        Raises:
            ValidationError: missing customer fields, malformed lines or amounts.
            NotFoundError: a product does not exist or is not active.
            InsufficientStockError: a product cannot cover the requested units.
        """
        errors = {}
        if not customer_name or not str(customer_name).strip():
            errors["customer_name"] = ["Customer name is required"]
        if not customer_email or not str(customer_email).strip():
            errors["customer_email"] = ["Customer email is required"]
        elif not _EMAIL_PATTERN.match(str(customer_email).strip()):
            errors["customer_email"] = ["Invalid email format"]

        tax_amount = self._amount("tax_amount", tax_amount, errors)
        shipping_amount = self._amount("shipping_amount", shipping_amount, errors)
        requests = self._line_requests(items, errors)

        if errors:
            raise ValidationError(errors)

        snapshots = {}
        requested = {}
        for request in requests:
            snapshot = snapshots.get(request.product_id) or self.lookup.find(request.product_id)
            if snapshot is None or not snapshot.is_active:
                raise NotFoundError(f"Product not found: {request.product_id}")
            snapshots[request.product_id] = snapshot

            requested[request.product_id] = requested.get(request.product_id, 0) + request.quantity
            if requested[request.product_id] > snapshot.stock:
                raise InsufficientStockError(
                    product_id=snapshot.id,
                    product_name=snapshot.name,
                    requested=requested[request.product_id],
                    available=snapshot.stock,
                )

        lines = []
        for line_number, request in enumerate(requests, start=1):
            snapshot = snapshots[request.product_id]
            price = round_money(snapshot.unit_price)
            lines.append(
                PricedLine(
                    line_number=line_number,
                    product_id=snapshot.id,
                    product_name=snapshot.name,
                    product_sku=snapshot.sku,
                    price=price,
                    quantity=request.quantity,
                    total=round_money(price * request.quantity),
                )
            )

        return ValidatedOrder(
            lines=lines,
            subtotal=round_money(sum(line.total for line in lines)),
            tax_amount=tax_amount,
            shipping_amount=shipping_amount,
        )

    @staticmethod
    def _amount(name, value, errors) -> float:
        if value is None:
            return 0.0
        if not _is_number(value) or value < 0:
            errors[name] = [f"{name} must be a non-negative number"]
            return 0.0
        return round_money(value)

    @staticmethod
    def _line_requests(items, errors) -> list[OrderLineRequest]:
        if not items or not isinstance(items, list | tuple):
            errors["items"] = ["Order items are required"]
            return []

        requests = []
        messages = []
        for position, item in enumerate(items, start=1):
            if isinstance(item, OrderLineRequest):
                product_id, quantity = item.product_id, item.quantity
            elif isinstance(item, dict):
                product_id, quantity = item.get("product_id"), item.get("quantity")
            else:
                messages.append(f"Item {position}: invalid item data")
                continue

            if product_id is None or str(product_id).strip() == "":
                messages.append(f"Item {position}: product_id is required")
                continue
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                messages.append(f"Item {position}: quantity must be a positive integer")
                continue
            requests.append(OrderLineRequest(product_id=str(product_id), quantity=quantity))

        if messages:
            errors["items"] = messages
        return requests
