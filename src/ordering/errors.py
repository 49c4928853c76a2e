"""Error taxonomy for order placement, stock movements and order lifecycle.

``ValidationError`` is Protean's own and is raised directly for malformed
input. The classes below cover the remaining failure kinds:

- ``NotFoundError``: a referenced order or product does not exist.
- ``InsufficientStockError``: a line asks for more than the product has.
- ``ConcurrencyConflict``: a conditional update matched no row because a
  concurrent transaction changed it first. The whole unit of work is retried.
- ``TransactionError``: the atomic write sequence failed and was rolled back.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class NotFoundError(ObjectNotFoundError):
    """A referenced order or product does not exist."""

    def __init__(self, message: str):
        self.message = message
        super().__init__({"_entity": [message]})

    def __str__(self) -> str:
        return self.message


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the product's available stock."""

    def __init__(self, product_id, product_name: str, requested: int, available: int):
        self.product_id = str(product_id)
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            {
                "stock": [
                    f"Insufficient stock for product: {product_name} (requested {requested}, available {available})"
                ]
            }
        )


class ConcurrencyConflict(Exception):
    """A compare-and-set update lost the race against another transaction."""


class TransactionError(Exception):
    """The atomic write sequence failed; nothing was committed."""

    default_message = "The operation could not be completed and was rolled back. Please retry."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
