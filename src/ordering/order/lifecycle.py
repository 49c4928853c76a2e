"""Order lifecycle — status changes and deletion, with stock restitution.

Stock held by an order goes back to the ledger exactly once:

- when the order moves into ``cancelled`` (the ``stock_restored`` flag is
  set in the same unit of work), or
- when a ``pending`` order is deleted without having been cancelled.

Each mutation first claims the order row through its ``revision``. Of two
concurrent mutations of the same order only one claim succeeds; the other
fails with ``TransactionError`` and changes nothing.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import NotFoundError
from ordering.order.order import Order, OrderStatus, parse_status
from ordering.order.transaction import process_atomically
from ordering.stock.ledger import StockLedger
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    changed_by = String(max_length=255)


@ordering.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)
    deleted_by = String(max_length=255)


def load_order(order_id):
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise NotFoundError(f"Order not found: {order_id}") from None


def _restore_stock(order) -> dict:
    quantities = order.reserved_quantities()
    skipped = StockLedger().restore(quantities, missing_ok=True)
    return {product_id: qty for product_id, qty in quantities.items() if product_id not in skipped}


@ordering.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        parse_status(command.status)
        repo = current_domain.repository_for(Order)
        order = load_order(command.order_id)
        previous_status = order.status

        changed = order.change_status(command.status, changed_by=command.changed_by)
        repo.claim(order)

        if order.status == OrderStatus.CANCELLED.value and not order.stock_restored:
            restored = _restore_stock(order)
            order.mark_stock_restored(restored, previous_status=previous_status, cancelled_by=command.changed_by)

        repo.add(order)
        logger.info(
            "order_status_updated",
            order_id=str(order.id),
            previous_status=previous_status,
            status=order.status,
            changed=changed,
            changed_by=command.changed_by,
        )
        return {"order_id": str(order.id), "status": order.status, "changed": changed}

    @handle(DeleteOrder)
    def delete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = load_order(command.order_id)
        order.ensure_deletable()
        repo.claim(order)

        restored = {}
        if not order.stock_restored:
            restored = _restore_stock(order)
        repo.remove(order)

        logger.info(
            "order_deleted",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            restored_items=restored,
            deleted_by=command.deleted_by,
        )
        return {"order_id": str(order.id), "deleted": True}


def update_order_status(order_id, status, changed_by=None) -> dict:
    """Change an order's status; a lost race surfaces as ``TransactionError``."""
    return process_atomically(
        UpdateOrderStatus(order_id=str(order_id), status=status, changed_by=changed_by),
        max_attempts=1,
    )


def delete_order(order_id, deleted_by=None) -> dict:
    """Delete a pending or cancelled order; a lost race surfaces as ``TransactionError``."""
    return process_atomically(DeleteOrder(order_id=str(order_id), deleted_by=deleted_by), max_attempts=1)
