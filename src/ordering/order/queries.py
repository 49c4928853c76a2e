"""Order read side: single order with items, and the paginated order list."""

import math

from protean.utils.globals import current_domain
from protean.utils.query import Q

from ordering.order.lifecycle import load_order
from ordering.order.order import Order

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_SUMMARY_FIELDS = (
    "order_number",
    "customer_id",
    "customer_name",
    "customer_email",
    "customer_phone",
    "status",
    "subtotal",
    "tax_amount",
    "shipping_amount",
    "total_amount",
    "payment_method",
    "shipping_address",
    "billing_address",
    "notes",
    "stock_restored",
)


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _timestamp(value):
    return value.isoformat() if value is not None else None


def _summary(order) -> dict:
    data = {"id": str(order.id)}
    data.update({name: getattr(order, name) for name in _SUMMARY_FIELDS})
    data["created_at"] = _timestamp(order.created_at)
    data["updated_at"] = _timestamp(order.updated_at)
    return data


def _item(item) -> dict:
    return {
        "id": str(item.id),
        "line_number": item.line_number,
        "product_id": str(item.product_id),
        "product_name": item.product_name,
        "product_sku": item.product_sku,
        "price": item.price,
        "quantity": item.quantity,
        "total": item.total,
    }


def get_order(order_id) -> dict:
    """The order with its items in line order. Raises ``NotFoundError``."""
    order = load_order(order_id)
    data = _summary(order)
    data["items"] = [_item(item) for item in sorted(order.items, key=lambda i: i.line_number)]
    return data


def list_orders(status=None, search=None, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
    """Newest-first page of orders, optionally filtered by status and a search term.

    ``search`` matches order number, customer name or customer email as a
    case-insensitive substring. ``page`` is at least 1 and ``limit`` is
    clamped to 1..100.
    """
    page = max(1, _to_int(page, 1))
    limit = min(MAX_PAGE_SIZE, max(1, _to_int(limit, DEFAULT_PAGE_SIZE)))

    query = current_domain.repository_for(Order)._dao.query
    if status:
        query = query.filter(status=status)
    if search and search.strip():
        term = search.strip()
        query = query.filter(
            Q(order_number__icontains=term) | Q(customer_name__icontains=term) | Q(customer_email__icontains=term)
        )

    results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()

    data = []
    for order in results.items:
        row = _summary(order)
        row["items_count"] = len(order.items)
        data.append(row)

    return {
        "data": data,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": results.total,
            "pages": math.ceil(results.total / limit) if results.total else 0,
        },
    }
