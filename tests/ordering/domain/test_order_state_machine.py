"""Tests for Order state machine — valid transitions and invalid transition guards."""

import json

import pytest
from ordering.order.events import OrderCancelled, OrderStatusChanged
from ordering.order.order import Order, OrderStatus
from ordering.order.validation import PricedLine
from protean.exceptions import ValidationError


def _make_order(status=None):
    order = Order.place(
        order_number="ORD202401150001",
        customer_name="Ada Lovelace",
        customer_email="ada@example.com",
        lines=[
            PricedLine(
                line_number=1,
                product_id="prod-001",
                product_name="Widget",
                product_sku="SKU-001",
                price=50.0,
                quantity=1,
                total=50.0,
            )
        ],
        subtotal=50.0,
    )
    if status is not None and status != OrderStatus.PENDING:
        order.change_status(status.value)
    order._events.clear()
    return order


ALLOWED = [
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PENDING, OrderStatus.SHIPPED),
    (OrderStatus.PENDING, OrderStatus.DELIVERED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.DELIVERED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
]

FORBIDDEN = [
    (OrderStatus.PROCESSING, OrderStatus.PENDING),
    (OrderStatus.SHIPPED, OrderStatus.PENDING),
    (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
    (OrderStatus.DELIVERED, OrderStatus.PENDING),
    (OrderStatus.DELIVERED, OrderStatus.PROCESSING),
    (OrderStatus.DELIVERED, OrderStatus.SHIPPED),
    (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
    (OrderStatus.CANCELLED, OrderStatus.PENDING),
    (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
    (OrderStatus.CANCELLED, OrderStatus.SHIPPED),
    (OrderStatus.CANCELLED, OrderStatus.DELIVERED),
]


class TestAllowedTransitions:
    @pytest.mark.parametrize(("source", "target"), ALLOWED)
    def test_transition(self, source, target):
        order = _make_order(source)
        assert order.change_status(target.value) is True
        assert order.status == target.value

    def test_transition_raises_status_changed_event(self):
        order = _make_order()
        order.change_status("processing", changed_by="clerk-1")

        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "pending"
        assert event.new_status == "processing"
        assert event.changed_by == "clerk-1"

    def test_transition_touches_updated_at(self):
        order = _make_order()
        before = order.updated_at
        order.change_status("processing")
        assert order.updated_at >= before


class TestForbiddenTransitions:
    @pytest.mark.parametrize(("source", "target"), FORBIDDEN)
    def test_transition_is_rejected(self, source, target):
        order = _make_order(source)
        with pytest.raises(ValidationError) as exc:
            order.change_status(target.value)
        assert "Cannot change order status" in exc.value.messages["status"][0]
        assert order.status == source.value
        assert order._events == []

    def test_unknown_status_is_rejected(self):
        order = _make_order()
        with pytest.raises(ValidationError) as exc:
            order.change_status("returned")
        assert "Invalid status: returned" in exc.value.messages["status"][0]


class TestSameStatusAcknowledgement:
    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_same_status_is_a_no_op(self, status):
        order = _make_order(status)
        assert order.change_status(status.value) is False
        assert order.status == status.value
        assert order._events == []

    def test_same_status_touches_updated_at(self):
        order = _make_order()
        before = order.updated_at
        order.change_status("pending")
        assert order.updated_at >= before


class TestStockRestoredMarker:
    def test_mark_stock_restored_on_cancelled_order(self):
        order = _make_order(OrderStatus.CANCELLED)
        order.mark_stock_restored({"prod-001": 1}, previous_status="pending", cancelled_by="clerk-1")

        assert order.stock_restored is True
        event = order._events[-1]
        assert isinstance(event, OrderCancelled)
        assert json.loads(event.restored_items) == {"prod-001": 1}
        assert event.previous_status == "pending"

    def test_cannot_mark_twice(self):
        order = _make_order(OrderStatus.CANCELLED)
        order.mark_stock_restored({"prod-001": 1}, previous_status="pending")
        with pytest.raises(ValidationError):
            order.mark_stock_restored({"prod-001": 1}, previous_status="pending")

    def test_only_cancelled_orders_restore_stock(self):
        order = _make_order(OrderStatus.SHIPPED)
        with pytest.raises(ValidationError):
            order.mark_stock_restored({"prod-001": 1}, previous_status="shipped")
