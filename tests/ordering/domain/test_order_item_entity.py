"""Tests for the OrderItem entity — captured price, quantity and line total."""

import pytest
from ordering.order.order import OrderItem
from protean.exceptions import ValidationError


def _item(**overrides):
    defaults = {
        "line_number": 1,
        "product_id": "prod-001",
        "product_name": "Widget",
        "product_sku": "SKU-001",
        "price": 19.99,
        "quantity": 3,
        "total": 59.97,
    }
    defaults.update(overrides)
    return OrderItem(**defaults)


class TestOrderItem:
    def test_valid_item(self):
        item = _item()
        assert item.total == 59.97
        assert item.product_name == "Widget"

    def test_total_must_equal_price_times_quantity(self):
        with pytest.raises(ValidationError) as exc:
            _item(total=50.0)
        assert "total" in exc.value.messages

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _item(quantity=0, total=0.0)

    def test_price_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            _item(price=-1.0, total=-3.0)

    def test_product_id_is_required(self):
        with pytest.raises(ValidationError) as exc:
            _item(product_id=None)
        assert "product_id" in exc.value.messages

    def test_sku_is_optional(self):
        item = _item(product_sku=None)
        assert item.product_sku is None
