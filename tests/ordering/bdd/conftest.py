"""Shared BDD fixtures and step definitions for order placement and lifecycle."""

import pytest
from ordering.catalog.lookup import CatalogLookup
from ordering.catalog.management import RegisterProduct
from ordering.errors import InsufficientStockError, NotFoundError, TransactionError
from ordering.order.creation import place_order
from ordering.order.lifecycle import delete_order, update_order_status
from ordering.order.queries import get_order
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

_ERROR_CLASSES = {
    "ValidationError": ValidationError,
    "NotFoundError": NotFoundError,
    "InsufficientStockError": InsufficientStockError,
    "TransactionError": TransactionError,
}


# ---------------------------------------------------------------------------
# Scenario state
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalog():
    """Product name -> product id."""
    return {}


@pytest.fixture()
def outcome():
    """Result of the last action: the returned value or the raised error."""
    return {"result": None, "error": None}


def _attempt(outcome, action, *args, **kwargs):
    outcome["result"], outcome["error"] = None, None
    try:
        outcome["result"] = action(*args, **kwargs)
    except (ValidationError, NotFoundError, TransactionError) as exc:
        outcome["error"] = exc
    return outcome


def _stock(product_id):
    return CatalogLookup().find(product_id).stock


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:f} with {stock:d} in stock'))
def _(catalog, name, price, stock):
    command = RegisterProduct(name=name, sku=f"SKU-{name.upper()}", price=price, stock=stock)
    catalog[name] = current_domain.process(command, asynchronous=False)


@given(parsers.cfparse('a product "{name}" priced {price:f} on sale for {sale_price:f} with {stock:d} in stock'))
def _(catalog, name, price, sale_price, stock):
    command = RegisterProduct(name=name, sku=f"SKU-{name.upper()}", price=price, sale_price=sale_price, stock=stock)
    catalog[name] = current_domain.process(command, asynchronous=False)


@given(parsers.cfparse('an order for {quantity:d} "{name}"'), target_fixture="order_id")
def _(catalog, name, quantity):
    result = place_order(
        customer_name="Ada Lovelace",
        customer_email="ada@example.com",
        items=[{"product_id": catalog[name], "quantity": quantity}],
    )
    return result["order_id"]


@given(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    update_order_status(order_id, status)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.re(r'the customer orders (?P<quantity>\d+) "(?P<name>[^"]+)"$'), converters={"quantity": int})
def _(catalog, outcome, name, quantity):
    _attempt(
        outcome,
        place_order,
        customer_name="Ada Lovelace",
        customer_email="ada@example.com",
        items=[{"product_id": catalog.get(name, name), "quantity": quantity}],
    )


@when(
    parsers.re(
        r'the customer orders (?P<first_quantity>\d+) "(?P<first>[^"]+)" and (?P<second_quantity>\d+) "(?P<second>[^"]+)"$',
    ),
    converters={"first_quantity": int, "second_quantity": int},
)
def _(catalog, outcome, first, first_quantity, second, second_quantity):
    _attempt(
        outcome,
        place_order,
        customer_name="Ada Lovelace",
        customer_email="ada@example.com",
        items=[
            {"product_id": catalog[first], "quantity": first_quantity},
            {"product_id": catalog[second], "quantity": second_quantity},
        ],
    )


@when(parsers.cfparse('the order status is changed to "{status}"'))
def _(order_id, outcome, status):
    _attempt(outcome, update_order_status, order_id, status)


@when("the order is deleted")
def _(order_id, outcome):
    _attempt(outcome, delete_order, order_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(catalog, name, stock):
    assert _stock(catalog[name]) == stock


@then("the order is placed")
def _(outcome):
    assert outcome["error"] is None
    assert outcome["result"]["order_number"]


@then(parsers.cfparse("the order subtotal is {subtotal:f}"))
def _(outcome, subtotal):
    assert get_order(outcome["result"]["order_id"])["subtotal"] == subtotal


@then(parsers.cfparse('the action fails with {error_name}'))
def _(outcome, error_name):
    assert isinstance(outcome["error"], _ERROR_CLASSES[error_name])


@then(parsers.cfparse('the order status is now "{status}"'))
def _(order_id, status):
    assert get_order(order_id)["status"] == status


@then("the order no longer exists")
def _(order_id):
    with pytest.raises(NotFoundError):
        get_order(order_id)
