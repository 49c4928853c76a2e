"""Stock contention scenario.

Many users race for one scarce product. Every accepted order withdraws stock
and a share of them are cancelled again. When the test stops the product's
stock must equal the initial stock minus units sold plus units returned, and
must never have gone below zero.
"""

import random

import requests
from locust import HttpUser, between, events, task

from loadtests.data_generators import product_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ContentionTally

HOT_PRODUCT_STOCK = 200

tally = ContentionTally()


@events.test_start.add_listener
def register_hot_product(environment, **_kwargs):
    """Register the scarce product every contention user orders."""
    if not environment.host:
        return
    response = requests.post(
        f"{environment.host}/products",
        json=product_data(stock=HOT_PRODUCT_STOCK, on_sale=False),
        timeout=10,
    )
    response.raise_for_status()
    tally.product_id = response.json()["product_id"]
    tally.initial_stock = HOT_PRODUCT_STOCK
    print(f"[CONTENTION] Hot product {tally.product_id} with {HOT_PRODUCT_STOCK} units")


@events.test_stop.add_listener
def verify_hot_product(environment, **_kwargs):
    """Compare the final stock with the tally of accepted orders and cancellations."""
    if not tally.product_id or not environment.host:
        return
    response = requests.get(f"{environment.host}/products/{tally.product_id}", timeout=10)
    stock = response.json()["stock"]
    verdict = "OK" if stock == tally.expected_stock and stock >= 0 else "MISMATCH"
    print(
        f"[CONTENTION] {verdict}: stock={stock} expected={tally.expected_stock} "
        f"accepted={tally.accepted} rejected={tally.rejected} returned={tally.units_returned}"
    )


class StockContentionUser(HttpUser):
    """Orders small quantities of the hot product as fast as possible."""

    wait_time = between(0.0, 0.2)

    @task(10)
    def order_hot_product(self):
        if not tally.product_id:
            return
        quantity = random.randint(1, 3)
        with self.client.post(
            "/orders",
            json={
                "customer_name": "Contention Tester",
                "customer_email": "contention@example.com",
                "items": [{"product_id": tally.product_id, "quantity": quantity}],
            },
            catch_response=True,
            name="POST /orders (hot product)",
        ) as resp:
            if resp.status_code == 201:
                tally.record_sale(quantity)
                if random.random() < 0.2:
                    self._cancel(resp.json()["order_id"], quantity)
            elif resp.status_code in (409, 503):
                # Sold out or lost the race after all retries
                tally.record_rejection()
                resp.success()
            else:
                resp.failure(f"Unexpected {resp.status_code} — {extract_error_detail(resp)}")

    @task(1)
    def check_stock(self):
        if not tally.product_id:
            return
        with self.client.get(
            f"/products/{tally.product_id}",
            catch_response=True,
            name="GET /products/{id}",
        ) as resp:
            if resp.status_code == 200 and resp.json()["stock"] < 0:
                resp.failure("Stock went negative")

    def _cancel(self, order_id: str, quantity: int):
        with self.client.put(
            f"/orders/{order_id}/status",
            json={"status": "cancelled"},
            catch_response=True,
            name="PUT /orders/{id}/status (cancel)",
        ) as resp:
            if resp.status_code == 200:
                tally.record_return(quantity)
            else:
                resp.failure(f"Cancel failed: {resp.status_code} — {extract_error_detail(resp)}")
