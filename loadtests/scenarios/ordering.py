"""Ordering load test scenarios.

Three stateful SequentialTaskSet journeys covering the forward order
lifecycle through delivery, cancellation with stock restitution, and
deletion of a pending order, plus a browsing task set for the order list.
"""

import random

from locust import HttpUser, SequentialTaskSet, TaskSet, between, task

from loadtests.data_generators import order_data, product_data, search_term
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState


def register_products(client, count: int = 5) -> list[str]:
    """Register ``count`` well-stocked products and return their ids."""
    product_ids = []
    for _ in range(count):
        with client.post("/products", json=product_data(), catch_response=True, name="POST /products") as resp:
            if resp.status_code == 201:
                product_ids.append(resp.json()["product_id"])
            else:
                resp.failure(f"Register product failed: {resp.status_code} — {extract_error_detail(resp)}")
    return product_ids


class _OrderJourney(SequentialTaskSet):
    """Common start of every journey: place an order against the user's products."""

    def on_start(self):
        self.state = OrderState()

    def place_order(self):
        if not self.user.product_ids:
            self.interrupt()
        with self.client.post(
            "/orders",
            json=order_data(self.user.product_ids),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["order_number"]
            else:
                resp.failure(f"Create order failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def change_status(self, status: str):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json={"status": status},
            catch_response=True,
            name="PUT /orders/{id}/status",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = status
            else:
                resp.failure(f"Change to {status} failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()


class OrderFullLifecycleJourney(_OrderJourney):
    """Create Order -> Processing -> Shipped -> Delivered -> Read back."""

    @task
    def create_order(self):
        self.place_order()

    @task
    def mark_processing(self):
        self.change_status("processing")

    @task
    def mark_shipped(self):
        self.change_status("shipped")

    @task
    def mark_delivered(self):
        self.change_status("delivered")

    @task
    def read_order(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200 or resp.json()["status"] != "delivered":
                resp.failure(f"Read order failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class OrderCancellationJourney(_OrderJourney):
    """Create Order -> Cancel -> Cancel again (acknowledged, no double restitution)."""

    @task
    def create_order(self):
        self.place_order()

    @task
    def cancel(self):
        self.change_status("cancelled")

    @task
    def cancel_again(self):
        self.change_status("cancelled")

    @task
    def done(self):
        self.interrupt()


class OrderDeletionJourney(_OrderJourney):
    """Create Order -> Delete -> Delete again (404)."""

    @task
    def create_order(self):
        self.place_order()

    @task
    def delete_order(self):
        with self.client.delete(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="DELETE /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Delete failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def delete_again(self):
        with self.client.delete(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="DELETE /orders/{id} (again)",
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Second delete should be 404, got {resp.status_code}")

    @task
    def done(self):
        self.interrupt()


class OrderBrowsing(TaskSet):
    """Paginated, filtered and searched order listings."""

    @task(3)
    def list_orders(self):
        self.client.get("/orders", params={"page": random.randint(1, 5), "limit": 20}, name="GET /orders")

    @task(2)
    def list_by_status(self):
        status = random.choice(["pending", "processing", "shipped", "delivered", "cancelled"])
        self.client.get("/orders", params={"status": status}, name="GET /orders?status")

    @task(1)
    def search_orders(self):
        self.client.get("/orders", params={"search": search_term()}, name="GET /orders?search")

    @task(1)
    def stop(self):
        self.interrupt()


class OrderingUser(HttpUser):
    """Simulates store staff and customers driving orders through their lifecycle."""

    wait_time = between(0.5, 2.0)
    tasks = {
        OrderFullLifecycleJourney: 5,
        OrderCancellationJourney: 2,
        OrderDeletionJourney: 1,
        OrderBrowsing: 2,
    }

    def on_start(self):
        self.product_ids = register_products(self.client)
