"""Integration tests for the product catalog endpoints."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from ordering.api import product_router, register_exception_handlers
from ordering.domain import ordering


@pytest.fixture()
def client():
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with ordering.domain_context():
            return await call_next(request)

    app.include_router(product_router)
    register_exception_handlers(app)
    return TestClient(app)


def _register(client, **overrides):
    body = {"name": "Widget", "sku": "SKU-001", "price": 20.0, "stock": 4}
    body.update(overrides)
    return client.post("/products", json=body)


class TestProductAPI:
    def test_register_and_read(self, client):
        product_id = _register(client, sale_price=15.0).json()["product_id"]

        data = client.get(f"/products/{product_id}").json()
        assert data["name"] == "Widget"
        assert data["unit_price"] == 15.0
        assert data["stock"] == 4
        assert data["status"] == "active"

    def test_duplicate_sku_returns_400(self, client):
        _register(client)
        response = _register(client)
        assert response.status_code == 400
        assert "sku" in response.json()["error"]

    def test_restock(self, client):
        product_id = _register(client).json()["product_id"]
        response = client.post(f"/products/{product_id}/restock", json={"quantity": 6})
        assert response.status_code == 200
        assert response.json() == {"product_id": product_id, "stock": 10}

    def test_restock_needs_positive_quantity(self, client):
        product_id = _register(client).json()["product_id"]
        assert client.post(f"/products/{product_id}/restock", json={"quantity": 0}).status_code == 400

    def test_pricing_and_availability(self, client):
        product_id = _register(client).json()["product_id"]

        assert client.put(f"/products/{product_id}/pricing", json={"price": 30.0}).status_code == 200
        assert client.put(f"/products/{product_id}/deactivate").status_code == 200
        data = client.get(f"/products/{product_id}").json()
        assert data["price"] == 30.0
        assert data["status"] == "inactive"

        assert client.put(f"/products/{product_id}/activate").status_code == 200

    def test_unknown_product_returns_404(self, client):
        assert client.get("/products/missing").status_code == 404
        assert client.post("/products/missing/restock", json={"quantity": 1}).status_code == 404
