"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the order validator (customer
name, well-formed email, positive integer quantities, non-negative amounts)
and match the field names of the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()


def unique_sku() -> str:
    """Generate unique SKUs like 'LT-a1b2c3d4'."""
    return f"LT-{uuid.uuid4().hex[:8]}"


def valid_email() -> str:
    """Generate emails with exactly one @ and a dotted domain."""
    local = fake.user_name()[:20]
    domain = fake.free_email_domain()
    return f"{local}.{uuid.uuid4().hex[:4]}@{domain}"


def product_data(stock: int | None = None, on_sale: bool | None = None) -> dict:
    """Generate RegisterProductRequest payload."""
    price = round(random.uniform(5.0, 250.0), 2)
    on_sale = random.random() < 0.3 if on_sale is None else on_sale
    return {
        "name": fake.catch_phrase()[:255],
        "sku": unique_sku(),
        "price": price,
        "sale_price": round(price * random.uniform(0.5, 0.95), 2) if on_sale else None,
        "stock": stock if stock is not None else random.randint(500, 2000),
    }


def order_data(product_ids: list[str], num_items: int = 2, max_quantity: int = 3) -> dict:
    """Generate CreateOrderRequest payload for the given catalog products."""
    chosen = random.sample(product_ids, k=min(num_items, len(product_ids)))
    return {
        "customer_name": fake.name(),
        "customer_email": valid_email(),
        "customer_phone": fake.phone_number()[:50],
        "items": [{"product_id": product_id, "quantity": random.randint(1, max_quantity)} for product_id in chosen],
        "tax_amount": round(random.uniform(0, 25.0), 2),
        "shipping_amount": round(random.uniform(0, 15.99), 2),
        "payment_method": random.choice(["card", "paypal", "bank_transfer", "cash_on_delivery"]),
        "shipping_address": fake.address(),
        "billing_address": fake.address(),
        "notes": fake.sentence() if random.random() < 0.2 else None,
    }


def search_term() -> str:
    """A short fragment likely to match some customer names."""
    return fake.first_name()[:3]
