"""Pydantic request/response schemas for the Ordering API.

These are external contracts, separate from the internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class CreateOrderRequest(BaseModel):
    customer_id: str | None = None
    customer_name: str = Field(min_length=1, max_length=255)
    customer_email: str = Field(min_length=1, max_length=255)
    customer_phone: str | None = None
    items: list[OrderLineSchema] = Field(min_length=1)
    tax_amount: float = Field(default=0.0, ge=0)
    shipping_amount: float = Field(default=0.0, ge=0)
    payment_method: str | None = None
    shipping_address: str | None = None
    billing_address: str | None = None
    notes: str | None = None
    status: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_name": "Ada Lovelace",
                    "customer_email": "ada@example.com",
                    "items": [{"product_id": "prod-001", "quantity": 2}],
                    "tax_amount": 1.5,
                    "shipping_amount": 4.99,
                    "payment_method": "card",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderCreatedResponse(BaseModel):
    message: str = "Order created successfully"
    order_id: str
    order_number: str


class MessageResponse(BaseModel):
    message: str


class OrderItemResponse(BaseModel):
    id: str
    line_number: int
    product_id: str
    product_name: str
    product_sku: str | None = None
    price: float
    quantity: int
    total: float


class OrderSummaryResponse(BaseModel):
    id: str
    order_number: str
    customer_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    status: str
    subtotal: float
    tax_amount: float
    shipping_amount: float
    total_amount: float
    payment_method: str | None = None
    shipping_address: str | None = None
    billing_address: str | None = None
    notes: str | None = None
    stock_restored: bool = False
    created_at: str | None = None
    updated_at: str | None = None


class OrderListRow(OrderSummaryResponse):
    items_count: int


class OrderResponse(OrderSummaryResponse):
    items: list[OrderItemResponse]


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListResponse(BaseModel):
    data: list[OrderListRow]
    pagination: PaginationSchema


# ---------------------------------------------------------------------------
# Product Schemas
# ---------------------------------------------------------------------------
class RegisterProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    sku: str = Field(min_length=1, max_length=50)
    price: float = Field(ge=0)
    sale_price: float | None = Field(default=None, ge=0)
    stock: int = Field(default=0, ge=0)
    status: str | None = None


class RestockProductRequest(BaseModel):
    quantity: int = Field(ge=1)


class UpdateProductPricingRequest(BaseModel):
    price: float = Field(ge=0)
    sale_price: float | None = Field(default=None, ge=0)


class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    id: str
    name: str
    sku: str
    price: float
    sale_price: float | None = None
    unit_price: float
    stock: int
    status: str


class StockLevelResponse(BaseModel):
    product_id: str
    stock: int
