"""FastAPI routes for the Ordering domain — orders and the product catalog."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from ordering.api.auth import current_principal
from ordering.api.schemas import (
    CreateOrderRequest,
    MessageResponse,
    OrderCreatedResponse,
    OrderListResponse,
    OrderResponse,
    ProductIdResponse,
    ProductResponse,
    RegisterProductRequest,
    RestockProductRequest,
    StockLevelResponse,
    UpdateOrderStatusRequest,
    UpdateProductPricingRequest,
)
from ordering.catalog.lookup import CatalogLookup
from ordering.catalog.management import (
    ActivateProduct,
    DeactivateProduct,
    RegisterProduct,
    RestockProduct,
    UpdateProductPricing,
)
from ordering.errors import NotFoundError
from ordering.order.creation import place_order
from ordering.order.lifecycle import delete_order, update_order_status
from ordering.order.queries import get_order, list_orders

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderCreatedResponse)
async def create_order(
    body: CreateOrderRequest,
    principal: str | None = Depends(current_principal),
) -> OrderCreatedResponse:
    result = place_order(
        customer_id=body.customer_id,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        customer_phone=body.customer_phone,
        items=[item.model_dump() for item in body.items],
        tax_amount=body.tax_amount,
        shipping_amount=body.shipping_amount,
        payment_method=body.payment_method,
        shipping_address=body.shipping_address,
        billing_address=body.billing_address,
        notes=body.notes,
        status=body.status,
        placed_by=principal,
    )
    return OrderCreatedResponse(order_id=result["order_id"], order_number=result["order_number"])


@order_router.get("", response_model=OrderListResponse)
async def get_orders(
    status: str | None = None,
    search: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> OrderListResponse:
    return OrderListResponse(**list_orders(status=status, search=search, page=page or 1, limit=limit or 10))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str) -> OrderResponse:
    return OrderResponse(**get_order(order_id))


@order_router.put("/{order_id}/status", response_model=MessageResponse)
async def change_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    principal: str | None = Depends(current_principal),
) -> MessageResponse:
    update_order_status(order_id, body.status, changed_by=principal)
    return MessageResponse(message="Order status updated successfully")


@order_router.delete("/{order_id}", response_model=MessageResponse)
async def remove_order(
    order_id: str,
    principal: str | None = Depends(current_principal),
) -> MessageResponse:
    delete_order(order_id, deleted_by=principal)
    return MessageResponse(message="Order deleted successfully")


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def register_product(body: RegisterProductRequest) -> ProductIdResponse:
    command = RegisterProduct(
        name=body.name,
        sku=body.sku,
        price=body.price,
        sale_price=body.sale_price,
        stock=body.stock,
        status=body.status,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    snapshot = CatalogLookup().find(product_id)
    if snapshot is None:
        raise NotFoundError(f"Product not found: {product_id}")
    return ProductResponse(
        id=snapshot.id,
        name=snapshot.name,
        sku=snapshot.sku,
        price=snapshot.price,
        sale_price=snapshot.sale_price,
        unit_price=snapshot.unit_price,
        stock=snapshot.stock,
        status=snapshot.status,
    )


@product_router.post("/{product_id}/restock", response_model=StockLevelResponse)
async def restock_product(product_id: str, body: RestockProductRequest) -> StockLevelResponse:
    command = RestockProduct(product_id=product_id, quantity=body.quantity)
    stock = current_domain.process(command, asynchronous=False)
    return StockLevelResponse(product_id=product_id, stock=stock)


@product_router.put("/{product_id}/pricing", response_model=MessageResponse)
async def update_product_pricing(product_id: str, body: UpdateProductPricingRequest) -> MessageResponse:
    command = UpdateProductPricing(product_id=product_id, price=body.price, sale_price=body.sale_price)
    current_domain.process(command, asynchronous=False)
    return MessageResponse(message="Product pricing updated")


@product_router.put("/{product_id}/activate", response_model=MessageResponse)
async def activate_product(product_id: str) -> MessageResponse:
    current_domain.process(ActivateProduct(product_id=product_id), asynchronous=False)
    return MessageResponse(message="Product activated")


@product_router.put("/{product_id}/deactivate", response_model=MessageResponse)
async def deactivate_product(product_id: str) -> MessageResponse:
    current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
    return MessageResponse(message="Product deactivated")
