"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineRequest(BaseModel):
    menu_item_id: str
    quantity: int = Field(ge=1)


class CreateOrderRequest(BaseModel):
    user_id: str
    vendor_id: str
    items: list[OrderLineRequest] = Field(min_length=1)
    payment_method: str = "YAPE"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-001",
                    "vendor_id": "vendor-001",
                    "items": [{"menu_item_id": "menu-001", "quantity": 2}],
                    "payment_method": "YAPE",
                }
            ]
        }
    }


class OrderItemResponse(BaseModel):
    id: str
    menu_item_id: str
    name: str
    quantity: int
    price: str | None = None
    unit_price: str | None = None


class OrderResponse(BaseModel):
    id: str
    status: str
    pickup_time: int
    pickup_date: str
    user_id: str
    user_name: str | None = None
    vendor_id: str
    vendor_name: str | None = None
    pickup_code: str
    payment_method: str
    payment_id: str | None = None
    preference_id: str | None = None
    cancellation_reason: str | None = None
    created_at: int | None = None
    total: str | None = None
    items: list[OrderItemResponse]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class ChargeOrderRequest(BaseModel):
    token: str = Field(min_length=1)
    payer_email: str | None = None


class ChargeResponse(BaseModel):
    order_id: str
    payment_id: str | None = None
    status: str
    status_detail: str | None = None
    amount: str
    order: OrderResponse


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------
class ConfigureStockRequest(BaseModel):
    stock: int | None = Field(default=None, ge=0)
    is_available: bool | None = None


class StockResponse(BaseModel):
    stock_entry_id: str
    menu_item_id: str
    stock_date: str
    remaining_units: int
    is_available: bool


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------
class SweepResponse(BaseModel):
    cancelled: int
