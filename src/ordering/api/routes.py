"""FastAPI routes for the Ordering domain: orders, payments, stock and maintenance."""

from datetime import date

from fastapi import APIRouter, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from protean.exceptions import ValidationError

from ordering.api.auth import user_from_header
from ordering.api.schemas import (
    ChargeOrderRequest,
    ChargeResponse,
    ConfigureStockRequest,
    CreateOrderRequest,
    OrderResponse,
    StockResponse,
    SweepResponse,
)
from ordering.directory import get_directory
from ordering.errors import Forbidden, StockNotConfigured
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.sweeper import ExpirationSweeper
from ordering.payment.bridge import PaymentBridge
from ordering.stock.configuration import configure_stock
from ordering.stock.ledger import StockLedger
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

lifecycle = OrderLifecycle()
bridge = PaymentBridge(lifecycle)


def _requesting_vendor(authorization: str | None) -> str | None:
    """Vendor on whose behalf a fulfillment call is made; None for internal callers."""
    user_id = user_from_header(authorization)
    if user_id is None:
        return None
    vendor_id = get_directory().vendor_for_user(user_id)
    if vendor_id is None:
        raise Forbidden({"order": ["Only vendor accounts can update order fulfillment"]})
    return vendor_id


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError({"stock_date": [f"Invalid date format: {value}. Expected YYYY-MM-DD"]}) from None


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest) -> OrderResponse:
    snapshot = lifecycle.create_order(
        user_id=body.user_id,
        vendor_id=body.vendor_id,
        lines=[item.model_dump() for item in body.items],
        payment_method=body.payment_method,
    )
    return OrderResponse(**snapshot)


@order_router.get("/user/{user_id}", response_model=list[OrderResponse])
async def list_user_orders(user_id: str) -> list[OrderResponse]:
    return [OrderResponse(**snapshot) for snapshot in lifecycle.orders_for_user(user_id)]


@order_router.get("/vendor/{vendor_id}", response_model=list[OrderResponse])
async def list_vendor_orders(vendor_id: str, authorization: str | None = Header(default=None)) -> list[OrderResponse]:
    user_id = user_from_header(authorization)
    if user_id is not None and not get_directory().can_manage_vendor(user_id, vendor_id):
        raise Forbidden({"vendor_id": ["You do not have access to this vendor's orders"]})
    return [OrderResponse(**snapshot) for snapshot in lifecycle.orders_for_vendor(vendor_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return OrderResponse(**lifecycle.get_order(order_id))


@order_router.post("/{order_id}/pay", response_model=OrderResponse)
async def pay_order(order_id: str) -> OrderResponse:
    return OrderResponse(**lifecycle.pay_order(order_id))


@order_router.post("/{order_id}/ready", response_model=OrderResponse)
async def mark_order_ready(order_id: str, authorization: str | None = Header(default=None)) -> OrderResponse:
    snapshot = lifecycle.mark_ready(order_id, requesting_vendor_id=_requesting_vendor(authorization))
    return OrderResponse(**snapshot)


@order_router.post("/{order_id}/complete", response_model=OrderResponse)
async def complete_order(order_id: str, authorization: str | None = Header(default=None)) -> OrderResponse:
    snapshot = lifecycle.mark_completed(order_id, requesting_vendor_id=_requesting_vendor(authorization))
    return OrderResponse(**snapshot)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, authorization: str | None = Header(default=None)) -> OrderResponse:
    user_id = user_from_header(authorization, required=True)
    return OrderResponse(**lifecycle.cancel(order_id, requesting_user_id=user_id))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/orders/{order_id}/charge", response_model=ChargeResponse)
def charge_order(order_id: str, body: ChargeOrderRequest) -> ChargeResponse:
    outcome = bridge.charge_order(order_id, token=body.token, payer_email=body.payer_email)
    return ChargeResponse(**outcome)


def _notification_ids(body, query) -> tuple[str | None, str | None, str | None]:
    """Pull payment id, preference id and notification type from a webhook delivery.

    Providers send ``{"type": "payment", "data": {"id": ...}}`` in the body,
    but older integrations post ``data_id``/``preference_id`` fields or query
    parameters instead.
    """
    payment_id = preference_id = None
    notification_type = query.get("type")
    if isinstance(body, dict):
        data = body.get("data")
        if isinstance(data, dict) and data.get("id") is not None:
            payment_id = str(data["id"])
        if body.get("data_id") is not None:
            payment_id = str(body["data_id"])
        if body.get("preference_id") is not None:
            preference_id = str(body["preference_id"])
        if body.get("type") is not None:
            notification_type = body["type"]

    payment_id = payment_id or query.get("data_id")
    preference_id = preference_id or query.get("preference_id")
    return payment_id, preference_id, notification_type


@payment_router.post("/webhook", response_class=PlainTextResponse)
async def payment_webhook(request: Request) -> PlainTextResponse:
    try:
        body = await request.json()
    except ValueError:
        body = None

    payment_id, preference_id, notification_type = _notification_ids(body, request.query_params)
    if payment_id and notification_type in (None, "payment"):
        await run_in_threadpool(bridge.handle_notification, payment_id=payment_id, preference_id=preference_id)
    else:
        logger.info("payment_webhook_skipped", notification_type=notification_type, payment_id=payment_id)

    return PlainTextResponse("OK")


# ---------------------------------------------------------------------------
# Stock Router
# ---------------------------------------------------------------------------
stock_router = APIRouter(prefix="/stock", tags=["stock"])


@stock_router.put("/{menu_item_id}/{stock_date}", response_model=StockResponse)
async def put_stock(menu_item_id: str, stock_date: str, body: ConfigureStockRequest) -> StockResponse:
    result = configure_stock(
        menu_item_id=menu_item_id,
        stock_date=_parse_date(stock_date),
        stock=body.stock,
        is_available=body.is_available,
    )
    return StockResponse(**result)


@stock_router.get("/{menu_item_id}/{stock_date}", response_model=StockResponse)
async def get_stock(menu_item_id: str, stock_date: str) -> StockResponse:
    day = _parse_date(stock_date)
    entry = StockLedger().find(menu_item_id, day)
    if entry is None:
        raise StockNotConfigured(menu_item_id, day)
    return StockResponse(
        stock_entry_id=str(entry.id),
        menu_item_id=str(entry.menu_item_id),
        stock_date=entry.stock_date.isoformat(),
        remaining_units=entry.remaining_units,
        is_available=entry.is_available,
    )


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/expire-pending-orders", response_model=SweepResponse)
async def expire_pending_orders() -> SweepResponse:
    cancelled = ExpirationSweeper(lifecycle=lifecycle).run_once()
    return SweepResponse(cancelled=cancelled)
