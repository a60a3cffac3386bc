"""Order placement: validate the request, reserve stock and create the order."""

import json
import secrets
from datetime import datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.directory import get_directory
from ordering.domain import ordering
from ordering.errors import NotFound
from ordering.order.order import Order
from ordering.stock.ledger import StockLedger
from ordering.utils.logging import get_logger
from ordering.utils.settings import get_settings

logger = get_logger(__name__)

_PICKUP_CODE_ATTEMPTS = 10


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of {"menu_item_id", "quantity"}
    payment_method = String(required=True, max_length=50)
    placed_at = DateTime(required=True)


def reservation_date(placed_at: datetime):
    """The ledger date an order placed at ``placed_at`` reserves against, in the business timezone."""
    return placed_at.astimezone(get_settings().timezone).date()


def pickup_time_for(vendor, placed_at: datetime) -> datetime:
    """Vendor closing time on the reservation date, or the default pickup time."""
    settings = get_settings()
    closing = vendor.closing_time or settings.default_pickup_time
    return datetime.combine(reservation_date(placed_at), closing, tzinfo=settings.timezone)


def _parse_lines(raw):
    try:
        lines = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError({"lines": ["Order lines are malformed"]}) from None

    if not isinstance(lines, list) or not lines:
        raise ValidationError({"lines": ["Order must contain at least one item"]})

    parsed = []
    for line in lines:
        if not isinstance(line, dict) or not line.get("menu_item_id"):
            raise ValidationError({"lines": ["Each item needs a menu_item_id"]})
        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                {"quantity": [f"Quantity must be greater than zero for menu item {line['menu_item_id']}"]}
            )
        parsed.append((str(line["menu_item_id"]), quantity))
    return parsed


def _unique_pickup_code(repo) -> str:
    for _ in range(_PICKUP_CODE_ATTEMPTS):
        code = f"ORD-{secrets.randbelow(100000):05d}"
        if repo.find_by_pickup_code(code) is None:
            return code
    # Five-digit space is crowded; fall back to a longer code
    return f"ORD-{secrets.token_hex(4).upper()}"


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = _parse_lines(command.lines)
        payment_method = (command.payment_method or "").strip().upper()
        if not payment_method:
            raise ValidationError({"payment_method": ["Payment method is required"]})

        directory = get_directory()
        user = directory.get_user(command.user_id)
        if user is None:
            raise NotFound({"user_id": [f"User {command.user_id} not found"]})
        vendor = directory.get_vendor(command.vendor_id)
        if vendor is None:
            raise NotFound({"vendor_id": [f"Vendor {command.vendor_id} not found"]})

        lines_data = []
        for menu_item_id, quantity in lines:
            item = directory.get_menu_item(menu_item_id)
            if item is None:
                raise NotFound({"menu_item_id": [f"Menu item {menu_item_id} not found"]})
            if str(item.vendor_id) != str(vendor.vendor_id):
                raise ValidationError(
                    {"menu_item_id": [f"Menu item {menu_item_id} is not sold by vendor {vendor.vendor_id}"]}
                )
            lines_data.append(
                {
                    "menu_item_id": menu_item_id,
                    "item_name": item.name,
                    "quantity": quantity,
                    "price_label": item.price,
                }
            )

        pickup_time = pickup_time_for(vendor, command.placed_at)
        StockLedger().reserve_all(lines, pickup_time.date())

        repo = current_domain.repository_for(Order)
        order = Order.place(
            user_id=command.user_id,
            user_name=user.full_name,
            vendor_id=command.vendor_id,
            vendor_name=vendor.name,
            lines_data=lines_data,
            payment_method=payment_method,
            pickup_code=_unique_pickup_code(repo),
            pickup_time=pickup_time,
            placed_at=command.placed_at,
        )
        repo.add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            user_id=str(order.user_id),
            vendor_id=str(order.vendor_id),
            lines=len(lines_data),
            pickup_date=order.pickup_date.isoformat(),
        )
        return str(order.id)
