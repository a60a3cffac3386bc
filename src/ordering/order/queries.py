"""Read side of the lifecycle: order snapshots for users, vendors and collaborators."""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.directory import get_directory
from ordering.errors import NotFound
from ordering.order.order import Order


def _epoch_millis(value):
    return int(value.timestamp() * 1000) if value else None


def order_snapshot(order: Order) -> dict:
    try:
        total = str(order.total_amount())
    except ValidationError:
        total = None

    return {
        "id": str(order.id),
        "status": order.status,
        "pickup_time": _epoch_millis(order.pickup_time),
        "pickup_date": order.pickup_date.isoformat(),
        "user_id": str(order.user_id),
        "user_name": order.user_name,
        "vendor_id": str(order.vendor_id),
        "vendor_name": order.vendor_name,
        "pickup_code": order.pickup_code,
        "payment_method": order.payment_method,
        "payment_id": order.payment_id,
        "preference_id": order.preference_id,
        "cancellation_reason": order.cancellation_reason,
        "created_at": _epoch_millis(order.created_at),
        "total": total,
        "items": [
            {
                "id": str(line.id),
                "menu_item_id": str(line.menu_item_id),
                "name": line.item_name,
                "quantity": line.quantity,
                "price": line.price_label,
                "unit_price": line.unit_price,
            }
            for line in order.ordered_lines
        ],
    }


def get_order(order_id) -> dict:
    return order_snapshot(current_domain.repository_for(Order).get(order_id))


def orders_for_user(user_id) -> list[dict]:
    if get_directory().get_user(user_id) is None:
        raise NotFound({"user_id": [f"User {user_id} not found"]})
    return [order_snapshot(order) for order in current_domain.repository_for(Order).find_by_user(user_id)]


def orders_for_vendor(vendor_id) -> list[dict]:
    if get_directory().get_vendor(vendor_id) is None:
        raise NotFound({"vendor_id": [f"Vendor {vendor_id} not found"]})
    return [order_snapshot(order) for order in current_domain.repository_for(Order).find_by_vendor(vendor_id)]
