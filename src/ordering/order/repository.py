"""Order queries used by the lifecycle, the sweeper and the payment bridge."""

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus

_PAGE_SIZE = 500


@ordering.repository(part_of=Order)
class OrderRepository:
    def _collect(self, **filters) -> list[Order]:
        orders: list[Order] = []
        offset = 0
        while True:
            result = self._dao.query.filter(**filters).offset(offset).limit(_PAGE_SIZE).all()
            orders.extend(result.items)
            offset += _PAGE_SIZE
            if not result.items or offset >= result.total:
                return orders

    def _first(self, **filters) -> Order | None:
        orders = self._dao.query.filter(**filters).limit(1).all().items
        return orders[0] if orders else None

    def find_pending_created_before(self, cutoff) -> list[Order]:
        """Unpaid orders reserved before ``cutoff``, oldest first."""
        orders = self._collect(status=OrderStatus.PENDING_PAYMENT.value, created_at__lt=cutoff)
        return sorted(orders, key=lambda order: order.created_at)

    def find_by_user(self, user_id) -> list[Order]:
        return sorted(self._collect(user_id=str(user_id)), key=lambda order: order.created_at)

    def find_by_vendor(self, vendor_id) -> list[Order]:
        return sorted(self._collect(vendor_id=str(vendor_id)), key=lambda order: order.created_at)

    def find_by_payment_id(self, payment_id) -> Order | None:
        return self._first(payment_id=str(payment_id))

    def find_by_preference_id(self, preference_id) -> Order | None:
        return self._first(preference_id=str(preference_id))

    def find_by_pickup_code(self, pickup_code) -> Order | None:
        return self._first(pickup_code=pickup_code)
