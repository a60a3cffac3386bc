"""Vendor fulfillment: paid orders are prepared, then collected with their pickup code."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class MarkOrderReady:
    order_id = Identifier(required=True)
    requesting_vendor_id = Identifier()


@ordering.command(part_of="Order")
class CompleteOrder:
    order_id = Identifier(required=True)
    requesting_vendor_id = Identifier()


@ordering.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(MarkOrderReady)
    def mark_ready(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_ready(requesting_vendor_id=command.requesting_vendor_id)
        repo.add(order)
        return str(order.id)

    @handle(CompleteOrder)
    def complete(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.complete(requesting_vendor_id=command.requesting_vendor_id)
        repo.add(order)
        return str(order.id)
