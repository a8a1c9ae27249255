"""Event handlers for Orders domain events.

Notification delivery is handled outside this service; the handlers record
what would be sent.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    DeliveryPartnerAssigned,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info(
            "order.notify_restaurant",
            order_id=str(event.aggregate_id),
            order_number=event.data.get("order_number"),
            restaurant_id=event.data.get("restaurant_id"),
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.notify_customer",
            order_id=str(event.aggregate_id),
            old_status=event.data.get("old_status"),
            new_status=event.data.get("new_status"),
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.refund_requested",
            order_id=str(event.aggregate_id),
            cancelled_by=event.data.get("cancelled_by"),
            refund_amount=event.data.get("refund_amount"),
        )


class OrderDeliveredHandler(IEventHandler[OrderDelivered]):
    def handle(self, event: OrderDelivered) -> None:
        logger.info("order.request_review", order_id=str(event.aggregate_id))


class DeliveryPartnerAssignedHandler(IEventHandler[DeliveryPartnerAssigned]):
    def handle(self, event: DeliveryPartnerAssigned) -> None:
        logger.info(
            "order.notify_delivery_partner",
            order_id=str(event.aggregate_id),
            delivery_partner_id=event.data.get("delivery_partner_id"),
        )


order_placed_handler = OrderPlacedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_delivered_handler = OrderDeliveredHandler()
delivery_partner_assigned_handler = DeliveryPartnerAssignedHandler()
