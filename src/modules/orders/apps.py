from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            DeliveryPartnerAssigned,
            OrderCancelled,
            OrderDelivered,
            OrderPlaced,
            OrderStatusChanged,
        )
        from modules.orders.handlers import (
            delivery_partner_assigned_handler,
            order_cancelled_handler,
            order_delivered_handler,
            order_placed_handler,
            order_status_changed_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderPlaced, order_placed_handler)
        event_bus.subscribe(OrderStatusChanged, order_status_changed_handler)
        event_bus.subscribe(OrderCancelled, order_cancelled_handler)
        event_bus.subscribe(OrderDelivered, order_delivered_handler)
        event_bus.subscribe(DeliveryPartnerAssigned, delivery_partner_assigned_handler)
