"""Order domain constants.

Status vocabularies and the order state machine's transition table.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PREPARING = "preparing", "Preparing"
    READY_FOR_PICKUP = "ready_for_pickup", "Ready for pickup"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for delivery"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on delivery"
    CARD = "card", "Card"
    UPI = "upi", "UPI"
    WALLET = "wallet", "Wallet"
    NET_BANKING = "net_banking", "Net banking"


class TimelineStatus(models.TextChoices):
    ORDER_PLACED = "order_placed", "Order placed"
    PAYMENT_CONFIRMED = "payment_confirmed", "Payment confirmed"
    ORDER_CONFIRMED = "order_confirmed", "Order confirmed"
    PREPARING = "preparing", "Preparing"
    READY_FOR_PICKUP = "ready_for_pickup", "Ready for pickup"
    PICKED_UP = "picked_up", "Picked up"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for delivery"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class CancellationReason(models.TextChoices):
    CUSTOMER_REQUEST = "customer_request", "Customer request"
    RESTAURANT_UNAVAILABLE = "restaurant_unavailable", "Restaurant unavailable"
    ITEM_UNAVAILABLE = "item_unavailable", "Item unavailable"
    PAYMENT_FAILED = "payment_failed", "Payment failed"
    DELIVERY_PARTNER_UNAVAILABLE = (
        "delivery_partner_unavailable",
        "Delivery partner unavailable",
    )
    WEATHER_CONDITIONS = "weather_conditions", "Weather conditions"
    OTHER = "other", "Other"


class Party(models.TextChoices):
    """Who acted on an order (recorded as ``cancelled_by``)."""

    CUSTOMER = "customer", "Customer"
    RESTAURANT = "restaurant", "Restaurant"
    DELIVERY_PARTNER = "delivery_partner", "Delivery partner"
    ADMIN = "admin", "Admin"
    SYSTEM = "system", "System"


class RefundStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED},
    OrderStatus.READY_FOR_PICKUP: {
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    },
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
}

CUSTOMER_CANCELLABLE_STATES: set[str] = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
}

STATUS_TIMELINE_MAP: dict[str, str] = {
    OrderStatus.PENDING: TimelineStatus.ORDER_PLACED,
    OrderStatus.CONFIRMED: TimelineStatus.ORDER_CONFIRMED,
    OrderStatus.PREPARING: TimelineStatus.PREPARING,
    OrderStatus.READY_FOR_PICKUP: TimelineStatus.READY_FOR_PICKUP,
    OrderStatus.OUT_FOR_DELIVERY: TimelineStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED: TimelineStatus.DELIVERED,
    OrderStatus.CANCELLED: TimelineStatus.CANCELLED,
}

DEFAULT_CANCELLATION_REASON: dict[str, str] = {
    Party.CUSTOMER: CancellationReason.CUSTOMER_REQUEST,
    Party.RESTAURANT: CancellationReason.RESTAURANT_UNAVAILABLE,
    Party.DELIVERY_PARTNER: CancellationReason.DELIVERY_PARTNER_UNAVAILABLE,
    Party.ADMIN: CancellationReason.OTHER,
    Party.SYSTEM: CancellationReason.OTHER,
}

ORDER_NUMBER_PREFIX = "FR"
ORDER_NUMBER_MAX_RETRIES = 5

AVAILABLE_ORDERS_LIMIT = 20
