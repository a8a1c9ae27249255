"""Domain events for the Orders bounded context.

Event attributes travel in ``data`` so they survive the outbox round trip.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when an order is created (``order_number``, ``restaurant_id``, ``total``)."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every status change (``old_status``, ``new_status``)."""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled (``cancelled_by``, ``reason``, ``refund_amount``)."""


@dataclass(frozen=True)
class OrderDelivered(DomainEvent):
    """Raised when delivery is confirmed with the OTP."""


@dataclass(frozen=True)
class DeliveryPartnerAssigned(DomainEvent):
    """Raised when a delivery partner is attached to an order."""
