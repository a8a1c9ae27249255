"""Domain events for reviews."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class ReviewCreated(DomainEvent):
    """Raised when a customer reviews an order (``order_id``, ``restaurant_id``, ``overall``)."""
