"""Delivery partner DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AvailabilityDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_online: bool


class DeliveryPartnerStatsDTO(BaseModel):
    """Counters and ratings of one partner (camelCase on the wire)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_orders: int
    completed_orders: int
    cancelled_orders: int
    completion_rate: int
    average_rating: Decimal
    total_ratings: int
    average_delivery_time: int
    is_online: bool
    current_order_id: Optional[str] = None
    joining_date: datetime
