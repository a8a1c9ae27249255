"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  They are the
contracts between the API layer (DRF serializers) and the services, and
are immutable (``frozen=True``).

- ``CartLineDTO`` / ``CustomizationSelectionDTO``: one requested menu item.
- ``CreateOrderDTO``: order placement request.
- ``ChangeStatusDTO`` / ``CancelOrderDTO``: lifecycle commands.
- ``StatsWindowDTO``: date range for order statistics.
- ``OrderStatsDTO``: statistics output (camelCase on the wire).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from modules.orders.constants import CancellationReason, OrderStatus, PaymentMethod

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CustomizationSelectionDTO(BaseModel):
    """Options chosen for one customization group, by name.

    Prices are never taken from the request: option modifiers are looked
    up in the catalog.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    selected_options: List[str] = Field(default_factory=list)

    @field_validator("selected_options")
    @classmethod
    def no_repeated_options(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            raise ValueError("An option can only be selected once.")
        return v


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    menu_item_id: UUID
    quantity: int
    variant: Optional[str] = None
    add_ons: List[str] = Field(default_factory=list)
    customizations: List[CustomizationSelectionDTO] = Field(default_factory=list)
    special_instructions: str = Field(default="", max_length=200)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order placement.

    Validates:
    - ``items`` must contain at least one line.
    - ``payment_method`` must be one of the recorded methods.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: int
    restaurant_id: UUID
    delivery_address_id: UUID
    payment_method: PaymentMethod
    items: List[CartLineDTO]
    special_instructions: str = Field(default="", max_length=500)

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[CartLineDTO]) -> List[CartLineDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


class ChangeStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    reason: Optional[str] = Field(default=None, max_length=500)
    reason_code: Optional[CancellationReason] = None
    otp: Optional[str] = None


class CancelOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: Optional[str] = Field(default=None, max_length=500)
    reason_code: Optional[CancellationReason] = None


class StatsWindowDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def start_before_end(self):
        if self.start > self.end:
            raise ValueError("startDate must not be after endDate.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderStatsDTO(BaseModel):
    """Order statistics for one scope and window."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_orders: int
    completed_orders: int
    cancelled_orders: int
    completion_rate: int
    total_revenue: Decimal
    average_order_value: Decimal
    start_date: datetime
    end_date: datetime
