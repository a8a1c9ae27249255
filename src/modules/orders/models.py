"""Order, OrderItem and OrderTimelineEntry models.

Business rules implemented:
- ``order_number`` is human-readable, generated once and never changed
  (``FR-YYYYMMDDHHMMSS-XXXXXX``, uniqueness re-checked and indexed).
- OrderItem stores name/price/variant/add-on/customization **snapshots**;
  they are never re-read from the catalog.
- The pricing block is written once at creation; ``total`` equals the sum
  of its components.
- ``order_status`` only changes through the state machine; every change
  appends an ``OrderTimelineEntry`` (append-only).
- Cancellation and rating fields are populated only for cancelled and
  delivered orders respectively.
- Orders are never deleted (cancellation is a status).
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_NUMBER_PREFIX,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    CancellationReason,
    OrderStatus,
    Party,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def _money(**kwargs: Any) -> models.DecimalField:
    options = {
        "max_digits": 10,
        "decimal_places": 2,
        "default": Decimal("0.00"),
        "validators": [MinValueValidator(Decimal("0.00"))],
    }
    options.update(kwargs)
    return models.DecimalField(**options)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root."""

    order_number = models.CharField(max_length=30, unique=True, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    restaurant = models.ForeignKey(
        "catalog.Restaurant",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    delivery_partner = models.ForeignKey(
        "delivery.DeliveryPartner",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    delivery_address = models.ForeignKey(
        "customers.Address",
        on_delete=models.PROTECT,
        related_name="orders",
    )

    # Status
    order_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)

    # Pricing
    subtotal = _money()
    delivery_fee = _money()
    cgst = _money()
    sgst = _money()
    igst = _money()
    discount_amount = _money()
    coupon_code = models.CharField(max_length=30, blank=True, default="")
    platform_fee = _money()
    packaging_fee = _money()
    total = _money()

    special_instructions = models.CharField(max_length=500, blank=True, default="")
    estimated_delivery_time = models.DateTimeField(null=True, blank=True)
    actual_delivery_time = models.DateTimeField(null=True, blank=True)

    # Delivery OTP (cleared on delivery)
    otp_code = models.CharField(max_length=8, null=True, blank=True)  # noqa: DJ01
    otp_expires_at = models.DateTimeField(null=True, blank=True)

    # Cancellation
    cancellation_reason = models.CharField(
        max_length=30, choices=CancellationReason.choices, blank=True, default=""
    )
    cancellation_note = models.CharField(max_length=500, blank=True, default="")
    cancelled_by = models.CharField(
        max_length=20, choices=Party.choices, blank=True, default=""
    )
    refund_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    refund_status = models.CharField(
        max_length=20, choices=RefundStatus.choices, blank=True, default=""
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)

    # Rating (attached when the order is reviewed)
    rating_food = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    rating_delivery = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    rating_overall = models.DecimalField(
        max_digits=2, decimal_places=1, null=True, blank=True
    )
    rating_comment = models.CharField(max_length=1000, blank=True, default="")
    rated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order_status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["customer", "-created_at"], name="orders_customer_idx"
            ),
            models.Index(
                fields=["restaurant", "-created_at"], name="orders_restaurant_idx"
            ),
            models.Index(fields=["delivery_partner"], name="orders_partner_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.order_status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.order_status, set())

    @property
    def has_otp(self) -> bool:
        return bool(self.otp_code)

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``FR-YYYYMMDDHHMMSS-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d%H%M%S}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.order_status})"


class OrderItem(BaseModel):
    """Priced order line.

    ``variant`` is ``{"name", "price"}``, ``add_ons`` is
    ``[{"name", "price"}]`` and ``customizations`` is
    ``[{"name", "selected_options": [{"name", "price_modifier"}]}]``, all
    with prices as decimal strings.  ``item_total`` may be negative when
    option modifiers are discounts.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    menu_item = models.ForeignKey(
        "catalog.MenuItem",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    name = models.CharField(max_length=100)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    variant = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    add_ons = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    customizations = models.JSONField(
        default=list, blank=True, encoder=DjangoJSONEncoder
    )
    special_instructions = models.CharField(max_length=200, blank=True, default="")
    item_total = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity} ({self.item_total})"


class OrderTimelineEntry(BaseModel):
    """Append-only record of an order status change.

    ``status`` uses the timeline vocabulary (``order_placed``,
    ``order_confirmed``, ...); statuses without a mapping are stored
    verbatim, so the column is not restricted to choices.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="timeline",
    )
    status = models.CharField(max_length=30)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "order_timeline"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="order_timeline_order_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.status}"
