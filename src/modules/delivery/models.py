"""Delivery partner profile and its derived statistics.

Onboarding (documents, vehicle, bank details) happens elsewhere; this
model keeps what order fulfilment reads and writes:

- ``is_online`` / ``is_approved`` gate order acceptance.
- ``current_order`` is the single active delivery (a partner never holds two).
- Statistics are derived: ``total_orders`` is incremented on assignment,
  the completed/cancelled counters, ``completion_rate`` and
  ``average_delivery_time`` are recomputed from the partner's orders, and the
  rating fields are written by the rating aggregator.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel


class VehicleType(models.TextChoices):
    BIKE = "bike", "Bike"
    SCOOTER = "scooter", "Scooter"
    BICYCLE = "bicycle", "Bicycle"
    CAR = "car", "Car"


class DeliveryPartner(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="delivery_partner",
    )
    vehicle_type = models.CharField(
        max_length=10, choices=VehicleType.choices, default=VehicleType.BIKE
    )
    is_online = models.BooleanField(default=False)
    is_approved = models.BooleanField(default=False)
    current_order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    total_orders = models.PositiveIntegerField(default=0)
    completed_orders = models.PositiveIntegerField(default=0)
    cancelled_orders = models.PositiveIntegerField(default=0)
    completion_rate = models.PositiveSmallIntegerField(
        default=0, validators=[MaxValueValidator(100)]
    )
    average_delivery_time = models.PositiveIntegerField(
        default=0, help_text="Minutes from order placement to delivery."
    )
    rating_average = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal("0.0")
    )
    rating_count = models.PositiveIntegerField(default=0)
    last_active_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "delivery_partners"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_online"], name="dp_online_idx"),
            models.Index(fields=["is_approved"], name="dp_approved_idx"),
        ]

    def __str__(self) -> str:
        return f"DeliveryPartner {self.user_id} ({'online' if self.is_online else 'offline'})"
