"""Restaurant and menu-item records read by the order core.

Only the fields the pricing engine, the permission checks and the rating
aggregator need are modelled here.  Menu CRUD lives outside this service.

- ``MenuItem.variants``: ``[{"name", "price", "discounted_price", "is_available"}]``
- ``MenuItem.add_ons``: ``[{"name", "price", "is_available"}]``
- ``MenuItem.customizations``:
  ``[{"name", "options": [{"name", "price_modifier"}], "is_required", "max_selections"}]``

``rating_average`` / ``rating_count`` are written only by the rating
aggregator.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel


class Restaurant(SoftDeleteModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="restaurants",
    )
    name = models.CharField(max_length=100)
    phone_number = models.CharField(max_length=20, blank=True, default="")
    is_active = models.BooleanField(default=True)
    minimum_order = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("30.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    delivery_time_min = models.PositiveIntegerField(default=30)
    delivery_time_max = models.PositiveIntegerField(default=45)
    rating_average = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal("0.0")
    )
    rating_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "restaurants"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["owner"], name="restaurants_owner_idx"),
            models.Index(fields=["is_active"], name="restaurants_active_idx"),
        ]

    @property
    def average_delivery_minutes(self) -> Decimal:
        return Decimal(self.delivery_time_min + self.delivery_time_max) / 2

    def __str__(self) -> str:
        return self.name


class MenuItem(SoftDeleteModel):
    restaurant = models.ForeignKey(
        "catalog.Restaurant",
        on_delete=models.PROTECT,
        related_name="menu_items",
    )
    name = models.CharField(max_length=100)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    discounted_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_available = models.BooleanField(default=True)
    variants = models.JSONField(default=list, blank=True)
    add_ons = models.JSONField(default=list, blank=True)
    customizations = models.JSONField(default=list, blank=True)
    rating_average = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal("0.0")
    )
    rating_count = models.PositiveIntegerField(default=0)
    total_orders = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "menu_items"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["restaurant"], name="menu_items_restaurant_idx"),
            models.Index(fields=["is_available"], name="menu_items_available_idx"),
        ]

    @property
    def final_price(self) -> Decimal:
        return self.discounted_price or self.price

    def find_variant(self, name: str) -> Optional[Dict[str, Any]]:
        return _find_by_name(self.variants, name)

    def find_add_on(self, name: str) -> Optional[Dict[str, Any]]:
        return _find_by_name(self.add_ons, name)

    def find_customization(self, name: str) -> Optional[Dict[str, Any]]:
        return _find_by_name(self.customizations, name)

    def __str__(self) -> str:
        return f"{self.name} ({self.restaurant_id})"


def _find_by_name(entries: Any, name: str) -> Optional[Dict[str, Any]]:
    for entry in entries or []:
        if entry.get("name") == name:
            return entry
    return None
