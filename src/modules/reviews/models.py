"""Customer reviews of delivered orders.

A review rates the food, the delivery and the service (1-5 each); the
``overall`` score is their mean rounded half-up to one decimal.  Optional
per-item ratings target menu items that were on the order.

Reviews are soft-deleted and can be hidden by moderation.  Both remove the
review from every aggregate rating and public listing.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from modules.core.models import BaseModel, SoftDeleteModel
from modules.reviews.constants import MAX_RATING, MIN_RATING
from shared.domain.events import DomainEventMixin
from shared.domain.numbers import mean, round_half_up

RATING_VALIDATORS = [MinValueValidator(MIN_RATING), MaxValueValidator(MAX_RATING)]


def _rating_in_range(field: str) -> Q:
    return Q(**{f"{field}__gte": MIN_RATING, f"{field}__lte": MAX_RATING})


class Review(DomainEventMixin, SoftDeleteModel):
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reviews",
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="reviews",
    )
    restaurant = models.ForeignKey(
        "catalog.Restaurant",
        on_delete=models.PROTECT,
        related_name="reviews",
    )
    delivery_partner = models.ForeignKey(
        "delivery.DeliveryPartner",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviews",
    )

    food = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    delivery = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    service = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    overall = models.DecimalField(max_digits=2, decimal_places=1)
    comment = models.TextField(max_length=1000, blank=True, default="")
    tags = models.JSONField(default=list, blank=True)

    helpful_count = models.PositiveIntegerField(default=0)
    not_helpful_count = models.PositiveIntegerField(default=0)

    response_message = models.CharField(max_length=500, blank=True, default="")
    responded_at = models.DateTimeField(null=True, blank=True)
    responded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    is_reported = models.BooleanField(default=False)
    report_reason = models.CharField(max_length=255, blank=True, default="")
    is_hidden = models.BooleanField(default=False)
    moderated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    moderated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "reviews"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer"], name="reviews_customer_idx"),
            models.Index(
                fields=["restaurant", "created_at"], name="reviews_restaurant_idx"
            ),
            models.Index(fields=["delivery_partner"], name="reviews_partner_idx"),
            models.Index(fields=["overall"], name="reviews_overall_idx"),
        ]
        constraints = [
            # One live review per order; a deleted review frees the order.
            models.UniqueConstraint(
                fields=["order"],
                condition=Q(deleted_at__isnull=True),
                name="reviews_one_per_order",
            ),
            models.CheckConstraint(
                condition=_rating_in_range("food")
                & _rating_in_range("delivery")
                & _rating_in_range("service"),
                name="reviews_ratings_in_range",
            ),
        ]

    @staticmethod
    def compute_overall(food: int, delivery: int, service: int) -> Decimal:
        return round_half_up(mean([food, delivery, service]), 1)

    @property
    def has_response(self) -> bool:
        return bool(self.response_message)

    @property
    def is_visible(self) -> bool:
        return not self.is_hidden and not self.is_deleted

    def __str__(self) -> str:
        return f"Review {self.overall} for order {self.order_id}"


class ReviewItemRating(BaseModel):
    review = models.ForeignKey(
        "reviews.Review",
        on_delete=models.CASCADE,
        related_name="item_ratings",
    )
    menu_item = models.ForeignKey(
        "catalog.MenuItem",
        on_delete=models.PROTECT,
        related_name="item_ratings",
    )
    rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    comment = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "review_item_ratings"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["menu_item"], name="review_items_menu_item_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["review", "menu_item"], name="review_items_unique_menu_item"
            ),
            models.CheckConstraint(
                condition=_rating_in_range("rating"),
                name="review_items_rating_in_range",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.menu_item_id}: {self.rating}"
