"""Django ORM implementation of the review repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count, F, Q, QuerySet

from modules.core.models import OutboxEvent
from modules.reviews.models import Review, ReviewItemRating
from modules.reviews.repositories.interfaces import IReviewRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "reviews"


def _visible() -> QuerySet:
    return Review.objects.alive().filter(is_hidden=False)


class ReviewDjangoRepository(IReviewRepository):
    """Concrete Review repository backed by Django ORM."""

    def _base_queryset(self, queryset: QuerySet) -> QuerySet:
        return queryset.select_related(
            "customer", "restaurant", "order"
        ).prefetch_related("item_ratings__menu_item")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Review]:
        """Visible review, or ``None`` when deleted, hidden or unknown."""
        try:
            return self._base_queryset(_visible()).filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_live(self, id: str) -> Optional[Review]:
        try:
            return self._base_queryset(Review.objects.alive()).filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_order(self, order_id: Any) -> Optional[Review]:
        return Review.objects.alive().filter(order_id=order_id).first()

    def for_restaurant(
        self,
        restaurant_id: Any,
        min_rating: Optional[int] = None,
        tags: Iterable[str] = (),
        ordering: Iterable[str] = ("-created_at",),
    ) -> QuerySet:
        queryset = self._base_queryset(_visible()).filter(restaurant_id=restaurant_id)
        if min_rating is not None:
            queryset = queryset.filter(overall__gte=min_rating)
        tags = list(tags)
        if tags:
            # Matches the quoted tag inside the stored JSON list; works on
            # every backend, and no tag is a substring of another.
            any_tag = Q()
            for tag in tags:
                any_tag |= Q(tags__icontains=f'"{tag}"')
            queryset = queryset.filter(any_tag)
        return queryset.order_by(*ordering)

    def for_customer(self, user_id: int) -> QuerySet:
        return (
            self._base_queryset(Review.objects.alive())
            .filter(customer_id=user_id)
            .order_by("-created_at")
        )

    def rating_distribution(self, restaurant_id: Any) -> List[Dict[str, Any]]:
        rows = (
            _visible()
            .filter(restaurant_id=restaurant_id)
            .values("overall")
            .annotate(count=Count("id"))
            .order_by("-overall")
        )
        return [{"rating": row["overall"], "count": row["count"]} for row in rows]

    def restaurant_averages(self, restaurant_id: Any) -> Dict[str, Any]:
        return _visible().filter(restaurant_id=restaurant_id).aggregate(
            total_reviews=Count("id"),
            average_food=Avg("food"),
            average_delivery=Avg("delivery"),
            average_service=Avg("service"),
            average_overall=Avg("overall"),
        )

    def restaurant_ratings(self, restaurant_id: Any) -> List[Decimal]:
        return list(
            _visible()
            .filter(restaurant_id=restaurant_id)
            .values_list("overall", flat=True)
        )

    def delivery_partner_ratings(self, delivery_partner_id: Any) -> List[int]:
        return list(
            _visible()
            .filter(delivery_partner_id=delivery_partner_id)
            .values_list("delivery", flat=True)
        )

    def menu_item_ratings(self, menu_item_id: Any) -> List[int]:
        return list(
            ReviewItemRating.objects.filter(
                menu_item_id=menu_item_id,
                review__deleted_at__isnull=True,
                review__is_hidden=False,
            ).values_list("rating", flat=True)
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Review:
        data = dict(data)
        items = data.pop("item_ratings", [])
        review = Review.objects.create(**data)
        self.replace_item_ratings(review, items)
        logger.info(
            "review.persisted",
            review_id=str(review.id),
            order_id=str(review.order_id),
            item_count=len(items),
        )
        return review

    @transaction.atomic
    def save(self, entity: Review) -> Review:
        entity.save()
        self._flush_events(entity)
        return entity

    @transaction.atomic
    def update_fields(self, review: Review, values: Dict[str, Any]) -> Review:
        for field, value in values.items():
            setattr(review, field, value)
        review.save(update_fields=list(values))
        self._flush_events(review)
        logger.info("review.updated", review_id=str(review.id), fields=sorted(values))
        return review

    def replace_item_ratings(self, review: Review, items: List[Dict[str, Any]]) -> None:
        ReviewItemRating.objects.filter(review=review).delete()
        ReviewItemRating.objects.bulk_create(
            [ReviewItemRating(review=review, **item) for item in items]
        )

    def increment_feedback(self, id: str, helpful: bool) -> None:
        field = "helpful_count" if helpful else "not_helpful_count"
        Review.objects.filter(id=id).update(**{field: F(field) + 1})

    def _flush_events(self, review: Review) -> None:
        for event in review.domain_events:
            OutboxEvent.record(event, topic=OUTBOX_TOPIC)
        review.clear_domain_events()
