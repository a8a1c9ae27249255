"""Review service layer (Use Cases).

Writes run in their own transaction; the rating aggregator runs after the
transaction closes, so an aggregation failure is logged by the aggregator
and never undoes the review.

Business rules enforced:
- Only the customer of a delivered order may review it, once.
- Item ratings must target menu items that were on the order.
- Authors may edit within ``REVIEW_EDIT_WINDOW_HOURS`` of creation.
- A restaurant answers a review at most once.
- Hidden and deleted reviews are excluded from listings and aggregates.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.catalog.exceptions import RestaurantNotFound
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderNotFound
from modules.reviews.constants import RECENT_REVIEWS_LIMIT, SORT_ORDERING
from modules.reviews.dtos import (
    CreateReviewDTO,
    ItemRatingDTO,
    RatingBucketDTO,
    ReviewListQueryDTO,
    ReviewStatsDTO,
    UpdateReviewDTO,
)
from modules.reviews.events import ReviewCreated
from modules.reviews.exceptions import (
    DuplicateReview,
    InvalidItemRating,
    OrderNotReviewable,
    ReviewAccessDenied,
    ReviewAlreadyAnswered,
    ReviewEditWindowExpired,
    ReviewNotFound,
)
from modules.reviews.models import Review
from shared.domain.numbers import round_half_up

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.catalog.repositories.interfaces import IRestaurantRepository
    from modules.core.roles import Actor
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.reviews.aggregator import RatingAggregator
    from modules.reviews.repositories.interfaces import IReviewRepository

logger = structlog.get_logger(__name__)

CLEARED_ORDER_RATING = {
    "rating_food": None,
    "rating_delivery": None,
    "rating_overall": None,
    "rating_comment": "",
    "rated_at": None,
}


class ReviewService:
    """Application service for review use-cases.

    Receives repositories and the aggregator via constructor injection.
    """

    def __init__(
        self,
        review_repository: IReviewRepository,
        order_repository: IOrderRepository,
        restaurant_repository: IRestaurantRepository,
        aggregator: RatingAggregator,
        edit_window_hours: Optional[int] = None,
    ) -> None:
        self._review_repo = review_repository
        self._order_repo = order_repository
        self._restaurant_repo = restaurant_repository
        self._aggregator = aggregator
        self._edit_window = timedelta(
            hours=(
                edit_window_hours
                if edit_window_hours is not None
                else settings.REVIEW_EDIT_WINDOW_HOURS
            )
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_review(self, actor: Actor, dto: CreateReviewDTO) -> Review:
        """Review a delivered order and refresh the affected ratings.

        Raises:
            OrderNotFound, ReviewAccessDenied, OrderNotReviewable,
            DuplicateReview, InvalidItemRating.
        """
        log = logger.bind(customer_id=actor.user_id, order_id=str(dto.order_id))
        with transaction.atomic():
            order = self._order_repo.get_for_update(str(dto.order_id))
            if order is None:
                raise OrderNotFound("Order not found")
            if order.customer_id != actor.user_id:
                raise ReviewAccessDenied()
            if order.order_status != OrderStatus.DELIVERED:
                raise OrderNotReviewable()
            if self._review_repo.get_for_order(order.id) is not None:
                log.warning("review.duplicate")
                raise DuplicateReview()
            self._ensure_items_on_order(order.id, dto.item_ratings)

            now = timezone.now()
            overall = Review.compute_overall(dto.food, dto.delivery, dto.service)
            review = self._review_repo.create(
                {
                    "customer_id": actor.user_id,
                    "order_id": order.id,
                    "restaurant_id": order.restaurant_id,
                    "delivery_partner_id": order.delivery_partner_id,
                    "food": dto.food,
                    "delivery": dto.delivery,
                    "service": dto.service,
                    "overall": overall,
                    "comment": dto.comment,
                    "tags": [str(tag) for tag in dto.tags],
                    "item_ratings": _item_rows(dto.item_ratings),
                }
            )
            self._order_repo.update_fields(
                order,
                {
                    "rating_food": dto.food,
                    "rating_delivery": dto.delivery,
                    "rating_overall": overall,
                    "rating_comment": dto.comment,
                    "rated_at": now,
                },
            )
            review.add_domain_event(
                ReviewCreated(
                    aggregate_id=review.id,
                    data={
                        "order_id": str(order.id),
                        "restaurant_id": str(order.restaurant_id),
                        "overall": str(overall),
                    },
                )
            )
            self._review_repo.save(review)

        log.info("review.created", review_id=str(review.id), overall=str(overall))
        self._aggregator.refresh_for_review(
            review, {str(item.menu_item_id) for item in dto.item_ratings}
        )
        return self._review_repo.get_live(str(review.id)) or review

    def update_review(self, actor: Actor, review_id: Any, dto: UpdateReviewDTO) -> Review:
        """Edit an own review within the edit window.

        Raises:
            ReviewNotFound, ReviewAccessDenied, ReviewEditWindowExpired,
            InvalidItemRating.
        """
        with transaction.atomic():
            review = self._get_live(review_id)
            if review.customer_id != actor.user_id:
                raise ReviewAccessDenied()
            if review.created_at < timezone.now() - self._edit_window:
                raise ReviewEditWindowExpired()

            values: Dict[str, Any] = {}
            for field in ("food", "delivery", "service"):
                value = getattr(dto, field)
                if value is not None:
                    values[field] = value
            if values:
                values["overall"] = Review.compute_overall(
                    values.get("food", review.food),
                    values.get("delivery", review.delivery),
                    values.get("service", review.service),
                )
            if dto.comment is not None:
                values["comment"] = dto.comment
            if dto.tags is not None:
                values["tags"] = [str(tag) for tag in dto.tags]

            touched_items: Set[str] = set()
            if dto.item_ratings is not None:
                self._ensure_items_on_order(review.order_id, dto.item_ratings)
                touched_items = {
                    str(rating.menu_item_id) for rating in review.item_ratings.all()
                }
                touched_items.update(str(item.menu_item_id) for item in dto.item_ratings)
                self._review_repo.replace_item_ratings(
                    review, _item_rows(dto.item_ratings)
                )

            if values:
                self._review_repo.update_fields(review, values)
                self._sync_order_rating(review)

        logger.info(
            "review.edited",
            review_id=str(review.id),
            fields=sorted(values),
            items_replaced=dto.item_ratings is not None,
        )
        self._aggregator.refresh_for_review(review, touched_items)
        return self._review_repo.get_live(str(review.id)) or review

    def delete_review(self, actor: Actor, review_id: Any) -> None:
        """Soft-delete a review (author or admin).

        Raises:
            ReviewNotFound, ReviewAccessDenied.
        """
        with transaction.atomic():
            review = self._get_live(review_id)
            if not (actor.is_admin or review.customer_id == actor.user_id):
                raise ReviewAccessDenied()
            menu_item_ids = {
                str(rating.menu_item_id) for rating in review.item_ratings.all()
            }
            self._review_repo.update_fields(review, {"deleted_at": timezone.now()})
            order = self._order_repo.get_for_update(str(review.order_id))
            if order is not None:
                self._order_repo.update_fields(order, dict(CLEARED_ORDER_RATING))

        logger.info("review.deleted", review_id=str(review.id), by=actor.user_id)
        self._aggregator.refresh_for_review(review, menu_item_ids)

    @transaction.atomic
    def respond(self, actor: Actor, review_id: Any, message: str) -> Review:
        """Add the restaurant's public answer (owner only, once).

        Raises:
            ReviewNotFound, ReviewAccessDenied, ReviewAlreadyAnswered.
        """
        review = self._get_live(review_id)
        if not actor.owns_restaurant(review.restaurant_id):
            raise ReviewAccessDenied()
        if review.has_response:
            raise ReviewAlreadyAnswered()
        self._review_repo.update_fields(
            review,
            {
                "response_message": message,
                "responded_at": timezone.now(),
                "responded_by_id": actor.user_id,
            },
        )
        logger.info("review.responded", review_id=str(review.id))
        return review

    def mark_helpful(self, review_id: Any, is_helpful: bool) -> Review:
        review = self.get_review(review_id)
        self._review_repo.increment_feedback(str(review.id), is_helpful)
        return self._review_repo.get_by_id(str(review.id)) or review

    @transaction.atomic
    def report(self, actor: Actor, review_id: Any, reason: str) -> Review:
        review = self._get_live(review_id)
        self._review_repo.update_fields(
            review, {"is_reported": True, "report_reason": reason}
        )
        logger.info("review.reported", review_id=str(review.id), by=actor.user_id)
        return review

    def moderate(self, actor: Actor, review_id: Any, is_hidden: bool) -> Review:
        """Hide or unhide a review (admin only).

        Raises:
            ReviewNotFound, ReviewAccessDenied.
        """
        if not actor.is_admin:
            raise ReviewAccessDenied()
        with transaction.atomic():
            review = self._get_live(review_id)
            changed = review.is_hidden != is_hidden
            self._review_repo.update_fields(
                review,
                {
                    "is_hidden": is_hidden,
                    "moderated_by_id": actor.user_id,
                    "moderated_at": timezone.now(),
                },
            )
        logger.info("review.moderated", review_id=str(review.id), is_hidden=is_hidden)
        if changed:
            self._aggregator.refresh_for_review(
                review,
                {str(rating.menu_item_id) for rating in review.item_ratings.all()},
            )
        return review

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_review(self, review_id: Any) -> Review:
        review = self._review_repo.get_by_id(str(review_id))
        if review is None:
            raise ReviewNotFound()
        return review

    def list_restaurant_reviews(
        self, restaurant_id: Any, query: ReviewListQueryDTO
    ) -> Tuple[QuerySet, List[RatingBucketDTO]]:
        """Visible reviews of a restaurant plus their rating distribution.

        Raises:
            RestaurantNotFound.
        """
        if self._restaurant_repo.get_by_id(str(restaurant_id)) is None:
            raise RestaurantNotFound()
        reviews = self._review_repo.for_restaurant(
            restaurant_id,
            min_rating=query.min_rating,
            tags=[str(tag) for tag in query.tags],
            ordering=SORT_ORDERING[query.sort],
        )
        return reviews, self._distribution(restaurant_id)

    def list_mine(self, actor: Actor) -> QuerySet:
        return self._review_repo.for_customer(actor.user_id)

    def restaurant_stats(self, actor: Actor, restaurant_id: Any) -> ReviewStatsDTO:
        """Review statistics for the owner or an admin.

        Raises:
            RestaurantNotFound, ReviewAccessDenied.
        """
        self._ensure_can_see_stats(actor, restaurant_id)
        raw = self._review_repo.restaurant_averages(restaurant_id)
        return ReviewStatsDTO(
            total_reviews=raw["total_reviews"],
            average_food=_average(raw["average_food"]),
            average_delivery=_average(raw["average_delivery"]),
            average_service=_average(raw["average_service"]),
            average_overall=_average(raw["average_overall"]),
            rating_distribution=self._distribution(restaurant_id),
        )

    def recent_reviews(self, restaurant_id: Any) -> List[Review]:
        return list(self._review_repo.for_restaurant(restaurant_id)[:RECENT_REVIEWS_LIMIT])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_live(self, review_id: Any) -> Review:
        review = self._review_repo.get_live(str(review_id))
        if review is None:
            raise ReviewNotFound()
        return review

    def _ensure_items_on_order(self, order_id: Any, items: List[ItemRatingDTO]) -> None:
        if not items:
            return
        ordered = self._order_repo.menu_item_ids(order_id)
        unknown = [str(i.menu_item_id) for i in items if str(i.menu_item_id) not in ordered]
        if unknown:
            raise InvalidItemRating(
                f"Menu items not on the order: {', '.join(sorted(unknown))}"
            )

    def _ensure_can_see_stats(self, actor: Actor, restaurant_id: Any) -> None:
        restaurant = self._restaurant_repo.get_by_id(str(restaurant_id))
        if restaurant is None:
            raise RestaurantNotFound()
        if not (actor.is_admin or actor.owns_restaurant(restaurant.id)):
            raise ReviewAccessDenied()

    def _distribution(self, restaurant_id: Any) -> List[RatingBucketDTO]:
        return [
            RatingBucketDTO(rating=row["rating"], count=row["count"])
            for row in self._review_repo.rating_distribution(restaurant_id)
        ]

    def _sync_order_rating(self, review: Review) -> None:
        order = self._order_repo.get_for_update(str(review.order_id))
        if order is None:
            return
        self._order_repo.update_fields(
            order,
            {
                "rating_food": review.food,
                "rating_delivery": review.delivery,
                "rating_overall": review.overall,
                "rating_comment": review.comment,
            },
        )


def _item_rows(items: List[ItemRatingDTO]) -> List[Dict[str, Any]]:
    return [
        {
            "menu_item_id": item.menu_item_id,
            "rating": item.rating,
            "comment": item.comment,
        }
        for item in items
    ]


def _average(value: Optional[Any]) -> Decimal:
    return round_half_up(value or 0, 1)
