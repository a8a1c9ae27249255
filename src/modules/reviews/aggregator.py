"""Rating aggregator.

Derived ratings (restaurant, delivery partner, menu item) are recomputed by
rescanning every visible review of the target, never by incremental
arithmetic, so a run always converges to the right value and a full
rebuild is just the same computation for every target.

Each recomputation is independent: a failure is logged and the remaining
targets are still processed.  Callers run the aggregator after the review
transaction has committed, so a failure never rolls the review back.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, List

import structlog

from shared.domain.numbers import mean, round_half_up

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import (
        IMenuItemRepository,
        IRestaurantRepository,
    )
    from modules.delivery.repositories.interfaces import IDeliveryPartnerRepository
    from modules.reviews.models import Review
    from modules.reviews.repositories.interfaces import IReviewRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    average: Decimal
    count: int

    @classmethod
    def of(cls, ratings: List[Any]) -> RatingSummary:
        return cls(average=round_half_up(mean(ratings), 1), count=len(ratings))


class RatingAggregator:
    def __init__(
        self,
        review_repository: IReviewRepository,
        restaurant_repository: IRestaurantRepository,
        menu_item_repository: IMenuItemRepository,
        delivery_partner_repository: IDeliveryPartnerRepository,
    ) -> None:
        self._review_repo = review_repository
        self._restaurant_repo = restaurant_repository
        self._menu_item_repo = menu_item_repository
        self._partner_repo = delivery_partner_repository

    # ------------------------------------------------------------------
    # Single targets
    # ------------------------------------------------------------------

    def refresh_restaurant(self, restaurant_id: Any) -> RatingSummary:
        summary = RatingSummary.of(self._review_repo.restaurant_ratings(restaurant_id))
        self._restaurant_repo.update_rating(
            str(restaurant_id), summary.average, summary.count
        )
        return summary

    def refresh_delivery_partner(self, delivery_partner_id: Any) -> RatingSummary:
        summary = RatingSummary.of(
            self._review_repo.delivery_partner_ratings(delivery_partner_id)
        )
        self._partner_repo.update_rating(
            str(delivery_partner_id), summary.average, summary.count
        )
        return summary

    def refresh_menu_item(self, menu_item_id: Any) -> RatingSummary:
        summary = RatingSummary.of(self._review_repo.menu_item_ratings(menu_item_id))
        self._menu_item_repo.update_rating(
            str(menu_item_id), summary.average, summary.count
        )
        return summary

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def refresh_for_review(
        self, review: Review, menu_item_ids: Iterable[Any] = ()
    ) -> int:
        """Recompute every aggregate ``review`` contributes to.

        ``menu_item_ids`` must include items whose rating was just removed
        from the review.  Returns the number of failed recomputations.
        """
        menu_item_ids = {str(pk) for pk in menu_item_ids}

        jobs: List[tuple] = [("restaurant", review.restaurant_id, self.refresh_restaurant)]
        if review.delivery_partner_id:
            jobs.append(
                (
                    "delivery_partner",
                    review.delivery_partner_id,
                    self.refresh_delivery_partner,
                )
            )
        jobs.extend(
            ("menu_item", pk, self.refresh_menu_item) for pk in sorted(menu_item_ids)
        )
        return self._run(jobs, review_id=str(review.id))

    def rebuild_all(self) -> dict:
        """Recompute every aggregate from scratch."""
        jobs: List[tuple] = []
        jobs.extend(
            ("restaurant", pk, self.refresh_restaurant)
            for pk in self._restaurant_repo.list_ids()
        )
        jobs.extend(
            ("delivery_partner", pk, self.refresh_delivery_partner)
            for pk in self._partner_repo.list_ids()
        )
        jobs.extend(
            ("menu_item", pk, self.refresh_menu_item)
            for pk in self._menu_item_repo.list_ids()
        )
        failed = self._run(jobs)
        logger.info("review.ratings_rebuilt", targets=len(jobs), failed=failed)
        return {"targets": len(jobs), "failed": failed}

    def _run(self, jobs: List[tuple], **context: Any) -> int:
        failed = 0
        for target, target_id, refresh in jobs:
            try:
                refresh(target_id)
            except Exception as exc:
                failed += 1
                logger.error(
                    "review.aggregation_failed",
                    target=target,
                    target_id=str(target_id),
                    error=str(exc),
                    exc_info=True,
                    **context,
                )
        return failed


def default_aggregator() -> RatingAggregator:
    """Aggregator wired to the Django repositories."""
    from modules.catalog.repositories import (
        MenuItemDjangoRepository,
        RestaurantDjangoRepository,
    )
    from modules.delivery.repositories import DeliveryPartnerDjangoRepository
    from modules.reviews.repositories import ReviewDjangoRepository

    return RatingAggregator(
        review_repository=ReviewDjangoRepository(),
        restaurant_repository=RestaurantDjangoRepository(),
        menu_item_repository=MenuItemDjangoRepository(),
        delivery_partner_repository=DeliveryPartnerDjangoRepository(),
    )
