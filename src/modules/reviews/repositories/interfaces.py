"""Review repository interface.

Besides CRUD, the contract exposes the rating sources the aggregator scans:
only visible reviews (not hidden, not deleted) count.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.reviews.models import Review


class IReviewRepository(IRepository["Review"]):
    """Repository contract for reviews and their item ratings."""

    @abstractmethod
    def get_live(self, id: str) -> Optional[Review]:
        """Review that is not soft-deleted, hidden or not."""

    @abstractmethod
    def get_for_order(self, order_id: Any) -> Optional[Review]:
        """The live review of an order, if any."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Review:
        """Persist a review and its ``item_ratings`` atomically."""

    @abstractmethod
    def update_fields(self, review: Review, values: Dict[str, Any]) -> Review:
        """Write ``values`` to the review and flush its domain events."""

    @abstractmethod
    def replace_item_ratings(self, review: Review, items: List[Dict[str, Any]]) -> None:
        """Swap the review's item ratings for ``items``."""

    @abstractmethod
    def increment_feedback(self, id: str, helpful: bool) -> None:
        """Add one to ``helpful_count`` or ``not_helpful_count``."""

    @abstractmethod
    def for_restaurant(
        self,
        restaurant_id: Any,
        min_rating: Optional[int] = None,
        tags: Iterable[str] = (),
        ordering: Iterable[str] = ("-created_at",),
    ) -> QuerySet:
        """Visible reviews of a restaurant."""

    @abstractmethod
    def for_customer(self, user_id: int) -> QuerySet:
        """Live reviews written by a customer, newest first."""

    @abstractmethod
    def rating_distribution(self, restaurant_id: Any) -> List[Dict[str, Any]]:
        """``[{"rating", "count"}]`` of visible reviews, highest rating first."""

    @abstractmethod
    def restaurant_averages(self, restaurant_id: Any) -> Dict[str, Any]:
        """Count and per-dimension averages of visible reviews."""

    @abstractmethod
    def restaurant_ratings(self, restaurant_id: Any) -> List[Decimal]:
        """``overall`` of every visible review of a restaurant."""

    @abstractmethod
    def delivery_partner_ratings(self, delivery_partner_id: Any) -> List[int]:
        """``delivery`` of every visible review of a delivery partner."""

    @abstractmethod
    def menu_item_ratings(self, menu_item_id: Any) -> List[int]:
        """Item ratings of a menu item from visible reviews."""
