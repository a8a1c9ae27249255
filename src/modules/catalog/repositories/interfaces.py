"""Catalog repository interfaces.

The order core only reads restaurants and menu items; the one write it
performs is storing the aggregate rating computed from reviews.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterable, List

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import MenuItem, Restaurant


class IRestaurantRepository(IRepository["Restaurant"]):
    """Repository contract for restaurants."""

    @abstractmethod
    def list_owned_by(self, user_id: int) -> List[Restaurant]:
        """Live restaurants owned by the given user."""

    @abstractmethod
    def list_ids(self) -> List[str]:
        """Ids of every restaurant, deleted ones included."""

    @abstractmethod
    def update_rating(self, id: str, average: Decimal, count: int) -> None:
        """Store the aggregate rating of a restaurant."""


class IMenuItemRepository(IRepository["MenuItem"]):
    """Repository contract for menu items."""

    @abstractmethod
    def get_many(self, ids: Iterable[str]) -> Dict[str, MenuItem]:
        """Live menu items keyed by ``str(id)``; unknown ids are absent."""

    @abstractmethod
    def increment_total_orders(self, quantities: Dict[str, int]) -> None:
        """Add ordered quantities to each item's ``total_orders``."""

    @abstractmethod
    def list_ids(self) -> List[str]:
        """Ids of every menu item, deleted ones included."""

    @abstractmethod
    def update_rating(self, id: str, average: Decimal, count: int) -> None:
        """Store the aggregate rating of a menu item."""
