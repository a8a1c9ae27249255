"""Delivery partner repository interface."""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryPartner


class IDeliveryPartnerRepository(IRepository["DeliveryPartner"]):
    """Repository contract for delivery partner profiles."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[DeliveryPartner]:
        """Profile with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def update_fields(self, id: str, values: dict, increments: dict) -> None:
        """Write ``values`` and add ``increments`` to counters in one UPDATE."""

    @abstractmethod
    def release_order(self, id: str, order_id: Any) -> bool:
        """Clear ``current_order`` when it still points at ``order_id``."""

    @abstractmethod
    def refresh_statistics(self, id: str) -> Optional[DeliveryPartner]:
        """Recompute completion counters, rate and delivery time from orders."""

    @abstractmethod
    def list_ids(self) -> List[str]:
        """Ids of every delivery partner profile."""

    @abstractmethod
    def update_rating(self, id: str, average: Decimal, count: int) -> None:
        """Store the aggregate delivery rating."""
