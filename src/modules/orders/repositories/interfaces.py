"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items and the first timeline entry, row locking,
field updates that flush domain events to the outbox, and the scoped
queries behind listings and statistics.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Set

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.core.roles import Actor
    from modules.orders.models import Order, OrderTimelineEntry


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderItem lines and OrderTimelineEntry records.
    Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order, its items and the initial timeline entry.

        ``data`` holds the order fields plus ``items`` (list of dicts with
        the OrderItem fields) and ``timeline`` (``status``/``description``).
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def update_fields(self, order: Order, values: Dict[str, Any]) -> Order:
        """Apply ``values`` to ``order`` and persist only those fields."""

    @abstractmethod
    def add_timeline_entry(
        self, order_id: Any, status: str, description: str = ""
    ) -> OrderTimelineEntry:
        """Append an entry to the order's timeline."""

    @abstractmethod
    def menu_item_ids(self, order_id: Any) -> Set[str]:
        """Ids of the menu items ordered, as strings."""

    @abstractmethod
    def visible_to(self, actor: Actor) -> QuerySet:
        """Orders the actor may list (own, own restaurants', assigned, or all)."""

    @abstractmethod
    def list_available_for_pickup(self, limit: int) -> List[Order]:
        """Unassigned ``ready_for_pickup`` orders, oldest first."""

    @abstractmethod
    def for_delivery_partner(
        self, delivery_partner_id: Any, statuses: Iterable[str]
    ) -> QuerySet:
        """Orders assigned to the partner in the given statuses, newest first."""

    @abstractmethod
    def compute_stats(
        self, actor: Actor, start: datetime, end: datetime
    ) -> Dict[str, Any]:
        """Raw counts and delivered totals for the actor's scope and window."""
