"""Django ORM implementation of the catalog repositories.

Look-ups return ``None`` (or omit the key) for unknown, soft-deleted or
malformed ids; the calling service decides which domain error that is.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from modules.catalog.models import MenuItem, Restaurant
from modules.catalog.repositories.interfaces import (
    IMenuItemRepository,
    IRestaurantRepository,
)

logger = structlog.get_logger(__name__)


class RestaurantDjangoRepository(IRestaurantRepository):
    """Concrete Restaurant repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Restaurant]:
        try:
            return Restaurant.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_owned_by(self, user_id: int) -> List[Restaurant]:
        return list(Restaurant.objects.alive().filter(owner_id=user_id))

    @transaction.atomic
    def save(self, entity: Restaurant) -> Restaurant:
        entity.save()
        logger.info("restaurant.saved", restaurant_id=str(entity.id))
        return entity

    def list_ids(self) -> List[str]:
        return [str(pk) for pk in Restaurant.objects.values_list("id", flat=True)]

    def update_rating(self, id: str, average: Decimal, count: int) -> None:
        Restaurant.objects.filter(id=id).update(
            rating_average=average, rating_count=count
        )


class MenuItemDjangoRepository(IMenuItemRepository):
    """Concrete MenuItem repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[MenuItem]:
        try:
            return MenuItem.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_many(self, ids: Iterable[str]) -> Dict[str, MenuItem]:
        try:
            items = MenuItem.objects.alive().filter(id__in=list(ids))
            return {str(item.id): item for item in items}
        except (ValueError, ValidationError):
            return {}

    @transaction.atomic
    def save(self, entity: MenuItem) -> MenuItem:
        entity.save()
        logger.info("menu_item.saved", menu_item_id=str(entity.id))
        return entity

    def increment_total_orders(self, quantities: Dict[str, int]) -> None:
        for menu_item_id, quantity in quantities.items():
            MenuItem.objects.filter(id=menu_item_id).update(
                total_orders=F("total_orders") + quantity
            )

    def list_ids(self) -> List[str]:
        return [str(pk) for pk in MenuItem.objects.values_list("id", flat=True)]

    def update_rating(self, id: str, average: Decimal, count: int) -> None:
        MenuItem.objects.filter(id=id).update(
            rating_average=average, rating_count=count
        )
