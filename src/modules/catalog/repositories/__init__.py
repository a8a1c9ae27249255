"""Catalog repositories package."""

from modules.catalog.repositories.django_repository import (
    MenuItemDjangoRepository,
    RestaurantDjangoRepository,
)
from modules.catalog.repositories.interfaces import (
    IMenuItemRepository,
    IRestaurantRepository,
)

__all__ = [
    "IMenuItemRepository",
    "IRestaurantRepository",
    "MenuItemDjangoRepository",
    "RestaurantDjangoRepository",
]
