"""Catalog domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import EntityNotFound


class RestaurantNotFound(EntityNotFound):
    """Restaurant not found."""

    code = "restaurant_not_found"
