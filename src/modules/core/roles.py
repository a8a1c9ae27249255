"""Marketplace roles and per-request actors derived from the authenticated user.

Roles are not stored on the user: they follow from what the user owns.
Staff and superusers are admins, a user with a delivery-partner profile is a
delivery partner, a user who owns at least one restaurant is a restaurant
owner, and everyone else is a customer.

``Actor`` carries the relationships the permission checks need (owned
restaurants, delivery-partner profile) so the checks themselves stay free
of database access.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Optional

from django.db import models


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    RESTAURANT_OWNER = "restaurant_owner", "Restaurant owner"
    DELIVERY_PARTNER = "delivery_partner", "Delivery partner"
    ADMIN = "admin", "Admin"


@dataclass(frozen=True)
class Actor:
    user_id: int
    is_admin: bool = False
    restaurant_ids: FrozenSet[str] = frozenset()
    delivery_partner_id: Optional[str] = None

    @property
    def role(self) -> Role:
        if self.is_admin:
            return Role.ADMIN
        if self.delivery_partner_id is not None:
            return Role.DELIVERY_PARTNER
        if self.restaurant_ids:
            return Role.RESTAURANT_OWNER
        return Role.CUSTOMER

    def owns_restaurant(self, restaurant_id: Any) -> bool:
        return str(restaurant_id) in self.restaurant_ids

    def is_delivery_partner(self, delivery_partner_id: Any) -> bool:
        return (
            self.delivery_partner_id is not None
            and delivery_partner_id is not None
            and str(delivery_partner_id) == self.delivery_partner_id
        )


def actor_for(user: Any) -> Actor:
    """Load the relationships of ``user`` into an ``Actor``."""
    from modules.catalog.models import Restaurant
    from modules.delivery.models import DeliveryPartner

    restaurant_ids = frozenset(
        str(pk)
        for pk in Restaurant.objects.alive()
        .filter(owner_id=user.pk)
        .values_list("id", flat=True)
    )
    partner_id = (
        DeliveryPartner.objects.filter(user_id=user.pk)
        .values_list("id", flat=True)
        .first()
    )
    return Actor(
        user_id=user.pk,
        is_admin=bool(user.is_staff or user.is_superuser),
        restaurant_ids=restaurant_ids,
        delivery_partner_id=str(partner_id) if partner_id else None,
    )


def resolve_role(user: Any) -> Role:
    return actor_for(user).role
