"""Delivery partner repositories package."""

from modules.delivery.repositories.django_repository import (
    DeliveryPartnerDjangoRepository,
)
from modules.delivery.repositories.interfaces import IDeliveryPartnerRepository

__all__ = ["DeliveryPartnerDjangoRepository", "IDeliveryPartnerRepository"]
