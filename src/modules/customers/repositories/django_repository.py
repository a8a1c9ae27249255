"""Django ORM implementation of the Address repository.

Methods return ``None`` instead of raising; the Service Layer decides how
to translate a missing address into a domain error.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.customers.models import Address
from modules.customers.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    """Concrete Address repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Address]:
        try:
            return Address.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_user(self, id: str, user_id: int) -> Optional[Address]:
        try:
            return Address.objects.alive().filter(id=id, user_id=user_id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: Address) -> Address:
        entity.save()
        logger.info(
            "address.saved",
            address_id=str(entity.id),
            user_id=entity.user_id,
        )
        return entity
