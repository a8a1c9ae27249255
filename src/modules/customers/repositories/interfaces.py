"""Address repository interface.

Only the look-up the order core needs: a customer's address by id.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Address


class IAddressRepository(IRepository["Address"]):
    """Repository contract for customer addresses."""

    @abstractmethod
    def get_for_user(self, id: str, user_id: int) -> Optional[Address]:
        """Retrieve a live address only if it belongs to ``user_id``."""
