"""Delivery partner use cases.

Order-side work (accepting, listing a partner's orders) is delegated to
``OrderService`` so the locking order and the transition plan stay in one
place.  This service only resolves the caller's profile and manages the
profile itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

import structlog
from django.db import transaction
from django.utils import timezone

from modules.delivery.dtos import AvailabilityDTO, DeliveryPartnerStatsDTO
from modules.delivery.exceptions import (
    DeliveryPartnerNotApproved,
    DeliveryPartnerNotFound,
)
from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.core.roles import Actor
    from modules.delivery.models import DeliveryPartner
    from modules.delivery.repositories.interfaces import IDeliveryPartnerRepository
    from modules.orders.models import Order
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

ACTIVE_STATUSES = [OrderStatus.OUT_FOR_DELIVERY]
HISTORY_STATUSES = [OrderStatus.DELIVERED, OrderStatus.CANCELLED]


class DeliveryPartnerService:
    def __init__(
        self,
        delivery_partner_repository: IDeliveryPartnerRepository,
        order_service: OrderService,
    ) -> None:
        self._partner_repo = delivery_partner_repository
        self._order_service = order_service

    def get_profile(self, actor: Actor) -> DeliveryPartner:
        """The caller's own profile.

        Raises:
            DeliveryPartnerNotFound: the caller has no delivery-partner profile.
        """
        partner = None
        if actor.delivery_partner_id is not None:
            partner = self._partner_repo.get_by_id(actor.delivery_partner_id)
        if partner is None:
            raise DeliveryPartnerNotFound("Delivery partner profile not found")
        return partner

    def available_orders(self, actor: Actor) -> List[Order]:
        """Unassigned ``ready_for_pickup`` orders, oldest first."""
        partner = self.get_profile(actor)
        if not partner.is_approved:
            raise DeliveryPartnerNotApproved()
        return self._order_service.available_for_pickup()

    def accept_order(self, actor: Actor, order_id: Any) -> Order:
        self.get_profile(actor)
        return self._order_service.accept_order(actor, order_id)

    def active_orders(self, actor: Actor) -> QuerySet:
        partner = self.get_profile(actor)
        return self._order_service.partner_orders(partner.id, ACTIVE_STATUSES)

    def delivery_history(self, actor: Actor) -> QuerySet:
        partner = self.get_profile(actor)
        return self._order_service.partner_orders(partner.id, HISTORY_STATUSES)

    @transaction.atomic
    def set_availability(self, actor: Actor, dto: AvailabilityDTO) -> DeliveryPartner:
        """Go online or offline.  Only approved profiles may change it.

        Raises:
            DeliveryPartnerNotFound, DeliveryPartnerNotApproved.
        """
        self.get_profile(actor)
        partner = self._partner_repo.get_for_update(actor.delivery_partner_id)
        if partner is None:
            raise DeliveryPartnerNotFound("Delivery partner profile not found")
        if not partner.is_approved:
            raise DeliveryPartnerNotApproved("Profile not approved yet")

        partner.is_online = dto.is_online
        if dto.is_online:
            partner.last_active_at = timezone.now()
        self._partner_repo.save(partner)
        logger.info(
            "delivery.availability_changed",
            delivery_partner_id=str(partner.id),
            is_online=partner.is_online,
        )
        return partner

    def stats(self, actor: Actor) -> DeliveryPartnerStatsDTO:
        partner = self.get_profile(actor)
        return DeliveryPartnerStatsDTO(
            total_orders=partner.total_orders,
            completed_orders=partner.completed_orders,
            cancelled_orders=partner.cancelled_orders,
            completion_rate=partner.completion_rate,
            average_rating=partner.rating_average,
            total_ratings=partner.rating_count,
            average_delivery_time=partner.average_delivery_time,
            is_online=partner.is_online,
            current_order_id=(
                str(partner.current_order_id) if partner.current_order_id else None
            ),
            joining_date=partner.created_at,
        )
