"""Django ORM implementation of the delivery partner repository.

``refresh_statistics`` always rescans the partner's orders instead of
maintaining running counters, so it can also be used to repair drift.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from modules.delivery.models import DeliveryPartner
from modules.delivery.repositories.interfaces import IDeliveryPartnerRepository
from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from shared.domain.numbers import mean, percentage, round_half_up

logger = structlog.get_logger(__name__)


class DeliveryPartnerDjangoRepository(IDeliveryPartnerRepository):
    """Concrete DeliveryPartner repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[DeliveryPartner]:
        try:
            return DeliveryPartner.objects.select_related("user").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[DeliveryPartner]:
        try:
            return DeliveryPartner.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: DeliveryPartner) -> DeliveryPartner:
        entity.save()
        logger.info(
            "delivery_partner.saved",
            delivery_partner_id=str(entity.id),
            is_online=entity.is_online,
        )
        return entity

    def update_fields(self, id: str, values: dict, increments: dict) -> None:
        changes = dict(values)
        for field, amount in increments.items():
            changes[field] = F(field) + amount
        if changes:
            DeliveryPartner.objects.filter(id=id).update(**changes)

    def release_order(self, id: str, order_id: Any) -> bool:
        released = DeliveryPartner.objects.filter(
            id=id, current_order_id=order_id
        ).update(current_order=None)
        if released:
            logger.info(
                "delivery_partner.released",
                delivery_partner_id=str(id),
                order_id=str(order_id),
            )
        return bool(released)

    def refresh_statistics(self, id: str) -> Optional[DeliveryPartner]:
        partner = self.get_by_id(id)
        if partner is None:
            return None

        orders = Order.objects.filter(delivery_partner_id=partner.id)
        completed = orders.filter(order_status=OrderStatus.DELIVERED).count()
        cancelled = orders.filter(order_status=OrderStatus.CANCELLED).count()
        durations = [
            (delivered_at - placed_at).total_seconds() / 60
            for placed_at, delivered_at in orders.filter(
                order_status=OrderStatus.DELIVERED,
                actual_delivery_time__isnull=False,
            ).values_list("created_at", "actual_delivery_time")
        ]

        partner.completed_orders = completed
        partner.cancelled_orders = cancelled
        partner.completion_rate = min(percentage(completed, partner.total_orders), 100)
        partner.average_delivery_time = int(round_half_up(mean(durations)))
        partner.save(
            update_fields=[
                "completed_orders",
                "cancelled_orders",
                "completion_rate",
                "average_delivery_time",
            ]
        )
        logger.info(
            "delivery_partner.statistics_refreshed",
            delivery_partner_id=str(partner.id),
            completed_orders=completed,
            cancelled_orders=cancelled,
            completion_rate=partner.completion_rate,
        )
        return partner

    def list_ids(self) -> List[str]:
        return [str(pk) for pk in DeliveryPartner.objects.values_list("id", flat=True)]

    def update_rating(self, id: str, average: Decimal, count: int) -> None:
        DeliveryPartner.objects.filter(id=id).update(
            rating_average=average, rating_count=count
        )
