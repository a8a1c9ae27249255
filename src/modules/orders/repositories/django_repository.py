"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Writes that
carry domain events store them in the transactional outbox within the
same transaction as the data.

Concurrency control uses ``select_for_update()``: callers lock the order
(and the delivery partner) before re-checking state.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count, Q, QuerySet, Sum

from modules.core.models import OutboxEvent
from modules.core.roles import Actor
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderTimelineEntry
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        data = dict(data)
        items = data.pop("items", [])
        timeline = data.pop("timeline", None)

        order = Order(**data)
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(order=order, position=position, **item)
                for position, item in enumerate(items)
            ]
        )
        if timeline:
            self.add_timeline_entry(order.id, **timeline)

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet:
        return Order.objects.select_related(
            "restaurant", "delivery_address", "delivery_partner"
        ).prefetch_related("items", "timeline")

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def menu_item_ids(self, order_id: Any) -> Set[str]:
        return {
            str(pk)
            for pk in OrderItem.objects.filter(order_id=order_id).values_list(
                "menu_item_id", flat=True
            )
        }

    def visible_to(self, actor: Actor) -> QuerySet:
        queryset = self._base_queryset()
        if actor.is_admin:
            return queryset
        scope = Q(customer_id=actor.user_id)
        if actor.restaurant_ids:
            scope |= Q(restaurant_id__in=list(actor.restaurant_ids))
        if actor.delivery_partner_id:
            scope |= Q(delivery_partner_id=actor.delivery_partner_id)
        return queryset.filter(scope)

    def list_available_for_pickup(self, limit: int) -> List[Order]:
        return list(
            self._base_queryset()
            .filter(
                order_status=OrderStatus.READY_FOR_PICKUP,
                delivery_partner__isnull=True,
            )
            .order_by("created_at")[:limit]
        )

    def for_delivery_partner(
        self, delivery_partner_id: Any, statuses: Iterable[str]
    ) -> QuerySet:
        return (
            self._base_queryset()
            .filter(
                delivery_partner_id=delivery_partner_id,
                order_status__in=list(statuses),
            )
            .order_by("-created_at")
        )

    def compute_stats(
        self, actor: Actor, start: datetime, end: datetime
    ) -> Dict[str, Any]:
        """Count orders in the window; revenue covers delivered orders only.

        Scope follows the caller's strongest role: admins see everything,
        restaurant owners their restaurants, delivery partners their
        assignments and customers their own orders.
        """
        queryset = Order.objects.filter(created_at__gte=start, created_at__lte=end)
        if not actor.is_admin:
            if actor.restaurant_ids:
                queryset = queryset.filter(restaurant_id__in=list(actor.restaurant_ids))
            elif actor.delivery_partner_id:
                queryset = queryset.filter(delivery_partner_id=actor.delivery_partner_id)
            else:
                queryset = queryset.filter(customer_id=actor.user_id)

        delivered = Q(order_status=OrderStatus.DELIVERED)
        result = queryset.aggregate(
            total_orders=Count("id"),
            completed_orders=Count("id", filter=delivered),
            cancelled_orders=Count(
                "id", filter=Q(order_status=OrderStatus.CANCELLED)
            ),
            total_revenue=Sum("total", filter=delivered),
            average_order_value=Avg("total", filter=delivered),
        )
        result["total_revenue"] = result["total_revenue"] or Decimal("0")
        result["average_order_value"] = result["average_order_value"] or Decimal("0")
        return result

    # ------------------------------------------------------------------
    # Save / update (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order and flush its events."""
        entity.save()
        self._flush_events(entity)
        return entity

    @transaction.atomic
    def update_fields(self, order: Order, values: Dict[str, Any]) -> Order:
        for field, value in values.items():
            setattr(order, field, value)
        order.save(update_fields=list(values))
        self._flush_events(order)
        logger.info(
            "order.updated",
            order_id=str(order.id),
            fields=sorted(values),
        )
        return order

    def add_timeline_entry(
        self, order_id: Any, status: str, description: str = ""
    ) -> OrderTimelineEntry:
        entry = OrderTimelineEntry.objects.create(
            order_id=order_id, status=status, description=description
        )
        logger.info("order.timeline_appended", order_id=str(order_id), status=status)
        return entry

    def _flush_events(self, order: Order) -> None:
        events = order.domain_events
        for event in events:
            OutboxEvent.record(event, topic=OUTBOX_TOPIC)
        order.clear_domain_events()
        if events:
            logger.info(
                "order.events_recorded",
                order_id=str(order.id),
                event_count=len(events),
            )
