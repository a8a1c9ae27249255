"""Order service layer (Use Cases).

Orchestrates order placement, the status lifecycle, delivery assignment,
OTP confirmation and statistics.  Every write is atomic: the service
defines the unit-of-work boundary, locks the order row (and the delivery
partner row, always after the order) and re-checks state before writing.

Business rules enforced:
- Pricing preconditions and totals (``modules.orders.pricing``).
- Capability checks before transition validity (``modules.orders.permissions``).
- Transition table and side effects (``modules.orders.state_machine``).
- ``delivered`` only through a valid, unexpired OTP (``modules.orders.otp``).
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.core.exceptions import DomainError
from modules.delivery.exceptions import DeliveryPartnerNotFound
from modules.orders import permissions
from modules.orders.constants import AVAILABLE_ORDERS_LIMIT, OrderStatus
from modules.orders.dtos import (
    CancelOrderDTO,
    ChangeStatusDTO,
    CreateOrderDTO,
    OrderStatsDTO,
    StatsWindowDTO,
)
from modules.orders.events import (
    DeliveryPartnerAssigned,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    InvalidDeliveryAddress,
    InvalidDeliveryOtp,
    InvalidStatusTransition,
    OrderNotFound,
    RestaurantUnavailable,
)
from modules.orders.otp import generate_otp, verify_otp
from modules.orders.pricing import PricingConfig, price_cart
from modules.orders.state_machine import (
    TransitionPlan,
    WriteTarget,
    ensure_transition_allowed,
    plan_assignment,
    plan_transition,
    timeline_write,
)
from shared.domain.numbers import percentage, round_half_up

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.catalog.repositories.interfaces import (
        IMenuItemRepository,
        IRestaurantRepository,
    )
    from modules.core.roles import Actor
    from modules.customers.repositories.interfaces import IAddressRepository
    from modules.delivery.repositories.interfaces import IDeliveryPartnerRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        restaurant_repository: IRestaurantRepository,
        menu_item_repository: IMenuItemRepository,
        address_repository: IAddressRepository,
        delivery_partner_repository: IDeliveryPartnerRepository,
        pricing_config: Optional[PricingConfig] = None,
    ) -> None:
        self._order_repo = order_repository
        self._restaurant_repo = restaurant_repository
        self._menu_item_repo = menu_item_repository
        self._address_repo = address_repository
        self._partner_repo = delivery_partner_repository
        self._pricing_config = pricing_config

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Price the cart and persist the order in ``pending`` with an OTP.

        Steps:
        1. Validate restaurant (exists, active) and address (owned by customer).
        2. Price every cart line from catalog snapshots.
        3. Persist order + items + first timeline entry atomically.
        4. Record ``OrderPlaced`` in the outbox.

        Raises:
            RestaurantUnavailable, InvalidDeliveryAddress, MenuItemUnavailable,
            VariantUnavailable, AddOnUnavailable, InvalidCustomization,
            BelowMinimumOrder.
        """
        log = logger.bind(
            customer_id=dto.customer_id, restaurant_id=str(dto.restaurant_id)
        )
        log.info("order.creation_started", line_count=len(dto.items))
        now = timezone.now()

        restaurant = self._restaurant_repo.get_by_id(str(dto.restaurant_id))
        if restaurant is None or not restaurant.is_active:
            log.warning("order.restaurant_unavailable")
            raise RestaurantUnavailable("Restaurant not available")

        address = self._address_repo.get_for_user(
            str(dto.delivery_address_id), dto.customer_id
        )
        if address is None:
            log.warning("order.invalid_address")
            raise InvalidDeliveryAddress("Invalid delivery address")

        menu_items = self._menu_item_repo.get_many(
            {str(line.menu_item_id) for line in dto.items}
        )
        priced = price_cart(
            restaurant, menu_items, dto.items, now, config=self._pricing_config
        )
        otp = generate_otp(now)
        pricing = priced.pricing

        order = self._order_repo.create(
            {
                "customer_id": dto.customer_id,
                "restaurant_id": restaurant.id,
                "delivery_address_id": address.id,
                "payment_method": dto.payment_method,
                "special_instructions": dto.special_instructions,
                "subtotal": pricing.subtotal,
                "delivery_fee": pricing.delivery_fee,
                "platform_fee": pricing.platform_fee,
                "packaging_fee": pricing.packaging_fee,
                "cgst": pricing.cgst,
                "sgst": pricing.sgst,
                "igst": pricing.igst,
                "discount_amount": pricing.discount_amount,
                "total": pricing.total,
                "estimated_delivery_time": priced.estimated_delivery_time,
                "otp_code": otp.code,
                "otp_expires_at": otp.expires_at,
                "items": [
                    {
                        "menu_item_id": line.menu_item_id,
                        "name": line.name,
                        "unit_price": line.unit_price,
                        "quantity": line.quantity,
                        "variant": line.variant,
                        "add_ons": line.add_ons,
                        "customizations": line.customizations,
                        "special_instructions": line.special_instructions,
                        "item_total": line.item_total,
                    }
                    for line in priced.lines
                ],
                "timeline": timeline_write(OrderStatus.PENDING).values,
            }
        )
        self._menu_item_repo.increment_total_orders(priced.menu_item_quantities)

        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                data={
                    "order_number": order.order_number,
                    "restaurant_id": str(restaurant.id),
                    "total": str(order.total),
                },
            )
        )
        self._order_repo.save(order)

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def change_status(self, actor: Actor, order_id: Any, dto: ChangeStatusDTO) -> Order:
        """Move an order to ``dto.status``.

        Locks the order row, checks the caller's capability, then the
        transition table.  ``delivered`` additionally requires ``dto.otp``.

        Raises:
            OrderNotFound, OrderAccessDenied, OrderNotCancellable,
            InvalidStatusTransition, InvalidDeliveryOtp.
        """
        order = self._lock_order(order_id)
        permissions.ensure_can_change_status(actor, order, dto.status)
        party = permissions.acting_party(actor, order)

        if dto.status == OrderStatus.DELIVERED:
            self._ensure_transition(order, dto.status)
            self._check_otp(order, dto.otp)

        plan = self._plan(
            order,
            dto.status,
            party=party,
            reason_code=dto.reason_code,
            note=dto.reason,
        )
        return self._apply(order, plan)

    @transaction.atomic
    def cancel_order(self, actor: Actor, order_id: Any, dto: CancelOrderDTO) -> Order:
        """Cancel from an early state (customer or admin).

        Raises:
            OrderNotFound, OrderAccessDenied, OrderNotCancellable.
        """
        order = self._lock_order(order_id)
        permissions.ensure_can_cancel(actor, order)
        party = permissions.acting_party(actor, order)
        plan = self._plan(
            order,
            OrderStatus.CANCELLED,
            party=party,
            reason_code=dto.reason_code,
            note=dto.reason,
        )
        return self._apply(order, plan)

    @transaction.atomic
    def verify_delivery_otp(self, actor: Actor, order_id: Any, otp: str) -> Order:
        """Confirm the handoff: a matching, unexpired OTP delivers the order.

        Raises:
            OrderNotFound, OrderAccessDenied, InvalidStatusTransition,
            InvalidDeliveryOtp, DeliveryOtpExpired.
        """
        order = self._lock_order(order_id)
        permissions.ensure_can_verify_otp(actor, order)
        self._ensure_transition(order, OrderStatus.DELIVERED)
        self._check_otp(order, otp)
        plan = self._plan(
            order,
            OrderStatus.DELIVERED,
            party=permissions.acting_party(actor, order),
        )
        return self._apply(order, plan)

    @transaction.atomic
    def assign_delivery_partner(
        self, actor: Actor, order_id: Any, delivery_partner_id: Any
    ) -> Order:
        """Restaurant owner or admin attaches an online, idle partner.

        Raises:
            OrderNotFound, OrderAccessDenied, DeliveryPartnerNotFound,
            DeliveryPartnerOffline, DeliveryPartnerBusy, OrderAlreadyAssigned,
            OrderNotAvailableForPickup.
        """
        order = self._lock_order(order_id)
        permissions.ensure_can_assign_delivery(actor, order)
        partner = self._partner_repo.get_for_update(str(delivery_partner_id))
        if partner is None:
            raise DeliveryPartnerNotFound("Delivery partner not found")
        plan = plan_assignment(order, partner, timezone.now())
        return self._apply(order, plan)

    @transaction.atomic
    def accept_order(self, actor: Actor, order_id: Any) -> Order:
        """A delivery partner takes a ``ready_for_pickup`` order.

        The order row is locked before the partner row, so two partners
        accepting the same order serialize and the second sees it assigned.

        Raises:
            DeliveryPartnerNotFound, OrderNotFound, DeliveryPartnerNotApproved,
            DeliveryPartnerOffline, DeliveryPartnerBusy, OrderAlreadyAssigned,
            OrderNotAvailableForPickup.
        """
        if actor.delivery_partner_id is None:
            raise DeliveryPartnerNotFound("Delivery partner profile not found")
        order = self._lock_order(order_id)
        partner = self._partner_repo.get_for_update(actor.delivery_partner_id)
        if partner is None:
            raise DeliveryPartnerNotFound("Delivery partner profile not found")

        log = logger.bind(
            order_id=str(order.id), delivery_partner_id=str(partner.id)
        )
        try:
            plan = plan_assignment(order, partner, timezone.now(), self_accept=True)
        except DomainError as exc:
            log.warning("delivery.accept_rejected", reason=str(exc))
            raise
        order = self._apply(order, plan)
        log.info("delivery.order_accepted")
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, actor: Actor, order_id: Any) -> Order:
        """Retrieve a single order the actor is related to.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: the actor is not related to the order.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        permissions.ensure_can_view(actor, order)
        return order

    def list_orders(self, actor: Actor) -> QuerySet:
        return self._order_repo.visible_to(actor)

    def available_for_pickup(self) -> list:
        return self._order_repo.list_available_for_pickup(AVAILABLE_ORDERS_LIMIT)

    def partner_orders(self, delivery_partner_id: Any, statuses: Any) -> QuerySet:
        return self._order_repo.for_delivery_partner(delivery_partner_id, statuses)

    def order_stats(self, actor: Actor, window: StatsWindowDTO) -> OrderStatsDTO:
        raw = self._order_repo.compute_stats(actor, window.start, window.end)
        return OrderStatsDTO(
            total_orders=raw["total_orders"],
            completed_orders=raw["completed_orders"],
            cancelled_orders=raw["cancelled_orders"],
            completion_rate=percentage(raw["completed_orders"], raw["total_orders"]),
            total_revenue=round_half_up(raw["total_revenue"], 2),
            average_order_value=round_half_up(raw["average_order_value"], 0),
            start_date=window.start,
            end_date=window.end,
        )

    @staticmethod
    def default_stats_window() -> StatsWindowDTO:
        end = timezone.now()
        return StatsWindowDTO(
            start=end - timedelta(days=settings.ORDER_STATS_DEFAULT_DAYS), end=end
        )

    # ------------------------------------------------------------------
    # Plan execution
    # ------------------------------------------------------------------

    def _lock_order(self, order_id: Any) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _ensure_transition(self, order: Order, target: str) -> None:
        try:
            ensure_transition_allowed(order.order_status, target)
        except InvalidStatusTransition:
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                current_status=order.order_status,
                new_status=target,
            )
            raise

    def _check_otp(self, order: Order, supplied: Optional[str]) -> None:
        if not supplied:
            raise InvalidDeliveryOtp("OTP is required to mark the order delivered")
        try:
            verify_otp(order, supplied, timezone.now())
        except InvalidDeliveryOtp as exc:
            logger.warning(
                "order.otp_rejected", order_id=str(order.id), code=exc.code
            )
            raise

    def _plan(self, order: Order, target: str, **kwargs: Any) -> TransitionPlan:
        self._ensure_transition(order, target)
        return plan_transition(order, target, timezone.now(), **kwargs)

    def _apply(self, order: Order, plan: TransitionPlan) -> Order:
        """Execute every write of ``plan``; the caller holds the transaction."""
        if plan.changes_status:
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    data={
                        "old_status": plan.from_status,
                        "new_status": plan.to_status,
                    },
                )
            )
        if plan.to_status == OrderStatus.CANCELLED and plan.changes_status:
            values = plan.order_values()
            order.add_domain_event(
                OrderCancelled(
                    aggregate_id=order.id,
                    data={
                        "cancelled_by": values["cancelled_by"],
                        "reason": values["cancellation_reason"],
                        "refund_amount": str(values["refund_amount"]),
                    },
                )
            )
        if plan.to_status == OrderStatus.DELIVERED and plan.changes_status:
            order.add_domain_event(OrderDelivered(aggregate_id=order.id))

        partner_writes = plan.for_target(WriteTarget.DELIVERY_PARTNER)
        for write in partner_writes:
            order.add_domain_event(
                DeliveryPartnerAssigned(
                    aggregate_id=order.id,
                    data={"delivery_partner_id": str(write.key)},
                )
            )

        self._order_repo.update_fields(order, plan.order_values())
        for write in plan.for_target(WriteTarget.TIMELINE):
            self._order_repo.add_timeline_entry(order.id, **write.values)
        for write in partner_writes:
            self._partner_repo.update_fields(
                str(write.key), write.values, write.increments
            )
        for write in plan.for_target(WriteTarget.RELEASE_PARTNER):
            self._partner_repo.release_order(str(write.key), order.id)
        for write in plan.for_target(WriteTarget.PARTNER_STATISTICS):
            self._partner_repo.refresh_statistics(str(write.key))

        logger.info(
            "order.status_updated" if plan.changes_status else "order.updated_assignment",
            order_id=str(order.id),
            old_status=plan.from_status,
            new_status=plan.to_status,
        )
        return self._order_repo.get_by_id(str(order.id)) or order
