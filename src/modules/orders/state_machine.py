"""Order state machine.

Pure planning functions: given an order (read-only) and a request, they
validate it and return a ``TransitionPlan`` listing every write the
change implies.  ``OrderService`` applies the plan inside one database
transaction; nothing here touches the database.

Write targets:

- ``ORDER``: field updates on the order row.
- ``TIMELINE``: one appended timeline entry.
- ``DELIVERY_PARTNER``: field updates (``values``) and counter increments
  (``increments``) on the partner row identified by ``key``.
- ``RELEASE_PARTNER``: clear partner ``key``'s ``current_order`` if it
  still points at this order.
- ``PARTNER_STATISTICS``: recompute partner ``key``'s completion statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from modules.delivery.exceptions import (
    DeliveryPartnerBusy,
    DeliveryPartnerNotApproved,
    DeliveryPartnerOffline,
)
from modules.orders.constants import (
    DEFAULT_CANCELLATION_REASON,
    STATUS_TIMELINE_MAP,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    Party,
    RefundStatus,
)
from modules.orders.exceptions import (
    InvalidStatusTransition,
    OrderAlreadyAssigned,
    OrderNotAvailableForPickup,
)


class WriteTarget:
    ORDER = "order"
    TIMELINE = "timeline"
    DELIVERY_PARTNER = "delivery_partner"
    RELEASE_PARTNER = "release_partner"
    PARTNER_STATISTICS = "partner_statistics"


@dataclass(frozen=True)
class Write:
    target: str
    values: Dict[str, Any] = field(default_factory=dict)
    increments: Dict[str, int] = field(default_factory=dict)
    key: Any = None


@dataclass(frozen=True)
class TransitionPlan:
    order_id: Any
    from_status: str
    to_status: str
    writes: Tuple[Write, ...] = ()

    def for_target(self, target: str) -> List[Write]:
        return [w for w in self.writes if w.target == target]

    def order_values(self) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for write in self.for_target(WriteTarget.ORDER):
            merged.update(write.values)
        return merged

    @property
    def changes_status(self) -> bool:
        return self.from_status != self.to_status

    def __add__(self, other: TransitionPlan) -> TransitionPlan:
        return TransitionPlan(
            order_id=self.order_id,
            from_status=self.from_status,
            to_status=other.to_status,
            writes=self.writes + other.writes,
        )


TIMELINE_DESCRIPTIONS: Dict[str, str] = {
    OrderStatus.PENDING: "Order placed",
    OrderStatus.CONFIRMED: "Order confirmed by the restaurant",
    OrderStatus.PREPARING: "Restaurant is preparing the order",
    OrderStatus.READY_FOR_PICKUP: "Order is ready for pickup",
    OrderStatus.OUT_FOR_DELIVERY: "Order is out for delivery",
    OrderStatus.DELIVERED: "Order delivered",
    OrderStatus.CANCELLED: "Order cancelled",
}


def timeline_status(order_status: str) -> str:
    return STATUS_TIMELINE_MAP.get(order_status, order_status)


def timeline_write(order_status: str, description: Optional[str] = None) -> Write:
    return Write(
        WriteTarget.TIMELINE,
        {
            "status": timeline_status(order_status),
            "description": description
            or TIMELINE_DESCRIPTIONS.get(order_status, order_status),
        },
    )


def ensure_transition_allowed(current: str, target: str) -> None:
    if target not in VALID_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransition(
            f"Cannot change status from {current} to {target}"
        )


def plan_transition(
    order: Any,
    target: str,
    now: datetime,
    party: str = Party.SYSTEM,
    reason_code: Optional[str] = None,
    note: Optional[str] = None,
) -> TransitionPlan:
    """Validate ``order.order_status -> target`` and list its writes.

    ``party`` is who requested the change; it only matters for
    cancellations (``cancelled_by`` and the default reason code).  The OTP
    gate on ``delivered`` is checked by the caller before planning.

    Raises:
        InvalidStatusTransition: ``target`` is not reachable from the
            current status.
    """
    current = order.order_status
    ensure_transition_allowed(current, target)

    order_values: Dict[str, Any] = {"order_status": target}
    description = None

    if target == OrderStatus.CANCELLED:
        reason_code = reason_code or DEFAULT_CANCELLATION_REASON.get(party, "other")
        note = note or f"Cancelled by {party.replace('_', ' ')}"
        order_values.update(
            cancellation_reason=reason_code,
            cancellation_note=note,
            cancelled_by=party,
            refund_amount=Decimal(order.total),
            refund_status=RefundStatus.PENDING,
            cancelled_at=now,
        )
        description = f"Order cancelled: {note}"
    elif target == OrderStatus.DELIVERED:
        order_values.update(
            actual_delivery_time=now,
            otp_code=None,
            otp_expires_at=None,
        )

    writes: List[Write] = [
        Write(WriteTarget.ORDER, order_values),
        timeline_write(target, description),
    ]
    if target in TERMINAL_STATES and order.delivery_partner_id is not None:
        writes.append(
            Write(WriteTarget.RELEASE_PARTNER, key=order.delivery_partner_id)
        )
        writes.append(
            Write(WriteTarget.PARTNER_STATISTICS, key=order.delivery_partner_id)
        )

    return TransitionPlan(
        order_id=order.id,
        from_status=current,
        to_status=target,
        writes=tuple(writes),
    )


def plan_assignment(
    order: Any,
    partner: Any,
    now: datetime,
    self_accept: bool = False,
) -> TransitionPlan:
    """Attach ``partner`` to ``order``.

    A restaurant owner or admin assigns any online, idle partner to an
    unassigned, non-terminal order.  A partner accepting on their own
    behalf must also be approved, and the order must be ``ready_for_pickup``;
    the accept then moves it to ``out_for_delivery``.

    Raises:
        OrderAlreadyAssigned: the order already has a partner.
        OrderNotAvailableForPickup: terminal order, or not ready on self-accept.
        DeliveryPartnerNotApproved: self-accept by an unapproved partner.
        DeliveryPartnerOffline: partner is offline.
        DeliveryPartnerBusy: partner already holds an active order.
    """
    if self_accept and not partner.is_approved:
        raise DeliveryPartnerNotApproved("Delivery partner profile is not approved")
    if not partner.is_online:
        raise DeliveryPartnerOffline("You must be online to accept orders")
    if partner.current_order_id is not None:
        raise DeliveryPartnerBusy("Delivery partner already has an active order")
    if order.delivery_partner_id is not None:
        raise OrderAlreadyAssigned("Order already has a delivery partner")
    if order.order_status in TERMINAL_STATES or (
        self_accept and order.order_status != OrderStatus.READY_FOR_PICKUP
    ):
        raise OrderNotAvailableForPickup("Order not available for pickup")

    plan = TransitionPlan(
        order_id=order.id,
        from_status=order.order_status,
        to_status=order.order_status,
        writes=(
            Write(WriteTarget.ORDER, {"delivery_partner_id": partner.id}),
            Write(
                WriteTarget.DELIVERY_PARTNER,
                values={"current_order_id": order.id},
                increments={"total_orders": 1},
                key=partner.id,
            ),
        ),
    )
    if self_accept:
        plan = plan + plan_transition(
            order, OrderStatus.OUT_FOR_DELIVERY, now, party=Party.DELIVERY_PARTNER
        )
    return plan
