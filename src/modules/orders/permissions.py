"""Capability checks for order operations.

Every check takes an ``Actor`` (the caller and what they own) and the
order, and either returns or raises.  Nothing here touches the database.

Capability matrix::

    operation        admin  restaurant owner  assigned partner  customer
    view             yes    yes               yes               own orders
    change status    yes    yes               yes               cancel only, early states
    cancel           early  -                 -                 own orders, early states
    assign partner   yes    yes               -                 -
    verify OTP       yes    -                 yes               -
"""

from __future__ import annotations

from typing import Any, Set

from modules.core.roles import Actor
from modules.orders.constants import CUSTOMER_CANCELLABLE_STATES, OrderStatus, Party
from modules.orders.exceptions import OrderAccessDenied, OrderNotCancellable


def parties(actor: Actor, order: Any) -> Set[str]:
    """Every capacity in which ``actor`` relates to ``order``."""
    found = set()
    if actor.is_admin:
        found.add(Party.ADMIN)
    if actor.owns_restaurant(order.restaurant_id):
        found.add(Party.RESTAURANT)
    if actor.is_delivery_partner(order.delivery_partner_id):
        found.add(Party.DELIVERY_PARTNER)
    if order.customer_id == actor.user_id:
        found.add(Party.CUSTOMER)
    return found


def acting_party(actor: Actor, order: Any) -> str:
    """The strongest capacity, used as ``cancelled_by``."""
    related = parties(actor, order)
    for party in (Party.ADMIN, Party.RESTAURANT, Party.DELIVERY_PARTNER, Party.CUSTOMER):
        if party in related:
            return party
    raise OrderAccessDenied("Access denied")


def can_view(actor: Actor, order: Any) -> bool:
    return bool(parties(actor, order))


def ensure_can_view(actor: Actor, order: Any) -> None:
    if not can_view(actor, order):
        raise OrderAccessDenied("Access denied")


def ensure_can_change_status(actor: Actor, order: Any, target: str) -> None:
    """Staff-side parties may request any status; customers may only cancel early.

    Raises:
        OrderAccessDenied: caller is unrelated, or a customer asked for
            anything but ``cancelled``.
        OrderNotCancellable: a customer asked to cancel after preparation.
    """
    related = parties(actor, order)
    if related & {Party.ADMIN, Party.RESTAURANT, Party.DELIVERY_PARTNER}:
        return
    if Party.CUSTOMER in related and target == OrderStatus.CANCELLED:
        _ensure_early_stage(order)
        return
    raise OrderAccessDenied("Access denied")


def ensure_can_cancel(actor: Actor, order: Any) -> None:
    """The cancel endpoint only serves customers and admins, in early states."""
    if not parties(actor, order) & {Party.ADMIN, Party.CUSTOMER}:
        raise OrderAccessDenied("Access denied")
    _ensure_early_stage(order)


def ensure_can_assign_delivery(actor: Actor, order: Any) -> None:
    if not parties(actor, order) & {Party.ADMIN, Party.RESTAURANT}:
        raise OrderAccessDenied("Access denied")


def ensure_can_verify_otp(actor: Actor, order: Any) -> None:
    if not parties(actor, order) & {Party.ADMIN, Party.DELIVERY_PARTNER}:
        raise OrderAccessDenied("Access denied")


def _ensure_early_stage(order: Any) -> None:
    if order.order_status not in CUSTOMER_CANCELLABLE_STATES:
        raise OrderNotCancellable("Order cannot be cancelled at this stage")
