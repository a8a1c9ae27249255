"""Unit tests for the order capability checks (no database access)."""

from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest

from modules.core.roles import Actor, Role
from modules.orders import permissions
from modules.orders.constants import OrderStatus, Party
from modules.orders.exceptions import OrderAccessDenied, OrderNotCancellable

pytestmark = pytest.mark.unit

CUSTOMER_ID = 10
RESTAURANT_ID = uuid4()
PARTNER_ID = uuid4()

ADMIN = Actor(user_id=1, is_admin=True)
OWNER = Actor(user_id=2, restaurant_ids=frozenset({str(RESTAURANT_ID)}))
PARTNER = Actor(user_id=3, delivery_partner_id=str(PARTNER_ID))
OTHER_PARTNER = Actor(user_id=4, delivery_partner_id=str(uuid4()))
CUSTOMER = Actor(user_id=CUSTOMER_ID)
STRANGER = Actor(user_id=99)


def _order(status=OrderStatus.PENDING, partner_id=PARTNER_ID):
    return SimpleNamespace(
        customer_id=CUSTOMER_ID,
        restaurant_id=RESTAURANT_ID,
        delivery_partner_id=partner_id,
        order_status=status,
    )


class TestRoles:
    @pytest.mark.parametrize(
        ("actor", "role"),
        [
            (ADMIN, Role.ADMIN),
            (OWNER, Role.RESTAURANT_OWNER),
            (PARTNER, Role.DELIVERY_PARTNER),
            (CUSTOMER, Role.CUSTOMER),
        ],
    )
    def test_role_follows_relationships(self, actor, role):
        assert actor.role == role

    def test_parties_collects_every_capacity(self):
        both = Actor(user_id=CUSTOMER_ID, restaurant_ids=frozenset({str(RESTAURANT_ID)}))

        assert permissions.parties(both, _order()) == {Party.RESTAURANT, Party.CUSTOMER}

    def test_acting_party_prefers_staff_side(self):
        both = Actor(user_id=CUSTOMER_ID, restaurant_ids=frozenset({str(RESTAURANT_ID)}))

        assert permissions.acting_party(both, _order()) == Party.RESTAURANT


class TestView:
    @pytest.mark.parametrize("actor", [ADMIN, OWNER, PARTNER, CUSTOMER])
    def test_related_actors_can_view(self, actor):
        permissions.ensure_can_view(actor, _order())

    @pytest.mark.parametrize("actor", [STRANGER, OTHER_PARTNER])
    def test_unrelated_actors_cannot_view(self, actor):
        with pytest.raises(OrderAccessDenied):
            permissions.ensure_can_view(actor, _order())

    def test_unassigned_order_is_not_visible_to_partners(self):
        assert not permissions.can_view(PARTNER, _order(partner_id=None))


class TestChangeStatus:
    @pytest.mark.parametrize("actor", [ADMIN, OWNER, PARTNER])
    def test_staff_side_may_request_any_status(self, actor):
        permissions.ensure_can_change_status(
            actor, _order(OrderStatus.PREPARING), OrderStatus.READY_FOR_PICKUP
        )

    def test_customer_may_only_cancel(self):
        with pytest.raises(OrderAccessDenied):
            permissions.ensure_can_change_status(
                CUSTOMER, _order(), OrderStatus.CONFIRMED
            )

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING],
    )
    def test_customer_may_cancel_early(self, status):
        permissions.ensure_can_change_status(
            CUSTOMER, _order(status), OrderStatus.CANCELLED
        )

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.READY_FOR_PICKUP, OrderStatus.OUT_FOR_DELIVERY],
    )
    def test_customer_cannot_cancel_late(self, status):
        with pytest.raises(OrderNotCancellable):
            permissions.ensure_can_change_status(
                CUSTOMER, _order(status), OrderStatus.CANCELLED
            )

    def test_stranger_rejected(self):
        with pytest.raises(OrderAccessDenied):
            permissions.ensure_can_change_status(
                STRANGER, _order(), OrderStatus.CANCELLED
            )


class TestCancel:
    @pytest.mark.parametrize("actor", [ADMIN, CUSTOMER])
    def test_customer_and_admin_cancel_early(self, actor):
        permissions.ensure_can_cancel(actor, _order(OrderStatus.CONFIRMED))

    @pytest.mark.parametrize("actor", [OWNER, PARTNER, STRANGER])
    def test_other_parties_cannot_use_cancel(self, actor):
        with pytest.raises(OrderAccessDenied):
            permissions.ensure_can_cancel(actor, _order())

    @pytest.mark.parametrize("actor", [ADMIN, CUSTOMER])
    def test_cancel_endpoint_limited_to_early_states(self, actor):
        with pytest.raises(OrderNotCancellable):
            permissions.ensure_can_cancel(actor, _order(OrderStatus.READY_FOR_PICKUP))


class TestAssignAndVerify:
    @pytest.mark.parametrize("actor", [ADMIN, OWNER])
    def test_owner_and_admin_assign(self, actor):
        permissions.ensure_can_assign_delivery(actor, _order())

    @pytest.mark.parametrize("actor", [PARTNER, CUSTOMER, STRANGER])
    def test_others_cannot_assign(self, actor):
        with pytest.raises(OrderAccessDenied):
            permissions.ensure_can_assign_delivery(actor, _order())

    @pytest.mark.parametrize("actor", [ADMIN, PARTNER])
    def test_partner_and_admin_verify_otp(self, actor):
        permissions.ensure_can_verify_otp(actor, _order())

    @pytest.mark.parametrize("actor", [OWNER, CUSTOMER, OTHER_PARTNER])
    def test_others_cannot_verify_otp(self, actor):
        with pytest.raises(OrderAccessDenied):
            permissions.ensure_can_verify_otp(actor, _order())
