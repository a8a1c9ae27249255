"""Unit tests for Order, OrderItem and OrderTimelineEntry models.

Covers:
- Order number format and uniqueness retries.
- State machine helpers on the model.
- OrderItem quantity constraint and ordering.
- Timeline append order.
"""

from __future__ import annotations

import re
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import IntegrityError

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderTimelineEntry

pytestmark = pytest.mark.unit

ORDER_NUMBER_RE = re.compile(r"^FR-\d{14}-[0-9A-F]{6}$")


class TestOrderNumber:
    def test_generated_format(self):
        assert ORDER_NUMBER_RE.match(Order.generate_order_number())

    def test_assigned_on_first_save(self, pending_order):
        assert ORDER_NUMBER_RE.match(pending_order.order_number)

    def test_not_regenerated_on_update(self, pending_order):
        number = pending_order.order_number
        pending_order.special_instructions = "Ring twice"
        pending_order.save()

        pending_order.refresh_from_db()
        assert pending_order.order_number == number

    def test_collision_is_retried(self, pending_order, place_order):
        taken = pending_order.order_number
        with patch.object(
            Order,
            "generate_order_number",
            side_effect=[taken, "FR-20250101000000-ABCDEF"],
        ):
            second = place_order()

        assert second.order_number == "FR-20250101000000-ABCDEF"

    def test_exhausted_retries_raise(self, pending_order, place_order):
        with patch.object(
            Order, "generate_order_number", return_value=pending_order.order_number
        ):
            with pytest.raises(RuntimeError, match="order_number"):
                place_order()


class TestStateHelpers:
    def test_new_order_is_pending_with_otp(self, pending_order):
        assert pending_order.order_status == OrderStatus.PENDING
        assert pending_order.has_otp
        assert not pending_order.is_terminal

    def test_can_transition_to(self, pending_order):
        assert pending_order.can_transition_to(OrderStatus.CONFIRMED)
        assert pending_order.can_transition_to(OrderStatus.CANCELLED)
        assert not pending_order.can_transition_to(OrderStatus.DELIVERED)

    def test_delivered_order_is_terminal_without_otp(self, delivered_order):
        assert delivered_order.is_terminal
        assert not delivered_order.has_otp
        assert not delivered_order.can_transition_to(OrderStatus.CANCELLED)

    def test_str_contains_number_and_status(self, pending_order):
        assert str(pending_order) == f"{pending_order.order_number} (pending)"


class TestOrderItem:
    def test_snapshot_lines_persisted(self, pending_order):
        (item,) = pending_order.items.all()

        assert item.name == "Veg Thali"
        assert item.unit_price == Decimal("100.00")
        assert item.quantity == 2
        assert item.item_total == Decimal("200.00")

    def test_quantity_must_be_positive(self, pending_order, thali):
        with pytest.raises(IntegrityError):
            OrderItem.objects.create(
                order=pending_order,
                menu_item=thali,
                name=thali.name,
                unit_price=thali.price,
                quantity=0,
                item_total=Decimal("0"),
            )


class TestTimeline:
    def test_entries_append_in_order(self, ready_order):
        statuses = list(
            OrderTimelineEntry.objects.filter(order=ready_order).values_list(
                "status", flat=True
            )
        )

        assert statuses == [
            "order_placed",
            "order_confirmed",
            "preparing",
            "ready_for_pickup",
        ]
