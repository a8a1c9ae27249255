"""Unit tests for domain events and their outbox payloads."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.events import OrderCancelled, OrderPlaced
from modules.orders.models import Order
from shared.domain.events import DomainEvent, serialize_event

pytestmark = pytest.mark.unit


def test_order_registers_and_clears_domain_events():
    order = Order(order_number="FR-20250301120000-ABC123", total=Decimal("254.00"))

    assert order.domain_events == []

    event = OrderPlaced(aggregate_id=order.id)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderPlaced"

    order.clear_domain_events()
    assert order.domain_events == []


def test_payload_round_trip_restores_event():
    event = OrderCancelled(
        aggregate_id=uuid4(),
        data={"cancelled_by": "customer", "refund_amount": Decimal("254.00")},
    )

    payload = serialize_event(event)
    restored = DomainEvent.from_payload("OrderCancelled", payload)

    assert payload["data"]["refund_amount"] == "254.00"
    assert isinstance(restored, OrderCancelled)
    assert restored.event_id == event.event_id
    assert restored.aggregate_id == event.aggregate_id
    assert restored.occurred_on == event.occurred_on


def test_unknown_event_name_raises():
    with pytest.raises(LookupError, match="Unknown domain event"):
        DomainEvent.from_payload("NoSuchEvent", {})
