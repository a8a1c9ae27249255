"""Integration tests: every committed order change leaves an outbox row."""

import pytest

from modules.core.models import OutboxEvent

pytestmark = pytest.mark.integration


def _events(order):
    return list(
        OutboxEvent.objects.filter(aggregate_id=str(order.id))
        .order_by("created_at", "id")
        .values_list("event_type", flat=True)
    )


class TestOrderOutbox:
    def test_full_delivery_records_each_event(self, delivered_order):
        events = _events(delivered_order)

        assert events[0] == "OrderPlaced"
        assert events.count("OrderStatusChanged") == 5
        assert "DeliveryPartnerAssigned" in events
        assert events[-1] == "OrderDelivered"

    def test_cancellation_payload(self, client_for, customer_user, pending_order):
        client_for(customer_user).put(
            f"/api/v1/orders/{pending_order.id}/cancel/", {}, format="json"
        )

        event = OutboxEvent.objects.get(
            aggregate_id=str(pending_order.id), event_type="OrderCancelled"
        )
        assert event.topic == "orders"
        assert event.status == "PENDING"
        assert event.payload["data"]["cancelled_by"] == "customer"
        assert event.payload["data"]["refund_amount"] == str(pending_order.total)

    def test_rejected_change_records_nothing(self, client_for, owner_user, pending_order):
        before = OutboxEvent.objects.count()

        client_for(owner_user).put(
            f"/api/v1/orders/{pending_order.id}/status/",
            {"status": "delivered"},
            format="json",
        )

        assert OutboxEvent.objects.count() == before
