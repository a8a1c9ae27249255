"""Unit tests for BaseModel, SoftDeleteModel and OutboxEvent.

``Address`` stands in for soft-deletable models and ``OutboxEvent`` for
plain ``BaseModel`` subclasses.
"""

from __future__ import annotations

import uuid
from uuid import uuid4

import pytest
from django.core.exceptions import ValidationError
from freezegun import freeze_time

from modules.core.models import EventStatus, OutboxEvent
from modules.customers.models import Address
from modules.orders.events import OrderPlaced

pytestmark = pytest.mark.unit


def _address(user, **overrides) -> Address:
    defaults = {
        "user": user,
        "address_line1": "7 Residency Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560025",
    }
    defaults.update(overrides)
    return Address.objects.create(**defaults)


# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class TestBaseModel:
    def test_id_is_uuid_version_7(self, customer_user):
        obj = _address(customer_user)
        assert isinstance(obj.id, uuid.UUID)
        assert obj.id.version == 7

    def test_ids_are_time_ordered(self, customer_user):
        a = _address(customer_user)
        b = _address(customer_user)
        assert str(a.id) < str(b.id)

    def test_update_fields_refreshes_updated_at(self, customer_user):
        with freeze_time("2025-03-01 12:00:00") as frozen:
            obj = _address(customer_user)
            original = obj.updated_at
            frozen.tick(60)
            obj.label = "Office"
            obj.save(update_fields=["label"])

        obj.refresh_from_db()
        assert obj.updated_at > original
        assert obj.created_at == original

    def test_id_is_not_editable(self):
        assert Address._meta.get_field("id").editable is False


# ---------------------------------------------------------------------------
# SoftDeleteModel
# ---------------------------------------------------------------------------


class TestSoftDeleteModel:
    def test_delete_sets_deleted_at(self, customer_user):
        obj = _address(customer_user)

        result = obj.delete()

        obj.refresh_from_db()
        assert obj.is_deleted is True
        assert result == (1, {"customers.Address": 1})

    def test_second_delete_is_noop(self, customer_user):
        obj = _address(customer_user)
        obj.delete()

        assert obj.delete() == (0, {})

    def test_alive_and_dead_managers(self, customer_user):
        kept = _address(customer_user)
        gone = _address(customer_user)
        gone.delete()

        assert list(Address.objects.alive()) == [kept]
        assert list(Address.objects.dead()) == [gone]
        assert Address.objects.count() == 2

    def test_queryset_delete_is_soft(self, customer_user):
        _address(customer_user)
        _address(customer_user)

        count, _ = Address.objects.filter(user=customer_user).delete()

        assert count == 2
        assert Address.objects.alive().count() == 0
        assert Address.objects.count() == 2

    def test_hard_delete_removes_row(self, customer_user):
        obj = _address(customer_user)

        obj.hard_delete()

        assert not Address.objects.filter(pk=obj.pk).exists()


class TestAddressValidation:
    def test_postal_code_is_stripped_on_save(self, customer_user):
        obj = _address(customer_user, postal_code=" 56001 ")
        assert obj.postal_code == "56001"

    def test_invalid_postal_code_rejected_by_clean(self, customer_user):
        obj = Address(
            user=customer_user,
            address_line1="x",
            city="y",
            state="z",
            postal_code="ABC",
        )
        with pytest.raises(ValidationError):
            obj.full_clean()

    def test_one_line_skips_blank_parts(self, customer_user):
        obj = _address(customer_user)
        assert obj.one_line == "7 Residency Road, Bengaluru, Karnataka, 560025"


# ---------------------------------------------------------------------------
# OutboxEvent
# ---------------------------------------------------------------------------


class TestOutboxEvent:
    def test_record_serializes_event(self):
        event = OrderPlaced(aggregate_id=uuid4(), data={"order_number": "FR-1"})

        row = OutboxEvent.record(event, topic="orders")

        assert row.status == EventStatus.PENDING
        assert row.event_type == "OrderPlaced"
        assert row.aggregate_id == str(event.aggregate_id)
        assert row.payload["data"] == {"order_number": "FR-1"}
        assert row.payload["event_id"] == str(event.event_id)

    def test_mark_as_published(self):
        row = OutboxEvent.record(OrderPlaced(aggregate_id=uuid4()), topic="orders")

        row.mark_as_published()

        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED
        assert row.processed_at is not None

    def test_mark_as_failed_counts_retries(self):
        row = OutboxEvent.record(OrderPlaced(aggregate_id=uuid4()), topic="orders")

        row.mark_as_failed("boom")
        row.mark_as_failed("boom again")

        row.refresh_from_db()
        assert row.status == EventStatus.FAILED
        assert row.error_message == "boom again"
        assert row.retry_count == 2
