"""Order DRF serializers for API input/output.

The serializers operate at the Interface layer.  Business logic lives in
the Service Layer, which receives Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from datetime import datetime, time

from django.utils import timezone
from rest_framework import serializers

from modules.orders.constants import CancellationReason, OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem, OrderTimelineEntry

OTP_FIELD = {"max_length": 8, "min_length": 4, "regex": r"^\d+$"}

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CustomizationSelectionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    selected_options = serializers.ListField(
        child=serializers.CharField(max_length=100), allow_empty=True
    )


class CartLineSerializer(serializers.Serializer):
    """Validates a single cart line."""

    menu_item = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    variant = serializers.CharField(
        max_length=100, required=False, allow_null=True, allow_blank=True
    )
    add_ons = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False, default=list
    )
    customizations = CustomizationSelectionSerializer(
        many=True, required=False, default=list
    )
    special_instructions = serializers.CharField(
        max_length=200, required=False, default="", allow_blank=True
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order placement payload."""

    restaurant = serializers.UUIDField()
    delivery_address = serializers.UUIDField()
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    items = CartLineSerializer(many=True)
    special_instructions = serializers.CharField(
        max_length=500, required=False, default="", allow_blank=True
    )

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("An order needs at least one item.")
        return value


class ChangeStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)
    reason_code = serializers.ChoiceField(
        choices=CancellationReason.choices, required=False
    )
    otp = serializers.RegexField(required=False, **OTP_FIELD)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)
    reason_code = serializers.ChoiceField(
        choices=CancellationReason.choices, required=False
    )


class AssignDeliverySerializer(serializers.Serializer):
    delivery_partner_id = serializers.UUIDField()


class VerifyOtpSerializer(serializers.Serializer):
    otp = serializers.RegexField(**OTP_FIELD)


class StatsQuerySerializer(serializers.Serializer):
    """``startDate`` / ``endDate`` as ISO dates or datetimes.

    A bare ``endDate`` date covers that whole day.
    """

    startDate = serializers.DateTimeField(
        required=False, input_formats=["iso-8601", "%Y-%m-%d"]
    )
    endDate = serializers.DateTimeField(
        required=False, input_formats=["iso-8601", "%Y-%m-%d"]
    )

    def validate_endDate(self, value: datetime) -> datetime:
        raw = str(self.initial_data.get("endDate", ""))
        if len(raw) == 10:
            local = timezone.localtime(value)
            return timezone.make_aware(
                datetime.combine(local.date(), time.max),
                timezone.get_current_timezone(),
            )
        return value


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order lines (catalog snapshots)."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "menu_item_id",
            "name",
            "unit_price",
            "quantity",
            "variant",
            "add_ons",
            "customizations",
            "special_instructions",
            "item_total",
        ]
        read_only_fields = fields


class TimelineEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderTimelineEntry
        fields = ["status", "description", "created_at"]
        read_only_fields = fields


class PricingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "subtotal",
            "delivery_fee",
            "cgst",
            "sgst",
            "igst",
            "discount_amount",
            "coupon_code",
            "platform_fee",
            "packaging_fee",
            "total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with lines, pricing and timeline.

    The delivery OTP is only shown to the ordering customer, who hands it
    to the delivery partner at the door.
    """

    items = OrderItemSerializer(many=True, read_only=True)
    timeline = TimelineEntrySerializer(many=True, read_only=True)
    pricing = PricingSerializer(source="*", read_only=True)
    otp = serializers.SerializerMethodField()
    cancellation = serializers.SerializerMethodField()
    rating = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "restaurant_id",
            "delivery_partner_id",
            "delivery_address_id",
            "order_status",
            "payment_status",
            "payment_method",
            "special_instructions",
            "estimated_delivery_time",
            "actual_delivery_time",
            "pricing",
            "items",
            "timeline",
            "otp",
            "cancellation",
            "rating",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_otp(self, order: Order):
        request = self.context.get("request")
        if not order.has_otp or request is None:
            return None
        if request.user.pk != order.customer_id:
            return None
        return {"code": order.otp_code, "expires_at": order.otp_expires_at}

    def get_cancellation(self, order: Order):
        if order.order_status != OrderStatus.CANCELLED:
            return None
        return {
            "reason": order.cancellation_reason,
            "note": order.cancellation_note,
            "cancelled_by": order.cancelled_by,
            "refund_amount": _decimal(order.refund_amount),
            "refund_status": order.refund_status,
            "cancelled_at": order.cancelled_at,
        }

    def get_rating(self, order: Order):
        if order.rated_at is None:
            return None
        return {
            "food": order.rating_food,
            "delivery": order.rating_delivery,
            "overall": _decimal(order.rating_overall),
            "comment": order.rating_comment,
            "rated_at": order.rated_at,
        }


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "restaurant_id",
            "delivery_partner_id",
            "order_status",
            "payment_status",
            "total",
            "created_at",
        ]
        read_only_fields = fields


def _decimal(value):
    return None if value is None else str(value)
