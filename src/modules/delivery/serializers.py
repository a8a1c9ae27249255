"""Delivery partner serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.delivery.models import DeliveryPartner


class AvailabilitySerializer(serializers.Serializer):
    is_online = serializers.BooleanField()


class DeliveryPartnerSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryPartner
        fields = [
            "id",
            "vehicle_type",
            "is_online",
            "is_approved",
            "current_order",
            "last_active_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
