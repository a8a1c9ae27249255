"""Review DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.reviews.constants import MAX_RATING, MIN_RATING, ReviewSort, ReviewTag
from modules.reviews.models import Review, ReviewItemRating


def _rating_field(**kwargs) -> serializers.IntegerField:
    return serializers.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING, **kwargs)


# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ItemRatingInputSerializer(serializers.Serializer):
    menu_item = serializers.UUIDField()
    rating = _rating_field()
    comment = serializers.CharField(
        max_length=500, required=False, default="", allow_blank=True
    )


class CreateReviewSerializer(serializers.Serializer):
    order = serializers.UUIDField()
    food = _rating_field()
    delivery = _rating_field()
    service = _rating_field()
    comment = serializers.CharField(
        max_length=1000, required=False, default="", allow_blank=True
    )
    tags = serializers.ListField(
        child=serializers.ChoiceField(choices=ReviewTag.choices),
        required=False,
        default=list,
    )
    item_ratings = ItemRatingInputSerializer(many=True, required=False, default=list)


class UpdateReviewSerializer(serializers.Serializer):
    food = _rating_field(required=False)
    delivery = _rating_field(required=False)
    service = _rating_field(required=False)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    tags = serializers.ListField(
        child=serializers.ChoiceField(choices=ReviewTag.choices), required=False
    )
    item_ratings = ItemRatingInputSerializer(many=True, required=False)


class ResponseSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=500)


class HelpfulSerializer(serializers.Serializer):
    is_helpful = serializers.BooleanField()


class ReportSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


class ModerateSerializer(serializers.Serializer):
    is_hidden = serializers.BooleanField()


class RestaurantReviewQuerySerializer(serializers.Serializer):
    """``min_rating``, comma-separated ``tags`` and ``sort``."""

    min_rating = _rating_field(required=False)
    tags = serializers.CharField(required=False, allow_blank=True)
    sort = serializers.ChoiceField(
        choices=ReviewSort.choices, required=False, default=ReviewSort.RECENT
    )

    def validate_tags(self, value: str) -> list:
        tags = [tag.strip() for tag in value.split(",") if tag.strip()]
        unknown = sorted(set(tags) - set(ReviewTag.values))
        if unknown:
            raise serializers.ValidationError(f"Unknown tags: {', '.join(unknown)}")
        return tags


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class ReviewItemRatingSerializer(serializers.ModelSerializer):
    menu_item_name = serializers.CharField(source="menu_item.name", read_only=True)

    class Meta:
        model = ReviewItemRating
        fields = ["menu_item_id", "menu_item_name", "rating", "comment"]
        read_only_fields = fields


class ReviewSerializer(serializers.ModelSerializer):
    item_ratings = ReviewItemRatingSerializer(many=True, read_only=True)
    customer_name = serializers.SerializerMethodField()
    response = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = [
            "id",
            "order_id",
            "restaurant_id",
            "delivery_partner_id",
            "customer_id",
            "customer_name",
            "food",
            "delivery",
            "service",
            "overall",
            "comment",
            "tags",
            "item_ratings",
            "helpful_count",
            "not_helpful_count",
            "response",
            "is_reported",
            "is_hidden",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, review: Review) -> str:
        customer = review.customer
        return customer.get_full_name() or customer.get_username()

    def get_response(self, review: Review):
        if not review.has_response:
            return None
        return {"message": review.response_message, "responded_at": review.responded_at}
