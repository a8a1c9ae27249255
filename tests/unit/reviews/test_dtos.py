"""Unit tests for review DTOs."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.reviews.constants import ReviewSort
from modules.reviews.dtos import (
    CreateReviewDTO,
    ItemRatingDTO,
    RatingBucketDTO,
    ReviewListQueryDTO,
    ReviewStatsDTO,
    UpdateReviewDTO,
)

pytestmark = pytest.mark.unit


def _create(**overrides):
    defaults = {
        "customer_id": 1,
        "order_id": uuid4(),
        "food": 4,
        "delivery": 5,
        "service": 5,
    }
    defaults.update(overrides)
    return CreateReviewDTO(**defaults)


class TestCreateReviewDTO:
    @pytest.mark.parametrize("field", ["food", "delivery", "service"])
    @pytest.mark.parametrize("value", [0, 6])
    def test_ratings_bounded(self, field, value):
        with pytest.raises(ValidationError):
            _create(**{field: value})

    def test_repeated_tags_collapsed(self):
        dto = _create(tags=["hot_food", "great_food", "hot_food"])
        assert dto.tags == ["hot_food", "great_food"]

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValidationError):
            _create(tags=["tasty"])

    def test_menu_item_rated_once(self):
        item_id = uuid4()
        with pytest.raises(ValidationError, match="only be rated once"):
            _create(
                item_ratings=[
                    ItemRatingDTO(menu_item_id=item_id, rating=4),
                    ItemRatingDTO(menu_item_id=item_id, rating=5),
                ]
            )

    def test_comment_length_limited(self):
        with pytest.raises(ValidationError):
            _create(comment="x" * 1001)


class TestUpdateReviewDTO:
    def test_everything_optional(self):
        dto = UpdateReviewDTO()
        assert dto.food is None
        assert dto.tags is None
        assert dto.item_ratings is None

    def test_partial_rating_bounded(self):
        with pytest.raises(ValidationError):
            UpdateReviewDTO(service=0)


class TestListQuery:
    def test_defaults(self):
        query = ReviewListQueryDTO()
        assert query.sort == ReviewSort.RECENT
        assert query.tags == []
        assert query.min_rating is None


class TestReviewStatsDTO:
    def test_camel_case_dump(self):
        stats = ReviewStatsDTO(
            total_reviews=2,
            average_food=Decimal("4.5"),
            average_delivery=Decimal("5.0"),
            average_service=Decimal("4.0"),
            average_overall=Decimal("4.5"),
            rating_distribution=[RatingBucketDTO(rating=Decimal("4.7"), count=2)],
        )

        dumped = stats.model_dump(mode="json", by_alias=True)
        assert dumped["totalReviews"] == 2
        assert dumped["averageOverall"] == "4.5"
        assert dumped["ratingDistribution"] == [{"rating": "4.7", "count": 2}]
