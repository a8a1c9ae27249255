"""Review DTOs for the Service Layer (Pydantic v2, immutable).

- ``CreateReviewDTO`` / ``UpdateReviewDTO``: customer commands.
- ``ReviewListQueryDTO``: filters and sort for restaurant listings.
- ``ReviewStatsDTO``: per-restaurant statistics (camelCase on the wire).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from modules.reviews.constants import MAX_RATING, MIN_RATING, ReviewSort, ReviewTag

Rating = Annotated[int, Field(ge=MIN_RATING, le=MAX_RATING)]


def _unique_tags(tags: Optional[List[ReviewTag]]) -> Optional[List[ReviewTag]]:
    if tags is None:
        return None
    return list(dict.fromkeys(tags))


def _unique_items(items: Optional[List[ItemRatingDTO]]) -> Optional[List[ItemRatingDTO]]:
    if items is None:
        return None
    ids = [item.menu_item_id for item in items]
    if len(ids) != len(set(ids)):
        raise ValueError("Each menu item can only be rated once.")
    return items


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ItemRatingDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    menu_item_id: UUID
    rating: Rating
    comment: str = Field(default="", max_length=500)


class CreateReviewDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    customer_id: int
    order_id: UUID
    food: Rating
    delivery: Rating
    service: Rating
    comment: str = Field(default="", max_length=1000)
    tags: List[ReviewTag] = Field(default_factory=list)
    item_ratings: List[ItemRatingDTO] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def drop_repeated_tags(cls, v):
        return _unique_tags(v)

    @field_validator("item_ratings")
    @classmethod
    def items_rated_once(cls, v):
        return _unique_items(v)


class UpdateReviewDTO(BaseModel):
    """Partial update: ``None`` leaves a field unchanged."""

    model_config = ConfigDict(frozen=True)

    food: Optional[Rating] = None
    delivery: Optional[Rating] = None
    service: Optional[Rating] = None
    comment: Optional[str] = Field(default=None, max_length=1000)
    tags: Optional[List[ReviewTag]] = None
    item_ratings: Optional[List[ItemRatingDTO]] = None

    @field_validator("tags")
    @classmethod
    def drop_repeated_tags(cls, v):
        return _unique_tags(v)

    @field_validator("item_ratings")
    @classmethod
    def items_rated_once(cls, v):
        return _unique_items(v)


class ReviewListQueryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_rating: Optional[Rating] = None
    tags: List[ReviewTag] = Field(default_factory=list)
    sort: ReviewSort = ReviewSort.RECENT


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class RatingBucketDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    rating: Decimal
    count: int


class ReviewStatsDTO(BaseModel):
    """Review statistics of one restaurant."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_reviews: int
    average_food: Decimal
    average_delivery: Decimal
    average_service: Decimal
    average_overall: Decimal
    rating_distribution: List[RatingBucketDTO]
