"""Review vocabulary and listing options."""

from django.db import models


class ReviewTag(models.TextChoices):
    GREAT_FOOD = "great_food", "Great food"
    FAST_DELIVERY = "fast_delivery", "Fast delivery"
    EXCELLENT_PACKAGING = "excellent_packaging", "Excellent packaging"
    HOT_FOOD = "hot_food", "Hot food"
    COLD_FOOD = "cold_food", "Cold food"
    LATE_DELIVERY = "late_delivery", "Late delivery"
    WRONG_ORDER = "wrong_order", "Wrong order"
    MISSING_ITEMS = "missing_items", "Missing items"
    FRIENDLY_DELIVERY = "friendly_delivery", "Friendly delivery"
    RUDE_DELIVERY = "rude_delivery", "Rude delivery"
    CLEAN_PACKAGING = "clean_packaging", "Clean packaging"
    DAMAGED_PACKAGING = "damaged_packaging", "Damaged packaging"
    VALUE_FOR_MONEY = "value_for_money", "Value for money"
    OVERPRICED = "overpriced", "Overpriced"
    FRESH_INGREDIENTS = "fresh_ingredients", "Fresh ingredients"
    STALE_FOOD = "stale_food", "Stale food"


class ReviewSort(models.TextChoices):
    RECENT = "recent", "Most recent"
    RATING_HIGH = "rating_high", "Highest rating"
    RATING_LOW = "rating_low", "Lowest rating"
    HELPFUL = "helpful", "Most helpful"


SORT_ORDERING = {
    ReviewSort.RECENT: ["-created_at", "-id"],
    ReviewSort.RATING_HIGH: ["-overall", "-created_at"],
    ReviewSort.RATING_LOW: ["overall", "-created_at"],
    ReviewSort.HELPFUL: ["-helpful_count", "-created_at"],
}

MIN_RATING = 1
MAX_RATING = 5

RECENT_REVIEWS_LIMIT = 5
