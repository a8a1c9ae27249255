"""Review domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import AccessDenied, BusinessRuleViolation, EntityNotFound


class ReviewNotFound(EntityNotFound):
    """Review not found."""

    code = "review_not_found"


class ReviewAccessDenied(AccessDenied):
    """Access denied."""

    code = "review_access_denied"


class OrderNotReviewable(BusinessRuleViolation):
    """Cannot review order that is not delivered."""

    code = "order_not_delivered"


class DuplicateReview(BusinessRuleViolation):
    """Review already exists for this order."""

    code = "duplicate_review"


class InvalidItemRating(BusinessRuleViolation):
    """Only menu items that were on the order can be rated, once each."""

    code = "invalid_item_rating"


class ReviewEditWindowExpired(BusinessRuleViolation):
    """Reviews cannot be edited after the edit window has passed."""

    code = "review_edit_window_expired"


class ReviewAlreadyAnswered(BusinessRuleViolation):
    """Response already exists for this review."""

    code = "review_already_answered"
