"""Event handlers for review events."""

from __future__ import annotations

import structlog

from modules.reviews.events import ReviewCreated
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class ReviewCreatedHandler(IEventHandler[ReviewCreated]):
    def handle(self, event: ReviewCreated) -> None:
        logger.info(
            "review.notify_restaurant",
            review_id=str(event.aggregate_id),
            restaurant_id=event.data.get("restaurant_id"),
            overall=event.data.get("overall"),
        )


review_created_handler = ReviewCreatedHandler()
