"""Asynchronous tasks of the reviews module."""

import structlog
from celery import shared_task

from modules.reviews.aggregator import default_aggregator

logger = structlog.get_logger(__name__)


@shared_task(name="reviews.rebuild_ratings")
def rebuild_ratings() -> dict:
    """Recompute every restaurant, delivery partner and menu item rating."""
    logger.info("review.ratings_rebuild_started")
    return default_aggregator().rebuild_all()
