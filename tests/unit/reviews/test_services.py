"""Unit tests for ReviewService against the database.

Covers:
- Review creation rules and the ratings copied onto the order.
- Aggregates refreshed after every write; aggregation failures never undo
  the review.
- Edit window, soft delete, owner response, moderation.
- Restaurant listings, distribution and statistics.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from django.utils import timezone

from modules.catalog.exceptions import RestaurantNotFound
from modules.catalog.repositories import MenuItemDjangoRepository
from modules.core.models import OutboxEvent
from modules.core.roles import actor_for
from modules.delivery.repositories import DeliveryPartnerDjangoRepository
from modules.orders.repositories import OrderDjangoRepository
from modules.reviews.aggregator import RatingAggregator
from modules.reviews.constants import ReviewSort
from modules.reviews.dtos import (
    CreateReviewDTO,
    ItemRatingDTO,
    ReviewListQueryDTO,
    UpdateReviewDTO,
)
from modules.reviews.exceptions import (
    DuplicateReview,
    InvalidItemRating,
    OrderNotReviewable,
    ReviewAccessDenied,
    ReviewAlreadyAnswered,
    ReviewEditWindowExpired,
    ReviewNotFound,
)
from modules.reviews.models import Review
from modules.reviews.repositories import ReviewDjangoRepository
from modules.reviews.services import ReviewService

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreateReview:
    def test_overall_and_order_rating(self, delivered_order, write_review):
        review = write_review(delivered_order, comment="Lovely")

        assert review.overall == Decimal("4.7")
        delivered_order.refresh_from_db()
        assert delivered_order.rating_food == 4
        assert delivered_order.rating_delivery == 5
        assert delivered_order.rating_overall == Decimal("4.7")
        assert delivered_order.rating_comment == "Lovely"
        assert delivered_order.rated_at is not None

    def test_aggregates_refreshed(
        self, delivered_order, write_review, restaurant, delivery_partner, thali
    ):
        write_review(
            delivered_order,
            item_ratings=[ItemRatingDTO(menu_item_id=thali.id, rating=3)],
        )

        restaurant.refresh_from_db()
        delivery_partner.refresh_from_db()
        thali.refresh_from_db()
        assert (restaurant.rating_average, restaurant.rating_count) == (Decimal("4.7"), 1)
        assert (delivery_partner.rating_average, delivery_partner.rating_count) == (
            Decimal("5.0"),
            1,
        )
        assert (thali.rating_average, thali.rating_count) == (Decimal("3.0"), 1)

    def test_restaurant_average_over_many_reviews(
        self, place_order, deliver, write_review, restaurant
    ):
        write_review(deliver(place_order()), food=4, delivery=5, service=5)
        write_review(deliver(place_order()), food=3, delivery=3, service=3)

        restaurant.refresh_from_db()
        # mean(4.7, 3.0) = 3.85
        assert restaurant.rating_average == Decimal("3.9")
        assert restaurant.rating_count == 2

    def test_records_review_created_event(self, delivered_order, write_review):
        review = write_review(delivered_order)

        row = OutboxEvent.objects.get(event_type="ReviewCreated")
        assert row.topic == "reviews"
        assert row.aggregate_id == str(review.id)

    def test_only_delivered_orders(self, pending_order, write_review):
        with pytest.raises(OrderNotReviewable):
            write_review(pending_order)

    def test_only_the_customer(self, delivered_order, review_service, stranger_user):
        dto = CreateReviewDTO(
            customer_id=stranger_user.pk,
            order_id=delivered_order.id,
            food=1,
            delivery=1,
            service=1,
        )
        with pytest.raises(ReviewAccessDenied):
            review_service.create_review(actor_for(stranger_user), dto)

    def test_second_review_rejected(self, delivered_order, write_review, restaurant):
        write_review(delivered_order)

        with pytest.raises(DuplicateReview):
            write_review(delivered_order, food=1, delivery=1, service=1)
        restaurant.refresh_from_db()
        assert restaurant.rating_count == 1

    def test_item_must_be_on_the_order(self, delivered_order, write_review, biryani):
        with pytest.raises(InvalidItemRating):
            write_review(
                delivered_order,
                item_ratings=[ItemRatingDTO(menu_item_id=biryani.id, rating=5)],
            )
        assert not Review.objects.exists()

    def test_aggregation_failure_keeps_review(
        self, delivered_order, customer_user, restaurant
    ):
        failing_restaurants = MagicMock()
        failing_restaurants.update_rating.side_effect = RuntimeError("db down")
        service = ReviewService(
            review_repository=ReviewDjangoRepository(),
            order_repository=OrderDjangoRepository(),
            restaurant_repository=MagicMock(),
            aggregator=RatingAggregator(
                review_repository=ReviewDjangoRepository(),
                restaurant_repository=failing_restaurants,
                menu_item_repository=MenuItemDjangoRepository(),
                delivery_partner_repository=DeliveryPartnerDjangoRepository(),
            ),
        )
        dto = CreateReviewDTO(
            customer_id=customer_user.pk,
            order_id=delivered_order.id,
            food=5,
            delivery=5,
            service=5,
        )

        review = service.create_review(actor_for(customer_user), dto)

        assert Review.objects.filter(id=review.id).exists()
        restaurant.refresh_from_db()
        assert restaurant.rating_count == 0


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


class TestUpdateReview:
    def test_partial_update_recomputes_overall(
        self, delivered_order, write_review, review_service, customer_user, restaurant
    ):
        review = write_review(delivered_order)

        updated = review_service.update_review(
            actor_for(customer_user), review.id, UpdateReviewDTO(food=1)
        )

        assert updated.overall == Decimal("3.7")
        assert updated.delivery == 5
        delivered_order.refresh_from_db()
        assert delivered_order.rating_food == 1
        restaurant.refresh_from_db()
        assert restaurant.rating_average == Decimal("3.7")

    def test_replacing_items_refreshes_dropped_item(
        self, delivered_order, write_review, review_service, customer_user, thali
    ):
        review = write_review(
            delivered_order,
            item_ratings=[ItemRatingDTO(menu_item_id=thali.id, rating=2)],
        )

        review_service.update_review(
            actor_for(customer_user), review.id, UpdateReviewDTO(item_ratings=[])
        )

        thali.refresh_from_db()
        assert (thali.rating_average, thali.rating_count) == (Decimal("0.0"), 0)

    def test_other_customer_cannot_edit(
        self, delivered_order, write_review, review_service, stranger_user
    ):
        review = write_review(delivered_order)

        with pytest.raises(ReviewAccessDenied):
            review_service.update_review(
                actor_for(stranger_user), review.id, UpdateReviewDTO(food=1)
            )

    def test_edit_window(
        self, delivered_order, write_review, review_service, customer_user
    ):
        review = write_review(delivered_order)
        Review.objects.filter(id=review.id).update(
            created_at=timezone.now() - timedelta(hours=25)
        )

        with pytest.raises(ReviewEditWindowExpired):
            review_service.update_review(
                actor_for(customer_user), review.id, UpdateReviewDTO(food=1)
            )


class TestDeleteReview:
    def test_soft_delete_clears_order_and_aggregates(
        self, delivered_order, write_review, review_service, customer_user, restaurant
    ):
        review = write_review(delivered_order)

        review_service.delete_review(actor_for(customer_user), review.id)

        assert Review.objects.dead().filter(id=review.id).exists()
        delivered_order.refresh_from_db()
        assert delivered_order.rating_overall is None
        assert delivered_order.rated_at is None
        restaurant.refresh_from_db()
        assert restaurant.rating_count == 0

    def test_deleted_review_frees_the_order(
        self, delivered_order, write_review, review_service, customer_user
    ):
        review = write_review(delivered_order)
        review_service.delete_review(actor_for(customer_user), review.id)

        again = write_review(delivered_order, food=2, delivery=2, service=2)

        assert again.overall == Decimal("2.0")

    def test_admin_may_delete(
        self, delivered_order, write_review, review_service, admin_user
    ):
        review = write_review(delivered_order)

        review_service.delete_review(actor_for(admin_user), review.id)

        with pytest.raises(ReviewNotFound):
            review_service.get_review(review.id)

    def test_owner_may_not_delete(
        self, delivered_order, write_review, review_service, owner_user
    ):
        review = write_review(delivered_order)

        with pytest.raises(ReviewAccessDenied):
            review_service.delete_review(actor_for(owner_user), review.id)


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------


class TestInteractions:
    def test_owner_responds_once(
        self, delivered_order, write_review, review_service, owner_user
    ):
        review = write_review(delivered_order)
        owner = actor_for(owner_user)

        answered = review_service.respond(owner, review.id, "Thank you!")

        assert answered.response_message == "Thank you!"
        assert answered.responded_by_id == owner_user.pk
        with pytest.raises(ReviewAlreadyAnswered):
            review_service.respond(owner, review.id, "Again")

    def test_non_owner_cannot_respond(
        self, delivered_order, write_review, review_service, customer_user
    ):
        review = write_review(delivered_order)

        with pytest.raises(ReviewAccessDenied):
            review_service.respond(actor_for(customer_user), review.id, "Me too")

    def test_helpful_counters(self, delivered_order, write_review, review_service):
        review = write_review(delivered_order)

        review_service.mark_helpful(review.id, True)
        result = review_service.mark_helpful(review.id, False)

        assert (result.helpful_count, result.not_helpful_count) == (1, 1)

    def test_report_flags_review(
        self, delivered_order, write_review, review_service, owner_user
    ):
        review = write_review(delivered_order)

        review_service.report(actor_for(owner_user), review.id, "Abusive")

        review.refresh_from_db()
        assert review.is_reported
        assert review.report_reason == "Abusive"

    def test_hidden_review_leaves_aggregates(
        self, delivered_order, write_review, review_service, admin_user, restaurant
    ):
        review = write_review(delivered_order)

        review_service.moderate(actor_for(admin_user), review.id, True)

        restaurant.refresh_from_db()
        assert restaurant.rating_count == 0
        with pytest.raises(ReviewNotFound):
            review_service.get_review(review.id)

        review_service.moderate(actor_for(admin_user), review.id, False)
        restaurant.refresh_from_db()
        assert restaurant.rating_count == 1

    def test_only_admin_moderates(
        self, delivered_order, write_review, review_service, owner_user
    ):
        review = write_review(delivered_order)

        with pytest.raises(ReviewAccessDenied):
            review_service.moderate(actor_for(owner_user), review.id, True)


# ---------------------------------------------------------------------------
# Listings and statistics
# ---------------------------------------------------------------------------


class TestListings:
    @pytest.fixture()
    def two_reviews(self, place_order, deliver, write_review):
        high = write_review(
            deliver(place_order()), food=5, delivery=5, service=5, tags=["hot_food"]
        )
        low = write_review(
            deliver(place_order()), food=2, delivery=2, service=2, tags=["cold_food"]
        )
        return high, low

    def test_min_rating_filter(self, two_reviews, review_service, restaurant):
        high, _ = two_reviews

        reviews, _ = review_service.list_restaurant_reviews(
            restaurant.id, ReviewListQueryDTO(min_rating=4)
        )

        assert [r.id for r in reviews] == [high.id]

    def test_tag_filter(self, two_reviews, review_service, restaurant):
        _, low = two_reviews

        reviews, _ = review_service.list_restaurant_reviews(
            restaurant.id, ReviewListQueryDTO(tags=["cold_food"])
        )

        assert [r.id for r in reviews] == [low.id]

    def test_sort_by_rating(self, two_reviews, review_service, restaurant):
        high, low = two_reviews

        reviews, distribution = review_service.list_restaurant_reviews(
            restaurant.id, ReviewListQueryDTO(sort=ReviewSort.RATING_LOW)
        )

        assert [r.id for r in reviews] == [low.id, high.id]
        assert [(b.rating, b.count) for b in distribution] == [
            (Decimal("5.0"), 1),
            (Decimal("2.0"), 1),
        ]

    def test_unknown_restaurant(self, review_service):
        with pytest.raises(RestaurantNotFound):
            review_service.list_restaurant_reviews(uuid4(), ReviewListQueryDTO())

    def test_list_mine(self, two_reviews, review_service, customer_user):
        mine = review_service.list_mine(actor_for(customer_user))

        assert mine.count() == 2


class TestRestaurantStats:
    def test_owner_sees_averages(
        self, place_order, deliver, write_review, review_service, owner_user, restaurant
    ):
        write_review(deliver(place_order()), food=4, delivery=5, service=5)
        write_review(deliver(place_order()), food=5, delivery=4, service=4)

        stats = review_service.restaurant_stats(actor_for(owner_user), restaurant.id)

        assert stats.total_reviews == 2
        assert stats.average_food == Decimal("4.5")
        assert stats.average_delivery == Decimal("4.5")
        assert stats.average_service == Decimal("4.5")
        assert stats.average_overall == Decimal("4.5")
        assert len(review_service.recent_reviews(restaurant.id)) == 2

    def test_empty_restaurant_has_zero_averages(
        self, review_service, owner_user, restaurant
    ):
        stats = review_service.restaurant_stats(actor_for(owner_user), restaurant.id)

        assert stats.total_reviews == 0
        assert stats.average_overall == Decimal("0.0")
        assert stats.rating_distribution == []

    def test_customer_denied(self, review_service, customer_user, restaurant):
        with pytest.raises(ReviewAccessDenied):
            review_service.restaurant_stats(actor_for(customer_user), restaurant.id)
