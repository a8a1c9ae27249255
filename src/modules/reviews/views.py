"""Review API views.

Reading a review and a restaurant's review listing are public; every
other route requires authentication.
"""

from __future__ import annotations

from typing import List, Optional

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.catalog.repositories import RestaurantDjangoRepository
from modules.core.roles import actor_for
from modules.orders.repositories import OrderDjangoRepository
from modules.reviews.aggregator import default_aggregator
from modules.reviews.dtos import (
    CreateReviewDTO,
    ItemRatingDTO,
    ReviewListQueryDTO,
    UpdateReviewDTO,
)
from modules.reviews.models import Review
from modules.reviews.repositories import ReviewDjangoRepository
from modules.reviews.serializers import (
    CreateReviewSerializer,
    HelpfulSerializer,
    ModerateSerializer,
    ReportSerializer,
    ResponseSerializer,
    RestaurantReviewQuerySerializer,
    ReviewSerializer,
    UpdateReviewSerializer,
)
from modules.reviews.services import ReviewService

PUBLIC_ACTIONS = {"retrieve", "restaurant_reviews"}


def build_review_service() -> ReviewService:
    return ReviewService(
        review_repository=ReviewDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        restaurant_repository=RestaurantDjangoRepository(),
        aggregator=default_aggregator(),
    )


def _item_ratings(rows: Optional[list]) -> Optional[List[ItemRatingDTO]]:
    if rows is None:
        return None
    return [
        ItemRatingDTO(
            menu_item_id=row["menu_item"],
            rating=row["rating"],
            comment=row.get("comment", ""),
        )
        for row in rows
    ]


class ReviewViewSet(GenericViewSet):
    queryset = Review.objects.none()
    serializer_class = ReviewSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_review_service()

    def get_permissions(self) -> List[BasePermission]:
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsAuthenticated()]

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/reviews/"""
        serializer = CreateReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        dto = CreateReviewDTO(
            customer_id=request.user.pk,
            order_id=data["order"],
            food=data["food"],
            delivery=data["delivery"],
            service=data["service"],
            comment=data.get("comment", ""),
            tags=data.get("tags", []),
            item_ratings=_item_ratings(data.get("item_ratings", [])),
        )
        review = self._service.create_review(actor_for(request.user), dto)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/reviews/{pk}/ (hidden reviews are not found)"""
        return Response(ReviewSerializer(self._service.get_review(pk)).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/reviews/{pk}/ (only the fields sent are changed)"""
        serializer = UpdateReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        dto = UpdateReviewDTO(
            food=data.get("food"),
            delivery=data.get("delivery"),
            service=data.get("service"),
            comment=data.get("comment"),
            tags=data.get("tags"),
            item_ratings=_item_ratings(data.get("item_ratings")),
        )
        review = self._service.update_review(actor_for(request.user), pk, dto)
        return Response(ReviewSerializer(review).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/reviews/{pk}/"""
        self._service.delete_review(actor_for(request.user), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Interactions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="response")
    def respond(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/reviews/{pk}/response/"""
        serializer = ResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = self._service.respond(
            actor_for(request.user), pk, serializer.validated_data["message"]
        )
        return Response(ReviewSerializer(review).data)

    @action(detail=True, methods=["put"])
    def helpful(self, request: Request, pk: str | None = None) -> Response:
        serializer = HelpfulSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = self._service.mark_helpful(pk, serializer.validated_data["is_helpful"])
        return Response(ReviewSerializer(review).data)

    @action(detail=True, methods=["post"])
    def report(self, request: Request, pk: str | None = None) -> Response:
        serializer = ReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self._service.report(
            actor_for(request.user), pk, serializer.validated_data["reason"]
        )
        return Response({"detail": "Review reported successfully"})

    @action(detail=True, methods=["put"])
    def moderate(self, request: Request, pk: str | None = None) -> Response:
        serializer = ModerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = self._service.moderate(
            actor_for(request.user), pk, serializer.validated_data["is_hidden"]
        )
        return Response(ReviewSerializer(review).data)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        """GET /api/v1/reviews/mine/"""
        page = self.paginate_queryset(self._service.list_mine(actor_for(request.user)))
        return self.get_paginated_response(ReviewSerializer(page, many=True).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"restaurant/(?P<restaurant_id>[^/.]+)",
    )
    def restaurant_reviews(
        self, request: Request, restaurant_id: str | None = None
    ) -> Response:
        """GET /api/v1/reviews/restaurant/{rid}/?min_rating=&tags=&sort="""
        serializer = RestaurantReviewQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        query = ReviewListQueryDTO(**serializer.validated_data)
        reviews, distribution = self._service.list_restaurant_reviews(
            restaurant_id, query
        )
        page = self.paginate_queryset(reviews)
        response = self.get_paginated_response(ReviewSerializer(page, many=True).data)
        response.data["rating_distribution"] = [
            bucket.model_dump(mode="json") for bucket in distribution
        ]
        return response

    @action(
        detail=False,
        methods=["get"],
        url_path=r"restaurant/(?P<restaurant_id>[^/.]+)/stats",
    )
    def restaurant_stats(
        self, request: Request, restaurant_id: str | None = None
    ) -> Response:
        """GET /api/v1/reviews/restaurant/{rid}/stats/ (owner or admin)"""
        stats = self._service.restaurant_stats(actor_for(request.user), restaurant_id)
        data = stats.model_dump(mode="json", by_alias=True)
        data["recentReviews"] = ReviewSerializer(
            self._service.recent_reviews(restaurant_id), many=True
        ).data
        return Response(data)
