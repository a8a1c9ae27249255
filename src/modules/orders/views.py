"""Order API views.

Exposes ``OrderService`` over HTTP with a DRF ``GenericViewSet``.  Domain
exceptions raised by the service are not caught here: the standardized
exception handler turns them into error responses.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.catalog.repositories import (
    MenuItemDjangoRepository,
    RestaurantDjangoRepository,
)
from modules.core.roles import actor_for
from modules.customers.repositories import AddressDjangoRepository
from modules.delivery.repositories import DeliveryPartnerDjangoRepository
from modules.orders.dtos import (
    CancelOrderDTO,
    CartLineDTO,
    ChangeStatusDTO,
    CreateOrderDTO,
    CustomizationSelectionDTO,
    StatsWindowDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    AssignDeliverySerializer,
    CancelOrderSerializer,
    ChangeStatusSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    StatsQuerySerializer,
    VerifyOtpSerializer,
)
from modules.orders.services import OrderService


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        restaurant_repository=RestaurantDjangoRepository(),
        menu_item_repository=MenuItemDjangoRepository(),
        address_repository=AddressDjangoRepository(),
        delivery_partner_repository=DeliveryPartnerDjangoRepository(),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number"]
    ordering_fields = ["created_at", "total", "order_status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        elif self.action == "verify_otp":
            throttle_scope = "otp_verification"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders(actor_for(self.request.user))

    def _detail(self, order: Order) -> Response:
        return Response(OrderSerializer(order, context={"request": self.request}).data)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dto = CreateOrderDTO(
            customer_id=request.user.pk,
            restaurant_id=data["restaurant"],
            delivery_address_id=data["delivery_address"],
            payment_method=data["payment_method"],
            special_instructions=data.get("special_instructions", ""),
            items=[
                CartLineDTO(
                    menu_item_id=line["menu_item"],
                    quantity=line["quantity"],
                    variant=line.get("variant") or None,
                    add_ons=line.get("add_ons", []),
                    customizations=[
                        CustomizationSelectionDTO(**selection)
                        for selection in line.get("customizations", [])
                    ],
                    special_instructions=line.get("special_instructions", ""),
                )
                for line in data["items"]
            ],
        )
        order = self._service.create_order(dto)
        out = OrderSerializer(order, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Scoped to the caller: own orders, own restaurants' orders, assigned
        orders, or everything for admins.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(actor_for(request.user), pk)
        return self._detail(order)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"], url_path="status")
    def change_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/status/"""
        serializer = ChangeStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = ChangeStatusDTO(**serializer.validated_data)
        order = self._service.change_status(actor_for(request.user), pk, dto)
        return self._detail(order)

    @action(detail=True, methods=["put"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = CancelOrderDTO(**serializer.validated_data)
        order = self._service.cancel_order(actor_for(request.user), pk, dto)
        return self._detail(order)

    @action(detail=True, methods=["put"], url_path="assign-delivery")
    def assign_delivery(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/assign-delivery/"""
        serializer = AssignDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.assign_delivery_partner(
            actor_for(request.user),
            pk,
            serializer.validated_data["delivery_partner_id"],
        )
        return self._detail(order)

    @action(detail=True, methods=["post"], url_path="verify-otp")
    def verify_otp(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/verify-otp/"""
        serializer = VerifyOtpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.verify_delivery_otp(
            actor_for(request.user), pk, serializer.validated_data["otp"]
        )
        return self._detail(order)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/?startDate=...&endDate=..."""
        serializer = StatsQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        default = self._service.default_stats_window()
        window = StatsWindowDTO(
            start=serializer.validated_data.get("startDate", default.start),
            end=serializer.validated_data.get("endDate", default.end),
        )
        stats = self._service.order_stats(actor_for(request.user), window)
        return Response(stats.model_dump(mode="json", by_alias=True))
