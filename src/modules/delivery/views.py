"""Delivery partner API: the partner's side of order fulfilment."""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.roles import actor_for
from modules.delivery.dtos import AvailabilityDTO
from modules.delivery.repositories import DeliveryPartnerDjangoRepository
from modules.delivery.serializers import AvailabilitySerializer, DeliveryPartnerSerializer
from modules.delivery.services import DeliveryPartnerService
from modules.orders.models import Order
from modules.orders.serializers import OrderListSerializer, OrderSerializer
from modules.orders.views import build_order_service


class DeliveryPartnerViewSet(GenericViewSet):
    """Routes under ``/delivery-partners/``; all act on the caller's profile."""

    queryset = Order.objects.none()
    serializer_class = OrderListSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = DeliveryPartnerService(
            delivery_partner_repository=DeliveryPartnerDjangoRepository(),
            order_service=build_order_service(),
        )

    @action(detail=False, methods=["get"], url_path="available-orders")
    def available_orders(self, request: Request) -> Response:
        orders = self._service.available_orders(actor_for(request.user))
        return Response({"orders": OrderListSerializer(orders, many=True).data})

    @action(
        detail=False,
        methods=["post"],
        url_path=r"accept-order/(?P<order_id>[^/.]+)",
    )
    def accept_order(self, request: Request, order_id: str | None = None) -> Response:
        order = self._service.accept_order(actor_for(request.user), order_id)
        return Response(OrderSerializer(order, context={"request": request}).data)

    @action(detail=False, methods=["get"], url_path="active-orders")
    def active_orders(self, request: Request) -> Response:
        orders = self._service.active_orders(actor_for(request.user))
        return Response({"orders": OrderListSerializer(orders, many=True).data})

    @action(detail=False, methods=["get"], url_path="delivery-history")
    def delivery_history(self, request: Request) -> Response:
        orders = self._service.delivery_history(actor_for(request.user))
        page = self.paginate_queryset(orders)
        return self.get_paginated_response(OrderListSerializer(page, many=True).data)

    @action(detail=False, methods=["put"])
    def availability(self, request: Request) -> Response:
        serializer = AvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        partner = self._service.set_availability(
            actor_for(request.user), AvailabilityDTO(**serializer.validated_data)
        )
        return Response(DeliveryPartnerSerializer(partner).data)

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        stats = self._service.stats(actor_for(request.user))
        return Response(stats.model_dump(mode="json", by_alias=True))
