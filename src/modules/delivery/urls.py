"""Delivery partner URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.delivery.views import DeliveryPartnerViewSet

router = DefaultRouter(trailing_slash=True)
router.register("delivery-partners", DeliveryPartnerViewSet, basename="delivery-partner")

urlpatterns = router.urls
