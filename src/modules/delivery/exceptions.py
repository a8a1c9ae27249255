"""Delivery partner domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import AccessDenied, BusinessRuleViolation, EntityNotFound


class DeliveryPartnerNotFound(EntityNotFound):
    """Delivery partner profile not found."""

    code = "delivery_partner_not_found"


class DeliveryPartnerNotApproved(AccessDenied):
    """Delivery partner profile is not approved yet."""

    code = "delivery_partner_not_approved"


class DeliveryPartnerOffline(BusinessRuleViolation):
    """Delivery partner must be online to take orders."""

    code = "delivery_partner_offline"


class DeliveryPartnerBusy(BusinessRuleViolation):
    """Delivery partner already has an active order."""

    code = "delivery_partner_busy"
