"""Order domain exceptions.

Raised by the pricing engine, the state machine and the Service Layer.
Each derives from one of the ``modules.core.exceptions`` bases, which
decides the HTTP status the API answers with.
"""

from __future__ import annotations

from modules.core.exceptions import (
    AccessDenied,
    BusinessRuleViolation,
    EntityNotFound,
    OtpRejected,
)


class OrderNotFound(EntityNotFound):
    """Order not found."""

    code = "order_not_found"


class OrderAccessDenied(AccessDenied):
    """You are not allowed to act on this order."""

    code = "order_access_denied"


# ---------------------------------------------------------------------------
# Pricing preconditions
# ---------------------------------------------------------------------------


class RestaurantUnavailable(BusinessRuleViolation):
    """Restaurant not available."""

    code = "restaurant_unavailable"


class InvalidDeliveryAddress(BusinessRuleViolation):
    """Invalid delivery address."""

    code = "invalid_delivery_address"


class MenuItemUnavailable(BusinessRuleViolation):
    """Menu item is not available."""

    code = "menu_item_unavailable"


class VariantUnavailable(BusinessRuleViolation):
    """Variant is not available."""

    code = "variant_unavailable"


class AddOnUnavailable(BusinessRuleViolation):
    """Add-on is not available."""

    code = "add_on_unavailable"


class InvalidCustomization(BusinessRuleViolation):
    """Customization selection is not valid."""

    code = "invalid_customization"


class BelowMinimumOrder(BusinessRuleViolation):
    """Order subtotal is below the restaurant's minimum order value."""

    code = "below_minimum_order"


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class InvalidStatusTransition(BusinessRuleViolation):
    """The requested status change is not allowed."""

    code = "invalid_status_transition"


class OrderNotCancellable(BusinessRuleViolation):
    """Order cannot be cancelled at this stage."""

    code = "order_not_cancellable"


class OrderAlreadyAssigned(BusinessRuleViolation):
    """Order already has a delivery partner."""

    code = "order_already_assigned"


class OrderNotAvailableForPickup(BusinessRuleViolation):
    """Order not available for pickup."""

    code = "order_not_available_for_pickup"


class InvalidDeliveryOtp(OtpRejected):
    """Invalid or expired OTP."""

    code = "invalid_otp"


class DeliveryOtpExpired(InvalidDeliveryOtp):
    """Delivery OTP has expired."""

    code = "otp_expired"
