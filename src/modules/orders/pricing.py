"""Pricing engine: turns a cart into priced order lines and a pricing block.

Input is the restaurant, the menu items referenced by the cart (looked up
by the caller) and the cart lines.  Every precondition failure raises a
distinct domain exception before anything is written.

Rounding (half-up): platform fee to whole currency units, taxes to paise,
money amounts to two decimals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from django.conf import settings

from modules.orders.dtos import CartLineDTO, CustomizationSelectionDTO
from modules.orders.exceptions import (
    AddOnUnavailable,
    BelowMinimumOrder,
    InvalidCustomization,
    MenuItemUnavailable,
    RestaurantUnavailable,
    VariantUnavailable,
)
from shared.domain.numbers import round_half_up, to_decimal

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PricingConfig:
    platform_fee_rate: Decimal = Decimal("0.02")
    packaging_fee: Decimal = Decimal("10")
    gst_rate: Decimal = Decimal("0.05")

    @classmethod
    def from_settings(cls) -> PricingConfig:
        values = settings.ORDER_PRICING
        return cls(
            platform_fee_rate=to_decimal(values["PLATFORM_FEE_RATE"]),
            packaging_fee=to_decimal(values["PACKAGING_FEE"]),
            gst_rate=to_decimal(values["GST_RATE"]),
        )


@dataclass(frozen=True)
class PricedLine:
    menu_item_id: Any
    name: str
    unit_price: Decimal
    quantity: int
    variant: Optional[Dict[str, str]]
    add_ons: List[Dict[str, str]]
    customizations: List[Dict[str, Any]]
    special_instructions: str
    item_total: Decimal


@dataclass(frozen=True)
class PricingBreakdown:
    subtotal: Decimal
    delivery_fee: Decimal
    platform_fee: Decimal
    packaging_fee: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal = ZERO
    discount_amount: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return (
            self.subtotal
            + self.delivery_fee
            + self.platform_fee
            + self.packaging_fee
            + self.cgst
            + self.sgst
            + self.igst
            - self.discount_amount
        )


@dataclass(frozen=True)
class PricedCart:
    lines: List[PricedLine]
    pricing: PricingBreakdown
    estimated_delivery_time: datetime
    menu_item_quantities: Dict[str, int] = field(default_factory=dict)


def price_cart(
    restaurant: Any,
    menu_items: Mapping[str, Any],
    lines: Sequence[CartLineDTO],
    now: datetime,
    config: Optional[PricingConfig] = None,
) -> PricedCart:
    """Price ``lines`` against ``restaurant`` and its ``menu_items``.

    ``menu_items`` maps ``str(menu_item.id)`` to the catalog record; ids
    missing from it are treated as unavailable.

    Raises:
        RestaurantUnavailable: restaurant missing, deleted or inactive.
        MenuItemUnavailable: item missing, from another restaurant, or unavailable.
        VariantUnavailable: the named variant does not exist on the item.
        AddOnUnavailable: the named add-on does not exist or is unavailable.
        InvalidCustomization: unknown group/option, missing required group,
            or too few/many options.
        BelowMinimumOrder: subtotal below the restaurant's minimum order.
    """
    config = config or PricingConfig.from_settings()
    if restaurant is None or restaurant.is_deleted or not restaurant.is_active:
        raise RestaurantUnavailable("Restaurant not available")

    priced: List[PricedLine] = []
    quantities: Dict[str, int] = {}
    for line in lines:
        menu_item = menu_items.get(str(line.menu_item_id))
        priced.append(price_line(restaurant, menu_item, line))
        key = str(line.menu_item_id)
        quantities[key] = quantities.get(key, 0) + line.quantity

    subtotal = round_half_up(sum((p.item_total for p in priced), ZERO), 2)
    minimum = max(to_decimal(restaurant.minimum_order), ZERO)
    if subtotal < minimum:
        raise BelowMinimumOrder(f"Minimum order value is ₹{restaurant.minimum_order}")

    half_gst = config.gst_rate / 2
    pricing = PricingBreakdown(
        subtotal=subtotal,
        delivery_fee=round_half_up(restaurant.delivery_fee or ZERO, 2),
        platform_fee=round_half_up(subtotal * config.platform_fee_rate, 0),
        packaging_fee=round_half_up(config.packaging_fee, 2),
        cgst=round_half_up(subtotal * half_gst, 2),
        sgst=round_half_up(subtotal * half_gst, 2),
    )
    minutes = (restaurant.delivery_time_min + restaurant.delivery_time_max) / 2
    return PricedCart(
        lines=priced,
        pricing=pricing,
        estimated_delivery_time=now + timedelta(minutes=minutes),
        menu_item_quantities=quantities,
    )


def price_line(restaurant: Any, menu_item: Any, line: CartLineDTO) -> PricedLine:
    if (
        menu_item is None
        or menu_item.is_deleted
        or str(menu_item.restaurant_id) != str(restaurant.id)
        or not menu_item.is_available
    ):
        name = getattr(menu_item, "name", None) or "not found"
        raise MenuItemUnavailable(f"Menu item {name} is not available")

    quantity = line.quantity
    unit_price = to_decimal(menu_item.final_price)
    variant_snapshot = None
    if line.variant:
        variant = menu_item.find_variant(line.variant)
        if variant is None or not variant.get("is_available", True):
            raise VariantUnavailable(
                f"Variant {line.variant} is not available for {menu_item.name}"
            )
        unit_price = to_decimal(variant.get("discounted_price") or variant["price"])
        variant_snapshot = {"name": variant["name"], "price": str(unit_price)}

    item_total = unit_price * quantity

    add_on_snapshots = []
    for add_on_name in line.add_ons:
        add_on = menu_item.find_add_on(add_on_name)
        if add_on is None or not add_on.get("is_available", True):
            raise AddOnUnavailable(
                f"Add-on {add_on_name} is not available for {menu_item.name}"
            )
        price = to_decimal(add_on["price"])
        item_total += price * quantity
        add_on_snapshots.append({"name": add_on["name"], "price": str(price)})

    customization_snapshots = []
    for group, options in _resolve_customizations(menu_item, line.customizations):
        for option in options:
            item_total += to_decimal(option.get("price_modifier") or 0) * quantity
        customization_snapshots.append(
            {
                "name": group["name"],
                "selected_options": [
                    {
                        "name": option["name"],
                        "price_modifier": str(
                            to_decimal(option.get("price_modifier") or 0)
                        ),
                    }
                    for option in options
                ],
            }
        )

    return PricedLine(
        menu_item_id=menu_item.id,
        name=menu_item.name,
        unit_price=round_half_up(unit_price, 2),
        quantity=quantity,
        variant=variant_snapshot,
        add_ons=add_on_snapshots,
        customizations=customization_snapshots,
        special_instructions=line.special_instructions,
        item_total=round_half_up(item_total, 2),
    )


def _resolve_customizations(
    menu_item: Any, selections: Sequence[CustomizationSelectionDTO]
) -> List[tuple]:
    resolved = []
    chosen: set = set()
    for selection in selections:
        group = menu_item.find_customization(selection.name)
        if group is None or selection.name in chosen:
            raise InvalidCustomization(
                f"Customization {selection.name} is not valid for {menu_item.name}"
            )
        options_by_name = {o["name"]: o for o in group.get("options") or []}
        options = []
        for option_name in selection.selected_options:
            if option_name not in options_by_name:
                raise InvalidCustomization(
                    f"Option {option_name} is not valid for {selection.name}"
                )
            options.append(options_by_name[option_name])

        min_selections = group.get("min_selections") or 0
        max_selections = group.get("max_selections") or 0
        if group.get("is_required"):
            min_selections = max(min_selections, 1)
        if len(options) < min_selections:
            raise InvalidCustomization(
                f"Select at least {min_selections} option(s) for {selection.name}"
            )
        if max_selections and len(options) > max_selections:
            raise InvalidCustomization(
                f"Select at most {max_selections} option(s) for {selection.name}"
            )
        chosen.add(selection.name)
        resolved.append((group, options))

    for group in menu_item.customizations or []:
        if group.get("is_required") and group["name"] not in chosen:
            raise InvalidCustomization(
                f"Customization {group['name']} is required for {menu_item.name}"
            )
    return resolved
