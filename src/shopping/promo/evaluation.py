"""Promo code eligibility against a cart.

A platform code discounts the whole cart subtotal. A seller code discounts
only the subtotal of the store it is scoped to; a cart with nothing from
that store is a scope mismatch. ``PromoCode.calculate_discount`` is always
handed the subtotal that applies, never the cart total by default.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from shopping.promo.promo_code import PromoCode, PromoRejection
from shopping.shared.money import ZERO, format_money, line_total, round_money

REJECTION_MESSAGES = {
    PromoRejection.NOT_FOUND: "The promo code is invalid or does not exist.",
    PromoRejection.NOT_YET_STARTED: "This promo code is not yet active.",
    PromoRejection.EXPIRED: "This promo code has expired.",
    PromoRejection.USAGE_EXHAUSTED: "This promo code has reached its usage limit.",
    PromoRejection.SCOPE_MISMATCH: "This promo code is not applicable to the items in your cart.",
    PromoRejection.ALREADY_APPLIED: "A promo code is already applied. Remove it first to apply a different code.",
    PromoRejection.EMPTY_CART: "Cannot apply promo code to an empty cart.",
    PromoRejection.CART_NOT_FOUND: "Cart not found.",
}


def rejection_message(reason: PromoRejection, promo: PromoCode | None = None) -> str:
    if reason == PromoRejection.MINIMUM_NOT_MET and promo is not None:
        return f"This promo code requires a minimum order of {format_money(promo.minimum_order_amount)}."
    return REJECTION_MESSAGES.get(reason, "This promo code cannot be applied.")


@dataclass(frozen=True)
class PromoEvaluation:
    eligible: bool
    discount_amount: float = 0.0
    applicable_subtotal: float = 0.0
    reason: PromoRejection | None = None

    @classmethod
    def rejected(cls, reason: PromoRejection, applicable_subtotal: float = 0.0) -> "PromoEvaluation":
        return cls(eligible=False, reason=reason, applicable_subtotal=applicable_subtotal)


def applicable_subtotal(promo: PromoCode, cart) -> float:
    """Subtotal of the cart lines a promo code may discount."""
    subtotal = ZERO
    for item in cart.items:
        if promo.is_seller_scoped and str(item.store_id) != str(promo.store_id):
            continue
        subtotal += line_total(item.product_price, item.quantity)
    return round_money(subtotal)


def evaluate_promo_code(promo: PromoCode, cart, now=None) -> PromoEvaluation:
    if promo is None:
        raise ValueError("A promo code is required for evaluation")
    if cart is None:
        raise ValueError("A cart is required for evaluation")

    now = now or datetime.now(UTC)

    if not cart.items:
        return PromoEvaluation.rejected(PromoRejection.EMPTY_CART)

    reason = promo.rejection_reason(now)
    if reason is not None:
        return PromoEvaluation.rejected(reason)

    subtotal = applicable_subtotal(promo, cart)
    if subtotal <= 0:
        return PromoEvaluation.rejected(PromoRejection.SCOPE_MISMATCH)

    if not promo.meets_minimum_order_amount(subtotal):
        return PromoEvaluation.rejected(PromoRejection.MINIMUM_NOT_MET, applicable_subtotal=subtotal)

    return PromoEvaluation(
        eligible=True,
        discount_amount=promo.calculate_discount(subtotal),
        applicable_subtotal=subtotal,
    )
