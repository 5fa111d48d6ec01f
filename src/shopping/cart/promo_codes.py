"""Applying, removing and pricing the promo code on a cart."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from shopping.cart.cart import Cart
from shopping.cart.repository import validate_cart_key
from shopping.pricing.totals import DiscountInfo
from shopping.promo.evaluation import (
    applicable_subtotal,
    evaluate_promo_code,
    rejection_message,
)
from shopping.promo.promo_code import PromoCode, PromoRejection, normalize_code

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ApplyPromoCodeResult:
    applied: bool
    discount_amount: float = 0.0
    promo_code_id: str | None = None
    code: str | None = None
    description: str | None = None
    reason: PromoRejection | None = None
    errors: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, promo: PromoCode, discount_amount: float) -> "ApplyPromoCodeResult":
        return cls(
            applied=True,
            discount_amount=discount_amount,
            promo_code_id=str(promo.id),
            code=promo.code,
            description=promo.description,
        )

    @classmethod
    def rejected(cls, reason: PromoRejection, promo: PromoCode | None = None) -> "ApplyPromoCodeResult":
        return cls(applied=False, reason=reason, errors=[rejection_message(reason, promo)])

    @classmethod
    def failure(cls, errors: list[str]) -> "ApplyPromoCodeResult":
        return cls(applied=False, errors=list(errors))


def apply_promo_code(code, buyer_id=None, guest_token=None, now=None) -> ApplyPromoCodeResult:
    """Apply a promo code to a buyer's or guest's cart.

    Ordinary ineligibility (unknown, expired, below minimum, wrong store...)
    comes back as a rejected result with a reason; nothing is raised.
    """
    errors = validate_cart_key(buyer_id, guest_token)
    if not normalize_code(code):
        errors.append("Promo code is required.")
    if errors:
        return ApplyPromoCodeResult.failure(errors)

    now = now or datetime.now(UTC)

    try:
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.find_by_key(buyer_id=buyer_id, guest_token=guest_token)
        if cart is None:
            return ApplyPromoCodeResult.rejected(PromoRejection.CART_NOT_FOUND)
        if cart.applied_promo_code_id:
            return ApplyPromoCodeResult.rejected(PromoRejection.ALREADY_APPLIED)
        if not cart.items:
            return ApplyPromoCodeResult.rejected(PromoRejection.EMPTY_CART)

        promo = current_domain.repository_for(PromoCode).find_by_code(code)
        if promo is None:
            return ApplyPromoCodeResult.rejected(PromoRejection.NOT_FOUND)

        evaluation = evaluate_promo_code(promo, cart, now=now)
        if not evaluation.eligible:
            logger.info(
                "Promo code rejected",
                cart_id=str(cart.id),
                code=promo.code,
                reason=evaluation.reason.value,
            )
            return ApplyPromoCodeResult.rejected(evaluation.reason, promo)

        cart.apply_promo_code(promo.id, promo.code)
        cart_repo.add(cart)
    except ValidationError as exc:
        return ApplyPromoCodeResult.failure([msg for messages in exc.messages.values() for msg in messages])
    except Exception:
        logger.exception("Error applying promo code", buyer_id=buyer_id, guest_token=guest_token)
        return ApplyPromoCodeResult.failure(["An error occurred while applying the promo code."])

    logger.info(
        "Applied promo code to cart",
        cart_id=str(cart.id),
        code=promo.code,
        discount_amount=evaluation.discount_amount,
    )
    return ApplyPromoCodeResult.success(promo, evaluation.discount_amount)


def remove_promo_code(buyer_id=None, guest_token=None) -> bool:
    """Clear the applied promo code. Returns False if there was none."""
    cart_repo = current_domain.repository_for(Cart)
    cart = cart_repo.find_by_key(buyer_id=buyer_id, guest_token=guest_token)
    if cart is None or not cart.remove_promo_code():
        return False

    cart_repo.add(cart)
    logger.info("Removed promo code from cart", cart_id=str(cart.id))
    return True


def discount_for_cart(cart, now=None) -> DiscountInfo:
    """Discount of the cart's applied promo code against its current contents.

    Only the code's validity is checked again here. The minimum order amount
    is enforced when the code is applied, so a cart that later drops below it
    keeps the discount, computed on the current applicable subtotal.
    """
    if cart is None or not cart.applied_promo_code_id:
        return DiscountInfo.none()

    promo = current_domain.repository_for(PromoCode).find_by_id(cart.applied_promo_code_id)
    if promo is None:
        return DiscountInfo.none()

    reason = promo.rejection_reason(now or datetime.now(UTC))
    if reason is not None:
        logger.debug(
            "Applied promo code no longer valid",
            cart_id=str(cart.id),
            code=promo.code,
            reason=reason.value,
        )
        return DiscountInfo.none()

    return DiscountInfo(
        amount=promo.calculate_discount(applicable_subtotal(promo, cart)),
        promo_code_id=str(promo.id),
        code=promo.code,
        description=promo.description,
    )
