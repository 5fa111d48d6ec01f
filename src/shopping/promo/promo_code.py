"""PromoCode aggregate: a marketplace or seller discount code.

Promo codes are administered elsewhere; this context reads them, decides
whether they apply to a cart, and computes the discount. The only write is
the usage counter, incremented when an order is confirmed (see
``PromoCodeRepository.increment_usage_if_available``).
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from shopping.domain import shopping
from shopping.shared.money import round_money, to_decimal


class DiscountType(Enum):
    PERCENTAGE = "Percentage"
    FIXED_AMOUNT = "FixedAmount"


class PromoScope(Enum):
    PLATFORM = "Platform"
    SELLER = "Seller"


class PromoRejection(Enum):
    """Why a promo code was not applied."""

    NOT_FOUND = "not_found"
    NOT_YET_STARTED = "not_yet_started"
    EXPIRED = "expired"
    USAGE_EXHAUSTED = "usage_exhausted"
    MINIMUM_NOT_MET = "minimum_not_met"
    SCOPE_MISMATCH = "scope_mismatch"
    ALREADY_APPLIED = "already_applied"
    EMPTY_CART = "empty_cart"
    CART_NOT_FOUND = "cart_not_found"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def _enum_value(value):
    return value.value if isinstance(value, Enum) else value


@shopping.aggregate
class PromoCode:
    code = String(required=True, max_length=50)
    description = String(max_length=500, default="")
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    minimum_order_amount = Float(min_value=0.0)
    max_discount_amount = Float(min_value=0.0)  # Percentage codes only
    scope = String(choices=PromoScope, default=PromoScope.PLATFORM.value)
    seller_id = Identifier()
    store_id = Identifier()
    start_date = DateTime(required=True)
    end_date = DateTime()
    usage_limit = Integer(min_value=0)
    usage_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def seller_codes_must_reference_a_store(self):
        if self.scope == PromoScope.SELLER.value and not self.store_id:
            raise ValidationError({"store_id": ["Seller-scoped promo codes require a store"]})

    @invariant.post
    def usage_must_not_exceed_limit(self):
        if self.usage_limit is not None and (self.usage_count or 0) > self.usage_limit:
            raise ValidationError({"usage_count": ["Usage count cannot exceed the usage limit"]})

    @invariant.post
    def percentage_must_not_exceed_one_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discounts cannot exceed 100"]})

    @invariant.post
    def end_date_must_follow_start_date(self):
        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": ["End date cannot be before the start date"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        start_date=None,
        end_date=None,
        description="",
        minimum_order_amount=None,
        max_discount_amount=None,
        scope=PromoScope.PLATFORM,
        seller_id=None,
        store_id=None,
        usage_limit=None,
        is_active=True,
    ):
        now = datetime.now(UTC)
        return cls(
            code=normalize_code(code),
            description=description,
            discount_type=_enum_value(discount_type),
            discount_value=discount_value,
            minimum_order_amount=minimum_order_amount,
            max_discount_amount=max_discount_amount,
            scope=_enum_value(scope),
            seller_id=seller_id,
            store_id=store_id,
            start_date=start_date or now,
            end_date=end_date,
            usage_limit=usage_limit,
            usage_count=0,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------
    @property
    def is_seller_scoped(self) -> bool:
        return self.scope == PromoScope.SELLER.value

    def rejection_reason(self, now) -> PromoRejection | None:
        """Classify why the code is not currently usable, ignoring order amount."""
        if not self.is_active:
            # Inactive codes are indistinguishable from unknown ones to buyers
            return PromoRejection.NOT_FOUND
        if now < self.start_date:
            return PromoRejection.NOT_YET_STARTED
        if self.end_date is not None and now > self.end_date:
            return PromoRejection.EXPIRED
        if self.usage_limit is not None and (self.usage_count or 0) >= self.usage_limit:
            return PromoRejection.USAGE_EXHAUSTED
        return None

    def is_valid(self, now) -> bool:
        return self.rejection_reason(now) is None

    def meets_minimum_order_amount(self, order_amount) -> bool:
        if self.minimum_order_amount is None:
            return True
        return to_decimal(order_amount) >= to_decimal(self.minimum_order_amount)

    def calculate_discount(self, subtotal) -> float:
        """Discount for a subtotal, never more than the subtotal itself.

        Scope is not considered here: callers pass the subtotal the code
        applies to (a single store's subtotal for seller codes).
        """
        base = to_decimal(subtotal)

        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = base * to_decimal(self.discount_value) / Decimal(100)
            if self.max_discount_amount is not None:
                discount = min(discount, to_decimal(self.max_discount_amount))
        else:
            discount = to_decimal(self.discount_value)

        discount = min(discount, base)
        return round_money(max(discount, Decimal(0)))
