"""Tests for promo code eligibility against a cart."""

from datetime import UTC, datetime, timedelta

import pytest
from shopping.cart.cart import Cart
from shopping.promo.evaluation import applicable_subtotal, evaluate_promo_code, rejection_message
from shopping.promo.promo_code import DiscountType, PromoCode, PromoRejection, PromoScope

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def _cart():
    cart = Cart.create(buyer_id="buyer-001")
    cart.add_item("prod-a", "store-a", "Alpha Goods", "Teapot", 30.0, 1)
    cart.add_item("prod-b", "store-b", "Beta Home", "Lamp", 20.0, 2)
    return cart


def _promo(**overrides):
    defaults = {
        "code": "FIVEOFF",
        "discount_type": DiscountType.FIXED_AMOUNT,
        "discount_value": 5.0,
        "start_date": NOW - timedelta(days=1),
    }
    defaults.update(overrides)
    return PromoCode.create(**defaults)


class TestApplicableSubtotal:
    def test_platform_code_uses_whole_cart(self):
        assert applicable_subtotal(_promo(), _cart()) == 70.0

    def test_seller_code_uses_its_store_only(self):
        promo = _promo(scope=PromoScope.SELLER, store_id="store-a", seller_id="seller-a")
        assert applicable_subtotal(promo, _cart()) == 30.0


class TestEvaluate:
    def test_eligible_platform_code(self):
        evaluation = evaluate_promo_code(_promo(), _cart(), now=NOW)
        assert evaluation.eligible
        assert evaluation.discount_amount == 5.0
        assert evaluation.reason is None

    def test_seller_percentage_discounts_only_its_store(self):
        promo = _promo(
            discount_type=DiscountType.PERCENTAGE,
            discount_value=50.0,
            scope=PromoScope.SELLER,
            store_id="store-b",
        )
        evaluation = evaluate_promo_code(promo, _cart(), now=NOW)
        assert evaluation.applicable_subtotal == 40.0
        assert evaluation.discount_amount == 20.0

    def test_seller_code_without_matching_items(self):
        promo = _promo(scope=PromoScope.SELLER, store_id="store-z")
        evaluation = evaluate_promo_code(promo, _cart(), now=NOW)
        assert not evaluation.eligible
        assert evaluation.reason == PromoRejection.SCOPE_MISMATCH

    def test_minimum_checked_against_applicable_subtotal(self):
        promo = _promo(scope=PromoScope.SELLER, store_id="store-a", minimum_order_amount=50.0)
        evaluation = evaluate_promo_code(promo, _cart(), now=NOW)
        assert evaluation.reason == PromoRejection.MINIMUM_NOT_MET

    def test_expired(self):
        promo = _promo(start_date=NOW - timedelta(days=5), end_date=NOW - timedelta(days=1))
        assert evaluate_promo_code(promo, _cart(), now=NOW).reason == PromoRejection.EXPIRED

    def test_empty_cart(self):
        cart = Cart.create(buyer_id="buyer-001")
        assert evaluate_promo_code(_promo(), cart, now=NOW).reason == PromoRejection.EMPTY_CART

    def test_missing_promo_is_a_programming_error(self):
        with pytest.raises(ValueError):
            evaluate_promo_code(None, _cart(), now=NOW)


class TestRejectionMessages:
    def test_expired_message(self):
        assert rejection_message(PromoRejection.EXPIRED) == "This promo code has expired."

    def test_minimum_message_includes_amount(self):
        promo = _promo(minimum_order_amount=50.0)
        assert rejection_message(PromoRejection.MINIMUM_NOT_MET, promo) == (
            "This promo code requires a minimum order of $50.00."
        )
