"""Application tests for applying and removing promo codes."""

from datetime import UTC, datetime, timedelta

from protean import current_domain
from shopping.cart.cart import Cart
from shopping.cart.items import AddToCart
from shopping.cart.promo_codes import apply_promo_code, discount_for_cart, remove_promo_code
from shopping.promo.promo_code import DiscountType, PromoCode, PromoRejection, PromoScope

NOW = datetime.now(UTC)


def _promo(**overrides):
    defaults = {
        "code": "FIVEOFF",
        "description": "$5 off",
        "discount_type": DiscountType.FIXED_AMOUNT,
        "discount_value": 5.0,
        "start_date": NOW - timedelta(days=1),
    }
    defaults.update(overrides)
    promo = PromoCode.create(**defaults)
    current_domain.repository_for(PromoCode).add(promo)
    return promo


def _add(product_id, quantity=1, buyer_id="buyer-001", guest_token=None):
    current_domain.process(
        AddToCart(buyer_id=buyer_id, guest_token=guest_token, product_id=product_id, quantity=quantity),
        asynchronous=False,
    )


def _cart(buyer_id="buyer-001"):
    return current_domain.repository_for(Cart).find_for_buyer(buyer_id)


class TestApplyPromoCode:
    def test_applies_platform_code(self, stocked_catalog):
        promo = _promo()
        _add("prod-lamp")

        result = apply_promo_code("fiveoff", buyer_id="buyer-001")

        assert result.applied
        assert result.discount_amount == 5.0
        assert result.code == "FIVEOFF"
        assert result.description == "$5 off"
        assert str(_cart().applied_promo_code_id) == str(promo.id)

    def test_applies_to_guest_cart(self, stocked_catalog):
        _promo()
        _add("prod-lamp", buyer_id=None, guest_token="guest-abc")
        assert apply_promo_code("FIVEOFF", guest_token="guest-abc").applied

    def test_unknown_code(self, stocked_catalog):
        _add("prod-lamp")
        result = apply_promo_code("NOPE", buyer_id="buyer-001")
        assert not result.applied
        assert result.reason == PromoRejection.NOT_FOUND
        assert result.errors == ["The promo code is invalid or does not exist."]

    def test_inactive_code_looks_unknown(self, stocked_catalog):
        _promo(is_active=False)
        _add("prod-lamp")
        assert apply_promo_code("FIVEOFF", buyer_id="buyer-001").reason == PromoRejection.NOT_FOUND

    def test_expired_code(self, stocked_catalog):
        _promo(start_date=NOW - timedelta(days=10), end_date=NOW - timedelta(days=1))
        _add("prod-lamp")

        result = apply_promo_code("FIVEOFF", buyer_id="buyer-001")

        assert not result.applied
        assert result.reason == PromoRejection.EXPIRED
        assert result.errors == ["This promo code has expired."]
        assert _cart().applied_promo_code_id is None

    def test_not_yet_started(self, stocked_catalog):
        _promo(start_date=NOW + timedelta(days=1))
        _add("prod-lamp")
        assert apply_promo_code("FIVEOFF", buyer_id="buyer-001").reason == PromoRejection.NOT_YET_STARTED

    def test_usage_exhausted(self, stocked_catalog):
        promo = _promo(usage_limit=1)
        promo.usage_count = 1
        current_domain.repository_for(PromoCode).add(promo)
        _add("prod-lamp")
        assert apply_promo_code("FIVEOFF", buyer_id="buyer-001").reason == PromoRejection.USAGE_EXHAUSTED

    def test_minimum_not_met(self, stocked_catalog):
        _promo(minimum_order_amount=100.0)
        _add("prod-lamp")
        result = apply_promo_code("FIVEOFF", buyer_id="buyer-001")
        assert result.reason == PromoRejection.MINIMUM_NOT_MET
        assert result.errors == ["This promo code requires a minimum order of $100.00."]

    def test_seller_code_for_other_store(self, stocked_catalog):
        _promo(scope=PromoScope.SELLER, store_id="store-a")
        _add("prod-lamp")
        assert apply_promo_code("FIVEOFF", buyer_id="buyer-001").reason == PromoRejection.SCOPE_MISMATCH

    def test_second_code_rejected(self, stocked_catalog):
        _promo()
        _promo(code="TENOFF", discount_value=10.0)
        _add("prod-lamp")
        apply_promo_code("FIVEOFF", buyer_id="buyer-001")

        result = apply_promo_code("TENOFF", buyer_id="buyer-001")

        assert result.reason == PromoRejection.ALREADY_APPLIED

    def test_empty_cart(self, stocked_catalog):
        _promo()
        _add("prod-lamp")
        item_id = _cart().items[0].id
        cart = _cart()
        cart.remove_item(item_id)
        current_domain.repository_for(Cart).add(cart)
        assert apply_promo_code("FIVEOFF", buyer_id="buyer-001").reason == PromoRejection.EMPTY_CART

    def test_missing_cart(self, stocked_catalog):
        _promo()
        assert apply_promo_code("FIVEOFF", buyer_id="buyer-404").reason == PromoRejection.CART_NOT_FOUND

    def test_preconditions(self, stocked_catalog):
        result = apply_promo_code("  ")
        assert not result.applied
        assert result.reason is None
        assert "Buyer ID or guest token is required." in result.errors
        assert "Promo code is required." in result.errors


class TestRemovePromoCode:
    def test_remove(self, stocked_catalog):
        _promo()
        _add("prod-lamp")
        apply_promo_code("FIVEOFF", buyer_id="buyer-001")

        assert remove_promo_code(buyer_id="buyer-001") is True
        assert _cart().applied_promo_code_id is None

    def test_remove_when_none_applied(self, stocked_catalog):
        _add("prod-lamp")
        assert remove_promo_code(buyer_id="buyer-001") is False


class TestDiscountForCart:
    def test_discount_for_applied_code(self, stocked_catalog):
        _promo()
        _add("prod-lamp")
        apply_promo_code("FIVEOFF", buyer_id="buyer-001")

        discount = discount_for_cart(_cart())

        assert discount.amount == 5.0
        assert discount.code == "FIVEOFF"
        assert discount.is_applied

    def test_no_code_no_discount(self, stocked_catalog):
        _add("prod-lamp")
        assert discount_for_cart(_cart()).amount == 0.0

    def test_code_below_minimum_after_applying_keeps_discount(self, stocked_catalog):
        _promo(minimum_order_amount=60.0)
        _add("prod-lamp", quantity=2)
        apply_promo_code("FIVEOFF", buyer_id="buyer-001")
        cart = _cart()
        cart.update_item_quantity(cart.items[0].id, 1)
        current_domain.repository_for(Cart).add(cart)

        discount = discount_for_cart(_cart())

        assert discount.amount == 5.0
        assert discount.code == "FIVEOFF"

    def test_percentage_discount_follows_current_subtotal(self, stocked_catalog):
        _promo(discount_type=DiscountType.PERCENTAGE, discount_value=10.0, minimum_order_amount=60.0)
        _add("prod-lamp", quantity=2)
        apply_promo_code("FIVEOFF", buyer_id="buyer-001")
        cart = _cart()
        cart.update_item_quantity(cart.items[0].id, 1)
        current_domain.repository_for(Cart).add(cart)

        assert discount_for_cart(_cart()).amount == 4.0

    def test_code_that_expired_after_applying(self, stocked_catalog):
        _promo(end_date=NOW + timedelta(days=1))
        _add("prod-lamp")
        apply_promo_code("FIVEOFF", buyer_id="buyer-001")
        assert discount_for_cart(_cart(), now=NOW + timedelta(days=2)).amount == 0.0
