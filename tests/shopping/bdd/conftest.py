"""Shared BDD fixtures and step definitions for the Shopping domain."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from shopping.cart.cart import Cart
from shopping.cart.items import AddToCart

# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def buyer_id():
    return "buyer-001"


@pytest.fixture()
def outcome():
    """Container for the result of the last When step."""
    return {}


# ---------------------------------------------------------------------------
# Cart aggregate steps
# ---------------------------------------------------------------------------
@given("a buyer cart", target_fixture="cart")
def buyer_cart(buyer_id):
    cart = Cart.create(buyer_id=buyer_id)
    cart._events.clear()
    return cart


@given(parsers.cfparse('the cart has product "{product_id}" from store "{store_name}" at {price:f}'), target_fixture="cart")
def cart_with_product(cart, product_id, store_name, price):
    cart.add_item(
        product_id=product_id,
        store_id=store_name.lower().replace(" ", "-"),
        store_name=store_name,
        product_title=product_id,
        product_price=price,
        quantity=1,
    )
    cart._events.clear()
    return cart


@then(parsers.cfparse("the cart has {count:d} item"))
def cart_has_n_items_singular(cart, count):
    assert len(cart.items) == count


@then(parsers.cfparse("the cart has {count:d} items"))
def cart_has_n_items(cart, count):
    assert len(cart.items) == count


@then("the cart action fails with a validation error")
def cart_action_fails(error):
    assert isinstance(error["exc"], ValidationError)


# ---------------------------------------------------------------------------
# Persisted cart helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def add_to_buyer_cart(buyer_id):
    def _add(product_id, quantity=1):
        current_domain.process(
            AddToCart(buyer_id=buyer_id, product_id=product_id, quantity=quantity),
            asynchronous=False,
        )

    return _add
