"""Checkout validation: compares a buyer's cart against the live catalog.

``validate_checkout`` is read-only: it reports drift but never writes. The
buyer accepts new prices through ``refresh_prices_to_current``, a separate
best-effort step.
"""

import structlog
from protean.utils.globals import current_domain

from shopping.cart.cart import Cart
from shopping.catalog import get_catalog
from shopping.checkout.results import (
    CheckoutValidationResult,
    PriceChangeIssue,
    StockValidationIssue,
    ValidatedCartItem,
)
from shopping.shared.money import same_amount

logger = structlog.get_logger(__name__)


def _check_item(item, product):
    """Classify one cart line. Returns (stock_issue, price_change, validated)."""
    if product is None or not product.is_active:
        return (
            StockValidationIssue(
                cart_item_id=str(item.id),
                product_id=str(item.product_id),
                product_title=item.product_title,
                requested_quantity=item.quantity,
                available_stock=0,
                is_unavailable=True,
            ),
            None,
            None,
        )

    stock_issue = None
    if item.quantity > product.stock:
        stock_issue = StockValidationIssue(
            cart_item_id=str(item.id),
            product_id=str(item.product_id),
            product_title=item.product_title,
            requested_quantity=item.quantity,
            available_stock=product.stock,
        )

    price_change = None
    if not same_amount(item.product_price, product.price):
        price_change = PriceChangeIssue(
            cart_item_id=str(item.id),
            product_id=str(item.product_id),
            product_title=item.product_title,
            original_price=item.product_price,
            current_price=product.price,
        )

    validated = None
    if stock_issue is None and price_change is None:
        validated = ValidatedCartItem(
            cart_item_id=str(item.id),
            product_id=str(item.product_id),
            product_title=product.title,
            store_id=str(item.store_id),
            store_name=item.store_name,
            unit_price=product.price,
            quantity=item.quantity,
        )
    return stock_issue, price_change, validated


def validate_checkout(buyer_id, cancel_event=None) -> CheckoutValidationResult:
    """Validate a buyer's cart for checkout.

    Any stock or price issue fails the whole validation; only a clean cart
    yields validated items, priced at the live catalog price. Catalog
    failures fail closed with a generic error. Setting ``cancel_event``
    (a ``threading.Event``) stops further catalog lookups and discards
    whatever was gathered so far.
    """
    if not buyer_id or not str(buyer_id).strip():
        return CheckoutValidationResult.failure("Buyer ID is required.")

    try:
        cart = current_domain.repository_for(Cart).find_for_buyer(buyer_id)
        if cart is None or not cart.items:
            return CheckoutValidationResult.failure("Cart is empty.")

        catalog = get_catalog()
        stock_issues, price_changes, validated_items = [], [], []

        for item in cart.items:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Checkout validation cancelled", buyer_id=str(buyer_id))
                return CheckoutValidationResult.cancelled_result()

            stock_issue, price_change, validated = _check_item(item, catalog.get_product(str(item.product_id)))
            if stock_issue:
                stock_issues.append(stock_issue)
            if price_change:
                price_changes.append(price_change)
            if validated:
                validated_items.append(validated)
    except Exception:
        logger.exception("Error validating checkout", buyer_id=str(buyer_id))
        return CheckoutValidationResult.failure("An error occurred while validating checkout.")

    if stock_issues or price_changes:
        logger.info(
            "Checkout validation failed",
            buyer_id=str(buyer_id),
            stock_issues=len(stock_issues),
            price_changes=len(price_changes),
        )
        return CheckoutValidationResult.validation_failed(stock_issues, price_changes)

    logger.info("Checkout validation succeeded", buyer_id=str(buyer_id), items=len(validated_items))
    return CheckoutValidationResult.success(validated_items)


def refresh_prices_to_current(buyer_id) -> None:
    """Overwrite stale price snapshots with live catalog prices.

    Inactive or missing products are left alone. Failures are logged and
    never propagate.
    """
    if not buyer_id or not str(buyer_id).strip():
        return

    try:
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.find_for_buyer(buyer_id)
        if cart is None or not cart.items:
            return

        catalog = get_catalog()
        refreshed = 0
        for item in list(cart.items):
            product = catalog.get_product(str(item.product_id))
            if product is None or not product.is_active:
                continue
            if cart.refresh_item_price(item.id, product.price):
                refreshed += 1

        if refreshed:
            cart_repo.add(cart)
            logger.info("Updated cart prices to current", buyer_id=str(buyer_id), items=refreshed)
    except Exception:
        logger.exception("Error updating cart prices", buyer_id=str(buyer_id))
