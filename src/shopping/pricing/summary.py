"""Cart totals query: loads a cart and prices it for display."""

import structlog
from protean.utils.globals import current_domain

from shopping.cart.cart import Cart
from shopping.cart.promo_codes import discount_for_cart
from shopping.pricing.totals import CartTotals, compute_totals, group_items_by_store
from shopping.shipping import get_shipping_provider

logger = structlog.get_logger(__name__)


def _shipping_for(groups) -> dict:
    store_ids = [group.store_id for group in groups]
    subtotals = {group.store_id: group.subtotal for group in groups}
    item_counts = {group.store_id: group.item_count for group in groups}
    try:
        return get_shipping_provider().get_shipping_costs(store_ids, subtotals, item_counts)
    except Exception:
        logger.exception("Shipping costs unavailable, totals exclude shipping", store_ids=store_ids)
        return {}


def get_cart_totals(buyer_id=None, guest_token=None, now=None) -> CartTotals:
    """Totals for a buyer's or guest's cart; empty totals if there is no cart.

    Raises ValidationError when neither or both cart keys are given.
    """
    cart = current_domain.repository_for(Cart).find_by_key(buyer_id=buyer_id, guest_token=guest_token)
    if cart is None or not cart.items:
        return CartTotals.empty()

    groups = group_items_by_store(cart)
    return compute_totals(cart, shipping_by_store=_shipping_for(groups), discount=discount_for_cart(cart, now=now))
