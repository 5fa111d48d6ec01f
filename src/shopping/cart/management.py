"""Cart management: clearing, guest cart merging and guest cart expiry.

Expiry is designed to be triggered periodically by an external scheduler.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from shopping.cart.cart import Cart
from shopping.domain import shopping

logger = structlog.get_logger(__name__)


@shopping.command(part_of="Cart")
class ClearCart:
    buyer_id = Identifier()
    guest_token = String(max_length=255)


@shopping.command(part_of="Cart")
class MergeGuestCart:
    """Move a guest's cart into the buyer's cart after sign-in."""

    buyer_id = Identifier(required=True)
    guest_token = String(required=True, max_length=255)


@shopping.command(part_of="Cart")
class PurgeExpiredGuestCarts:
    as_of = DateTime()  # Optional: defaults to now


@shopping.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.find_by_key(buyer_id=command.buyer_id, guest_token=command.guest_token)
        if cart is None:
            raise ValidationError({"cart": ["Cart not found"]})

        removed = cart.clear()
        repo.add(cart)

        logger.info("Cart cleared", cart_id=str(cart.id), items_removed=removed)
        return removed

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(Cart)
        guest_cart = repo.find_for_guest(command.guest_token)
        if guest_cart is None or not guest_cart.items:
            return 0

        buyer_cart = repo.get_or_create(buyer_id=command.buyer_id)
        merged = buyer_cart.merge_guest_cart(guest_cart)
        repo.add(buyer_cart)
        repo.discard(guest_cart)

        logger.info(
            "Merged guest cart",
            cart_id=str(buyer_cart.id),
            guest_token=command.guest_token,
            items_merged=merged,
        )
        return merged

    @handle(PurgeExpiredGuestCarts)
    def purge_expired_guest_carts(self, command):
        as_of = command.as_of or datetime.now(UTC)
        repo = current_domain.repository_for(Cart)

        expired = repo.find_expired_guest_carts(as_of)
        for cart in expired:
            repo.discard(cart)

        logger.info("Purged expired guest carts", purged_count=len(expired), as_of=as_of.isoformat())
        return len(expired)
