"""Repository for the Cart aggregate: lookups by owner key."""

from protean.exceptions import ValidationError

from shopping.cart.cart import Cart
from shopping.domain import shopping


def validate_cart_key(buyer_id=None, guest_token=None) -> list[str]:
    """Return precondition messages for a buyer/guest cart key."""
    if buyer_id and guest_token:
        return ["Provide either a buyer ID or a guest token, not both."]
    if not buyer_id and not guest_token:
        return ["Buyer ID or guest token is required."]
    return []


@shopping.repository(part_of=Cart)
class CartRepository:
    def find_for_buyer(self, buyer_id) -> Cart | None:
        carts = self._dao.query.filter(buyer_id=str(buyer_id)).all().items
        return carts[0] if carts else None

    def find_for_guest(self, guest_token) -> Cart | None:
        carts = self._dao.query.filter(guest_token=guest_token).all().items
        return carts[0] if carts else None

    def find_by_key(self, buyer_id=None, guest_token=None) -> Cart | None:
        errors = validate_cart_key(buyer_id, guest_token)
        if errors:
            raise ValidationError({"cart": errors})
        if buyer_id:
            return self.find_for_buyer(buyer_id)
        return self.find_for_guest(guest_token)

    def get_or_create(self, buyer_id=None, guest_token=None) -> Cart:
        cart = self.find_by_key(buyer_id=buyer_id, guest_token=guest_token)
        if cart is None:
            cart = Cart.create(buyer_id=buyer_id, guest_token=guest_token)
        return cart

    def find_expired_guest_carts(self, as_of) -> list[Cart]:
        carts = self._dao.query.filter(guest_token__isnull=False).limit(None).all().items
        return [cart for cart in carts if cart.is_expired(as_of)]

    def discard(self, cart: Cart) -> None:
        """Remove a cart and its lines."""
        for item in list(cart.items):
            cart.remove_items(item)
        self.add(cart)
        self._dao.delete(cart)
