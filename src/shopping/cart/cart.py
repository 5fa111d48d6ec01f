"""Cart aggregate (CQRS) — a buyer's or guest's saved selections.

A cart is keyed by exactly one of a buyer id or a guest token. Each item
carries a snapshot of the product as it was when added (title, price,
store, image) so that price drift against the live catalog can be detected
at checkout rather than silently applied.
"""

import os
from datetime import UTC, datetime, timedelta

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from shopping.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemPriceRefreshed,
    CartItemQuantityUpdated,
    CartItemRemoved,
    CartPromoCodeApplied,
    CartPromoCodeRemoved,
    GuestCartMerged,
)
from shopping.domain import shopping
from shopping.shared.money import same_amount

GUEST_CART_TTL_DAYS = int(os.environ.get("GUEST_CART_TTL_DAYS", "30"))


@shopping.entity(part_of="Cart")
class CartItem:
    """A product line in a cart with its price snapshot."""

    product_id = Identifier(required=True)
    store_id = Identifier(required=True)
    store_name = String(required=True, max_length=200)
    product_title = String(required=True, max_length=200)
    product_price = Float(required=True, min_value=0.0)
    image_url = String(max_length=500)
    quantity = Integer(required=True, min_value=1)
    created_at = DateTime()
    updated_at = DateTime()


@shopping.aggregate
class Cart:
    buyer_id = Identifier()  # Null for guest carts
    guest_token = String(max_length=255)  # Null for buyer carts
    items = HasMany(CartItem)
    applied_promo_code_id = Identifier()
    expires_at = DateTime()  # Guest carts only
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_belong_to_exactly_one_owner(self):
        if bool(self.buyer_id) == bool(self.guest_token):
            raise ValidationError({"cart": ["A cart must belong to either a buyer or a guest token, not both"]})

    @invariant.post
    def products_must_not_repeat(self):
        product_ids = [str(item.product_id) for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can appear only once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, buyer_id=None, guest_token=None):
        now = datetime.now(UTC)
        return cls(
            buyer_id=buyer_id,
            guest_token=guest_token,
            expires_at=now + timedelta(days=GUEST_CART_TTL_DAYS) if guest_token else None,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_guest(self) -> bool:
        return bool(self.guest_token)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def is_expired(self, as_of=None) -> bool:
        if not self.is_guest or self.expires_at is None:
            return False
        return self.expires_at <= (as_of or datetime.now(UTC))

    def find_item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    def find_item_for_product(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def _touch(self, now):
        self.updated_at = now
        if self.is_guest:
            self.expires_at = now + timedelta(days=GUEST_CART_TTL_DAYS)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(
        self,
        product_id,
        store_id,
        store_name,
        product_title,
        product_price,
        quantity,
        image_url=None,
    ):
        """Add a product to the cart, or increase the quantity of its existing line.

        An existing line keeps its original price snapshot; only
        ``refresh_item_price`` replaces it.
        """
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be greater than zero"]})

        now = datetime.now(UTC)
        existing = self.find_item_for_product(product_id)

        if existing:
            existing.quantity += quantity
            existing.updated_at = now
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                store_id=store_id,
                store_name=store_name,
                product_title=product_title,
                product_price=product_price,
                image_url=image_url,
                quantity=quantity,
                created_at=now,
                updated_at=now,
            )
            self.add_items(item)

        self._touch(now)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
                store_id=str(item.store_id),
                quantity=quantity,
                new_quantity=item.quantity,
                unit_price=item.product_price,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity):
        """Set the quantity of a line. Anything below one removes the line."""
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        if new_quantity is None or new_quantity < 1:
            self.remove_item(item_id)
            return None

        previous_quantity = item.quantity
        now = datetime.now(UTC)
        item.quantity = new_quantity
        item.updated_at = now
        self._touch(now)

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )
        return item

    def remove_item(self, item_id):
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        self.remove_items(item)
        self._touch(datetime.now(UTC))

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                product_id=str(item.product_id),
            )
        )

    def clear(self):
        """Remove every line and any applied promo code."""
        items = list(self.items)
        for item in items:
            self.remove_items(item)
        self.applied_promo_code_id = None
        self._touch(datetime.now(UTC))

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=len(items)))
        return len(items)

    def refresh_item_price(self, item_id, current_price) -> bool:
        """Replace an item's price snapshot with the live price.

        Returns False when the snapshot already matches.
        """
        item = self.find_item(item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        if same_amount(item.product_price, current_price):
            return False

        previous_price = item.product_price
        now = datetime.now(UTC)
        item.product_price = current_price
        item.updated_at = now
        self._touch(now)

        self.raise_(
            CartItemPriceRefreshed(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
                previous_price=previous_price,
                current_price=current_price,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Promo code
    # -------------------------------------------------------------------
    def apply_promo_code(self, promo_code_id, code):
        if self.applied_promo_code_id:
            raise ValidationError({"promo_code": ["A promo code is already applied"]})

        self.applied_promo_code_id = promo_code_id
        self._touch(datetime.now(UTC))

        self.raise_(
            CartPromoCodeApplied(
                cart_id=str(self.id),
                promo_code_id=str(promo_code_id),
                code=code,
            )
        )

    def remove_promo_code(self) -> bool:
        if not self.applied_promo_code_id:
            return False

        promo_code_id = self.applied_promo_code_id
        self.applied_promo_code_id = None
        self._touch(datetime.now(UTC))

        self.raise_(CartPromoCodeRemoved(cart_id=str(self.id), promo_code_id=str(promo_code_id)))
        return True

    # -------------------------------------------------------------------
    # Guest cart merging (guest → authenticated)
    # -------------------------------------------------------------------
    def merge_guest_cart(self, guest_cart):
        """Merge the lines of a guest cart into this buyer cart.

        Quantities for the same product are summed and the buyer's own price
        snapshot wins. The guest's promo code is carried over only when this
        cart has none.
        """
        if self.is_guest:
            raise ValidationError({"cart": ["Guest carts can only be merged into a buyer cart"]})

        now = datetime.now(UTC)
        merged = 0
        for guest_item in guest_cart.items:
            existing = self.find_item_for_product(guest_item.product_id)
            if existing:
                existing.quantity += guest_item.quantity
                existing.updated_at = now
            else:
                self.add_items(
                    CartItem(
                        product_id=guest_item.product_id,
                        store_id=guest_item.store_id,
                        store_name=guest_item.store_name,
                        product_title=guest_item.product_title,
                        product_price=guest_item.product_price,
                        image_url=guest_item.image_url,
                        quantity=guest_item.quantity,
                        created_at=guest_item.created_at or now,
                        updated_at=now,
                    )
                )
            merged += 1

        if not self.applied_promo_code_id and guest_cart.applied_promo_code_id:
            self.applied_promo_code_id = guest_cart.applied_promo_code_id

        self._touch(now)

        self.raise_(
            GuestCartMerged(
                cart_id=str(self.id),
                guest_token=guest_cart.guest_token,
                items_merged_count=merged,
            )
        )
        return merged
