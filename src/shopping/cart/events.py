"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from shopping.domain import shopping


@shopping.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its quantity increased."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    unit_price = Float(required=True)


@shopping.event(part_of="Cart")
class CartItemQuantityUpdated:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@shopping.event(part_of="Cart")
class CartItemRemoved:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)


@shopping.event(part_of="Cart")
class CartCleared:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)


@shopping.event(part_of="Cart")
class CartPromoCodeApplied:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    promo_code_id = Identifier(required=True)
    code = String(required=True)


@shopping.event(part_of="Cart")
class CartPromoCodeRemoved:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    promo_code_id = Identifier(required=True)


@shopping.event(part_of="Cart")
class CartItemPriceRefreshed:
    """A stale price snapshot was replaced with the live catalog price."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    current_price = Float(required=True)


@shopping.event(part_of="Cart")
class GuestCartMerged:
    """A guest cart's items were merged into a buyer's cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    guest_token = String(required=True)
    items_merged_count = Integer(required=True)
