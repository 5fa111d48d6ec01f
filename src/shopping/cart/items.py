"""Cart item management: commands and handler.

Adding and re-quantifying items consults the live catalog: unknown or
inactive products are rejected, and the requested quantity may not exceed
the product's current stock.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from shopping.cart.cart import Cart
from shopping.catalog import get_catalog
from shopping.domain import shopping

logger = structlog.get_logger(__name__)

PLACEHOLDER_IMAGE = "/images/placeholder.png"
ALLOWED_IMAGE_PREFIXES = ("/uploads/", "/images/")


def snapshot_image_url(url: str | None) -> str:
    """Return a safe image path for the cart snapshot, or the placeholder."""
    if not url or not url.strip():
        return PLACEHOLDER_IMAGE
    if ".." in url or "//" in url or "\\" in url:
        return PLACEHOLDER_IMAGE
    if not url.lower().startswith(ALLOWED_IMAGE_PREFIXES):
        return PLACEHOLDER_IMAGE
    return url


def _load_purchasable_product(product_id):
    product = get_catalog().get_product(str(product_id))
    if product is None:
        raise ValidationError({"product_id": ["Product not found"]})
    if not product.is_active:
        raise ValidationError({"product_id": ["Product is no longer available for purchase"]})
    return product


def _ensure_stock(product, quantity):
    if quantity > product.stock:
        raise ValidationError({"quantity": [f"Insufficient stock: only {product.stock} available"]})


@shopping.command(part_of="Cart")
class AddToCart:
    buyer_id = Identifier()
    guest_token = String(max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@shopping.command(part_of="Cart")
class UpdateCartItemQuantity:
    """Set a line's quantity; zero or less removes the line."""

    buyer_id = Identifier()
    guest_token = String(max_length=255)
    item_id = Identifier(required=True)
    quantity = Integer(required=True)


@shopping.command(part_of="Cart")
class RemoveCartItem:
    buyer_id = Identifier()
    guest_token = String(max_length=255)
    item_id = Identifier(required=True)


@shopping.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(buyer_id=command.buyer_id, guest_token=command.guest_token)

        product = _load_purchasable_product(command.product_id)
        existing = cart.find_item_for_product(product.product_id)
        requested = command.quantity + (existing.quantity if existing else 0)
        _ensure_stock(product, requested)

        item = cart.add_item(
            product_id=product.product_id,
            store_id=product.store_id,
            store_name=product.store_name,
            product_title=product.title,
            product_price=product.price,
            quantity=command.quantity,
            image_url=snapshot_image_url(product.image_url),
        )
        repo.add(cart)

        logger.info(
            "Added item to cart",
            cart_id=str(cart.id),
            product_id=product.product_id,
            quantity=item.quantity,
        )
        return str(item.id)

    @handle(UpdateCartItemQuantity)
    def update_item_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.find_by_key(buyer_id=command.buyer_id, guest_token=command.guest_token)
        if cart is None:
            raise ValidationError({"cart": ["Cart not found"]})

        item = cart.find_item(command.item_id)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        if command.quantity >= 1:
            product = _load_purchasable_product(item.product_id)
            _ensure_stock(product, command.quantity)

        cart.update_item_quantity(command.item_id, command.quantity)
        repo.add(cart)

    @handle(RemoveCartItem)
    def remove_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.find_by_key(buyer_id=command.buyer_id, guest_token=command.guest_token)
        if cart is None:
            raise ValidationError({"cart": ["Cart not found"]})

        cart.remove_item(command.item_id)
        repo.add(cart)
