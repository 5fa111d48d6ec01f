"""Cart totals: a derived, never-persisted view over a cart.

``compute_totals`` is a pure function of the cart's price snapshots, the
shipping facts per store and the discount. It never consults the live
catalog and never raises for an empty or missing cart.
"""

from dataclasses import dataclass, field

from shopping.shared.money import ZERO, line_total, quantize, round_money, to_decimal


@dataclass(frozen=True)
class CartLine:
    item_id: str
    product_id: str
    product_title: str
    product_price: float
    quantity: int
    image_url: str | None = None

    @property
    def line_total(self) -> float:
        return round_money(line_total(self.product_price, self.quantity))


@dataclass(frozen=True)
class StoreGroup:
    """Cart lines belonging to one store."""

    store_id: str
    store_name: str
    lines: tuple[CartLine, ...]

    @property
    def subtotal(self) -> float:
        return round_money(sum((line_total(line.product_price, line.quantity) for line in self.lines), ZERO))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class DiscountInfo:
    amount: float = 0.0
    promo_code_id: str | None = None
    code: str | None = None
    description: str | None = None

    @classmethod
    def none(cls) -> "DiscountInfo":
        return cls()

    @property
    def is_applied(self) -> bool:
        return self.promo_code_id is not None


@dataclass(frozen=True)
class StoreTotals:
    store_id: str
    store_name: str
    lines: tuple[CartLine, ...]
    subtotal: float
    item_count: int
    shipping_cost: float = 0.0
    is_free_shipping: bool = False
    amount_to_free_shipping: float | None = None

    @property
    def total(self) -> float:
        return round_money(to_decimal(self.subtotal) + to_decimal(self.shipping_cost))


@dataclass(frozen=True)
class CartTotals:
    stores: tuple[StoreTotals, ...] = field(default_factory=tuple)
    items_subtotal: float = 0.0
    shipping_total: float = 0.0
    discount_amount: float = 0.0
    grand_total: float = 0.0
    item_count: int = 0
    promo_code_id: str | None = None
    promo_code: str | None = None
    promo_description: str | None = None

    @classmethod
    def empty(cls) -> "CartTotals":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.stores


def group_items_by_store(cart) -> list[StoreGroup]:
    """Group a cart's items by store, ordered by store name."""
    if cart is None or not cart.items:
        return []

    grouped: dict[tuple[str, str], list[CartLine]] = {}
    for item in cart.items:
        key = (str(item.store_id), item.store_name)
        grouped.setdefault(key, []).append(
            CartLine(
                item_id=str(item.id),
                product_id=str(item.product_id),
                product_title=item.product_title,
                product_price=item.product_price,
                quantity=item.quantity,
                image_url=item.image_url,
            )
        )

    groups = [
        StoreGroup(store_id=store_id, store_name=store_name, lines=tuple(lines))
        for (store_id, store_name), lines in grouped.items()
    ]
    return sorted(groups, key=lambda group: (group.store_name.lower(), group.store_name, group.store_id))


def compute_totals(cart, shipping_by_store=None, discount: DiscountInfo | None = None) -> CartTotals:
    groups = group_items_by_store(cart)
    if not groups:
        return CartTotals.empty()

    shipping_by_store = shipping_by_store or {}
    discount = discount or DiscountInfo.none()

    stores = []
    for group in groups:
        shipping = shipping_by_store.get(group.store_id)
        stores.append(
            StoreTotals(
                store_id=group.store_id,
                store_name=group.store_name,
                lines=group.lines,
                subtotal=group.subtotal,
                item_count=group.item_count,
                shipping_cost=shipping.shipping_cost if shipping else 0.0,
                is_free_shipping=shipping.is_free_shipping if shipping else False,
                amount_to_free_shipping=shipping.amount_to_free_shipping if shipping else None,
            )
        )

    items_subtotal = sum((to_decimal(store.subtotal) for store in stores), ZERO)
    shipping_total = sum((to_decimal(store.shipping_cost) for store in stores), ZERO)
    discount_amount = quantize(discount.amount)
    grand_total = max(items_subtotal + shipping_total - discount_amount, ZERO)

    return CartTotals(
        stores=tuple(stores),
        items_subtotal=round_money(items_subtotal),
        shipping_total=round_money(shipping_total),
        discount_amount=round_money(discount_amount),
        grand_total=round_money(grand_total),
        item_count=sum(store.item_count for store in stores),
        promo_code_id=discount.promo_code_id if discount.is_applied else None,
        promo_code=discount.code if discount.is_applied else None,
        promo_description=discount.description if discount.is_applied else None,
    )
