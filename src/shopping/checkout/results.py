"""Checkout validation results.

Issues are item-scoped and carry enough detail (old and new values) for a
caller to explain why checkout is blocked.
"""

from dataclasses import dataclass, field

from shopping.shared.money import format_money, line_total, round_money, to_decimal


@dataclass(frozen=True)
class StockValidationIssue:
    cart_item_id: str
    product_id: str
    product_title: str
    requested_quantity: int
    available_stock: int
    is_unavailable: bool = False

    @property
    def is_out_of_stock(self) -> bool:
        return not self.is_unavailable and self.available_stock == 0

    @property
    def message(self) -> str:
        if self.is_unavailable:
            return f"{self.product_title} is no longer available."
        if self.is_out_of_stock:
            return f"{self.product_title} is out of stock."
        return f"{self.product_title}: only {self.available_stock} available (requested {self.requested_quantity})."


@dataclass(frozen=True)
class PriceChangeIssue:
    cart_item_id: str
    product_id: str
    product_title: str
    original_price: float
    current_price: float

    @property
    def price_difference(self) -> float:
        return round_money(to_decimal(self.current_price) - to_decimal(self.original_price))

    @property
    def price_increased(self) -> bool:
        return self.price_difference > 0

    @property
    def message(self) -> str:
        direction = "increased" if self.price_increased else "decreased"
        return (
            f"{self.product_title}: price {direction} from "
            f"{format_money(self.original_price)} to {format_money(self.current_price)}."
        )


@dataclass(frozen=True)
class ValidatedCartItem:
    """A clean cart line, priced at today's catalog price."""

    cart_item_id: str
    product_id: str
    product_title: str
    store_id: str
    store_name: str
    unit_price: float
    quantity: int

    @property
    def total_price(self) -> float:
        return round_money(line_total(self.unit_price, self.quantity))


@dataclass(frozen=True)
class CheckoutValidationResult:
    succeeded: bool
    validated_items: list[ValidatedCartItem] = field(default_factory=list)
    stock_issues: list[StockValidationIssue] = field(default_factory=list)
    price_changes: list[PriceChangeIssue] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False

    @classmethod
    def success(cls, validated_items) -> "CheckoutValidationResult":
        return cls(succeeded=True, validated_items=list(validated_items))

    @classmethod
    def validation_failed(cls, stock_issues, price_changes) -> "CheckoutValidationResult":
        return cls(succeeded=False, stock_issues=list(stock_issues), price_changes=list(price_changes))

    @classmethod
    def failure(cls, *errors: str) -> "CheckoutValidationResult":
        return cls(succeeded=False, errors=list(errors))

    @classmethod
    def cancelled_result(cls) -> "CheckoutValidationResult":
        return cls(succeeded=False, errors=["Checkout validation was cancelled."], cancelled=True)

    @property
    def has_stock_issues(self) -> bool:
        return bool(self.stock_issues)

    @property
    def has_price_changes(self) -> bool:
        return bool(self.price_changes)

    @property
    def issues(self) -> list:
        return [*self.stock_issues, *self.price_changes]
