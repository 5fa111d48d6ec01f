"""Shipping cost port: abstract interface for per-store shipping quotes.

Given the stores in a cart and their item subtotals, a provider returns
what each store charges for shipping and how far the buyer is from that
store's free-shipping threshold.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class StoreShippingCost:
    """Shipping quote for a single store."""

    store_id: str
    shipping_cost: float
    is_free_shipping: bool = False
    amount_to_free_shipping: float | None = None


class ShippingCostProvider(ABC):
    """Abstract shipping cost provider interface."""

    @abstractmethod
    def get_shipping_costs(
        self,
        store_ids: Iterable[str],
        subtotals_by_store: Mapping[str, float],
        item_counts_by_store: Mapping[str, int] | None = None,
    ) -> dict[str, StoreShippingCost]:
        """Quote shipping for each store.

        Stores missing from the returned mapping have no shipping data.
        """
        ...
