"""Rule-based shipping adapter.

Each store may configure a flat rate, a per-item rate and a free-shipping
threshold. Stores without a rule pay the default flat rate.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import structlog

from shopping.shared.money import ZERO, round_money, to_decimal
from shopping.shipping.port import ShippingCostProvider, StoreShippingCost

logger = structlog.get_logger(__name__)

DEFAULT_FLAT_RATE = 5.99


@dataclass(frozen=True)
class ShippingRule:
    flat_rate: float
    per_item_rate: float = 0.0
    free_shipping_threshold: float | None = None


class RuleBasedShipping(ShippingCostProvider):
    def __init__(self, default_flat_rate: float = DEFAULT_FLAT_RATE):
        self.default_flat_rate = default_flat_rate
        self.rules: dict[str, ShippingRule] = {}

    def set_rule(self, store_id: str, rule: ShippingRule) -> None:
        self.rules[str(store_id)] = rule

    def get_shipping_costs(
        self,
        store_ids: Iterable[str],
        subtotals_by_store: Mapping[str, float],
        item_counts_by_store: Mapping[str, int] | None = None,
    ) -> dict[str, StoreShippingCost]:
        item_counts_by_store = item_counts_by_store or {}
        costs = {}
        for store_id in store_ids:
            key = str(store_id)
            costs[key] = self._quote(
                key,
                to_decimal(subtotals_by_store.get(key, 0)),
                item_counts_by_store.get(key, 0),
            )

        logger.debug(
            "Calculated shipping",
            store_count=len(costs),
            total_shipping=round_money(sum((to_decimal(c.shipping_cost) for c in costs.values()), ZERO)),
        )
        return costs

    def _quote(self, store_id, subtotal, item_count) -> StoreShippingCost:
        rule = self.rules.get(store_id)
        if rule is None:
            return StoreShippingCost(store_id=store_id, shipping_cost=round_money(self.default_flat_rate))

        threshold = rule.free_shipping_threshold
        if threshold is not None and subtotal >= to_decimal(threshold):
            return StoreShippingCost(store_id=store_id, shipping_cost=0.0, is_free_shipping=True)

        cost = to_decimal(rule.flat_rate) + to_decimal(rule.per_item_rate) * item_count
        amount_to_free = None
        if threshold is not None:
            amount_to_free = round_money(to_decimal(threshold) - subtotal)

        return StoreShippingCost(
            store_id=store_id,
            shipping_cost=round_money(cost),
            is_free_shipping=False,
            amount_to_free_shipping=amount_to_free,
        )
