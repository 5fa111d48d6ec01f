"""Shipping cost provider factory.

Provides get_shipping_provider() / set_shipping_provider(). The rule-based
provider is the default; select another with the SHIPPING_ADAPTER
environment variable.
"""

import os

from shopping.shipping.port import ShippingCostProvider

_current_provider: ShippingCostProvider | None = None


def get_shipping_provider() -> ShippingCostProvider:
    """Return the configured shipping cost provider (singleton)."""
    global _current_provider
    if _current_provider is None:
        adapter = os.environ.get("SHIPPING_ADAPTER", "rules")
        if adapter == "rules":
            from shopping.shipping.rule_based import RuleBasedShipping

            _current_provider = RuleBasedShipping()
        else:
            raise ValueError(f"Unknown shipping adapter: {adapter}")
    return _current_provider


def set_shipping_provider(provider: ShippingCostProvider) -> None:
    """Override the active shipping provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_shipping_provider() -> None:
    """Reset to the default shipping provider."""
    global _current_provider
    _current_provider = None
