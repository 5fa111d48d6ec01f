"""Shopping bounded context — carts, promo codes, totals and checkout validation.

Handles buyer and guest carts split across seller stores, promotional
discounts, per-store shipping aggregation, and the pre-checkout drift check
against the live catalog.
"""

from protean.domain import Domain

from shopping.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

shopping = Domain(name="shopping")
