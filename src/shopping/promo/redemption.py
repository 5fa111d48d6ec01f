"""Order-confirmation usage of a promo code."""

import structlog
from protean.utils.globals import current_domain

from shopping.promo.promo_code import PromoCode

logger = structlog.get_logger(__name__)


def redeem_promo_code(promo_code_id) -> bool:
    """Consume one use of a promo code, if any remain.

    Called by the order-creation flow once an order is confirmed, never on
    cart reads. Returns False when the code is unknown or its usage limit
    is reached.
    """
    redeemed = current_domain.repository_for(PromoCode).increment_usage_if_available(promo_code_id)
    if redeemed:
        logger.info("Promo code redeemed", promo_code_id=str(promo_code_id))
    else:
        logger.info("Promo code redemption refused", promo_code_id=str(promo_code_id))
    return redeemed
