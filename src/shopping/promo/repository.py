"""Repository for the PromoCode aggregate."""

import threading
from datetime import UTC, datetime

import structlog
from protean.utils.query import Q

from shopping.domain import shopping
from shopping.promo.promo_code import PromoCode, normalize_code

logger = structlog.get_logger(__name__)

MAX_REDEMPTION_ATTEMPTS = 5

# Held across read and conditional update; the in-memory provider has no row locks.
_usage_lock = threading.Lock()


@shopping.repository(part_of=PromoCode)
class PromoCodeRepository:
    def find_by_code(self, code) -> PromoCode | None:
        normalized = normalize_code(code)
        if not normalized:
            return None
        promos = self._dao.query.filter(code=normalized).all().items
        return promos[0] if promos else None

    def find_by_id(self, promo_code_id) -> PromoCode | None:
        promos = self._dao.query.filter(id=str(promo_code_id)).all().items
        return promos[0] if promos else None

    def increment_usage_if_available(self, promo_code_id) -> bool:
        """Atomically consume one use of a promo code.

        The counter is only written when it still holds the value we read,
        so concurrent redemptions can never push ``usage_count`` past
        ``usage_limit``. Returns False when the limit is already reached or
        the code does not exist.
        """
        for _ in range(MAX_REDEMPTION_ATTEMPTS):
            with _usage_lock:
                promo = self.find_by_id(promo_code_id)
                if promo is None:
                    return False

                current = promo.usage_count or 0
                if promo.usage_limit is not None and current >= promo.usage_limit:
                    return False

                updated = self._dao._update_all(
                    Q(id=str(promo_code_id), usage_count=current),
                    usage_count=current + 1,
                    updated_at=datetime.now(UTC),
                )
                if updated:
                    return True

            logger.debug("Promo usage changed concurrently, retrying", promo_code_id=str(promo_code_id), observed=current)

        logger.warning("Gave up incrementing promo usage", promo_code_id=str(promo_code_id))
        return False
