"""
Celery tasks for background processing.
"""

import logging
from typing import Dict, Optional

from celery import shared_task
from django.conf import settings

from apps.rates.domain.exceptions import ReconciliationError
from apps.rates.domain.services import ExchangeRateService

logger = logging.getLogger(__name__)


@shared_task(name="refresh_exchange_rates")
def refresh_exchange_rates(base_code: Optional[str] = None, force: bool = False) -> Dict:
    """
    Refresh the cached rates of one base currency.

    Skips the fetch while the cache is fresh unless `force` is set.

    Args:
        base_code: Base currency code (defaults to settings.DEFAULT_BASE_CURRENCY)
        force: Fetch even if the cached rates are fresh

    Returns:
        Dict with operation results
    """
    base_code = (base_code or settings.DEFAULT_BASE_CURRENCY).strip().upper()

    try:
        with ExchangeRateService() as service:
            result = service.refresh(base_code, force=force)
            # Without force, None means either a skipped fetch or a failed one.
            skipped = result is None and not force and service.freshness.is_fresh(base_code)
    except (ValueError, ReconciliationError) as e:
        logger.error("Refresh of %s failed: %s", base_code, e)
        return {
            "success": False,
            "base_code": base_code,
            "message": str(e),
            "inserted": 0,
            "updated": 0,
        }

    if skipped:
        return {
            "success": True,
            "base_code": base_code,
            "message": "Rates are fresh",
            "inserted": 0,
            "updated": 0,
        }

    if result is None:
        return {
            "success": False,
            "base_code": base_code,
            "message": f"No data available for {base_code}",
            "inserted": 0,
            "updated": 0,
        }

    return {
        "success": True,
        "base_code": base_code,
        "message": f"Reconciled {result.inserted} new and {result.updated} changed rates",
        "inserted": result.inserted,
        "updated": result.updated,
    }
