"""
Mock fetcher for development and tests.
Generates random but realistic rate sets without network access.
"""

import logging
import random
from decimal import Decimal

from django.utils import timezone

from apps.rates.domain.interfaces import BaseRatesFetcher
from apps.rates.domain.models import FetchedSnapshot

logger = logging.getLogger(__name__)


class MockFetcher(BaseRatesFetcher):
    """
    Mock fetcher that derives cross rates from a fixed USD table.
    Useful for:
    - Testing without external API calls
    - Development without network access
    """

    # Base rates relative to USD (approximate real-world values)
    BASE_RATES = {
        "USD": Decimal("1.0"),
        "EUR": Decimal("0.92"),
        "GBP": Decimal("0.79"),
        "CHF": Decimal("0.90"),
        "JPY": Decimal("151.6"),
        "PLN": Decimal("3.96"),
    }

    def fetch_latest(self, base_currency: str) -> FetchedSnapshot | None:
        base_rate = self.BASE_RATES.get(base_currency)
        if base_rate is None:
            logger.warning("MockFetcher: unsupported base currency %s", base_currency)
            return None

        now = timezone.now()

        # Seed with base and hour so repeated calls within an hour agree
        random.seed(f"{base_currency}{now:%Y%m%d%H}")

        rates = {}
        for code, usd_rate in self.BASE_RATES.items():
            if code == base_currency:
                rates[code] = Decimal("1")
                continue
            variation = Decimal(str(random.uniform(0.98, 1.02)))
            rates[code] = (usd_rate / base_rate * variation).quantize(Decimal("0.000001"))

        return FetchedSnapshot(
            base_code=base_currency,
            rates=rates,
            time_last_update_unix=int(now.timestamp()),
        )
