import logging
from decimal import Decimal, InvalidOperation

import requests
from django.conf import settings

from apps.rates.domain.interfaces import BaseRatesFetcher
from apps.rates.domain.models import FetchedSnapshot

logger = logging.getLogger(__name__)


class OpenErApiFetcher(BaseRatesFetcher):
    """
    open.er-api.com fetcher.
    Uses the /latest/{BASE} endpoint, which returns every rate for one base currency.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None, session=None):
        self.base_url = (base_url or settings.EXCHANGE_RATES_API_URL).rstrip("/")
        self.timeout = timeout or settings.EXCHANGE_RATES_API_TIMEOUT
        self.session = session or requests.Session()

    def fetch_latest(self, base_currency: str) -> FetchedSnapshot | None:
        """
        Fetch the latest rate set for a base currency.

        Args:
            base_currency: Base currency code (e.g. PLN)

        Returns:
            FetchedSnapshot, or None if the request or the payload is unusable
        """
        # Format: https://open.er-api.com/v6/latest/PLN
        url = f"{self.base_url}/{base_currency}"

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            logger.warning("Timeout fetching rates for %s from %s", base_currency, url)
            return None
        except requests.exceptions.HTTPError as e:
            logger.warning("HTTP error fetching rates for %s: %s", base_currency, e)
            return None
        except ValueError as e:
            logger.warning("Malformed JSON in rates response for %s: %s", base_currency, e)
            return None
        except requests.exceptions.RequestException as e:
            logger.warning("Request for %s rates failed: %s", base_currency, e)
            return None

        return self._parse(data, base_currency)

    def close(self) -> None:
        self.session.close()

    def _parse(self, data, base_currency: str) -> FetchedSnapshot | None:
        # Response format: {"result": "success", "base_code": "PLN", "time_last_update_unix": 1712400300,
        #                   "rates": {"USD": 0.2523, ...}}
        if not isinstance(data, dict):
            logger.warning("Unexpected rates payload for %s: %r", base_currency, type(data).__name__)
            return None

        if data.get("result") == "error":
            logger.warning("Rates API reported an error for %s: %s", base_currency, data.get("error-type"))
            return None

        try:
            base_code = str(data["base_code"]).upper()
            rates = {
                str(code).upper(): Decimal(str(value))
                for code, value in data["rates"].items()
            }
            time_last_update = int(data["time_last_update_unix"])
        except (KeyError, TypeError, AttributeError, ValueError, InvalidOperation) as e:
            logger.warning("Invalid rates payload for %s: %s", base_currency, e)
            return None

        if base_code != base_currency.upper():
            logger.warning("Rates API answered with base %s, expected %s", base_code, base_currency)
            return None

        if not rates:
            logger.warning("Rates API returned no rates for %s", base_currency)
            return None

        return FetchedSnapshot(
            base_code=base_code,
            rates=rates,
            time_last_update_unix=time_last_update,
        )
