"""
Fetcher Registry - Maps the EXCHANGE_RATES_FETCHER setting to adapter classes.
"""

import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from apps.rates.domain.interfaces import BaseRatesFetcher
from apps.rates.infrastructure.providers.mock import MockFetcher
from apps.rates.infrastructure.providers.open_er_api import OpenErApiFetcher

logger = logging.getLogger(__name__)


FETCHER_REGISTRY: dict[str, type[BaseRatesFetcher]] = {
    "open_er_api": OpenErApiFetcher,
    "mock": MockFetcher,
}


def get_fetcher(name: str | None = None) -> BaseRatesFetcher:
    """
    Instantiate a fetcher by registry name.

    Args:
        name: Registry key; defaults to settings.EXCHANGE_RATES_FETCHER

    Raises:
        ImproperlyConfigured if the name is not registered
    """
    name = name or settings.EXCHANGE_RATES_FETCHER
    fetcher_class = FETCHER_REGISTRY.get(name)

    if fetcher_class is None:
        raise ImproperlyConfigured(
            f"Fetcher '{name}' not found in registry, expected one of {sorted(FETCHER_REGISTRY)}"
        )

    logger.debug("Using fetcher %s", fetcher_class.__name__)
    return fetcher_class()
