import pytest
from decimal import Decimal

from apps.rates.domain.interfaces import BaseRatesFetcher
from apps.rates.domain.models import FetchedSnapshot


class StubFetcher(BaseRatesFetcher):
    """Fetcher returning a preset snapshot and recording every call."""

    def __init__(self, snapshot=None):
        self.snapshot = snapshot
        self.calls = []
        self.closed = False

    def fetch_latest(self, base_currency):
        self.calls.append(base_currency)
        return self.snapshot

    def close(self):
        self.closed = True


@pytest.fixture
def stub_fetcher():
    """Fetcher with no snapshot (every fetch fails) until one is assigned."""
    return StubFetcher()


@pytest.fixture
def pln_snapshot():
    """Snapshot from the open.er-api example: 1 PLN in USD and EUR."""
    return FetchedSnapshot(
        base_code="PLN",
        rates={"USD": Decimal("0.2523"), "EUR": Decimal("0.2341")},
        time_last_update_unix=1712400300,
    )


@pytest.fixture
def use_stub_fetcher(mocker, stub_fetcher):
    """Make ExchangeRateService() pick up `stub_fetcher` instead of the configured fetcher."""
    mocker.patch("apps.rates.domain.services.get_fetcher", return_value=stub_fetcher)
    return stub_fetcher
