import pytest
import requests
from unittest.mock import Mock
from decimal import Decimal

from apps.rates.infrastructure.providers.open_er_api import OpenErApiFetcher


API_URL = "https://open.er-api.com/v6/latest"


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def fetcher(session):
    return OpenErApiFetcher(base_url=API_URL, timeout=5, session=session)


def respond_with(session, payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session.get.return_value = response
    return response


def test_fetch_latest_success(fetcher, session):
    """
    Test that fetch_latest parses base code, rates and update time
    from a successful /latest response.
    """
    respond_with(session, {
        "result": "success",
        "base_code": "PLN",
        "time_last_update_unix": 1712400300,
        "rates": {"PLN": 1, "USD": 0.2523, "EUR": 0.2341},
    })

    snapshot = fetcher.fetch_latest("PLN")

    assert snapshot is not None
    assert snapshot.base_code == "PLN"
    assert snapshot.rates == {
        "PLN": Decimal("1"),
        "USD": Decimal("0.2523"),
        "EUR": Decimal("0.2341"),
    }
    assert snapshot.time_last_update_unix == 1712400300
    session.get.assert_called_once_with(f"{API_URL}/PLN", timeout=5)


def test_fetch_latest_trailing_slash_in_url(session):
    fetcher = OpenErApiFetcher(base_url=f"{API_URL}/", timeout=5, session=session)
    respond_with(session, {
        "base_code": "PLN",
        "time_last_update_unix": 1712400300,
        "rates": {"USD": 0.2523},
    })

    fetcher.fetch_latest("PLN")

    assert session.get.call_args[0][0] == f"{API_URL}/PLN"


def test_fetch_latest_http_error(fetcher, session):
    """Test that a non-2xx response is a fetch failure."""
    response = respond_with(session, {})
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("404 Client Error")

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_timeout(fetcher, session):
    session.get.side_effect = requests.exceptions.Timeout("read timed out")

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_connection_error(fetcher, session):
    session.get.side_effect = requests.exceptions.ConnectionError("connection refused")

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_malformed_json(fetcher, session):
    response = respond_with(session, None)
    response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_error_payload(fetcher, session):
    """Test that an error reported in a 200 response is a fetch failure."""
    respond_with(session, {"result": "error", "error-type": "unsupported-code"})

    assert fetcher.fetch_latest("XYZ") is None


def test_fetch_latest_missing_key(fetcher, session):
    respond_with(session, {"base_code": "PLN", "rates": {"USD": 0.2523}})

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_non_numeric_rate(fetcher, session):
    respond_with(session, {
        "base_code": "PLN",
        "time_last_update_unix": 1712400300,
        "rates": {"USD": "n/a"},
    })

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_unexpected_payload_type(fetcher, session):
    respond_with(session, ["PLN"])

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_base_mismatch(fetcher, session):
    respond_with(session, {
        "base_code": "USD",
        "time_last_update_unix": 1712400300,
        "rates": {"PLN": 3.96},
    })

    assert fetcher.fetch_latest("PLN") is None


def test_fetch_latest_empty_rates(fetcher, session):
    respond_with(session, {
        "base_code": "PLN",
        "time_last_update_unix": 1712400300,
        "rates": {},
    })

    assert fetcher.fetch_latest("PLN") is None


def test_close_closes_session(fetcher, session):
    fetcher.close()

    session.close.assert_called_once()


def test_defaults_from_settings(settings):
    settings.EXCHANGE_RATES_API_URL = "https://rates.example.com/v6/latest"
    settings.EXCHANGE_RATES_API_TIMEOUT = 3.0

    fetcher = OpenErApiFetcher()

    assert fetcher.base_url == "https://rates.example.com/v6/latest"
    assert fetcher.timeout == 3.0
    assert isinstance(fetcher.session, requests.Session)
    fetcher.close()
