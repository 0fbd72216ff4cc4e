import pytest
from decimal import Decimal
from datetime import timedelta

from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework import status

from apps.rates.domain.models import FetchedSnapshot
from apps.rates.infrastructure.persistence.models import Currency, ExchangeRateRecord


@pytest.fixture
def api_client():
    """DRF API client."""
    return APIClient()


@pytest.fixture
def fresh_rates(db):
    """Store fresh PLN rates so no fetch is needed."""
    updated_at = timezone.now() - timedelta(minutes=5)
    rates = {"USD": "0.2523", "EUR": "0.2341", "GBP": "0.2001", "JPY": "38.1200"}
    for code, value in rates.items():
        currency = Currency.objects.create(code=code, name=code)
        ExchangeRateRecord.objects.create(
            base_code="PLN",
            target_currency=currency,
            rate=Decimal(value),
            updated_at=updated_at,
        )
    Currency.objects.filter(code="USD").update(name="US Dollar")
    return rates


@pytest.mark.django_db(transaction=True)
class TestCurrencyViewSet:
    """Tests for CurrencyViewSet endpoints."""

    def setup_method(self):
        """Clean up before each test."""
        ExchangeRateRecord.objects.all().delete()
        Currency.objects.all().delete()

    def test_list_currencies(self, api_client, fresh_rates):
        """
        Test GET /api/v1/rates/currencies/ lists all currencies.
        """
        response = api_client.get("/api/v1/rates/currencies/")

        assert response.status_code == status.HTTP_200_OK
        assert [c["code"] for c in response.data] == ["EUR", "GBP", "JPY", "USD"]

    def test_retrieve_currency(self, api_client, fresh_rates):
        currency = Currency.objects.get(code="USD")

        response = api_client.get(f"/api/v1/rates/currencies/{currency.id}/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["code"] == "USD"
        assert response.data["name"] == "US Dollar"

    def test_currencies_are_read_only(self, api_client):
        response = api_client.post("/api/v1/rates/currencies/", {"code": "CHF", "name": "Swiss Franc"})

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert not Currency.objects.filter(code="CHF").exists()


@pytest.mark.django_db(transaction=True)
class TestLatestRatesViewSet:
    """Tests for LatestRatesViewSet endpoints."""

    def setup_method(self):
        """Clean up before each test."""
        ExchangeRateRecord.objects.all().delete()
        Currency.objects.all().delete()

    def test_retrieve_fetches_empty_store(self, api_client, use_stub_fetcher, pln_snapshot):
        """
        Test GET /api/v1/rates/latest/PLN/ fetches, stores and returns rates.
        """
        use_stub_fetcher.snapshot = pln_snapshot

        response = api_client.get("/api/v1/rates/latest/PLN/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["base_code"] == "PLN"
        assert [r["target_code"] for r in response.data["rates"]] == ["EUR", "USD"]
        assert Decimal(response.data["rates"][1]["rate"]) == Decimal("0.2523")
        assert use_stub_fetcher.calls == ["PLN"]
        assert ExchangeRateRecord.objects.count() == 2

    def test_retrieve_serves_fresh_cache(self, api_client, use_stub_fetcher, fresh_rates):
        response = api_client.get("/api/v1/rates/latest/pln/")

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data["rates"]) == 4
        assert use_stub_fetcher.calls == []

    def test_retrieve_no_data(self, api_client, use_stub_fetcher):
        """Test that a failed fetch with nothing to serve answers 503."""
        response = api_client.get("/api/v1/rates/latest/PLN/")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert "No exchange rate data available" in response.data["error"]

    def test_compare(self, api_client, use_stub_fetcher, fresh_rates):
        """
        Test GET /api/v1/rates/latest/PLN/compare/ reports missing targets per item.
        """
        response = api_client.get("/api/v1/rates/latest/PLN/compare/", {"targets": "USD,XXX,eur"})

        assert response.status_code == status.HTTP_200_OK
        results = response.data["results"]
        assert [r["target_code"] for r in results] == ["USD", "XXX", "EUR"]
        assert [r["found"] for r in results] == [True, False, True]
        assert results[0]["target_name"] == "US Dollar"
        assert results[1]["rate"] is None

    def test_compare_missing_targets(self, api_client, use_stub_fetcher):
        response = api_client.get("/api/v1/rates/latest/PLN/compare/")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "targets is required" in response.data["error"]

    def test_above(self, api_client, use_stub_fetcher, fresh_rates):
        """
        Test GET /api/v1/rates/latest/PLN/above/ returns rates above the threshold, highest first.
        """
        response = api_client.get("/api/v1/rates/latest/PLN/above/", {"threshold": "0.2341"})

        assert response.status_code == status.HTTP_200_OK
        assert [r["target_code"] for r in response.data["rates"]] == ["JPY", "USD"]
        assert response.data["threshold"] == "0.2341"

    def test_above_missing_threshold(self, api_client, use_stub_fetcher):
        response = api_client.get("/api/v1/rates/latest/PLN/above/")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_above_invalid_threshold(self, api_client, use_stub_fetcher):
        response = api_client.get("/api/v1/rates/latest/PLN/above/", {"threshold": "abc"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid threshold" in response.data["error"]

    def test_stale_rates_are_updated(self, api_client, use_stub_fetcher, fresh_rates):
        ExchangeRateRecord.objects.update(updated_at=timezone.now() - timedelta(hours=3))
        use_stub_fetcher.snapshot = FetchedSnapshot(
            base_code="PLN",
            rates={"USD": Decimal("0.2600")},
            time_last_update_unix=int(timezone.now().timestamp()),
        )

        response = api_client.get("/api/v1/rates/latest/PLN/")

        assert response.status_code == status.HTTP_200_OK
        usd = next(r for r in response.data["rates"] if r["target_code"] == "USD")
        assert Decimal(usd["rate"]) == Decimal("0.26")
