"""
Domain services - Core business logic.
Cache freshness, reconciliation of fetched snapshots, and the query facade.
"""

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, List, Optional

from django.db import DatabaseError
from django.utils import timezone

from apps.rates.domain.exceptions import ReconciliationError
from apps.rates.domain.interfaces import BaseRatesFetcher
from apps.rates.domain.models import (
    ComparisonItem,
    FetchedSnapshot,
    RateChangeSet,
    RateInsert,
    RateRow,
    RateUpdate,
    ReconcileResult,
)
from apps.rates.infrastructure.persistence.repositories import (
    CurrencyRepository,
    ExchangeRateRepository,
)
from apps.rates.infrastructure.providers.registry import get_fetcher

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW = timedelta(hours=1)
RATE_TOLERANCE = Decimal("0.00001")


def normalize_code(code: str) -> str:
    code = (code or "").strip().upper()
    if not code:
        raise ValueError("Currency code must not be empty")
    return code


def parse_threshold(value) -> Decimal:
    try:
        threshold = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid threshold '{value}'. Must be a number")
    if not threshold.is_finite():
        raise ValueError(f"Invalid threshold '{value}'. Must be a finite number")
    return threshold


class FreshnessChecker:
    """Decides whether the cached rate set of a base currency can be served as is."""

    def __init__(
        self,
        rates: Optional[ExchangeRateRepository] = None,
        clock: Callable = timezone.now,
    ):
        self.rates = rates or ExchangeRateRepository()
        self.clock = clock

    def is_fresh(self, base_code: str) -> bool:
        """
        True when the newest record for `base_code` is younger than one hour.

        Unknown base currencies and empty caches are never fresh.
        """
        latest = self.rates.get_latest_update(normalize_code(base_code))
        if latest is None:
            return False
        return self.clock() - latest < FRESHNESS_WINDOW


class Reconciler:
    """
    Merges a fetched snapshot into the stored rates of its base currency.

    For every target in the snapshot:
    1. Register the target currency if it has never been seen
    2. Insert a record if the pair is not stored yet
    3. Update rate and timestamp if the rate moved by more than RATE_TOLERANCE
    4. Otherwise leave the record untouched

    All writes are applied in a single transaction.
    """

    def __init__(
        self,
        rates: Optional[ExchangeRateRepository] = None,
        currencies: Optional[CurrencyRepository] = None,
    ):
        self.rates = rates or ExchangeRateRepository()
        self.currencies = currencies or CurrencyRepository()

    def plan(self, snapshot: FetchedSnapshot) -> RateChangeSet:
        """Compute the writes needed to bring the store in line with `snapshot`."""
        existing = self.rates.get_rates_by_target(snapshot.base_code)
        known_codes = self.currencies.existing_codes(snapshot.rates.keys())
        updated_at = snapshot.updated_at

        change_set = RateChangeSet()
        for target_code in sorted(snapshot.rates):
            rate = snapshot.rates[target_code]
            if not self.rates.is_storable(rate):
                raise ReconciliationError(
                    snapshot.base_code,
                    ValueError(f"rate {rate} for {target_code} is outside the storable range"),
                )
            if rate <= 0:
                logger.warning(
                    "Non-positive rate %s for %s/%s accepted as given",
                    rate, snapshot.base_code, target_code,
                )

            if target_code not in known_codes:
                change_set.new_currencies.append(target_code)

            stored = existing.get(target_code)
            if stored is None:
                change_set.inserts.append(
                    RateInsert(snapshot.base_code, target_code, rate, updated_at)
                )
            elif abs(stored.rate - rate) > RATE_TOLERANCE:
                change_set.updates.append(
                    RateUpdate(stored.id, target_code, rate, updated_at)
                )

        return change_set

    def reconcile(self, snapshot: FetchedSnapshot) -> ReconcileResult:
        """
        Apply `snapshot` to the store.

        Returns:
            ReconcileResult with the number of inserted and updated records

        Raises:
            ReconciliationError: a rate cannot be stored or the store rejected
                the batch; nothing was written
        """
        change_set = self.plan(snapshot)

        if change_set.is_empty:
            logger.info("Rates for %s unchanged, nothing to write", snapshot.base_code)
            return ReconcileResult()

        try:
            self.rates.apply_changes(change_set)
        except DatabaseError as e:
            raise ReconciliationError(snapshot.base_code, e) from e

        result = ReconcileResult(
            inserted=len(change_set.inserts),
            updated=len(change_set.updates),
        )
        logger.info(
            "Reconciled %s: %d inserted, %d updated, %d new currencies",
            snapshot.base_code, result.inserted, result.updated, len(change_set.new_currencies),
        )
        return result


class ExchangeRateService:
    """
    Read facade over the rate cache.

    Fetch strategy:
    1. Serve stored rates if the base currency is fresh
    2. Otherwise fetch a snapshot and reconcile it into the store
    3. If the fetch fails, report no data (empty result)
    4. If the store rejects the snapshot, serve whatever was stored before

    The service owns its fetcher; use it as a context manager (or call close())
    to release the underlying HTTP session.
    """

    def __init__(
        self,
        fetcher: Optional[BaseRatesFetcher] = None,
        rates: Optional[ExchangeRateRepository] = None,
        currencies: Optional[CurrencyRepository] = None,
        clock: Callable = timezone.now,
    ):
        self.fetcher = fetcher or get_fetcher()
        self.rates = rates or ExchangeRateRepository()
        self.currencies = currencies or CurrencyRepository()
        self.freshness = FreshnessChecker(self.rates, clock=clock)
        self.reconciler = Reconciler(self.rates, self.currencies)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self) -> None:
        self.fetcher.close()

    def refresh(self, base_code: str, force: bool = False) -> Optional[ReconcileResult]:
        """
        Fetch and reconcile unless the cache is fresh.

        Returns:
            ReconcileResult, or None if nothing was fetched (fresh cache or fetch failure)

        Raises:
            ReconciliationError: propagated from the reconciler
        """
        base_code = normalize_code(base_code)

        if not force and self.freshness.is_fresh(base_code):
            logger.info("Rates for %s are fresh, skipping fetch", base_code)
            return None

        snapshot = self.fetcher.fetch_latest(base_code)
        if snapshot is None:
            logger.warning("No data available for %s", base_code)
            return None

        return self.reconciler.reconcile(snapshot)

    def get_current_rates(self, base_code: str) -> List[RateRow]:
        """
        Current rates for a base currency, ordered by target code.

        Example:
            >>> with ExchangeRateService() as service:
            ...     for row in service.get_current_rates("PLN"):
            ...         print(row.target_code, row.rate)
        """
        base_code = normalize_code(base_code)

        if self.freshness.is_fresh(base_code):
            logger.debug("Serving cached rates for %s", base_code)
            return self.rates.list_for_base(base_code)

        snapshot = self.fetcher.fetch_latest(base_code)
        if snapshot is None:
            logger.warning("No data available for %s", base_code)
            return []

        try:
            self.reconciler.reconcile(snapshot)
        except ReconciliationError:
            logger.exception("Serving previously stored rates for %s", base_code)

        return self.rates.list_for_base(base_code)

    def compare(
        self,
        base_code: str,
        target_codes: Iterable[str],
        rows: Optional[List[RateRow]] = None,
    ) -> List[ComparisonItem]:
        """
        One item per requested target, in request order. Missing targets have rate None.

        Pass `rows` from an earlier get_current_rates() call to compare against
        them instead of resolving the rates again.
        """
        if rows is None:
            rows = self.get_current_rates(base_code)
        by_target = {row.target_code: row for row in rows}

        items = []
        for code in target_codes:
            code = normalize_code(code)
            row = by_target.get(code)
            if row is None:
                logger.info("No rate found for %s in %s rates", code, base_code)
            items.append(
                ComparisonItem(
                    target_code=code,
                    rate=row.rate if row else None,
                    target_name=row.target_name if row else None,
                )
            )
        return items

    def rates_above(
        self,
        base_code: str,
        threshold: Decimal,
        rows: Optional[List[RateRow]] = None,
    ) -> List[RateRow]:
        """
        Targets whose rate is strictly above `threshold`, highest rate first.

        With `rows` from an earlier get_current_rates() call, the cache is not
        checked or refetched again.
        """
        base_code = normalize_code(base_code)
        threshold = parse_threshold(threshold)

        if rows is None:
            rows = self.get_current_rates(base_code)
        if not rows:
            return []
        return self.rates.list_above(base_code, threshold)
