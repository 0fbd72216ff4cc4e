"""
Repository pattern implementation.
Abstracts database access to decouple domain logic from persistence.

Repositories hand out plain domain dataclasses, never model instances.
Relations are resolved by explicit lookups on the currency code.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from django.db import transaction
from django.db.models import Max

from apps.rates.domain.models import RateChangeSet, RateRow, StoredRate
from apps.rates.infrastructure.persistence.models import (
    RATE_DECIMAL_PLACES,
    RATE_MAX_DIGITS,
    Currency,
    ExchangeRateRecord,
)

logger = logging.getLogger(__name__)

RATE_FIELDS = ("id", "base_code", "target_currency", "rate", "updated_at")

ORDERINGS = {
    "target": ("target_currency_id",),
    "rate": ("-rate", "target_currency_id"),
    "updated_at": ("-updated_at", "target_currency_id"),
}

# Exclusive upper bound on the magnitude a rate column can hold and read back.
MAX_STORABLE_RATE = Decimal(10) ** (RATE_MAX_DIGITS - RATE_DECIMAL_PLACES)


class CurrencyRepository:
    """Repository for Currency aggregate."""

    @staticmethod
    def get_by_code(code: str) -> Optional[Currency]:
        """Get currency by code."""
        try:
            return Currency.objects.get(code=code.upper())
        except Currency.DoesNotExist:
            return None

    @staticmethod
    def get_all() -> List[Currency]:
        return list(Currency.objects.all())

    @staticmethod
    def existing_codes(codes: Iterable[str]) -> Set[str]:
        """Return the subset of `codes` that already has a Currency row."""
        return set(
            Currency.objects
            .filter(code__in=list(codes))
            .values_list("code", flat=True)
        )

    @staticmethod
    def get_names(codes: Iterable[str]) -> Dict[str, str]:
        return dict(
            Currency.objects
            .filter(code__in=list(codes))
            .values_list("code", "name")
        )

    @staticmethod
    def backfill_names(names: Dict[str, str]) -> int:
        """
        Replace placeholder names (name == code) with real display names.
        Currencies that already carry a name are left alone.
        """
        updated = 0
        with transaction.atomic():
            for code, name in names.items():
                code = code.upper()
                updated += Currency.objects.filter(code=code, name=code).update(name=name)
        return updated


class ExchangeRateRepository:
    """Repository for ExchangeRateRecord aggregate, partitioned by base currency."""

    @staticmethod
    def is_storable(rate: Decimal) -> bool:
        return rate.is_finite() and abs(rate) < MAX_STORABLE_RATE

    @staticmethod
    def get_rates_by_target(base_code: str) -> Dict[str, StoredRate]:
        """All stored rates for a base currency, keyed by target code."""
        rows = ExchangeRateRecord.objects.filter(base_code=base_code).values(*RATE_FIELDS)
        return {row["target_currency"]: _to_stored_rate(row) for row in rows}

    @staticmethod
    def get_latest_update(base_code: str) -> Optional[datetime]:
        """Most recent `updated_at` among the records of a base currency."""
        return (
            ExchangeRateRecord.objects
            .filter(base_code=base_code)
            .aggregate(latest=Max("updated_at"))["latest"]
        )

    @staticmethod
    def list_for_base(base_code: str, order_by: str = "target") -> List[RateRow]:
        """Stored rates for a base currency joined with target currency names."""
        if order_by not in ORDERINGS:
            raise ValueError(f"Unsupported ordering '{order_by}', expected one of {sorted(ORDERINGS)}")

        rows = list(
            ExchangeRateRecord.objects
            .filter(base_code=base_code)
            .order_by(*ORDERINGS[order_by])
            .values(*RATE_FIELDS)
        )
        return _join_names(rows)

    @staticmethod
    def list_above(base_code: str, threshold: Decimal) -> List[RateRow]:
        """Stored rates strictly greater than `threshold`, highest first."""
        rows = list(
            ExchangeRateRecord.objects
            .filter(base_code=base_code, rate__gt=threshold)
            .order_by(*ORDERINGS["rate"])
            .values(*RATE_FIELDS)
        )
        return _join_names(rows)

    @staticmethod
    def apply_changes(change_set: RateChangeSet) -> None:
        """
        Write a staged change set atomically.

        Currencies are created first so that inserted records reference
        existing codes. Any database error rolls back the whole batch.
        """
        with transaction.atomic():
            if change_set.new_currencies:
                Currency.objects.bulk_create(
                    [Currency(code=code, name=code) for code in change_set.new_currencies],
                    ignore_conflicts=True,
                )

            if change_set.inserts:
                ExchangeRateRecord.objects.bulk_create([
                    ExchangeRateRecord(
                        base_code=i.base_code,
                        target_currency_id=i.target_code,
                        rate=i.rate,
                        updated_at=i.updated_at,
                    )
                    for i in change_set.inserts
                ])

            if change_set.updates:
                ExchangeRateRecord.objects.bulk_update(
                    [
                        ExchangeRateRecord(id=u.record_id, rate=u.rate, updated_at=u.updated_at)
                        for u in change_set.updates
                    ],
                    ["rate", "updated_at"],
                )

        logger.debug(
            "Applied %d currencies, %d inserts, %d updates",
            len(change_set.new_currencies),
            len(change_set.inserts),
            len(change_set.updates),
        )


def _to_stored_rate(row: dict) -> StoredRate:
    return StoredRate(
        id=row["id"],
        base_code=row["base_code"],
        target_code=row["target_currency"],
        rate=row["rate"],
        updated_at=row["updated_at"],
    )


def _join_names(rows: List[dict]) -> List[RateRow]:
    names = CurrencyRepository.get_names({row["target_currency"] for row in rows})
    return [
        RateRow(
            base_code=row["base_code"],
            target_code=row["target_currency"],
            target_name=names.get(row["target_currency"], row["target_currency"]),
            rate=row["rate"],
            updated_at=row["updated_at"],
        )
        for row in rows
    ]
