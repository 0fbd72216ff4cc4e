"""
Pure domain entities (POPOs).
No dependency on the ORM.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping, Optional
from uuid import UUID


@dataclass(frozen=True)
class FetchedSnapshot:
    """Raw rate set returned by the upstream API for one base currency."""

    base_code: str
    rates: Mapping[str, Decimal]
    time_last_update_unix: int

    def __post_init__(self):
        base_code = (self.base_code or "").strip().upper()
        if not base_code:
            raise ValueError("base_code must not be empty")
        if not self.rates:
            raise ValueError(f"Snapshot for {base_code} has no rates")

        rates = {}
        for code, rate in self.rates.items():
            code = (code or "").strip().upper()
            if not code:
                raise ValueError(f"Snapshot for {base_code} has an empty target code")
            rates[code] = rate

        # Codes are kept upper-case.
        object.__setattr__(self, "base_code", base_code)
        object.__setattr__(self, "rates", rates)

    @property
    def updated_at(self) -> datetime:
        return datetime.fromtimestamp(self.time_last_update_unix, tz=timezone.utc)


@dataclass(frozen=True)
class StoredRate:
    """A persisted exchange rate record, detached from the ORM."""

    id: UUID
    base_code: str
    target_code: str
    rate: Decimal
    updated_at: datetime


@dataclass(frozen=True)
class RateRow:
    """A stored rate joined with the display name of its target currency."""

    base_code: str
    target_code: str
    target_name: str
    rate: Decimal
    updated_at: datetime


@dataclass(frozen=True)
class RateInsert:
    base_code: str
    target_code: str
    rate: Decimal
    updated_at: datetime


@dataclass(frozen=True)
class RateUpdate:
    record_id: UUID
    target_code: str
    rate: Decimal
    updated_at: datetime


@dataclass
class RateChangeSet:
    """Writes staged by the reconciler, applied by the store in one transaction."""

    new_currencies: list[str] = field(default_factory=list)
    inserts: list[RateInsert] = field(default_factory=list)
    updates: list[RateUpdate] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.new_currencies or self.inserts or self.updates)


@dataclass(frozen=True)
class ReconcileResult:
    inserted: int = 0
    updated: int = 0


@dataclass(frozen=True)
class ComparisonItem:
    """Rate of one requested target currency; `rate` is None when it was not found."""

    target_code: str
    rate: Optional[Decimal] = None
    target_name: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.rate is not None
