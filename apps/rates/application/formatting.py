"""
Plain-text rendering of rate rows for the console.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List

from django.utils import timezone

from apps.rates.domain.models import ComparisonItem, RateRow

SEPARATOR = "-" * 28


def format_update_time(value: datetime) -> str:
    """Render a timestamp in the configured local time zone."""
    return timezone.localtime(value).strftime("%Y-%m-%d %H:%M:%S")


def format_rate(rate: Decimal) -> str:
    return f"{rate:.4f}"


def format_rates(base_code: str, rows: List[RateRow]) -> str:
    """
    Rate table for one base currency:

        Exchange rates for base currency: PLN
        Last update: 2024-04-06 10:45:00
        ----------------------------
        EUR: 0.2341
        USD: 0.2523
    """
    if not rows:
        return f"No exchange rate data available for {base_code}"

    last_update = max(row.updated_at for row in rows)
    lines = [
        f"Exchange rates for base currency: {base_code}",
        f"Last update: {format_update_time(last_update)}",
        SEPARATOR,
    ]
    lines.extend(f"{row.target_code}: {format_rate(row.rate)}" for row in rows)
    return "\n".join(lines)


def format_comparison(base_code: str, items: Iterable[ComparisonItem]) -> str:
    lines = [f"Exchange rates for {base_code}:"]
    for item in items:
        if item.found:
            lines.append(f"1 {base_code} = {format_rate(item.rate)} {item.target_code}")
        else:
            lines.append(f"No rate found for currency {item.target_code}")
    return "\n".join(lines)


def format_threshold(base_code: str, threshold: Decimal, rows: List[RateRow]) -> str:
    lines = [f"Currencies above {threshold} for 1 {base_code}:"]
    if not rows:
        lines.append("(none)")
    lines.extend(f"{row.target_code} ({row.target_name}): {format_rate(row.rate)}" for row in rows)
    return "\n".join(lines)
