"""Time series of interest rates.

A ``RateTimeline`` holds, for each rate category, the validity intervals of
the rate history in ascending order. It answers which rate applies on a given
day, including the late-payment adjustments, and which rate changes fall
inside a calculation period so the simulation can split accrual there.
"""

from __future__ import annotations

from bisect import bisect_right
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .data_models import MORATORIO, TIMELINE_CATEGORIES, MoratoryAdjustment, RateRecord
from .errors import NoApplicableRate, ValidationError


def adjust_moratory_rate(percentage: Decimal, adjustment: Optional[MoratoryAdjustment]) -> Decimal:
    """Apply the late-payment adjustments to a looked-up rate.

    The discount for pre-2013 transactions is applied first and never takes
    the rate below zero; the agricultural surcharge is added afterwards.
    """
    if adjustment is None:
        return percentage
    rate = percentage
    if adjustment.pre_transaction_discount:
        rate = max(rate - Decimal("1"), Decimal("0"))
    if adjustment.agricultural_surcharge:
        rate += adjustment.surcharge_percent
    return rate


class RateTimeline:
    """Read-only rate history grouped by category."""

    def __init__(self, records: Iterable[RateRecord]) -> None:
        grouped: Dict[str, List[RateRecord]] = {c: [] for c in TIMELINE_CATEGORIES}
        for record in records:
            if record.category not in grouped:
                raise ValidationError(f"Unknown rate category: {record.category}")
            if record.valid_to is not None and record.valid_from > record.valid_to:
                raise ValidationError(
                    f"Rate valid from {record.valid_from.isoformat()} ends before it starts"
                )
            grouped[record.category].append(record)
        for category, items in grouped.items():
            items.sort(key=lambda r: r.valid_from)
            for previous, current in zip(items, items[1:]):
                if previous.valid_to is None or previous.valid_to >= current.valid_from:
                    raise ValidationError(
                        f"Overlapping {category} rates starting "
                        f"{previous.valid_from.isoformat()} and {current.valid_from.isoformat()}"
                    )
        self._records = grouped
        self._starts = {c: [r.valid_from for r in items] for c, items in grouped.items()}

    def _check_category(self, category: str) -> None:
        if category not in self._records:
            raise ValidationError(f"Unknown rate category: {category}")

    def records(self, category: str) -> List[RateRecord]:
        self._check_category(category)
        return list(self._records[category])

    def find(self, category: str, day: date) -> Optional[RateRecord]:
        """Return the record covering ``day`` or ``None`` inside a gap."""
        self._check_category(category)
        idx = bisect_right(self._starts[category], day) - 1
        if idx < 0:
            return None
        record = self._records[category][idx]
        return record if record.covers(day) else None

    def rate_on(
        self,
        category: str,
        day: date,
        adjustment: Optional[MoratoryAdjustment] = None,
    ) -> Decimal:
        """Return the percentage applying on ``day``.

        Raises
        ------
        NoApplicableRate
            If no interval of the category covers the day.
        """
        record = self.find(category, day)
        if record is None:
            raise NoApplicableRate(category, day)
        if category == MORATORIO:
            return adjust_moratory_rate(record.percentage, adjustment)
        return record.percentage

    def boundary_dates(self, category: str, start: date, end: date) -> List[date]:
        """Return the start dates of the intervals beginning strictly inside ``(start, end)``."""
        self._check_category(category)
        return [d for d in self._starts[category] if start < d < end]
