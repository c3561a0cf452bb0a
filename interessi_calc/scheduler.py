"""Checkpoint construction for the accrual simulation."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List

from .errors import InvalidRange


def build_checkpoints(
    start: date,
    end: date,
    ledger_dates: Iterable[date] = (),
    rate_boundaries: Iterable[date] = (),
) -> List[date]:
    """Return the sorted, deduplicated dates where accrual must stop.

    The result always begins with ``start`` and ends with ``end``. Ledger
    dates are the days with credits or payments, rate boundaries the days a
    new rate interval begins (empty for a fixed rate).
    """
    if end <= start:
        raise InvalidRange(start, end)
    dates = {start, end}
    dates.update(ledger_dates)
    dates.update(rate_boundaries)
    return sorted(dates)
