"""Normalization of ledger events.

Events arrive in any order and may repeat. Before the simulation they are
filtered, merged by identity and grouped by date, with additional credits
ahead of payments on the same day so that a same-day payment is measured
against the increased balance.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from .data_models import CREDIT, EVENT_KINDS, LedgerEvent
from .errors import ValidationError

logger = logging.getLogger(__name__)

_KIND_ORDER = {CREDIT: 0}


def _kind_rank(event: LedgerEvent) -> int:
    return _KIND_ORDER.get(event.kind, 1)


def normalize_events(events: Iterable[LedgerEvent]) -> Dict[date, List[LedgerEvent]]:
    """Group events by date for the simulation.

    Events without a date or with a non-positive amount are dropped. Events
    sharing ``(date, kind, description)`` are merged into one event whose
    amount is the sum. The returned mapping is ordered by date and each list
    holds credits before payments, otherwise in input order.
    """
    merged: Dict[Tuple[date, str, str], LedgerEvent] = {}
    for event in events:
        if event.kind not in EVENT_KINDS:
            raise ValidationError(f"Unknown event kind: {event.kind}")
        if event.date is None or event.amount is None or event.amount <= 0:
            logger.debug("Discarding event %r", event)
            continue
        description = (event.description or "").strip()
        key = (event.date, event.kind, description)
        existing = merged.get(key)
        if existing:
            existing.amount += event.amount
        else:
            merged[key] = LedgerEvent(
                kind=event.kind,
                date=event.date,
                amount=Decimal(event.amount),
                description=description,
            )

    ledger: Dict[date, List[LedgerEvent]] = {}
    for ev in sorted(merged.values(), key=lambda e: e.date):
        ledger.setdefault(ev.date, []).append(ev)
    for day_events in ledger.values():
        day_events.sort(key=_kind_rank)
    return ledger


def ledger_dates(ledger: Dict[date, List[LedgerEvent]]) -> List[date]:
    return sorted(ledger)
