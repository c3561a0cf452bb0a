"""Utility functions for the interest calculator.

This module provides helpers for parsing user input into Python data types:
ISO dates, amounts written either plainly (``1234.56``) or in the Italian
format (``1.234,56``), and ledger events given on the command line. It also
holds the rounding used for every output value.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from .data_models import CREDIT, PAYMENT, LedgerEvent

CENT = Decimal("0.01")

# Italian labels used by the case-management front end
KIND_ALIASES = {
    "credit": CREDIT,
    "credito": CREDIT,
    "payment": PAYMENT,
    "acconto": PAYMENT,
}


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date``.

    Raises
    ------
    ValueError
        If the string is not a valid ISO date.
    """
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date: {value}") from exc


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return parse_date(str(value))


def parse_amount(value) -> Decimal:
    """Convert a numeric value or string into a ``Decimal``.

    Strings containing a comma are read in the Italian format, where ``.``
    groups thousands and ``,`` separates decimals. Other strings are read as
    plain decimals. Raises ``ValueError`` if conversion fails, including
    for booleans and for a ``.`` after the last comma (``1,234.56``).
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    cleaned = str(value).strip().replace(" ", "")
    if "," in cleaned:
        if "." in cleaned[cleaned.rindex(",") :]:
            raise ValueError(f"Ambiguous decimal separators: {value}")
        cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        result = Decimal(cleaned)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_kind(value: str) -> str:
    kind = KIND_ALIASES.get(value.strip().lower())
    if kind is None:
        raise ValueError(f"Event kind must be 'credit' or 'payment'; got {value}")
    return kind


def parse_event_string(value: str) -> LedgerEvent:
    """Parse ``YYYY-MM-DD:KIND:AMOUNT[:DESCRIPTION]`` into a ``LedgerEvent``."""
    parts = value.split(":", 3)
    if len(parts) < 3:
        raise ValueError(
            f"Event must be in YYYY-MM-DD:KIND:AMOUNT[:DESCRIPTION] format; got {value}"
        )
    day, kind, amount = parts[:3]
    description = parts[3] if len(parts) == 4 else ""
    return LedgerEvent(
        kind=parse_kind(kind),
        date=parse_date(day),
        amount=parse_amount(amount),
        description=description,
    )


def round_money(value: Decimal) -> Decimal:
    """Round to two decimals, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
