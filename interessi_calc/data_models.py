"""Data models for the interest calculator.

This module defines dataclasses representing the entities used by the
calculator: rate records from the statutory/late-payment rate history, the
late-payment adjustments, ledger events (additional credits and partial
payments), the calculation request, the mutable simulation state and the
final result. Using dataclasses makes it easy to construct, inspect and
serialize these structures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

# Rate categories
LEGALE = "legale"
MORATORIO = "moratorio"
FISSO = "fisso"

TIMELINE_CATEGORIES = (LEGALE, MORATORIO)
CATEGORIES = (LEGALE, MORATORIO, FISSO)

# Ledger event kinds
CREDIT = "credit"
PAYMENT = "payment"

EVENT_KINDS = (CREDIT, PAYMENT)

SURCHARGE_OPTIONS = (Decimal("2"), Decimal("4"))


@dataclass(frozen=True)
class RateRecord:
    """An interest rate valid over a date interval.

    Attributes
    ----------
    category: str
        ``"legale"`` (statutory) or ``"moratorio"`` (late payment).
    percentage: Decimal
        The annual rate in percent, e.g. ``Decimal("2.5")`` for 2.5 %.
    valid_from: date
        First day the rate applies (inclusive).
    valid_to: Optional[date]
        Last day the rate applies (inclusive). ``None`` means the rate is
        still in force.
    decree_reference: Optional[str]
        Citation of the decree or publication the rate comes from.
    note: Optional[str]
        Free text, e.g. how a late-payment rate was derived.
    """

    category: str
    percentage: Decimal
    valid_from: date
    valid_to: Optional[date] = None
    decree_reference: Optional[str] = None
    note: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.valid_from <= day and (self.valid_to is None or day <= self.valid_to)


@dataclass(frozen=True)
class MoratoryAdjustment:
    """Adjustments applied to the late-payment rate.

    Attributes
    ----------
    pre_transaction_discount: bool
        The commercial transaction was concluded by 2012-12-31, when the
        late-payment rate was the reference rate plus 7 points instead of 8.
        One point is subtracted from the looked-up rate.
    agricultural_surcharge: bool
        The debt concerns agricultural or agri-food products.
    surcharge_percent: Decimal
        Points added when ``agricultural_surcharge`` is set: 2 or 4 (4 has
        been in force since 2015-07-04).
    """

    pre_transaction_discount: bool = False
    agricultural_surcharge: bool = False
    surcharge_percent: Decimal = Decimal("4")


@dataclass
class LedgerEvent:
    """A dated movement affecting the claim.

    Attributes
    ----------
    kind: str
        ``"credit"`` increases the principal (a further claim arising later).
        ``"payment"`` is a partial payment by the debtor.
    date: Optional[date]
        The value date of the movement. Events without a date are ignored.
    amount: Decimal
        The amount of the movement. Events with a non-positive amount are
        ignored.
    description: str
        Free text. Together with date and kind it identifies the event, so
        repeated entries with the same description on the same day are
        merged.
    """

    kind: str
    date: Optional[date]
    amount: Decimal
    description: str = ""


@dataclass
class CalculationRequest:
    """All inputs of a single calculation.

    ``fixed_rate`` is only read when ``category`` is ``"fisso"`` and
    ``adjustment`` only when it is ``"moratorio"``.
    """

    principal: Decimal
    start_date: date
    end_date: date
    category: str
    fixed_rate: Optional[Decimal] = None
    adjustment: MoratoryAdjustment = field(default_factory=MoratoryAdjustment)
    events: List[LedgerEvent] = field(default_factory=list)
    apply_allocation_rule: bool = True  # Art. 1194 c.c.: interest before principal


@dataclass
class AccrualSegment:
    """Interest accrued over one interval between two checkpoints.

    ``principal`` is the residual principal the interest was computed on.
    Values are not rounded.
    """

    period: int
    start: date
    end: date
    days: int
    rate: Decimal
    principal: Decimal
    interest: Decimal


@dataclass
class SimulationState:
    """Mutable state of one simulation run."""

    cursor: date
    residual_principal: Decimal
    current_rate: Decimal
    accrued_unsettled_interest: Decimal = Decimal("0")
    total_interest_accrued: Decimal = Decimal("0")
    total_payments: Decimal = Decimal("0")
    total_additional_credits: Decimal = Decimal("0")
    segments: List[AccrualSegment] = field(default_factory=list)


@dataclass
class CalculationResult:
    """Summary of a calculation.

    Monetary fields and ``rate_at_start`` are rounded to two decimals;
    ``segments`` keeps the unrounded accrual breakdown.
    """

    total_interest: Decimal
    residual_interest: Decimal
    residual_principal: Decimal
    total_payments: Decimal
    total_additional_credits: Decimal
    rate_at_start: Decimal
    segments: List[AccrualSegment] = field(default_factory=list)
