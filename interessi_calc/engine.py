"""Core accrual engine for the interest calculator.

This module walks the checkpoints of a calculation in ascending order. Between
two checkpoints it accrues simple interest on the residual principal at the
rate in force at the first one:

    interest = principal * rate * days / 36500

where ``rate`` is an annual percentage and ``days`` the calendar days between
the checkpoints. On each checkpoint the rate is looked up again and the
movements of that day are applied: additional credits increase the principal,
payments settle accrued interest first and then reduce the principal
(Art. 1194 c.c.), or go straight to principal when the rule is disabled.

Interest is never added to the principal (no anatocism) and amounts are kept
unrounded until the result is built.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, getcontext
from typing import Callable, Dict, List, Sequence

from .data_models import CREDIT, AccrualSegment, LedgerEvent, SimulationState

getcontext().prec = 28  # increase precision for financial calculations

DAY_COUNT_DIVISOR = Decimal("36500")

RateLookup = Callable[[date], Decimal]


def accrued_interest(principal: Decimal, rate: Decimal, days: int) -> Decimal:
    """Return the simple interest for ``days`` days at an annual percentage rate."""
    if days <= 0 or principal <= 0:
        return Decimal("0")
    return principal * rate * Decimal(days) / DAY_COUNT_DIVISOR


def _accrue(state: SimulationState, checkpoint: date) -> None:
    days = (checkpoint - state.cursor).days
    interest = accrued_interest(state.residual_principal, state.current_rate, days)
    state.segments.append(
        AccrualSegment(
            period=len(state.segments) + 1,
            start=state.cursor,
            end=checkpoint,
            days=days,
            rate=state.current_rate,
            principal=state.residual_principal,
            interest=interest,
        )
    )
    state.total_interest_accrued += interest
    state.accrued_unsettled_interest += interest
    state.cursor = checkpoint


def _apply_payment(state: SimulationState, amount: Decimal, apply_allocation_rule: bool) -> None:
    state.total_payments += amount
    if not apply_allocation_rule:
        state.residual_principal = max(state.residual_principal - amount, Decimal("0"))
        return
    if state.accrued_unsettled_interest >= amount:
        state.accrued_unsettled_interest -= amount
        return
    shortfall = amount - state.accrued_unsettled_interest
    state.accrued_unsettled_interest = Decimal("0")
    state.residual_principal = max(state.residual_principal - shortfall, Decimal("0"))


def _apply_events(state: SimulationState, events: Sequence[LedgerEvent], apply_allocation_rule: bool) -> None:
    for event in events:
        if event.kind == CREDIT:
            state.residual_principal += event.amount
            state.total_additional_credits += event.amount
        else:
            _apply_payment(state, event.amount, apply_allocation_rule)


def simulate(
    principal: Decimal,
    checkpoints: Sequence[date],
    ledger: Dict[date, List[LedgerEvent]],
    rate_for: RateLookup,
    apply_allocation_rule: bool = True,
) -> SimulationState:
    """Run the accrual simulation and return the terminal state.

    Parameters
    ----------
    principal: Decimal
        The initial claim.
    checkpoints: Sequence[date]
        Sorted checkpoints; the first is the start date, the last the end date.
    ledger: Dict[date, List[LedgerEvent]]
        Normalized events keyed by date, credits before payments.
    rate_for: Callable[[date], Decimal]
        Returns the (adjusted) annual percentage for a date. Any exception it
        raises aborts the run.
    apply_allocation_rule: bool
        Settle accrued interest before principal when True.
    """
    start = checkpoints[0]
    state = SimulationState(
        cursor=start,
        residual_principal=principal,
        current_rate=rate_for(start),
    )
    # Movements on the start date change the base before any accrual.
    _apply_events(state, ledger.get(start, ()), apply_allocation_rule)

    for checkpoint in checkpoints[1:]:
        _accrue(state, checkpoint)
        state.current_rate = rate_for(checkpoint)
        _apply_events(state, ledger.get(checkpoint, ()), apply_allocation_rule)
    return state
