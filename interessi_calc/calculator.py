"""Entry point of the interest calculation.

``calculate`` validates a ``CalculationRequest``, normalizes its movements,
collects the rate changes inside the period, builds the checkpoints and runs
the accrual engine. All validation happens before the simulation starts so a
bad request never produces a partial result.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from .config import DEFAULT_MAX_EVENTS
from .data_models import (
    CATEGORIES,
    FISSO,
    MORATORIO,
    SURCHARGE_OPTIONS,
    CalculationRequest,
    CalculationResult,
    MoratoryAdjustment,
)
from .engine import simulate
from .errors import InvalidRange, ValidationError
from .ledger import ledger_dates, normalize_events
from .rates import RateTimeline
from .scheduler import build_checkpoints
from .utils import parse_amount, round_money

logger = logging.getLogger(__name__)


def _validate_adjustment(adjustment: MoratoryAdjustment) -> None:
    if adjustment.agricultural_surcharge and adjustment.surcharge_percent not in SURCHARGE_OPTIONS:
        raise ValidationError(
            f"Agricultural surcharge must be 2 or 4 points; got {adjustment.surcharge_percent}"
        )


def _rate_lookup(request: CalculationRequest, timeline: Optional[RateTimeline]) -> Callable[[date], Decimal]:
    if request.category == FISSO:
        fixed = request.fixed_rate
        return lambda day: fixed
    adjustment = request.adjustment if request.category == MORATORIO else None
    return lambda day: timeline.rate_on(request.category, day, adjustment)


def _to_decimal(value, message: str) -> Decimal:
    if value is None:
        raise ValidationError(message)
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise ValidationError(f"{message}; got {value!r}") from exc


def validate_request(
    request: CalculationRequest,
    timeline: Optional[RateTimeline] = None,
    max_events: Optional[int] = DEFAULT_MAX_EVENTS,
) -> CalculationRequest:
    """Check the request and return a copy with its numeric fields as ``Decimal``.

    Raises ``ValidationError`` if the request cannot be calculated.
    """
    principal = _to_decimal(request.principal, "Initial principal must be a positive number")
    if principal <= 0:
        raise ValidationError("Initial principal must be greater than zero")
    if request.start_date is None or request.end_date is None:
        raise ValidationError("Start and end dates are required")
    if request.end_date <= request.start_date:
        raise InvalidRange(request.start_date, request.end_date)
    if request.category not in CATEGORIES:
        raise ValidationError(
            f"Interest category must be one of {', '.join(CATEGORIES)}; got {request.category}"
        )
    fixed_rate = request.fixed_rate
    adjustment = request.adjustment
    if request.category == FISSO:
        fixed_rate = _to_decimal(fixed_rate, "A fixed rate greater than zero is required")
        if fixed_rate <= 0:
            raise ValidationError("A fixed rate greater than zero is required")
    elif timeline is None:
        raise ValidationError(f"A rate history is required for {request.category} interest")
    if request.category == MORATORIO:
        adjustment = replace(
            adjustment,
            surcharge_percent=_to_decimal(adjustment.surcharge_percent, "Surcharge must be a number"),
        )
        _validate_adjustment(adjustment)
    if max_events is not None and len(request.events) > max_events:
        raise ValidationError(f"At most {max_events} movements are allowed; got {len(request.events)}")
    return replace(request, principal=principal, fixed_rate=fixed_rate, adjustment=adjustment)


def calculate(
    request: CalculationRequest,
    timeline: Optional[RateTimeline] = None,
    max_events: Optional[int] = DEFAULT_MAX_EVENTS,
) -> CalculationResult:
    """Compute interest, residual principal and residual interest at the end date.

    Parameters
    ----------
    request: CalculationRequest
        The claim, the period, the rate selection and the movements.
    timeline: RateTimeline, optional
        Rate history; required unless the category is ``"fisso"``.
    max_events: int, optional
        Maximum number of raw movements accepted, ``None`` for no limit.

    Raises
    ------
    ValidationError
        Invalid input, raised before any accrual.
    NoApplicableRate
        The rate history has no rate for a date the calculation needs.
    """
    request = validate_request(request, timeline, max_events)

    ledger = normalize_events(request.events)
    outside = [d for d in ledger if d < request.start_date or d > request.end_date]
    if outside:
        raise ValidationError(
            f"Movement dated {outside[0].isoformat()} falls outside the calculation period"
        )

    rate_for = _rate_lookup(request, timeline)
    # Fail early if the period cannot even start
    rate_at_start = rate_for(request.start_date)

    if request.category == FISSO:
        boundaries = []
    else:
        boundaries = timeline.boundary_dates(request.category, request.start_date, request.end_date)
    checkpoints = build_checkpoints(
        request.start_date, request.end_date, ledger_dates(ledger), boundaries
    )
    logger.debug(
        "Calculating %s interest on %s from %s to %s: %d checkpoints, %d movement dates",
        request.category,
        request.principal,
        request.start_date,
        request.end_date,
        len(checkpoints),
        len(ledger),
    )

    state = simulate(
        request.principal,
        checkpoints,
        ledger,
        rate_for,
        apply_allocation_rule=request.apply_allocation_rule,
    )

    result = CalculationResult(
        total_interest=round_money(state.total_interest_accrued),
        residual_interest=round_money(state.accrued_unsettled_interest),
        residual_principal=round_money(state.residual_principal),
        total_payments=round_money(state.total_payments),
        total_additional_credits=round_money(state.total_additional_credits),
        rate_at_start=round_money(rate_at_start),
        segments=state.segments,
    )
    logger.info(
        "Interest %s, residual principal %s, residual interest %s",
        result.total_interest,
        result.residual_principal,
        result.residual_interest,
    )
    return result
