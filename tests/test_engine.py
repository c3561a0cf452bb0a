from datetime import date
from decimal import Decimal

import pytest

from interessi_calc.data_models import CREDIT, PAYMENT, LedgerEvent
from interessi_calc.engine import accrued_interest, simulate
from interessi_calc.errors import NoApplicableRate
from interessi_calc.ledger import normalize_events

START = date(2024, 1, 1)
DAY_10 = date(2024, 1, 11)


def fixed(rate):
    return lambda day: Decimal(rate)


def test_accrued_interest_formula():
    assert accrued_interest(Decimal("10000"), Decimal("2.5"), 365) == Decimal("250")
    assert accrued_interest(Decimal("36500"), Decimal("10"), 1) == Decimal("10")
    assert accrued_interest(Decimal("10000"), Decimal("2.5"), 0) == Decimal("0")
    assert accrued_interest(Decimal("0"), Decimal("2.5"), 30) == Decimal("0")


def test_no_events_single_segment():
    state = simulate(Decimal("10000"), [START, date(2024, 12, 31)], {}, fixed("2.5"))
    assert state.total_interest_accrued == Decimal("250")
    assert state.accrued_unsettled_interest == Decimal("250")
    assert state.residual_principal == Decimal("10000")
    assert state.cursor == date(2024, 12, 31)
    assert len(state.segments) == 1
    assert state.segments[0].days == 365


def test_payment_smaller_than_interest_settles_interest_only():
    ledger = normalize_events([LedgerEvent(PAYMENT, DAY_10, Decimal("60"))])
    state = simulate(Decimal("36500"), [START, DAY_10], ledger, fixed("10"))
    assert state.total_interest_accrued == Decimal("100")
    assert state.accrued_unsettled_interest == Decimal("40")
    assert state.residual_principal == Decimal("36500")
    assert state.total_payments == Decimal("60")


def test_payment_larger_than_interest_reduces_principal():
    ledger = normalize_events([LedgerEvent(PAYMENT, DAY_10, Decimal("150"))])
    state = simulate(Decimal("36500"), [START, DAY_10], ledger, fixed("10"))
    assert state.accrued_unsettled_interest == Decimal("0")
    assert state.residual_principal == Decimal("36450")


def test_payment_without_allocation_rule_goes_to_principal():
    ledger = normalize_events([LedgerEvent(PAYMENT, DAY_10, Decimal("60"))])
    state = simulate(Decimal("36500"), [START, DAY_10], ledger, fixed("10"), apply_allocation_rule=False)
    assert state.accrued_unsettled_interest == Decimal("100")
    assert state.residual_principal == Decimal("36440")
    assert state.total_payments == Decimal("60")


@pytest.mark.parametrize("rule", [True, False])
def test_principal_clamped_at_zero(rule):
    ledger = normalize_events([LedgerEvent(PAYMENT, DAY_10, Decimal("50000"))])
    state = simulate(Decimal("36500"), [START, DAY_10], ledger, fixed("10"), apply_allocation_rule=rule)
    assert state.residual_principal == Decimal("0")
    assert state.total_payments == Decimal("50000")


def test_same_day_credit_applied_before_payment():
    day = date(2024, 2, 1)
    events = [
        LedgerEvent(PAYMENT, day, Decimal("1200")),
        LedgerEvent(CREDIT, day, Decimal("500")),
    ]
    state = simulate(Decimal("1000"), [START, day, date(2024, 3, 1)], normalize_events(events), fixed("0"))
    assert state.residual_principal == Decimal("300")
    assert state.total_additional_credits == Decimal("500")


def test_interest_accrues_on_increased_principal_after_credit():
    day = date(2024, 1, 11)
    ledger = normalize_events([LedgerEvent(CREDIT, day, Decimal("36500"))])
    state = simulate(Decimal("36500"), [START, day, date(2024, 1, 21)], ledger, fixed("10"))
    assert [s.interest for s in state.segments] == [Decimal("100"), Decimal("200")]
    assert state.total_interest_accrued == Decimal("300")


def test_events_on_start_date_applied_before_accrual():
    ledger = normalize_events([LedgerEvent(PAYMENT, START, Decimal("3650"))])
    state = simulate(Decimal("36500"), [START, DAY_10], ledger, fixed("10"))
    assert state.residual_principal == Decimal("32850")
    assert state.total_interest_accrued == Decimal("90")


def test_rate_looked_up_again_at_each_checkpoint():
    switch = date(2024, 1, 6)

    def rate_for(day):
        return Decimal("10") if day < switch else Decimal("20")

    state = simulate(Decimal("36500"), [START, switch, DAY_10], {}, rate_for)
    assert [s.rate for s in state.segments] == [Decimal("10"), Decimal("20")]
    assert [s.days for s in state.segments] == [5, 5]
    assert state.total_interest_accrued == Decimal("150")
    assert state.current_rate == Decimal("20")


def test_missing_rate_aborts_run():
    def rate_for(day):
        if day > date(2024, 1, 5):
            raise NoApplicableRate("legale", day)
        return Decimal("1")

    with pytest.raises(NoApplicableRate) as excinfo:
        simulate(Decimal("100"), [START, date(2024, 1, 5), DAY_10], {}, rate_for)
    assert excinfo.value.date == DAY_10


def test_no_anatocism():
    checkpoints = [START, date(2024, 7, 1), date(2025, 1, 1)]
    state = simulate(Decimal("10000"), checkpoints, {}, fixed("5"))
    assert all(s.principal == Decimal("10000") for s in state.segments)


def test_allocation_conserves_money():
    events = [
        LedgerEvent(PAYMENT, date(2024, 3, 15), Decimal("125.40")),
        LedgerEvent(CREDIT, date(2024, 5, 2), Decimal("2000")),
        LedgerEvent(PAYMENT, date(2024, 5, 2), Decimal("900")),
        LedgerEvent(PAYMENT, date(2024, 10, 30), Decimal("33.33")),
    ]
    ledger = normalize_events(events)
    checkpoints = sorted({START, date(2024, 12, 31), *ledger})
    principal = Decimal("10000")
    state = simulate(principal, checkpoints, ledger, fixed("7.25"))

    interest_settled = state.total_interest_accrued - state.accrued_unsettled_interest
    principal_reductions = state.total_payments - interest_settled
    drift = state.residual_principal + principal_reductions - (principal + state.total_additional_credits)
    assert abs(drift) < Decimal("1e-18")
