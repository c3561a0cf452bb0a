from datetime import date
from decimal import Decimal

import pytest

from interessi_calc.config import DEFAULT_MAX_EVENTS, load_settings
from interessi_calc.data_models import CREDIT, PAYMENT
from interessi_calc.errors import ValidationError
from interessi_calc.utils import parse_amount, parse_date, parse_event_string, parse_kind, round_money


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1.234,56", Decimal("1234.56")),
        ("1234,5", Decimal("1234.5")),
        ("1234.56", Decimal("1234.56")),
        (" 300 ", Decimal("300")),
        (12, Decimal("12")),
        (2.5, Decimal("2.5")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "NaN", "1,2,3", "1,234.56", True, float("inf")])
def test_parse_amount_invalid(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_parse_date():
    assert parse_date("2024-07-01") == date(2024, 7, 1)
    with pytest.raises(ValueError):
        parse_date("01/07/2024")
    with pytest.raises(ValueError):
        parse_date(None)


def test_parse_kind_accepts_italian_labels():
    assert parse_kind("acconto") == PAYMENT
    assert parse_kind("Credito") == CREDIT
    assert parse_kind("payment") == PAYMENT
    with pytest.raises(ValueError):
        parse_kind("refund")


def test_parse_event_string():
    event = parse_event_string("2024-07-01:acconto:1.500,00:bonifico: luglio")
    assert event.kind == PAYMENT
    assert event.date == date(2024, 7, 1)
    assert event.amount == Decimal("1500.00")
    assert event.description == "bonifico: luglio"

    bare = parse_event_string("2024-03-01:credit:250")
    assert bare.kind == CREDIT
    assert bare.description == ""

    with pytest.raises(ValueError):
        parse_event_string("2024-03-01:credit")


def test_round_money_half_up():
    assert round_money(Decimal("0.125")) == Decimal("0.13")
    assert round_money(Decimal("124.6575342")) == Decimal("124.66")
    assert round_money(Decimal("-0.005")) == Decimal("-0.01")


def test_settings_defaults():
    settings = load_settings({})
    assert settings.max_events == DEFAULT_MAX_EVENTS
    assert settings.database_url.startswith("sqlite:///")
    assert settings.log_level == "WARNING"


def test_settings_from_environment():
    settings = load_settings(
        {
            "INTERESSI_DATABASE_URL": "sqlite://",
            "INTERESSI_MAX_EVENTS": "0",
            "INTERESSI_LOG_LEVEL": "debug",
        }
    )
    assert settings.database_url == "sqlite://"
    assert settings.max_events is None
    assert settings.log_level == "DEBUG"
    assert load_settings({"INTERESSI_MAX_EVENTS": "100"}).max_events == 100


@pytest.mark.parametrize("raw", ["many", "-1"])
def test_settings_invalid_max_events(raw):
    with pytest.raises(ValidationError):
        load_settings({"INTERESSI_MAX_EVENTS": raw})
