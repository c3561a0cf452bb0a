"""Bundled rate history used to seed an empty rate store.

Statutory rates come from the yearly decrees of the Ministry of Economy and
Finance. Late-payment rates are the ECB reference rate plus 8 points
(Legislative Decree 192/2012, transactions after 2012-12-31), one record per
half year.
"""

from datetime import date
from decimal import Decimal

from .data_models import LEGALE, MORATORIO, RateRecord


def _legale(pct: str, start: date, end: date, decree: str, note: str) -> RateRecord:
    return RateRecord(LEGALE, Decimal(pct), start, end, decree, note)


def _moratorio(pct: str, year: int, half: int, decree: str, ecb: str) -> RateRecord:
    start = date(year, 1, 1) if half == 1 else date(year, 7, 1)
    end = date(year, 6, 30) if half == 1 else date(year, 12, 31)
    return RateRecord(MORATORIO, Decimal(pct), start, end, decree, f"ECB rate {ecb}% + 8% = {pct}%")


DEFAULT_RATES = (
    _legale("0.05", date(2020, 1, 1), date(2020, 12, 31), "Decreto MEF 12/12/2019 - GU n.293", "Statutory rate 2020"),
    _legale("0.01", date(2021, 1, 1), date(2022, 12, 31), "Decreto MEF 11/12/2020 - GU n.309", "Statutory rate 2021-2022"),
    _legale("5.00", date(2023, 1, 1), date(2023, 12, 31), "Decreto MEF 13/12/2022 - GU n.291", "Statutory rate 2023"),
    _legale("2.50", date(2024, 1, 1), date(2024, 12, 31), "Decreto MEF 12/12/2023 - GU n.290", "Statutory rate 2024"),
    _legale("2.00", date(2025, 1, 1), date(2025, 12, 31), "Decreto MEF 11/12/2024 - GU n.290", "Statutory rate 2025"),
    _legale("1.60", date(2026, 1, 1), date(2026, 12, 31), "Decreto MEF 10/12/2025 - GU n.289", "Statutory rate 2026"),
    _moratorio("8.00", 2020, 1, "MEF - Semestre 1/2020", "0.00"),
    _moratorio("8.00", 2020, 2, "MEF - Semestre 2/2020", "0.00"),
    _moratorio("8.00", 2021, 1, "MEF - Semestre 1/2021", "0.00"),
    _moratorio("8.00", 2021, 2, "MEF - Semestre 2/2021", "0.00"),
    _moratorio("8.00", 2022, 1, "MEF - Semestre 1/2022", "0.00"),
    _moratorio("8.50", 2022, 2, "MEF - Semestre 2/2022", "0.50"),
    _moratorio("10.00", 2023, 1, "MEF - Semestre 1/2023", "2.00"),
    _moratorio("12.25", 2023, 2, "MEF - Semestre 2/2023 - GU n.161", "4.25"),
    _moratorio("12.00", 2024, 1, "MEF - Semestre 1/2024 - GU n.157", "4.00"),
    _moratorio("11.50", 2024, 2, "MEF - Semestre 2/2024 - GU n.160", "3.50"),
    _moratorio("10.65", 2025, 1, "MEF - Semestre 1/2025 - GU n.156", "2.65"),
    _moratorio("10.15", 2025, 2, "MEF - Semestre 2/2025 - GU n.161", "2.15"),
)
