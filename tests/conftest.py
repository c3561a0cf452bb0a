from datetime import date
from decimal import Decimal

import pytest

from interessi_calc.data_models import LEGALE, MORATORIO, RateRecord
from interessi_calc.rate_store import RateStore
from interessi_calc.rates import RateTimeline


@pytest.fixture
def legale_2024():
    return RateRecord(LEGALE, Decimal("2.5"), date(2024, 1, 1), date(2024, 12, 31))


@pytest.fixture
def timeline(legale_2024):
    """Statutory 2023-2024 and late-payment 2025 H2 rates."""
    return RateTimeline(
        [
            RateRecord(LEGALE, Decimal("5.0"), date(2023, 1, 1), date(2023, 12, 31)),
            legale_2024,
            RateRecord(MORATORIO, Decimal("10.15"), date(2025, 7, 1), date(2025, 12, 31)),
        ]
    )


@pytest.fixture
def store_url(tmp_path):
    return f"sqlite:///{tmp_path / 'rates.sqlite3'}"


@pytest.fixture
def seeded_store(store_url):
    store = RateStore(store_url)
    store.seed_defaults()
    return store
