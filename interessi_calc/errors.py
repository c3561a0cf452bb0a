"""Exceptions raised by the interest calculator.

All errors derive from ``ValueError`` so callers that only care about bad
input can keep catching the built-in type. There are no retryable errors:
every failure comes from incomplete or malformed input data.
"""

from __future__ import annotations

from datetime import date


class InterestCalculationError(ValueError):
    """Base class for every calculator error."""


class ValidationError(InterestCalculationError):
    """Invalid input detected before the simulation starts."""


class InvalidRange(ValidationError):
    """The end date is not strictly after the start date."""

    def __init__(self, start: date, end: date) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"End date {end.isoformat()} must be after start date {start.isoformat()}"
        )


class NoApplicableRate(InterestCalculationError):
    """No rate interval of the category covers the requested date."""

    def __init__(self, category: str, day: date) -> None:
        self.category = category
        self.date = day
        super().__init__(f"No {category} rate available for {day.isoformat()}")
