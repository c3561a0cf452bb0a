"""Persistence layer for the interest rate history.

The calculator itself only consumes ``RateRecord`` objects; this module keeps
them in a database so the CLI and the web API share one history. It defaults
to SQLite for local use, but accepts any SQLAlchemy-compatible URL (e.g.
PostgreSQL/MySQL).
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Numeric, String, Text, create_engine, or_, select
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DEFAULT_DATABASE_URL
from .data_models import MORATORIO, TIMELINE_CATEGORIES, RateRecord
from .defaults import DEFAULT_RATES
from .errors import ValidationError
from .rates import RateTimeline

logger = logging.getLogger(__name__)

Base = declarative_base()


class InterestRateModel(Base):
    __tablename__ = "interest_rates"

    id = Column(String(64), primary_key=True)
    category = Column(String(16), index=True, nullable=False)
    percentage = Column(Numeric(5, 2, asdecimal=True), nullable=False)
    valid_from = Column(Date, index=True, nullable=False)
    valid_to = Column(Date, nullable=True)
    decree_reference = Column(String(500), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class RateStore:
    """Database-backed rate history."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def list_rates(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(InterestRateModel)
        if category:
            self._check_category(category)
            stmt = stmt.where(InterestRateModel.category == category)
        stmt = stmt.order_by(InterestRateModel.category.asc(), InterestRateModel.valid_from.desc())
        with self._session_factory() as session:
            return [self._to_dict(row) for row in session.execute(stmt).scalars()]

    def rates_for(self, category: str) -> List[RateRecord]:
        self._check_category(category)
        stmt = (
            select(InterestRateModel)
            .where(InterestRateModel.category == category)
            .order_by(InterestRateModel.valid_from.asc())
        )
        with self._session_factory() as session:
            return [self._to_record(row) for row in session.execute(stmt).scalars()]

    def rate_on(self, category: str, day: date) -> Optional[RateRecord]:
        """Return the record valid on ``day``.

        When no late-payment rate covers the day, the latest one starting on
        or before it is returned, so the most recent half-year rate keeps
        applying until the next one is published.
        """
        self._check_category(category)
        with self._session_factory() as session:
            row = session.execute(
                select(InterestRateModel)
                .where(InterestRateModel.category == category)
                .where(InterestRateModel.valid_from <= day)
                .where(or_(InterestRateModel.valid_to >= day, InterestRateModel.valid_to.is_(None)))
                .order_by(InterestRateModel.valid_from.desc())
            ).scalars().first()
            if row is None and category == MORATORIO:
                row = session.execute(
                    select(InterestRateModel)
                    .where(InterestRateModel.category == category)
                    .where(InterestRateModel.valid_from <= day)
                    .order_by(InterestRateModel.valid_from.desc())
                ).scalars().first()
            return self._to_record(row) if row is not None else None

    def current_rates(self, today: Optional[date] = None) -> List[RateRecord]:
        today = today or date.today()
        with self._session_factory() as session:
            rows = session.execute(
                select(InterestRateModel)
                .where(InterestRateModel.valid_from <= today)
                .where(or_(InterestRateModel.valid_to >= today, InterestRateModel.valid_to.is_(None)))
                .order_by(InterestRateModel.category.asc())
            ).scalars()
            return [self._to_record(row) for row in rows]

    def find_overlapping(
        self,
        category: str,
        valid_from: date,
        valid_to: Optional[date],
        exclude_id: Optional[str] = None,
    ) -> Optional[RateRecord]:
        """Return a stored record of ``category`` overlapping the given interval."""
        stmt = (
            select(InterestRateModel)
            .where(InterestRateModel.category == category)
            .where(or_(InterestRateModel.valid_to >= valid_from, InterestRateModel.valid_to.is_(None)))
        )
        if valid_to is not None:
            stmt = stmt.where(InterestRateModel.valid_from <= valid_to)
        if exclude_id:
            stmt = stmt.where(InterestRateModel.id != exclude_id)
        with self._session_factory() as session:
            row = session.execute(stmt).scalars().first()
            return self._to_record(row) if row is not None else None

    def add_rate(self, record: RateRecord) -> str:
        self._validate(record)
        overlapping = self.find_overlapping(record.category, record.valid_from, record.valid_to)
        if overlapping is not None:
            raise ValidationError(
                f"A {record.category} rate valid from {overlapping.valid_from.isoformat()} "
                "overlaps the new interval"
            )
        rate_id = uuid4().hex
        with self._session_factory() as session:
            session.add(self._to_model(record, rate_id))
            session.commit()
        logger.info("Stored %s rate %s%% from %s", record.category, record.percentage, record.valid_from)
        return rate_id

    def update_rate(self, rate_id: str, **changes: Any) -> RateRecord:
        with self._session_factory() as session:
            row = session.get(InterestRateModel, rate_id)
            if row is None:
                raise KeyError(rate_id)
            current = self._to_record(row)
            fields = {
                "category": current.category,
                "percentage": current.percentage,
                "valid_from": current.valid_from,
                "valid_to": current.valid_to,
                "decree_reference": current.decree_reference,
                "note": current.note,
            }
            unknown = set(changes) - set(fields)
            if unknown:
                raise ValidationError(f"Unknown rate fields: {', '.join(sorted(unknown))}")
            fields.update(changes)
            updated = RateRecord(**fields)
            self._validate(updated)
            if self.find_overlapping(updated.category, updated.valid_from, updated.valid_to, exclude_id=rate_id):
                raise ValidationError(f"Updated {updated.category} rate overlaps an existing interval")
            for name, value in fields.items():
                setattr(row, name, value)
            session.commit()
        logger.info("Updated rate %s", rate_id)
        return updated

    def remove_rate(self, rate_id: str) -> None:
        with self._session_factory() as session:
            row = session.get(InterestRateModel, rate_id)
            if row is None:
                raise KeyError(rate_id)
            session.delete(row)
            session.commit()
        logger.info("Removed rate %s", rate_id)

    def seed_defaults(self, records: Iterable[RateRecord] = DEFAULT_RATES) -> int:
        """Insert the bundled rate history if the store is empty.

        The records are checked as a whole and written in one transaction, so
        a bad record leaves the store empty.
        """
        records = list(records)
        for record in records:
            self._validate(record)
        # raises on overlaps inside the batch
        RateTimeline(records)
        with self._session_factory() as session:
            if session.execute(select(InterestRateModel.id)).first() is not None:
                return 0
            session.add_all([self._to_model(record) for record in records])
            session.commit()
        logger.info("Seeded %d rates", len(records))
        return len(records)

    def timeline(self) -> RateTimeline:
        records: List[RateRecord] = []
        for category in TIMELINE_CATEGORIES:
            records.extend(self.rates_for(category))
        return RateTimeline(records)

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in TIMELINE_CATEGORIES:
            raise ValidationError(f"Unknown rate category: {category}")

    def _validate(self, record: RateRecord) -> None:
        self._check_category(record.category)
        if record.percentage is None or record.percentage < 0:
            raise ValidationError("Rate percentage cannot be negative")
        if record.valid_to is not None and record.valid_from > record.valid_to:
            raise ValidationError("The start of validity cannot be after its end")

    @staticmethod
    def _to_model(record: RateRecord, rate_id: Optional[str] = None) -> InterestRateModel:
        return InterestRateModel(
            id=rate_id or uuid4().hex,
            category=record.category,
            percentage=record.percentage,
            valid_from=record.valid_from,
            valid_to=record.valid_to,
            decree_reference=record.decree_reference,
            note=record.note,
        )

    @staticmethod
    def _to_record(row: InterestRateModel) -> RateRecord:
        return RateRecord(
            category=row.category,
            percentage=row.percentage,
            valid_from=row.valid_from,
            valid_to=row.valid_to,
            decree_reference=row.decree_reference,
            note=row.note,
        )

    @staticmethod
    def _to_dict(row: InterestRateModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "category": row.category,
            "percentage": f"{row.percentage:.2f}",
            "valid_from": row.valid_from.isoformat(),
            "valid_to": row.valid_to.isoformat() if row.valid_to else None,
            "decree_reference": row.decree_reference,
            "note": row.note,
        }


def create_store(url: Optional[str]) -> RateStore:
    return RateStore(url or DEFAULT_DATABASE_URL)
