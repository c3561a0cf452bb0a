"""JSON API for the interest calculator.

The API exposes the calculation and a read-only view of the rate history so
the case-management front end can call it instead of computing interest in
the browser. Rates are read from the rate store on each request.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request

from interessi_calc.calculator import calculate
from interessi_calc.config import configure_logging, load_settings
from interessi_calc.data_models import FISSO, CalculationRequest, LedgerEvent, MoratoryAdjustment
from interessi_calc.errors import NoApplicableRate, ValidationError
from interessi_calc.formatter import rate_to_dict, result_to_dict
from interessi_calc.rate_store import RateStore, create_store
from interessi_calc.utils import parse_amount, parse_date, parse_kind, parse_optional_date

logger = logging.getLogger(__name__)


def _parse_events(items: Optional[List[Dict[str, Any]]]) -> List[LedgerEvent]:
    events: List[LedgerEvent] = []
    for item in items or []:
        amount = item.get("amount")
        events.append(
            LedgerEvent(
                kind=parse_kind(str(item.get("kind", ""))),
                date=parse_optional_date(item.get("date")),
                amount=parse_amount(amount) if amount not in (None, "") else Decimal("0"),
                description=str(item.get("description") or ""),
            )
        )
    return events


def _flag(payload: Dict[str, Any], name: str, default: bool) -> bool:
    value = payload.get(name, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false; got {value!r}")
    return value


def _payload_to_request(payload: Dict[str, Any]) -> CalculationRequest:
    """Build a ``CalculationRequest`` from the JSON body.

    Malformed values raise ``ValidationError`` so they are reported like any
    other input error.
    """
    try:
        fixed_rate = payload.get("fixed_rate")
        return CalculationRequest(
            principal=parse_amount(payload.get("principal", "")),
            start_date=parse_date(payload.get("start_date", "")),
            end_date=parse_date(payload.get("end_date", "")),
            category=payload.get("category", "legale"),
            fixed_rate=parse_amount(fixed_rate) if fixed_rate not in (None, "") else None,
            adjustment=MoratoryAdjustment(
                pre_transaction_discount=_flag(payload, "pre_transaction_discount", False),
                agricultural_surcharge=_flag(payload, "agricultural_surcharge", False),
                surcharge_percent=parse_amount(payload.get("surcharge_percent", 4)),
            ),
            events=_parse_events(payload.get("events")),
            apply_allocation_rule=_flag(payload, "apply_allocation_rule", True),
        )
    except ValidationError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValidationError(str(exc)) from exc


def create_app(store: Optional[RateStore] = None) -> Flask:
    settings = load_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.config["MAX_EVENTS"] = settings.max_events
    rate_store = store or create_store(settings.database_url)

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(NoApplicableRate)
    def handle_missing_rate(exc: NoApplicableRate):
        return jsonify({"error": str(exc), "category": exc.category, "date": exc.date.isoformat()}), 422

    @app.post("/api/interest/calculate")
    def calculate_interest():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        calc_request = _payload_to_request(payload)
        logger.debug("Calculation request: %s interest from %s to %s", calc_request.category, calc_request.start_date, calc_request.end_date)
        timeline = None if calc_request.category == FISSO else rate_store.timeline()
        result = calculate(calc_request, timeline, max_events=app.config["MAX_EVENTS"])
        return jsonify(result_to_dict(result, include_segments=_flag(payload, "include_segments", False)))

    @app.get("/api/rates")
    def list_rates():
        return jsonify(rate_store.list_rates(request.args.get("category") or None))

    @app.get("/api/rates/current")
    def current_rates():
        try:
            today = parse_optional_date(request.args.get("date"))
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return jsonify([rate_to_dict(r) for r in rate_store.current_rates(today)])

    return app


if __name__ == "__main__":
    print("Starting interest calculator API...")
    create_app().run(debug=True)
