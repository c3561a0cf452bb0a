"""Output helpers for the interest calculator.

This module renders calculation results as a text summary, a tab separated
table of accrual segments, a JSON-serialisable dictionary and JSON/CSV
files. Decimal values are written as strings so no precision is lost.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .data_models import AccrualSegment, CalculationResult, RateRecord


def segment_to_dict(segment: AccrualSegment) -> Dict[str, Any]:
    return {
        "period": segment.period,
        "start": segment.start.isoformat(),
        "end": segment.end.isoformat(),
        "days": segment.days,
        "rate": f"{segment.rate:.2f}",
        "principal": f"{segment.principal:.2f}",
        "interest": f"{segment.interest:.2f}",
    }


def result_to_dict(result: CalculationResult, include_segments: bool = True) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "total_interest": f"{result.total_interest:.2f}",
        "residual_interest": f"{result.residual_interest:.2f}",
        "residual_principal": f"{result.residual_principal:.2f}",
        "total_payments": f"{result.total_payments:.2f}",
        "total_additional_credits": f"{result.total_additional_credits:.2f}",
        "rate_at_start": f"{result.rate_at_start:.2f}",
    }
    if include_segments:
        data["segments"] = [segment_to_dict(s) for s in result.segments]
    return data


def rate_to_dict(record: RateRecord) -> Dict[str, Any]:
    return {
        "category": record.category,
        "percentage": f"{record.percentage:.2f}",
        "valid_from": record.valid_from.isoformat(),
        "valid_to": record.valid_to.isoformat() if record.valid_to else None,
        "decree_reference": record.decree_reference,
        "note": record.note,
    }


def print_summary(result: CalculationResult) -> None:
    """Print the calculation result in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Rate at start          : {result.rate_at_start:.2f}%")
    print(f"Total interest         : {result.total_interest:.2f}")
    print(f"Residual interest      : {result.residual_interest:.2f}")
    print(f"Residual principal     : {result.residual_principal:.2f}")
    if result.total_additional_credits:
        print(f"Additional credits     : {result.total_additional_credits:.2f}")
    if result.total_payments:
        print(f"Total payments         : {result.total_payments:.2f}")
    print(f"Total due              : {result.residual_principal + result.residual_interest:.2f}")
    print("-" * 72)


def print_segments(segments: Iterable[AccrualSegment]) -> None:
    """Print the accrual segments as a simple table."""
    headers = ["Period", "From", "To", "Days", "Rate", "Principal", "Interest"]
    print("\t".join(headers))
    for s in segments:
        row = [
            str(s.period),
            s.start.isoformat(),
            s.end.isoformat(),
            str(s.days),
            f"{s.rate:.2f}",
            f"{s.principal:.2f}",
            f"{s.interest:.2f}",
        ]
        print("\t".join(row))


def print_rates(rates: List[Dict[str, Any]]) -> None:
    print(f"{'Category':10s} {'Rate':>7s} {'From':>10s} {'To':>10s}  Reference")
    for r in rates:
        print(
            f"{r['category']:10s} {r['percentage']:>7s} {r['valid_from']:>10s} "
            f"{(r['valid_to'] or 'open'):>10s}  {r['decree_reference'] or ''}"
        )


def export_to_json(path: Path, result: CalculationResult) -> None:
    """Export the result and its segments to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(result_to_dict(result), f, indent=2)


def export_to_csv(path: Path, result: CalculationResult) -> None:
    """Export the accrual segments to a CSV file."""
    header = ["Period", "From", "To", "Days", "Rate", "Principal", "Interest"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for s in result.segments:
            d = segment_to_dict(s)
            writer.writerow([d["period"], d["start"], d["end"], d["days"], d["rate"], d["principal"], d["interest"]])
