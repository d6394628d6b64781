# app/utils/metrics.py
"""Numeric helpers shared by the record schemas and the aggregation engine."""

from typing import Optional


def safe_ratio(numerator: Optional[float], denominator: Optional[float]) -> float:
    """numerator / denominator, or 0.0 when the denominator is zero or missing."""
    if not denominator:
        return 0.0
    return (numerator or 0) / denominator


def percentage(part: Optional[float], whole: Optional[float]) -> float:
    return safe_ratio(part, whole) * 100
