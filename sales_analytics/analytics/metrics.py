"""
Metric Derivation

Secondary metrics computed from raw grouped sums: shares of a total,
period-over-period deltas and zero-filled series merges.
"""

import math
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel

from sales_analytics.analytics.numbers import round_half_up

DeltaMode = Literal["percent", "absolute"]
Direction = Literal["up", "down"]


class Delta(BaseModel):
    """Change between two scalar values"""
    value: float
    mode: DeltaMode
    direction: Direction


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def share(value: float, total: float) -> Optional[float]:
    """``value / total``, or None when no share is meaningful."""
    if not _finite(total) or total == 0:
        return None
    return value / total


def _direction(delta: float) -> Direction:
    return "up" if delta >= 0 else "down"


def percent_delta(current: Optional[float], previous: Optional[float]) -> Optional[Delta]:
    """
    Relative change in percent.

    Returns None when either value is missing or non-finite, or when the
    previous value is zero.
    """
    if not _finite(current) or not _finite(previous) or previous == 0:
        return None
    raw = (current - previous) / abs(previous) * 100
    if not math.isfinite(raw):
        return None
    return Delta(value=round_half_up(raw, 4), mode="percent", direction=_direction(raw))


def absolute_delta(current: Optional[float], previous: Optional[float]) -> Optional[Delta]:
    """Plain difference; both values must be finite."""
    if not _finite(current) or not _finite(previous):
        return None
    raw = current - previous
    return Delta(value=round_half_up(raw, 4), mode="absolute", direction=_direction(raw))


def compute_delta(
    current: Optional[float],
    previous: Optional[float],
    mode: DeltaMode = "percent",
) -> Optional[Delta]:
    if mode == "absolute":
        return absolute_delta(current, previous)
    return percent_delta(current, previous)


def seed_buckets(keys: Iterable[str]) -> Dict[str, float]:
    """Zero-filled buckets for every key of a period range."""
    return {key: 0.0 for key in keys}


def merge_series(
    primary: Dict[str, float],
    secondary: Dict[str, float],
) -> List[Tuple[str, float, float]]:
    """
    Sorted union of both key sets as ``(key, primary, secondary)`` triples.

    A key missing from one map reads as 0 for that map.
    """
    keys = sorted(set(primary) | set(secondary))
    return [(key, primary.get(key, 0.0), secondary.get(key, 0.0)) for key in keys]


def sum_totals(values: Iterable[float]) -> float:
    return math.fsum(values)


def with_period_deltas(
    points: Sequence[dict],
    fields: Sequence[str] = ("total_sales", "total_quantity"),
) -> List[dict]:
    """
    Attach ``<field>_delta`` to each point of one chronological series.

    Points are sorted by year then month; every delta is taken against the
    previous point of the same series and the first point carries None.
    """
    ordered = sorted(points, key=lambda p: (p["year"], p.get("month") or 0))
    result: List[dict] = []
    previous: Optional[dict] = None
    for point in ordered:
        enriched = dict(point)
        for name in fields:
            if previous is None:
                enriched[f"{name}_delta"] = None
            else:
                enriched[f"{name}_delta"] = point[name] - previous[name]
        result.append(enriched)
        previous = point
    return result
