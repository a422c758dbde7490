"""Descriptive statistics, correlation, trend and projection helpers."""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import List, Sequence

from .status import Trend


@dataclass
class Statistics:
    """Summary of a numeric series. Values are rounded to 2 decimals."""

    mean: float = 0.0
    median: float = 0.0
    mode: float = 0.0
    standard_deviation: float = 0.0
    variance: float = 0.0
    min: float = 0.0
    max: float = 0.0
    q1: float = 0.0
    q2: float = 0.0
    q3: float = 0.0
    outliers: List[float] = field(default_factory=list)

    @property
    def iqr(self) -> float:
        return round(self.q3 - self.q1, 2)


@dataclass
class TrendAnalysis:
    trend: Trend
    change_rate: float
    confidence: int  # percent, from |Pearson r|
    period: str


@dataclass
class CostProjection:
    projections: List[float]
    confidence: int
    trend: Trend


def calculate_statistics(values: Sequence[float]) -> Statistics:
    """
    Mean, median, mode, population variance/stddev and quartiles.

    Quartiles are order statistics at floor(n * 0.25) and floor(n * 0.75);
    outliers fall outside 1.5 * IQR of them. Mode ties go to the value seen
    first.
    """
    if not values:
        return Statistics()

    ordered = sorted(values)
    count = len(ordered)
    mean = sum(values) / count

    if count % 2 == 0:
        median = (ordered[count // 2 - 1] + ordered[count // 2]) / 2
    else:
        median = ordered[count // 2]

    mode = Counter(values).most_common(1)[0][0]

    q1 = ordered[math.floor(count * 0.25)]
    q3 = ordered[math.floor(count * 0.75)]

    variance = sum((v - mean) ** 2 for v in values) / count
    iqr = q3 - q1
    lower, upper = q1 - 1.5 * iqr, q3 + 1.5 * iqr

    return Statistics(
        mean=round(mean, 2),
        median=round(median, 2),
        mode=round(mode, 2),
        standard_deviation=round(math.sqrt(variance), 2),
        variance=round(variance, 2),
        min=ordered[0],
        max=ordered[-1],
        q1=round(q1, 2),
        q2=round(median, 2),
        q3=round(q3, 2),
        outliers=[v for v in values if v < lower or v > upper],
    )


def calculate_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation; 0 for mismatched, empty or constant series."""
    if len(x) != len(y) or not x:
        return 0.0
    n = len(x)
    sum_x, sum_y = sum(x), sum(y)
    sum_xy = sum(a * b for a, b in zip(x, y))
    sum_xx = sum(a * a for a in x)
    sum_yy = sum(b * b for b in y)

    numerator = n * sum_xy - sum_x * sum_y
    spread = (n * sum_xx - sum_x * sum_x) * (n * sum_yy - sum_y * sum_y)
    if spread <= 0:
        return 0.0
    return numerator / math.sqrt(spread)


def _describe_period(first: str, last: str) -> str:
    days = (date.fromisoformat(last[:10]) - date.fromisoformat(first[:10])).days
    if days <= 31:
        return f"{days} days"
    if days <= 365:
        return f"{math.ceil(days / 30)} months"
    return f"{math.ceil(days / 365)} years"


def analyze_trend(
    values: Sequence[float], dates: Sequence[str], threshold: float = 0.1
) -> TrendAnalysis:
    """
    Least-squares slope of values against their index.

    |slope| above the threshold is a trend; confidence is |r| as a percent.
    """
    if len(values) < 2:
        return TrendAnalysis(Trend.STABLE, 0.0, 0, "insufficient data")

    n = len(values)
    xs = list(range(n))
    sum_x, sum_y = sum(xs), sum(values)
    sum_xy = sum(x * y for x, y in zip(xs, values))
    sum_xx = sum(x * x for x in xs)
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)

    trend = Trend.STABLE
    if abs(slope) > threshold:
        trend = Trend.INCREASING if slope > 0 else Trend.DECREASING

    confidence = round(abs(calculate_correlation(xs, values)) * 100)
    period = _describe_period(dates[0], dates[-1]) if dates else "unknown"
    return TrendAnalysis(trend, round(slope, 2), confidence, period)


def project_fuel_costs(history: Sequence[float], months: int = 6) -> CostProjection:
    """
    Extend a monthly cost series by its average month-over-month change.

    Needs at least 3 points. Confidence drops as the changes get less
    consistent (stddev relative to the average change).
    """
    if len(history) < 3:
        return CostProjection([], 0, Trend.STABLE)

    changes = [b - a for a, b in zip(history, history[1:])]
    avg_change = sum(changes) / len(changes)
    last = history[-1]
    projections = [round(last + avg_change * i, 2) for i in range(1, months + 1)]

    spread = math.sqrt(sum((c - avg_change) ** 2 for c in changes) / len(changes))
    if avg_change == 0:
        confidence = 100 if spread == 0 else 0
    else:
        confidence = round(max(0.0, 100 - spread / abs(avg_change) * 100))

    trend = Trend.STABLE
    if abs(avg_change) > 1:
        trend = Trend.INCREASING if avg_change > 0 else Trend.DECREASING
    return CostProjection(projections, confidence, trend)
