"""
Analytics over already-fetched fuel entries and vehicles.

Everything here is a pure function: services fetch rows and hand them over,
so results are the same whichever storage backend is active.
"""

import calendar
import copy
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from .efficiency import compute_efficiency
from .fuel_entry import FuelEntry
from .stats import Statistics, TrendAnalysis, analyze_trend, calculate_statistics
from .status import VehicleType
from .units import (
    KILOMETER_TO_MILE,
    KWH_PER_GALLON_EQUIVALENT,
    EfficiencyUnit,
    convert_efficiency,
)
from .vehicle import Vehicle

SEASONS = OrderedDict(
    [
        ("spring", (3, 4, 5)),
        ("summer", (6, 7, 8)),
        ("fall", (9, 10, 11)),
        ("winter", (12, 1, 2)),
    ]
)


@dataclass
class FuelEfficiencyMetrics:
    mpg: float
    km_per_liter: float
    liters_per_100km: float
    cost_per_mile: float
    cost_per_km: float


@dataclass
class AnalyticsSummary:
    total_cost: float = 0.0
    total_fuel: float = 0.0
    average_mpg: float = 0.0
    trips_count: int = 0
    average_cost_per_trip: float = 0.0
    average_cost_per_gallon: float = 0.0


@dataclass
class MonthlyTrend:
    month: str  # YYYY-MM
    cost: float
    fuel: float
    trips: int
    average_mpg: float


@dataclass
class VehicleTotals:
    vehicle_id: str
    vehicle_name: str
    total_cost: float
    total_fuel: float
    average_mpg: float
    trips_count: int
    average_cost_per_trip: float


@dataclass
class VehicleComparison:
    vehicle_id: str
    vehicle_name: str
    efficiency: FuelEfficiencyMetrics
    statistics: Statistics
    trend: TrendAnalysis
    total_cost: float
    total_fuel: float


@dataclass
class WeeklyPattern:
    day_of_week: int  # Monday == 0
    day_name: str
    average_consumption: float
    average_cost: float
    trip_frequency: int


@dataclass
class SeasonalAnalysis:
    season: str
    average_mpg: float
    average_cost: float
    total_distance: float
    efficiency_change: float  # percent vs. the overall average


@dataclass
class Savings:
    annual_savings: float = 0.0
    monthly_savings: float = 0.0
    percentage_improvement: float = 0.0
    gallons_saved_per_year: float = 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _mpg_values(entries: Iterable[FuelEntry]) -> List[float]:
    return [e.mpg for e in entries if e.mpg is not None and e.mpg > 0]


# =============================================================================
# Efficiency
# =============================================================================


def recompute_all_efficiency(
    entries: Iterable[FuelEntry], vehicles: Iterable[Vehicle]
) -> List[FuelEntry]:
    """
    Re-derive mpg for every entry from scratch.

    Entries are walked per vehicle in (date, odometer) order; each one is
    measured against the last entry with a strictly lower key. Electric
    vehicles always get None. Entries whose vehicle is unknown are returned
    unchanged. Returns copies; the inputs are not modified.
    """
    types: Dict[str, VehicleType] = {v.id: v.type for v in vehicles}
    ordered = sorted(entries, key=lambda e: (e.vehicle_id, e.date, e.mileage))

    result: List[FuelEntry] = []
    current_vehicle = None
    prior = group_last = None
    group_key = None
    for entry in ordered:
        if entry.vehicle_id != current_vehicle:
            current_vehicle = entry.vehicle_id
            prior = group_last = group_key = None
        if entry.sort_key != group_key:
            prior, group_key = group_last, entry.sort_key

        updated = copy.copy(entry)
        vehicle_type = types.get(entry.vehicle_id)
        if vehicle_type == VehicleType.ELECTRIC:
            updated.mpg = None
        elif vehicle_type is not None:
            updated.mpg = compute_efficiency(
                entry.mileage, entry.quantity, prior.mileage if prior else None
            )
        result.append(updated)
        group_last = entry
    return result


def calculate_fuel_efficiency(entry: FuelEntry) -> FuelEfficiencyMetrics:
    """MPG of one entry expressed in every unit, plus cost per distance."""
    mpg = entry.mpg or 0.0
    cost_per_mile = 0.0
    if entry.quantity > 0 and mpg > 0:
        cost_per_mile = entry.amount / entry.quantity / mpg
    return FuelEfficiencyMetrics(
        mpg=round(mpg, 2),
        km_per_liter=round(convert_efficiency(mpg, EfficiencyUnit.KM_PER_LITER), 2),
        liters_per_100km=round(convert_efficiency(mpg, EfficiencyUnit.LITERS_PER_100KM), 2),
        cost_per_mile=round(cost_per_mile, 4),
        cost_per_km=round(cost_per_mile * KILOMETER_TO_MILE, 4),
    )


def format_efficiency(
    mpg: float,
    vehicle_type: VehicleType = VehicleType.GAS,
    unit: EfficiencyUnit = EfficiencyUnit.MPG,
) -> str:
    """Efficiency with its unit label, one decimal."""
    if vehicle_type == VehicleType.ELECTRIC:
        return f"{mpg / KWH_PER_GALLON_EQUIVALENT:.1f} mi/kWh"
    value = convert_efficiency(mpg, unit)
    label = {
        EfficiencyUnit.MPG: "MPG",
        EfficiencyUnit.KM_PER_LITER: "km/L",
        EfficiencyUnit.LITERS_PER_100KM: "L/100km",
    }[unit]
    return f"{value:.1f} {label}"


# =============================================================================
# Summaries
# =============================================================================


def in_date_range(entry_date: str, start: Optional[str], end: Optional[str]) -> bool:
    """Inclusive comparison on ISO date strings."""
    day = entry_date[:10]
    if start is not None and day < start[:10]:
        return False
    if end is not None and day > end[:10]:
        return False
    return True


def summarize(entries: Sequence[FuelEntry]) -> AnalyticsSummary:
    """Totals and averages; average MPG covers entries with an mpg > 0."""
    if not entries:
        return AnalyticsSummary()
    total_cost = sum(e.amount for e in entries)
    total_fuel = sum(e.quantity for e in entries)
    return AnalyticsSummary(
        total_cost=total_cost,
        total_fuel=total_fuel,
        average_mpg=round(_mean(_mpg_values(entries)), 1),
        trips_count=len(entries),
        average_cost_per_trip=total_cost / len(entries),
        average_cost_per_gallon=total_cost / total_fuel if total_fuel > 0 else 0.0,
    )


def monthly_trends(
    entries: Iterable[FuelEntry], months: int = 12, today: Optional[date] = None
) -> List[MonthlyTrend]:
    """One row per calendar month for the last `months` months, oldest first."""
    today = today or date.today()
    by_month: Dict[str, List[FuelEntry]] = defaultdict(list)
    for entry in entries:
        by_month[entry.date[:7]].append(entry)

    first_of_month = today.replace(day=1)
    trends = []
    for back in range(months - 1, -1, -1):
        key = (first_of_month - relativedelta(months=back)).strftime("%Y-%m")
        month_entries = by_month.get(key, [])
        trends.append(
            MonthlyTrend(
                month=key,
                cost=sum(e.amount for e in month_entries),
                fuel=sum(e.quantity for e in month_entries),
                trips=len(month_entries),
                average_mpg=round(_mean(_mpg_values(month_entries)), 1),
            )
        )
    return trends


def summarize_by_vehicle(
    entries: Iterable[FuelEntry], vehicles: Iterable[Vehicle]
) -> List[VehicleTotals]:
    """Per-vehicle totals, highest total cost first. Unknown vehicles are skipped."""
    names = {v.id: v.name for v in vehicles}
    grouped: Dict[str, List[FuelEntry]] = defaultdict(list)
    for entry in entries:
        if entry.vehicle_id in names:
            grouped[entry.vehicle_id].append(entry)

    totals = []
    for vehicle_id, vehicle_entries in grouped.items():
        total_cost = sum(e.amount for e in vehicle_entries)
        totals.append(
            VehicleTotals(
                vehicle_id=vehicle_id,
                vehicle_name=names[vehicle_id],
                total_cost=total_cost,
                total_fuel=sum(e.quantity for e in vehicle_entries),
                average_mpg=round(_mean(_mpg_values(vehicle_entries)), 1),
                trips_count=len(vehicle_entries),
                average_cost_per_trip=total_cost / len(vehicle_entries),
            )
        )
    return sorted(totals, key=lambda t: t.total_cost, reverse=True)


def compare_vehicles(
    entries: Iterable[FuelEntry], vehicles: Iterable[Vehicle]
) -> List[VehicleComparison]:
    """
    Efficiency statistics and trend per vehicle, best average MPG first.

    Vehicles without any computed mpg are left out.
    """
    by_id = {v.id: v for v in vehicles}
    grouped: Dict[str, List[FuelEntry]] = defaultdict(list)
    for entry in entries:
        if entry.vehicle_id in by_id:
            grouped[entry.vehicle_id].append(entry)

    comparisons = []
    for vehicle_id, vehicle_entries in grouped.items():
        mpg_values = _mpg_values(vehicle_entries)
        if not mpg_values:
            continue
        stats = calculate_statistics(mpg_values)
        ordered = sorted(vehicle_entries, key=lambda e: e.sort_key)
        total_cost = sum(e.amount for e in vehicle_entries)
        total_fuel = sum(e.quantity for e in vehicle_entries)
        average = copy.copy(ordered[-1])
        average.mpg = stats.mean
        average.amount, average.quantity = total_cost, total_fuel
        comparisons.append(
            VehicleComparison(
                vehicle_id=vehicle_id,
                vehicle_name=by_id[vehicle_id].name,
                efficiency=calculate_fuel_efficiency(average),
                statistics=stats,
                trend=analyze_trend(
                    [e.mpg or 0.0 for e in ordered], [e.date for e in ordered]
                ),
                total_cost=total_cost,
                total_fuel=total_fuel,
            )
        )
    return sorted(comparisons, key=lambda c: c.efficiency.mpg, reverse=True)


# =============================================================================
# Patterns
# =============================================================================


def analyze_weekly_patterns(entries: Iterable[FuelEntry]) -> List[WeeklyPattern]:
    """Average fill-up size and cost per weekday, Monday first."""
    quantities: Dict[int, List[float]] = defaultdict(list)
    costs: Dict[int, List[float]] = defaultdict(list)
    for entry in entries:
        day = date.fromisoformat(entry.date[:10]).weekday()
        quantities[day].append(entry.quantity)
        costs[day].append(entry.amount)

    return [
        WeeklyPattern(
            day_of_week=day,
            day_name=calendar.day_name[day],
            average_consumption=round(_mean(quantities[day]), 2),
            average_cost=round(_mean(costs[day]), 2),
            trip_frequency=len(quantities[day]),
        )
        for day in range(7)
    ]


def _driven_distances(entries: Iterable[FuelEntry]) -> Dict[str, float]:
    """Odometer increase since the previous fill-up of the same vehicle, by entry id."""
    distances: Dict[str, float] = {}
    last_mileage: Dict[str, int] = {}
    for entry in sorted(entries, key=lambda e: (e.vehicle_id, e.date, e.mileage)):
        previous = last_mileage.get(entry.vehicle_id)
        distances[entry.id] = max(0, entry.mileage - previous) if previous is not None else 0
        last_mileage[entry.vehicle_id] = entry.mileage
    return distances


def analyze_seasonal_patterns(entries: Sequence[FuelEntry]) -> List[SeasonalAnalysis]:
    """Per-season averages; seasons without entries are omitted."""
    overall = _mean(_mpg_values(entries))
    distances = _driven_distances(entries)

    analyses = []
    for season, months in SEASONS.items():
        season_entries = [e for e in entries if int(e.date[5:7]) in months]
        if not season_entries:
            continue
        average_mpg = _mean(_mpg_values(season_entries))
        change = (average_mpg - overall) / overall * 100 if overall > 0 else 0.0
        analyses.append(
            SeasonalAnalysis(
                season=season,
                average_mpg=round(average_mpg, 2),
                average_cost=round(_mean([e.amount for e in season_entries]), 2),
                total_distance=sum(distances[e.id] for e in season_entries),
                efficiency_change=round(change, 2),
            )
        )
    return analyses


def calculate_savings(
    current_mpg: float, improved_mpg: float, annual_mileage: float, fuel_price: float
) -> Savings:
    """Yearly fuel and money saved by moving from current to improved MPG."""
    if current_mpg <= 0 or improved_mpg <= current_mpg:
        return Savings()
    gallons_saved = annual_mileage / current_mpg - annual_mileage / improved_mpg
    annual = gallons_saved * fuel_price
    return Savings(
        annual_savings=round(annual, 2),
        monthly_savings=round(annual / 12, 2),
        percentage_improvement=round((improved_mpg - current_mpg) / current_mpg * 100, 2),
        gallons_saved_per_year=round(gallons_saved, 2),
    )
