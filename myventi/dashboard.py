"""Dashboard summary and recent activity."""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .fuel_service import FuelService
from .service_record_service import ServiceRecordService
from .vehicle_service import VehicleService


@dataclass
class DashboardSummary:
    total_vehicles: int
    active_vehicles: int
    monthly_fuel_cost: float


@dataclass
class Activity:
    """A fuel or service event for the activity feed."""

    id: str
    kind: str  # "fuel" or "service"
    title: str
    amount: float
    date: str
    created_at: Optional[str]


class DashboardService:
    def __init__(
        self,
        vehicles: VehicleService,
        fuel: FuelService,
        services: ServiceRecordService,
    ):
        self.vehicles = vehicles
        self.fuel = fuel
        self.services = services

    def get_summary(self, today: Optional[date] = None) -> DashboardSummary:
        vehicles = self.vehicles.get_all()
        return DashboardSummary(
            total_vehicles=len(vehicles),
            active_vehicles=sum(1 for v in vehicles if v.is_active),
            monthly_fuel_cost=round(self.fuel.get_monthly_total(today), 2),
        )

    def get_recent_activity(self, limit: int = 10) -> List[Activity]:
        """Latest fuel and service events, newest first."""
        activities = [
            Activity(e.id, "fuel", "Fuel Fill-up", e.amount, e.date, e.created_at)
            for e in self.fuel.get_all()
        ]
        activities += [
            Activity(r.id, "service", r.type, r.cost, r.date, r.created_at)
            for r in self.services.get_all()
        ]
        activities.sort(key=lambda a: (a.date, a.created_at or ""), reverse=True)
        return activities[:limit]
