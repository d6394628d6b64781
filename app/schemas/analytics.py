# app/schemas/analytics.py
"""Outbound metric records produced by the aggregation engine."""

from pydantic import BaseModel
from datetime import date
from typing import Any, Optional


class MonthlyBucket(BaseModel):
    month: date              # first day of the calendar month
    totals: dict[str, float]
    count: int


class MonthlyCost(BaseModel):
    month: date
    fuel: float = 0
    maintenance: float = 0
    parts: float = 0
    total: float = 0


class VehicleUtilization(BaseModel):
    vehicle_id: int
    vehicle_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    total_distance: float
    daily_average: float
    readings: int


class DriverPerformance(BaseModel):
    driver_id: int
    driver: str
    average_mileage: float
    total_distance: float
    total_fuel_volume: float
    total_cost: float
    trip_count: int
    cost_per_km: float
    average_distance: float
    efficiency_score: float


class VehicleCost(BaseModel):
    vehicle_id: int
    vehicle_number: str
    fuel_cost: float
    maintenance_cost: float
    total_cost: float
    efficiency: float


class CostBreakdownItem(BaseModel):
    name: str
    value: float


class MaintenanceFrequency(BaseModel):
    vehicle_id: int
    vehicle_number: str
    frequency: int
    total_cost: float
    avg_cost: float


class PartUsage(BaseModel):
    name: str
    usage: float
    cost: float


class BudgetPerformance(BaseModel):
    budget_id: int
    category: str
    period_start: date
    period_end: date
    budgeted: float
    actual: float
    variance: float
    variance_percentage: float
    utilization: float
    status: str              # over | under | on-track


class CategoryVariance(BaseModel):
    category: str
    total_budgeted: float
    total_actual: float
    variance: float
    variance_percentage: float


class VehicleHighlight(BaseModel):
    vehicle_id: Optional[int] = None
    vehicle_number: str = "N/A"
    value: float = 0


class SubsidiaryMetrics(BaseModel):
    subsidiary_id: int
    total_vehicles: int
    active_vehicles: int
    total_drivers: int
    fuel_cost: float
    fuel_volume: float
    maintenance_cost: float
    total_cost: float
    maintenance_frequency: int
    distance: float
    fuel_per_vehicle: float
    cost_per_vehicle: float
    cost_per_km: float
    utilization_rate: float    # % of vehicles with status "active"


class FleetKPIs(BaseModel):
    fleet_distance: float
    average_mileage: float
    fuel_cost: float
    maintenance_cost: float
    cost_per_km: float
    most_efficient: VehicleHighlight
    highest_cost: VehicleHighlight


class AnalyticsReport(BaseModel):
    """Envelope for analytics endpoints: result plus the entities that could not be fetched."""
    data: Any
    unavailable: list[str] = []
    partial: bool = False
