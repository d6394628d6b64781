# app/services/aggregation_service.py
"""
Aggregation engine: pure reductions over fetched record sets.

Nothing here touches the database or mutates its inputs. Every ratio goes through
safe_ratio(), so an empty denominator yields 0 rather than NaN/inf or an exception.

Ranking tie-break: rank_by() is a stable sort. Equal metrics keep the order the
records were fetched in (ascending id for the fetcher), unless an explicit tie_key
is passed, which is applied first as an ascending secondary key.
"""

from collections import defaultdict
from datetime import date
from typing import Callable, Iterable, Mapping, Optional, Sequence, Union

from app.schemas.analytics import (
    BudgetPerformance, CategoryVariance, CostBreakdownItem, DriverPerformance, FleetKPIs,
    MaintenanceFrequency, MonthlyBucket, MonthlyCost, PartUsage, SubsidiaryMetrics, VehicleCost,
    VehicleHighlight, VehicleUtilization,
)
from app.schemas.vendor import VendorMetrics
from app.utils.metrics import safe_ratio

Metric = Union[str, Callable]


def _value(record, metric: Metric):
    if callable(metric):
        return metric(record)
    return getattr(record, metric)


def _sum(records: Iterable, field: str) -> float:
    return sum((getattr(r, field) or 0) for r in records)


def parts_cost(log) -> float:
    return sum((p.total_cost or 0) for p in (log.parts_used or []))


# ── Core metrics ─────────────────────────────────────────────────────────────

def total_distance(vehicle_id: int, readings: Iterable) -> float:
    """
    Last minus first odometer value (by date) for one vehicle; 0 with fewer than 2 readings.
    Not clamped: an odometer rollback gives a negative distance.
    """
    own = sorted((r for r in readings if r.vehicle_id == vehicle_id), key=lambda r: r.reading_date)
    if len(own) < 2:
        return 0
    return own[-1].odometer_reading - own[0].odometer_reading


def average_mileage(fuel_logs: Iterable) -> float:
    """Distance per unit of fuel over the whole log set; 0 when no fuel was logged."""
    logs = list(fuel_logs)
    return safe_ratio(_sum(logs, "km_driven"), _sum(logs, "fuel_volume"))


def cost_per_distance(fuel_cost: float, maintenance_cost: float, distance: float) -> float:
    return safe_ratio((fuel_cost or 0) + (maintenance_cost or 0), distance)


def month_start(d: date) -> date:
    return d.replace(day=1)


def _next_month(d: date) -> date:
    return date(d.year + 1, 1, 1) if d.month == 12 else date(d.year, d.month + 1, 1)


def monthly_buckets(records: Iterable, date_field: str,
                    cost_fields: Union[str, Sequence[str], Mapping[str, Metric]],
                    pad: bool = False) -> list:
    """
    Group records by the calendar month of date_field and sum each cost field per month.
    cost_fields: one attribute name, several names, or a mapping label → attribute/callable.
    Buckets come out in ascending month order. Months without records are absent unless pad=True.
    """
    if isinstance(cost_fields, str):
        fields = {cost_fields: cost_fields}
    elif isinstance(cost_fields, Mapping):
        fields = dict(cost_fields)
    else:
        fields = {f: f for f in cost_fields}

    totals = defaultdict(lambda: {label: 0.0 for label in fields})
    counts = defaultdict(int)
    for r in records:
        d = getattr(r, date_field)
        if d is None:
            continue
        key = month_start(d)
        counts[key] += 1
        for label, metric in fields.items():
            totals[key][label] += _value(r, metric) or 0

    months = sorted(totals)
    if pad and months:
        m, padded = months[0], []
        while m <= months[-1]:
            padded.append(m)
            m = _next_month(m)
        months = padded

    return [
        MonthlyBucket(month=m, totals=dict(totals[m]) if m in totals else {label: 0.0 for label in fields},
                      count=counts.get(m, 0))
        for m in months
    ]


def rank_by(collection: Iterable, metric: Metric, direction: str = "desc",
            tie_key: Optional[Metric] = None) -> list:
    """Stable ranking by metric. direction is 'asc' or 'desc'."""
    if direction not in ("asc", "desc"):
        raise ValueError(f"direction must be 'asc' or 'desc', got {direction!r}")
    items = list(collection)
    if tie_key is not None:
        items.sort(key=lambda r: _value(r, tie_key))
    items.sort(key=lambda r: _value(r, metric), reverse=(direction == "desc"))
    return items


def performance_score(transaction_count: int, last_transaction: Optional[date], today: date) -> int:
    """
    Heuristic 0-100 score: min(100, count*10 + max(0, 30 - days since last transaction)).
    No transactions → 0. The recency term is dropped when the last date is unknown.
    """
    if transaction_count <= 0:
        return 0
    recency = 0
    if last_transaction is not None:
        recency = max(0, 30 - (today - last_transaction).days)
    return min(100, transaction_count * 10 + recency)


# ── Vehicle / driver reports ─────────────────────────────────────────────────

def fleet_distance(vehicles: Iterable, readings: Iterable) -> float:
    readings = list(readings)
    return sum(total_distance(v.id, readings) for v in vehicles)


def vehicle_utilization(vehicles: Iterable, readings: Iterable) -> list:
    """Distance and km/day per vehicle; vehicles without positive distance are left out."""
    readings = list(readings)
    rows = []
    for v in vehicles:
        own = sorted((r for r in readings if r.vehicle_id == v.id), key=lambda r: r.reading_date)
        distance, daily = 0, 0.0
        if len(own) > 1:
            distance = own[-1].odometer_reading - own[0].odometer_reading
            daily = safe_ratio(distance, (own[-1].reading_date - own[0].reading_date).days)
        if distance > 0:
            rows.append(VehicleUtilization(
                vehicle_id=v.id, vehicle_number=v.vehicle_number, make=v.make, model=v.model,
                total_distance=distance, daily_average=round(daily, 2), readings=len(own),
            ))
    return rank_by(rows, "total_distance")


def driver_performance(drivers: Iterable, fuel_logs: Iterable) -> list:
    """Per-driver fuel efficiency. Drivers without any fuel log are omitted."""
    logs = list(fuel_logs)
    rows = []
    for d in drivers:
        own = [log for log in logs if log.driver_id == d.id]
        if not own:
            continue
        volume = _sum(own, "fuel_volume")
        distance = _sum(own, "km_driven")
        cost = _sum(own, "total_cost")
        mileage = round(safe_ratio(distance, volume), 2)
        per_km = round(safe_ratio(cost, distance), 2)
        rows.append(DriverPerformance(
            driver_id=d.id, driver=d.name, average_mileage=mileage, total_distance=distance,
            total_fuel_volume=round(volume, 2), total_cost=cost, trip_count=len(own),
            cost_per_km=per_km, average_distance=round(safe_ratio(distance, len(own)), 2),
            efficiency_score=round(mileage * 0.7 + (1 / (per_km + 0.01)) * 0.3, 2),
        ))
    return rank_by(rows, "average_mileage")


def vehicle_costs(vehicles: Iterable, fuel_logs: Iterable, maintenance_logs: Iterable) -> list:
    fuel_logs, maintenance_logs = list(fuel_logs), list(maintenance_logs)
    rows = []
    for v in vehicles:
        fuel = [log for log in fuel_logs if log.vehicle_id == v.id]
        fuel_cost = _sum(fuel, "total_cost")
        maint_cost = _sum((m for m in maintenance_logs if m.vehicle_id == v.id), "total_cost")
        rows.append(VehicleCost(
            vehicle_id=v.id, vehicle_number=v.vehicle_number, fuel_cost=fuel_cost,
            maintenance_cost=maint_cost, total_cost=fuel_cost + maint_cost,
            efficiency=round(average_mileage(fuel), 2),
        ))
    return rank_by(rows, "total_cost")


def maintenance_frequency(vehicles: Iterable, maintenance_logs: Iterable) -> list:
    logs = list(maintenance_logs)
    rows = []
    for v in vehicles:
        own = [m for m in logs if m.vehicle_id == v.id]
        if not own:
            continue
        cost = _sum(own, "total_cost")
        rows.append(MaintenanceFrequency(
            vehicle_id=v.id, vehicle_number=v.vehicle_number, frequency=len(own),
            total_cost=cost, avg_cost=round(safe_ratio(cost, len(own)), 2),
        ))
    return rank_by(rows, "frequency")


# ── Cost reports ─────────────────────────────────────────────────────────────

def cost_breakdown(fuel_logs: Iterable, maintenance_logs: Iterable) -> list:
    """Fuel cost per fuel type (untyped logs count as diesel), then labour and parts. Zeros dropped."""
    by_type: dict[str, float] = {}
    for log in fuel_logs:
        fuel_type = log.fuel_type or "diesel"
        by_type[fuel_type] = by_type.get(fuel_type, 0) + (log.total_cost or 0)

    logs = list(maintenance_logs)
    items = [CostBreakdownItem(name=f"{t.capitalize()} Fuel", value=v) for t, v in by_type.items()]
    items.append(CostBreakdownItem(name="Maintenance", value=_sum(logs, "labor_cost")))
    items.append(CostBreakdownItem(name="Parts", value=sum(parts_cost(m) for m in logs)))
    return [i for i in items if i.value > 0]


def monthly_cost_trend(fuel_logs: Iterable, maintenance_logs: Iterable, pad: bool = False) -> list:
    """Fuel, labour and parts cost per calendar month, ascending."""
    months: dict[date, MonthlyCost] = {}
    for b in monthly_buckets(fuel_logs, "date", "total_cost"):
        months[b.month] = MonthlyCost(month=b.month, fuel=b.totals["total_cost"])
    for b in monthly_buckets(maintenance_logs, "maintenance_date",
                             {"labor": "labor_cost", "parts": parts_cost}):
        row = months.setdefault(b.month, MonthlyCost(month=b.month))
        row.maintenance += b.totals["labor"]
        row.parts += b.totals["parts"]

    keys = sorted(months)
    if pad and keys:
        m = keys[0]
        while m < keys[-1]:
            m = _next_month(m)
            months.setdefault(m, MonthlyCost(month=m))
        keys = sorted(months)
    for row in months.values():
        row.total = row.fuel + row.maintenance + row.parts
    return [months[k] for k in keys]


def parts_usage(maintenance_logs: Iterable, limit: int = 8) -> list:
    usage: dict[str, PartUsage] = {}
    for m in maintenance_logs:
        for p in m.parts_used or []:
            name = p.part_name or "Unknown Part"
            row = usage.setdefault(name, PartUsage(name=name, usage=0, cost=0))
            row.usage += p.quantity or 0
            row.cost += p.total_cost or 0
    return rank_by(usage.values(), "cost")[:limit]


# ── Budgets ──────────────────────────────────────────────────────────────────

def budget_actual(budget, fuel_logs: Iterable, maintenance_logs: Iterable) -> float:
    """
    Spend of the budget's own subsidiary inside its period for fuel/maintenance budgets;
    the stored actual otherwise.
    """
    start, end, sid = budget.period_start, budget.period_end, budget.subsidiary_id
    if budget.category == "fuel":
        return _sum((f for f in fuel_logs if f.subsidiary_id == sid and start <= f.date <= end), "total_cost")
    if budget.category == "maintenance":
        return _sum((m for m in maintenance_logs
                     if m.subsidiary_id == sid and start <= m.maintenance_date <= end), "total_cost")
    return budget.actual_amount or 0


def budget_performance(budgets: Iterable, fuel_logs: Iterable, maintenance_logs: Iterable) -> list:
    fuel_logs, maintenance_logs = list(fuel_logs), list(maintenance_logs)
    rows = []
    for b in budgets:
        if not b.budgeted_amount or b.budgeted_amount <= 0:
            continue
        actual = budget_actual(b, fuel_logs, maintenance_logs)
        variance = actual - b.budgeted_amount
        if variance > 0:
            status = "over"
        elif variance < -b.budgeted_amount * 0.1:
            status = "under"
        else:
            status = "on-track"
        rows.append(BudgetPerformance(
            budget_id=b.id, category=b.category, period_start=b.period_start, period_end=b.period_end,
            budgeted=b.budgeted_amount, actual=actual, variance=variance,
            variance_percentage=round(safe_ratio(variance, b.budgeted_amount) * 100, 1),
            utilization=round(safe_ratio(actual, b.budgeted_amount) * 100, 1),
            status=status,
        ))
    return sorted(rows, key=lambda r: (r.period_start, r.category))


def budget_variance_by_category(performance: Iterable) -> list:
    grouped: dict[str, CategoryVariance] = {}
    for p in performance:
        row = grouped.setdefault(p.category, CategoryVariance(
            category=p.category, total_budgeted=0, total_actual=0, variance=0, variance_percentage=0))
        row.total_budgeted += p.budgeted
        row.total_actual += p.actual
        row.variance += p.variance
    for row in grouped.values():
        row.variance_percentage = round(safe_ratio(row.variance, row.total_budgeted) * 100, 1)
    return list(grouped.values())


# ── Vendors ──────────────────────────────────────────────────────────────────

def vendor_metrics(vendor, fuel_purchases: Iterable, maintenance_logs: Iterable, today: date) -> VendorMetrics:
    purchases = [p for p in fuel_purchases if p.vendor_id == vendor.id]
    jobs = [m for m in maintenance_logs if m.vendor_id == vendor.id]
    count = len(purchases) + len(jobs)
    spent = _sum(purchases, "total_cost") + _sum(jobs, "total_cost")
    dates = [p.purchase_date for p in purchases] + [m.maintenance_date for m in jobs]
    last = max(dates) if dates else None
    return VendorMetrics(
        fuel_transactions=len(purchases),
        maintenance_transactions=len(jobs),
        total_transactions=count,
        total_spent=spent,
        avg_transaction=safe_ratio(spent, count),
        last_transaction=last,
        performance_score=performance_score(count, last, today),
    )


# ── Fleet KPIs ───────────────────────────────────────────────────────────────

def fleet_kpis(vehicles: Iterable, fuel_logs: Iterable, maintenance_logs: Iterable,
               readings: Iterable) -> FleetKPIs:
    vehicles, fuel_logs, maintenance_logs = list(vehicles), list(fuel_logs), list(maintenance_logs)
    distance = fleet_distance(vehicles, readings)
    fuel_cost = _sum(fuel_logs, "total_cost")
    maint_cost = _sum(maintenance_logs, "total_cost")

    costs = vehicle_costs(vehicles, fuel_logs, maintenance_logs)
    most_efficient = highest_cost = VehicleHighlight()
    if costs:
        by_id = rank_by(costs, "vehicle_id", direction="asc")
        best = rank_by(by_id, "efficiency")[0]
        worst = rank_by(by_id, "total_cost")[0]
        most_efficient = VehicleHighlight(vehicle_id=best.vehicle_id, vehicle_number=best.vehicle_number,
                                          value=best.efficiency)
        highest_cost = VehicleHighlight(vehicle_id=worst.vehicle_id, vehicle_number=worst.vehicle_number,
                                        value=worst.total_cost)

    return FleetKPIs(
        fleet_distance=distance,
        average_mileage=round(average_mileage(fuel_logs), 2),
        fuel_cost=fuel_cost,
        maintenance_cost=maint_cost,
        cost_per_km=round(cost_per_distance(fuel_cost, maint_cost, distance), 2),
        most_efficient=most_efficient,
        highest_cost=highest_cost,
    )


# ── Subsidiary comparison ────────────────────────────────────────────────────

def subsidiary_comparison(subsidiary_ids: Iterable[int], vehicles: Iterable, drivers: Iterable,
                          fuel_logs: Iterable, maintenance_logs: Iterable,
                          readings: Iterable) -> list:
    """
    One SubsidiaryMetrics row per subsidiary id, in the order given.
    Records are grouped by their subsidiary_id; subsidiaries with no rows get zeros.
    """
    def by_tenant(records):
        grouped = defaultdict(list)
        for r in records:
            grouped[r.subsidiary_id].append(r)
        return grouped

    vehicles, drivers = by_tenant(vehicles), by_tenant(drivers)
    fuel_logs, maintenance_logs = by_tenant(fuel_logs), by_tenant(maintenance_logs)
    readings = by_tenant(readings)

    rows = []
    for sid in subsidiary_ids:
        fleet, fuel, jobs = vehicles[sid], fuel_logs[sid], maintenance_logs[sid]
        active = sum(1 for v in fleet if v.status == "active")
        fuel_cost = _sum(fuel, "total_cost")
        volume = _sum(fuel, "fuel_volume")
        maint_cost = _sum(jobs, "total_cost")
        total = fuel_cost + maint_cost
        distance = fleet_distance(fleet, readings[sid])
        rows.append(SubsidiaryMetrics(
            subsidiary_id=sid,
            total_vehicles=len(fleet),
            active_vehicles=active,
            total_drivers=len(drivers[sid]),
            fuel_cost=fuel_cost,
            fuel_volume=volume,
            maintenance_cost=maint_cost,
            total_cost=total,
            maintenance_frequency=len(jobs),
            distance=distance,
            fuel_per_vehicle=round(safe_ratio(volume, len(fleet)), 2),
            cost_per_vehicle=round(safe_ratio(total, len(fleet)), 2),
            cost_per_km=round(cost_per_distance(fuel_cost, maint_cost, distance), 2),
            utilization_rate=round(safe_ratio(active, len(fleet)) * 100, 1),
        ))
    return rows
