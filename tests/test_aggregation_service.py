# tests/test_aggregation_service.py
"""Unit tests for the aggregation engine (pure functions, no database)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import math
import pytest
from datetime import date, timedelta
from app.schemas.budget import BudgetRecord
from app.schemas.fleet import VehicleRecord, DriverRecord, OdometerReadingRecord
from app.schemas.fuel import FuelLogRecord, FuelPurchaseRecord
from app.schemas.maintenance import MaintenanceLogRecord, MaintenancePartRecord
from app.schemas.vendor import VendorRecord
from app.services import aggregation_service as agg

TODAY = date(2026, 10, 19)


def vehicle(id, number=None):
    return VehicleRecord(id=id, vehicle_number=number or f"V-{id}", subsidiary_id=1)


def reading(id, vehicle_id, day, value):
    return OdometerReadingRecord(id=id, reading_date=day, vehicle_id=vehicle_id,
                                 odometer_reading=value, subsidiary_id=1)


def fuel(id, vehicle_id=1, km=0, volume=0, cost=0, day=date(2026, 1, 10), driver_id=None, fuel_type=None):
    return FuelLogRecord(id=id, date=day, vehicle_id=vehicle_id, driver_id=driver_id, km_driven=km,
                         fuel_volume=volume, total_cost=cost, fuel_type=fuel_type, subsidiary_id=1)


def job(id, vehicle_id=1, cost=0, labor=0, day=date(2026, 1, 15), parts=(), vendor_id=None):
    return MaintenanceLogRecord(
        id=id, maintenance_date=day, vehicle_id=vehicle_id, vendor_id=vendor_id, maintenance_type="scheduled",
        total_cost=cost, labor_cost=labor, subsidiary_id=1,
        parts_used=[MaintenancePartRecord(id=i, part_name=n, quantity=q, total_cost=c)
                    for i, (n, q, c) in enumerate(parts)],
    )


class TestTotalDistance:
    def test_fewer_than_two_readings_is_zero(self):
        assert agg.total_distance(1, []) == 0
        assert agg.total_distance(1, [reading(1, 1, date(2026, 1, 1), 5000)]) == 0

    def test_last_minus_first_by_date(self):
        readings = [
            reading(1, 1, date(2026, 1, 20), 1800),
            reading(2, 1, date(2026, 1, 1), 1000),
            reading(3, 1, date(2026, 1, 10), 1300),
            reading(4, 2, date(2026, 1, 5), 99999),   # other vehicle
        ]
        assert agg.total_distance(1, readings) == 800

    def test_rollback_is_not_clamped(self):
        readings = [reading(1, 1, date(2026, 1, 1), 1000), reading(2, 1, date(2026, 2, 1), 400)]
        assert agg.total_distance(1, readings) == -600


class TestRatios:
    def test_average_mileage_zero_volume_returns_zero(self):
        result = agg.average_mileage([fuel(1, km=300, volume=0), fuel(2, km=100, volume=0)])
        assert result == 0
        assert not math.isnan(result) and not math.isinf(result)

    def test_average_mileage_empty(self):
        assert agg.average_mileage([]) == 0

    def test_average_mileage_is_sum_over_sum(self):
        assert agg.average_mileage([fuel(1, km=300, volume=20), fuel(2, km=200, volume=30)]) == 10

    def test_cost_per_distance(self):
        assert agg.cost_per_distance(600, 400, 100) == 10
        assert agg.cost_per_distance(600, 400, 0) == 0

    def test_derived_mileage_guarded(self):
        assert fuel(1, km=120, volume=0).mileage == 0
        assert fuel(2, km=120, volume=10).mileage == 12


class TestMonthlyBuckets:
    def test_sparse_and_ascending(self):
        logs = [fuel(1, cost=100, day=date(2026, 3, 5)), fuel(2, cost=50, day=date(2026, 1, 10)),
                fuel(3, cost=25, day=date(2026, 3, 20))]
        buckets = agg.monthly_buckets(logs, "date", "total_cost")
        assert [b.month for b in buckets] == [date(2026, 1, 1), date(2026, 3, 1)]
        assert buckets[0].totals["total_cost"] == 50
        assert buckets[1].totals["total_cost"] == 125
        assert buckets[1].count == 2

    def test_pad_fills_missing_months(self):
        logs = [fuel(1, cost=100, day=date(2025, 12, 5)), fuel(2, cost=50, day=date(2026, 2, 10))]
        buckets = agg.monthly_buckets(logs, "date", "total_cost", pad=True)
        assert [b.month for b in buckets] == [date(2025, 12, 1), date(2026, 1, 1), date(2026, 2, 1)]
        assert buckets[1].totals["total_cost"] == 0
        assert buckets[1].count == 0

    def test_multiple_fields_and_callables(self):
        logs = [job(1, labor=40, parts=[("Filter", 1, 10), ("Belt", 1, 5)])]
        buckets = agg.monthly_buckets(logs, "maintenance_date", {"labor": "labor_cost", "parts": agg.parts_cost})
        assert buckets[0].totals == {"labor": 40, "parts": 15}

    def test_monthly_cost_trend(self):
        trend = agg.monthly_cost_trend(
            [fuel(1, cost=100, day=date(2026, 1, 3))],
            [job(1, labor=40, day=date(2026, 1, 9), parts=[("Filter", 1, 10), ("Belt", 1, 5)]),
             job(2, labor=60, day=date(2026, 3, 9))],
        )
        assert [t.month for t in trend] == [date(2026, 1, 1), date(2026, 3, 1)]
        assert (trend[0].fuel, trend[0].maintenance, trend[0].parts, trend[0].total) == (100, 40, 15, 155)


class TestRankBy:
    def test_ties_keep_input_order(self):
        rows = [vehicle(3), vehicle(1), vehicle(2)]
        ranked = agg.rank_by(rows, lambda v: 0)
        assert [v.id for v in ranked] == [3, 1, 2]

    def test_tie_key_breaks_ties_by_id(self):
        rows = [fuel(3, km=10), fuel(1, km=10), fuel(2, km=50)]
        ranked = agg.rank_by(rows, "km_driven", tie_key="id")
        assert [r.id for r in ranked] == [2, 1, 3]

    def test_ascending(self):
        rows = [fuel(1, km=30), fuel(2, km=10), fuel(3, km=20)]
        assert [r.id for r in agg.rank_by(rows, "km_driven", direction="asc")] == [2, 3, 1]

    def test_bad_direction(self):
        with pytest.raises(ValueError):
            agg.rank_by([], "id", direction="sideways")


class TestPerformanceScore:
    def test_no_transactions(self):
        assert agg.performance_score(0, TODAY, TODAY) == 0

    def test_count_and_recency(self):
        assert agg.performance_score(3, TODAY - timedelta(days=5), TODAY) == 55

    def test_stale_vendor_gets_no_recency_bonus(self):
        assert agg.performance_score(2, TODAY - timedelta(days=40), TODAY) == 20

    def test_capped_at_100(self):
        assert agg.performance_score(12, TODAY, TODAY) == 100

    def test_vendor_metrics(self):
        vendor = VendorRecord(id=7, name="Shell", subsidiary_id=1)
        purchases = [FuelPurchaseRecord(id=1, vendor_id=7, purchase_date=TODAY - timedelta(days=10),
                                        total_cost=300, subsidiary_id=1),
                     FuelPurchaseRecord(id=2, vendor_id=8, purchase_date=TODAY, total_cost=999, subsidiary_id=1)]
        jobs = [job(1, cost=100, day=TODAY - timedelta(days=2), vendor_id=7)]
        m = agg.vendor_metrics(vendor, purchases, jobs, TODAY)
        assert (m.fuel_transactions, m.maintenance_transactions, m.total_transactions) == (1, 1, 2)
        assert m.total_spent == 400
        assert m.avg_transaction == 200
        assert m.last_transaction == TODAY - timedelta(days=2)
        assert m.performance_score == 20 + 28


class TestReports:
    def test_vehicle_utilization(self):
        readings = [reading(1, 1, date(2026, 1, 1), 1000), reading(2, 1, date(2026, 1, 11), 1500),
                    reading(3, 2, date(2026, 1, 1), 700)]
        rows = agg.vehicle_utilization([vehicle(1), vehicle(2)], readings)
        assert len(rows) == 1
        assert rows[0].total_distance == 500
        assert rows[0].daily_average == 50

    def test_driver_performance_skips_idle_drivers(self):
        drivers = [DriverRecord(id=1, name="Ravi", subsidiary_id=1), DriverRecord(id=2, name="Idle", subsidiary_id=1)]
        logs = [fuel(1, km=300, volume=20, cost=2000, driver_id=1), fuel(2, km=200, volume=30, cost=3000, driver_id=1)]
        rows = agg.driver_performance(drivers, logs)
        assert [r.driver for r in rows] == ["Ravi"]
        assert rows[0].average_mileage == 10
        assert rows[0].cost_per_km == 10
        assert rows[0].trip_count == 2
        assert rows[0].average_distance == 250

    def test_cost_breakdown(self):
        items = agg.cost_breakdown(
            [fuel(1, cost=100, fuel_type="petrol"), fuel(2, cost=50)],
            [job(1, labor=30, parts=[("Filter", 1, 20)])],
        )
        assert {i.name: i.value for i in items} == {
            "Petrol Fuel": 100, "Diesel Fuel": 50, "Maintenance": 30, "Parts": 20,
        }

    def test_cost_breakdown_drops_zero_entries(self):
        items = agg.cost_breakdown([fuel(1, cost=100)], [])
        assert [i.name for i in items] == ["Diesel Fuel"]

    def test_parts_usage_sorted_by_cost(self):
        logs = [job(1, parts=[("Filter", 1, 20), ("Tyre", 2, 800)]), job(2, parts=[("Filter", 3, 60)])]
        usage = agg.parts_usage(logs)
        assert [(p.name, p.usage, p.cost) for p in usage] == [("Tyre", 2, 800), ("Filter", 4, 80)]

    def test_budget_performance_status(self):
        jan = (date(2026, 1, 1), date(2026, 1, 31))
        budgets = [
            BudgetRecord(id=1, category="fuel", period_start=jan[0], period_end=jan[1],
                         budgeted_amount=1000, subsidiary_id=1),
            BudgetRecord(id=2, category="maintenance", period_start=jan[0], period_end=jan[1],
                         budgeted_amount=1000, subsidiary_id=1),
            BudgetRecord(id=3, category="tyres", period_start=jan[0], period_end=jan[1],
                         budgeted_amount=1000, actual_amount=500, subsidiary_id=1),
            BudgetRecord(id=4, category="fuel", period_start=jan[0], period_end=jan[1],
                         budgeted_amount=0, subsidiary_id=1),
        ]
        fuel_logs = [fuel(1, cost=600, day=date(2026, 1, 5)), fuel(2, cost=300, day=date(2026, 1, 31)),
                     fuel(3, cost=500, day=date(2026, 2, 1))]
        jobs = [job(1, cost=1200, day=date(2026, 1, 20))]

        rows = {r.budget_id: r for r in agg.budget_performance(budgets, fuel_logs, jobs)}
        assert set(rows) == {1, 2, 3}
        assert rows[1].actual == 900 and rows[1].status == "on-track" and rows[1].utilization == 90
        assert rows[2].status == "over" and rows[2].variance_percentage == 20
        assert rows[3].status == "under"

        by_cat = {c.category: c for c in agg.budget_variance_by_category(rows.values())}
        assert by_cat["fuel"].variance == -100

    def test_budget_actual_ignores_other_subsidiaries(self):
        budget = BudgetRecord(id=1, category="fuel", period_start=date(2026, 1, 1), period_end=date(2026, 1, 31),
                              budgeted_amount=1000, subsidiary_id=1)
        logs = [fuel(1, cost=400), fuel(2, cost=900).model_copy(update={"subsidiary_id": 2})]
        [row] = agg.budget_performance([budget], logs, [])
        assert row.actual == 400

    def test_subsidiary_comparison(self):
        vehicles = [vehicle(1), vehicle(2).model_copy(update={"status": "maintenance"})]
        readings = [reading(1, 1, date(2026, 1, 1), 0), reading(2, 1, date(2026, 1, 31), 400)]
        fuel_logs = [fuel(1, volume=40, cost=3000), fuel(2, volume=10, cost=1000)]
        jobs = [job(1, cost=1000), job(2, cost=0).model_copy(update={"subsidiary_id": 9})]
        drivers = [DriverRecord(id=1, name="Ravi", subsidiary_id=1)]

        alpha, empty = agg.subsidiary_comparison([1, 5], vehicles, drivers, fuel_logs, jobs, readings)
        assert alpha.total_vehicles == 2 and alpha.active_vehicles == 1
        assert alpha.utilization_rate == 50.0
        assert alpha.total_cost == 5000 and alpha.cost_per_vehicle == 2500
        assert alpha.fuel_per_vehicle == 25
        assert alpha.cost_per_km == 12.5
        assert alpha.maintenance_frequency == 1

        assert empty.subsidiary_id == 5
        assert empty.total_vehicles == 0
        assert empty.cost_per_vehicle == 0 and empty.cost_per_km == 0 and empty.utilization_rate == 0

    def test_fleet_kpis(self):
        vehicles = [vehicle(1, "A"), vehicle(2, "B")]
        readings = [reading(1, 1, date(2026, 1, 1), 1000), reading(2, 1, date(2026, 1, 31), 1500),
                    reading(3, 2, date(2026, 1, 1), 200), reading(4, 2, date(2026, 1, 31), 700)]
        fuel_logs = [fuel(1, vehicle_id=1, km=500, volume=50, cost=5000),
                     fuel(2, vehicle_id=2, km=500, volume=25, cost=2500)]
        jobs = [job(1, vehicle_id=2, cost=4500)]

        kpis = agg.fleet_kpis(vehicles, fuel_logs, jobs, readings)
        assert kpis.fleet_distance == 1000
        assert kpis.average_mileage == 13.33
        assert kpis.cost_per_km == 12
        assert kpis.most_efficient.vehicle_number == "B"
        assert kpis.highest_cost.vehicle_number == "B"
        assert kpis.highest_cost.value == 7000

    def test_fleet_kpis_empty_fleet(self):
        kpis = agg.fleet_kpis([], [], [], [])
        assert kpis.fleet_distance == 0
        assert kpis.average_mileage == 0
        assert kpis.cost_per_km == 0
        assert kpis.most_efficient.vehicle_number == "N/A"
