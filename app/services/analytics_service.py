# app/services/analytics_service.py
"""
Analytics sections for the dashboard.

Each section names the entity types it needs, the module that gates it, the entities
the since/until window applies to, and a builder over the fetched records.
Sections whose inputs failed to load are returned with partial=True and the missing
entities listed, instead of failing the whole request.

Budgets are windowed on their own period (a budget overlapping the window is kept),
while the logs behind their actuals are fetched unwindowed so a budget's spend always
covers its whole period.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from app.exceptions import FetchError
from app.schemas.analytics import AnalyticsReport
from app.schemas.vendor import VendorOut
from app.services import aggregation_service as agg
from app.services.scope_service import TenantScope
from app.utils.logger import get_logger

logger = get_logger(__name__)

DATED_ENTITIES = ("fuel_logs", "maintenance_logs", "odometer_readings")


@dataclass(frozen=True)
class Section:
    deps: tuple
    build: Callable            # (data, scope) -> payload
    module: str = "analytics"
    windowed: tuple = DATED_ENTITIES


def _budgets(d, scope):
    performance = agg.budget_performance(d["budgets"], d["fuel_logs"], d["maintenance_logs"])
    return {"performance": performance, "by_category": agg.budget_variance_by_category(performance)}


SECTIONS = {
    "kpis": Section(
        ("vehicles", "fuel_logs", "maintenance_logs", "odometer_readings"),
        lambda d, s: agg.fleet_kpis(d["vehicles"], d["fuel_logs"], d["maintenance_logs"], d["odometer_readings"]),
    ),
    "vehicles": Section(
        ("vehicles", "odometer_readings", "fuel_logs", "maintenance_logs"),
        lambda d, s: {
            "utilization": agg.vehicle_utilization(d["vehicles"], d["odometer_readings"]),
            "costs": agg.vehicle_costs(d["vehicles"], d["fuel_logs"], d["maintenance_logs"]),
        },
    ),
    "drivers": Section(
        ("drivers", "fuel_logs"),
        lambda d, s: agg.driver_performance(d["drivers"], d["fuel_logs"]),
    ),
    "costs": Section(
        ("fuel_logs", "maintenance_logs"),
        lambda d, s: {
            "monthly": agg.monthly_cost_trend(d["fuel_logs"], d["maintenance_logs"]),
            "breakdown": agg.cost_breakdown(d["fuel_logs"], d["maintenance_logs"]),
        },
    ),
    "maintenance": Section(
        ("vehicles", "maintenance_logs"),
        lambda d, s: {
            "frequency": agg.maintenance_frequency(d["vehicles"], d["maintenance_logs"]),
            "monthly": agg.monthly_buckets(d["maintenance_logs"], "maintenance_date", "total_cost"),
            "parts": agg.parts_usage(d["maintenance_logs"]),
        },
    ),
    "budgets": Section(("budgets", "fuel_logs", "maintenance_logs"), _budgets,
                       module="budget", windowed=("budgets",)),
    "subsidiaries": Section(
        ("vehicles", "drivers", "fuel_logs", "maintenance_logs", "odometer_readings"),
        lambda d, s: agg.subsidiary_comparison(s.filter_ids(), d["vehicles"], d["drivers"], d["fuel_logs"],
                                               d["maintenance_logs"], d["odometer_readings"]),
        module="reports",
    ),
}


async def build_section(fetcher, scope: TenantScope, section: str,
                        since: Optional[date] = None, until: Optional[date] = None) -> AnalyticsReport:
    if section not in SECTIONS:
        raise ValueError(f"Unknown analytics section: {section}")
    spec = SECTIONS[section]

    window = {name: {"since": since, "until": until} for name in spec.deps if name in spec.windowed}
    data = await fetcher.fetch_many(spec.deps, scope, filters=window)
    failed = [name for name in spec.deps if isinstance(data.get(name), FetchError)]
    if failed:
        logger.error(f"[ANALYTICS] {section} unavailable for {scope}: {failed}")
        return AnalyticsReport(data=None, unavailable=failed, partial=True)
    return AnalyticsReport(data=spec.build(data, scope))


async def vendor_report(fetcher, scope: TenantScope, today: Optional[date] = None) -> AnalyticsReport:
    """
    Vendors with transaction metrics, best performance score first.
    The vendor list itself is required; missing transaction sources are flagged as partial.
    """
    today = today or date.today()
    data = await fetcher.fetch_many(("vendors", "fuel_purchases", "maintenance_logs"), scope)
    if isinstance(data["vendors"], FetchError):
        raise data["vendors"]

    failed = [name for name in ("fuel_purchases", "maintenance_logs") if isinstance(data[name], FetchError)]
    if failed:
        logger.error(f"[VENDORS] metrics incomplete for {scope}: {failed}")
    purchases = [] if "fuel_purchases" in failed else data["fuel_purchases"]
    jobs = [] if "maintenance_logs" in failed else data["maintenance_logs"]

    vendors = [
        VendorOut(**v.model_dump(), performance_metrics=agg.vendor_metrics(v, purchases, jobs, today))
        for v in data["vendors"]
    ]
    ranked = agg.rank_by(vendors, lambda v: v.performance_metrics.performance_score)
    return AnalyticsReport(data=ranked, unavailable=failed, partial=bool(failed))
