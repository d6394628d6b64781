# app/services/alert_service.py
"""
Alert generator.

Stateless: every call recomputes the full alert list from the current rows of the
caller's scope. One rule function per alert category; generate_alerts() fetches the
entity types concurrently, then runs each rule whose inputs all arrived. A failed
fetch only disables the categories that depend on it, and those categories are
reported back in AlertReport.unavailable.

Thresholds (inclusive):
  document / license expiry  days ≤ 7 → critical, 7 < days ≤ 30 → warning, else none
  fuel tank level            ≤ 5% → critical, ≤ tank low threshold % → warning
  budget utilisation         ≥ 100% → critical, ≥ 80% → warning
  maintenance due            no maintenance in the trailing 90 days → info
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from app.config import settings
from app.exceptions import FetchError
from app.schemas.alert import Alert, AlertReference, AlertReport, AlertType, Severity, SEVERITY_RANK
from app.services.scope_service import TenantScope
from app.utils.logger import get_logger
from app.utils.metrics import percentage

logger = get_logger(__name__)

CATEGORY_DEPENDENCIES = {
    AlertType.DOCUMENT_EXPIRY:  ("documents", "vehicles"),
    AlertType.LICENSE_EXPIRY:   ("drivers",),
    AlertType.FUEL_LOW:         ("fuel_tanks",),
    AlertType.BUDGET_THRESHOLD: ("budgets",),
    AlertType.MAINTENANCE_DUE:  ("vehicles", "maintenance_logs"),
    AlertType.EFFICIENCY_DROP:  ("fuel_logs",),
}

VEHICLE_EXPIRY_FIELDS = {
    "insurance_expiry": "Insurance",
    "registration_expiry": "Registration",
    "pollution_cert_expiry": "Pollution Certificate",
    "permit_expiry": "Permit",
}


def days_until(expiry: date, today: date) -> int:
    """Whole days from today to expiry; negative once expired."""
    return (expiry - today).days


def expiry_severity(days: int) -> Optional[Severity]:
    if days <= settings.EXPIRY_CRITICAL_DAYS:
        return Severity.CRITICAL
    if days <= settings.EXPIRY_WARNING_DAYS:
        return Severity.WARNING
    return None


def _expiry_alert(alert_type: AlertType, key: str, label: str, subject: str, expiry: date,
                  today: date, now: datetime, reference: AlertReference,
                  subsidiary_id=None, vehicle_number=None) -> Optional[Alert]:
    days = days_until(expiry, today)
    severity = expiry_severity(days)
    if severity is None:
        return None

    if days <= 0:
        alert_id, title = f"{key}-expired-{reference.id}", f"{label} Expired"
        message = f"{subject} expired {abs(days)} day(s) ago"
        action = True
    else:
        alert_id, title = f"{key}-expiring-{reference.id}", f"{label} Expiring Soon"
        message = f"{subject} will expire in {days} day(s)"
        action = days <= settings.EXPIRY_CRITICAL_DAYS

    return Alert(id=alert_id, type=alert_type, title=title, message=message, severity=severity,
                 date=now, action_required=action, vehicle_number=vehicle_number, days_until=days,
                 due_date=expiry, subsidiary_id=subsidiary_id, reference=reference)


# ── Rules ────────────────────────────────────────────────────────────────────

def document_expiry_alerts(documents: Iterable, vehicles: Iterable, today: date, now: datetime) -> list:
    """Uploaded vehicle documents plus the expiry dates kept on the vehicle rows."""
    vehicles = list(vehicles)
    numbers = {v.id: v.vehicle_number for v in vehicles}
    alerts = []
    for doc in documents:
        if doc.expiry_date is None:
            continue
        alert = _expiry_alert(AlertType.DOCUMENT_EXPIRY, "doc", doc.document_name, "Document",
                              doc.expiry_date, today, now, AlertReference(entity="documents", id=doc.id),
                              doc.subsidiary_id, numbers.get(doc.vehicle_id))
        if alert:
            alerts.append(alert)

    for v in vehicles:
        for field, label in VEHICLE_EXPIRY_FIELDS.items():
            expiry = getattr(v, field)
            if expiry is None:
                continue
            alert = _expiry_alert(AlertType.DOCUMENT_EXPIRY, f"vehicle-{field}", label,
                                  f"{v.vehicle_number} {label.lower()}", expiry, today, now,
                                  AlertReference(entity="vehicles", id=v.id),
                                  v.subsidiary_id, v.vehicle_number)
            if alert:
                alerts.append(alert)
    return alerts


def license_expiry_alerts(drivers: Iterable, today: date, now: datetime) -> list:
    alerts = []
    for d in drivers:
        if not d.is_active or d.license_expiry is None:
            continue
        alert = _expiry_alert(AlertType.LICENSE_EXPIRY, "license", "Driver License", f"{d.name}'s license",
                              d.license_expiry, today, now, AlertReference(entity="drivers", id=d.id),
                              d.subsidiary_id)
        if alert:
            alerts.append(alert)
    return alerts


def fuel_low_alerts(tanks: Iterable, now: datetime) -> list:
    alerts = []
    for t in tanks:
        if not t.capacity or t.capacity <= 0:
            logger.warning(f"[ALERT][FUEL_LOW] tank {t.id} has no capacity set — skipped")
            continue
        level = percentage(t.current_volume, t.capacity)
        low_level = percentage(t.low_threshold, t.capacity)
        ref = AlertReference(entity="fuel_tanks", id=t.id)

        if level <= settings.FUEL_CRITICAL_PERCENT:
            alerts.append(Alert(
                id=f"fuel-critical-{t.id}", type=AlertType.FUEL_LOW, title="Critical Fuel Level",
                message=f"{t.fuel_type} tank is critically low ({level:.1f}%)",
                severity=Severity.CRITICAL, date=now, action_required=True,
                subsidiary_id=t.subsidiary_id, reference=ref,
            ))
        elif level <= low_level:
            alerts.append(Alert(
                id=f"fuel-low-{t.id}", type=AlertType.FUEL_LOW, title="Low Fuel Level",
                message=f"{t.fuel_type} tank is below threshold ({level:.1f}%)",
                severity=Severity.WARNING, date=now, action_required=False,
                subsidiary_id=t.subsidiary_id, reference=ref,
            ))
    return alerts


def budget_threshold_alerts(budgets: Iterable, now: datetime) -> list:
    alerts = []
    for b in budgets:
        if not (b.budgeted_amount > 0 and b.actual_amount > 0):
            continue
        used = percentage(b.actual_amount, b.budgeted_amount)
        ref = AlertReference(entity="budgets", id=b.id)

        if used >= settings.BUDGET_CRITICAL_PERCENT:
            alerts.append(Alert(
                id=f"budget-exceeded-{b.id}", type=AlertType.BUDGET_THRESHOLD, title="Budget Exceeded",
                message=f"{b.category} budget exceeded by {used - 100:.1f}%",
                severity=Severity.CRITICAL, date=now, action_required=True,
                subsidiary_id=b.subsidiary_id, reference=ref,
            ))
        elif used >= settings.BUDGET_WARNING_PERCENT:
            alerts.append(Alert(
                id=f"budget-warning-{b.id}", type=AlertType.BUDGET_THRESHOLD, title="Budget Alert",
                message=f"{b.category} budget {used:.1f}% utilized",
                severity=Severity.WARNING, date=now, action_required=False,
                subsidiary_id=b.subsidiary_id, reference=ref,
            ))
    return alerts


def maintenance_due_alerts(vehicles: Iterable, maintenance_logs: Iterable, today: date, now: datetime) -> list:
    """Coarse heuristic: no maintenance row in the trailing window → informational alert."""
    days = settings.MAINTENANCE_DUE_DAYS
    cutoff = today - timedelta(days=days)
    serviced = {m.vehicle_id for m in maintenance_logs if m.maintenance_date >= cutoff}
    return [
        Alert(
            id=f"maintenance-due-{v.id}", type=AlertType.MAINTENANCE_DUE, title="Maintenance Due",
            message=f"{v.vehicle_number} hasn't had maintenance in {days}+ days",
            severity=Severity.INFO, date=now, action_required=False, vehicle_number=v.vehicle_number,
            subsidiary_id=v.subsidiary_id, reference=AlertReference(entity="vehicles", id=v.id),
        )
        for v in vehicles if v.id not in serviced
    ]


def efficiency_drop_alerts(fuel_logs: Iterable, now: datetime, vehicles: Iterable = ()) -> list:
    """Latest mileage more than EFFICIENCY_DROP_PERCENT below the mean of the earlier logs."""
    numbers = {v.id: v.vehicle_number for v in vehicles}
    by_vehicle: dict = {}
    for log in fuel_logs:
        if log.mileage and log.mileage > 0:
            by_vehicle.setdefault(log.vehicle_id, []).append(log)

    alerts = []
    for vehicle_id, logs in by_vehicle.items():
        if len(logs) < settings.EFFICIENCY_MIN_LOGS:
            continue
        logs.sort(key=lambda log: (log.date, log.id))
        latest, earlier = logs[-1], logs[:-1]
        baseline = sum(log.mileage for log in earlier) / len(earlier)
        drop = (baseline - latest.mileage) / baseline * 100
        if drop <= settings.EFFICIENCY_DROP_PERCENT:
            continue
        label = numbers.get(vehicle_id, f"Vehicle {vehicle_id}")
        alerts.append(Alert(
            id=f"efficiency-drop-{vehicle_id}", type=AlertType.EFFICIENCY_DROP, title="Fuel Efficiency Drop",
            message=f"{label} mileage {latest.mileage:.1f} km/L is {drop:.1f}% below its average of {baseline:.1f}",
            severity=Severity.WARNING, date=now, action_required=False,
            vehicle_number=numbers.get(vehicle_id), subsidiary_id=latest.subsidiary_id,
            reference=AlertReference(entity="fuel_logs", id=latest.id),
        ))
    return alerts


def sort_alerts(alerts: Iterable) -> list:
    """Critical first, then warning, then info; newest first within a severity."""
    by_date = sorted(alerts, key=lambda a: a.date, reverse=True)
    return sorted(by_date, key=lambda a: SEVERITY_RANK[a.severity])


# ── Orchestration ────────────────────────────────────────────────────────────

def _run_rule(alert_type: AlertType, data: dict, today: date, now: datetime) -> list:
    if alert_type == AlertType.DOCUMENT_EXPIRY:
        return document_expiry_alerts(data["documents"], data["vehicles"], today, now)
    if alert_type == AlertType.LICENSE_EXPIRY:
        return license_expiry_alerts(data["drivers"], today, now)
    if alert_type == AlertType.FUEL_LOW:
        return fuel_low_alerts(data["fuel_tanks"], now)
    if alert_type == AlertType.BUDGET_THRESHOLD:
        return budget_threshold_alerts(data["budgets"], now)
    if alert_type == AlertType.MAINTENANCE_DUE:
        return maintenance_due_alerts(data["vehicles"], data["maintenance_logs"], today, now)
    if alert_type == AlertType.EFFICIENCY_DROP:
        vehicles = data.get("vehicles")
        return efficiency_drop_alerts(data["fuel_logs"], now,
                                      vehicles if not isinstance(vehicles, FetchError) else ())
    raise ValueError(f"No rule for alert type {alert_type}")


async def generate_alerts(fetcher, scope: TenantScope, today: Optional[date] = None,
                          now: Optional[datetime] = None) -> AlertReport:
    """Fetch everything the rules need for this scope, then build the sorted alert report."""
    today = today or date.today()
    now = now or datetime.utcnow()

    entities = {name for deps in CATEGORY_DEPENDENCIES.values() for name in deps}
    data = await fetcher.fetch_many(sorted(entities), scope, filters={
        "maintenance_logs": {"since": today - timedelta(days=settings.MAINTENANCE_DUE_DAYS)},
        "fuel_logs": {"since": today - timedelta(days=settings.EFFICIENCY_WINDOW_DAYS)},
    })

    alerts, unavailable = [], []
    for alert_type, deps in CATEGORY_DEPENDENCIES.items():
        failed = [name for name in deps if isinstance(data.get(name), FetchError)]
        if failed:
            logger.error(f"[ALERT][{alert_type.value.upper()}] skipped for {scope}: "
                         f"fetch failed for {', '.join(failed)}")
            unavailable.append(alert_type)
            continue
        alerts.extend(_run_rule(alert_type, data, today, now))

    alerts = sort_alerts(alerts)
    report = AlertReport(alerts=alerts, unavailable=unavailable, partial=bool(unavailable), generated_at=now)
    logger.info(f"[ALERT] {scope}: {len(alerts)} alerts {report.counts}"
                + (f" (unavailable: {[t.value for t in unavailable]})" if unavailable else ""))
    return report
