# app/schemas/alert.py
"""
Derived alert value objects. Alerts are recomputed on every request and never persisted.
"""

from enum import Enum
from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional


class AlertType(str, Enum):
    DOCUMENT_EXPIRY = "document_expiry"
    MAINTENANCE_DUE = "maintenance_due"
    FUEL_LOW = "fuel_low"
    LICENSE_EXPIRY = "license_expiry"
    BUDGET_THRESHOLD = "budget_threshold"
    EFFICIENCY_DROP = "efficiency_drop"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


SEVERITY_RANK = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


class AlertReference(BaseModel):
    entity: str          # vehicles | drivers | documents | fuel_tanks | budgets | fuel_logs
    id: int


class Alert(BaseModel):
    id: str
    type: AlertType
    title: str
    message: str
    severity: Severity
    date: datetime
    action_required: bool = False
    vehicle_number: Optional[str] = None
    days_until: Optional[int] = None
    due_date: Optional[date] = None
    subsidiary_id: Optional[int] = None
    reference: Optional[AlertReference] = None


class AlertReport(BaseModel):
    alerts: list[Alert]
    unavailable: list[AlertType] = []   # categories skipped because a fetch failed
    partial: bool = False
    generated_at: datetime

    @property
    def counts(self) -> dict:
        out = {s.value: 0 for s in Severity}
        for a in self.alerts:
            out[a.severity.value] += 1
        return out
