# app/routers/alerts.py
from fastapi import APIRouter, Depends
from typing import Optional
from app.dependencies import get_fetcher, require_module
from app.schemas.alert import AlertReport, AlertType, Severity
from app.services.alert_service import generate_alerts
from app.services.entity_fetcher import EntityFetcher
from app.services.scope_service import TenantScope

router = APIRouter()


@router.get("/alerts", response_model=AlertReport, summary="Current alerts — filterable by type/severity")
async def get_alerts(
    alert_type: Optional[AlertType] = None,
    severity: Optional[Severity] = None,
    limit: int = 100,
    scope: TenantScope = Depends(require_module("dashboard")),
    fetcher: EntityFetcher = Depends(get_fetcher),
):
    """Recomputed on every call. `partial` is true when some categories could not be loaded."""
    report = await generate_alerts(fetcher, scope)
    alerts = report.alerts
    if alert_type:
        alerts = [a for a in alerts if a.type == alert_type]
    if severity:
        alerts = [a for a in alerts if a.severity == severity]
    report.alerts = alerts[:limit]
    return report
