# app/routers/analytics.py
"""Fleet analytics — KPIs, vehicle/driver performance, cost, maintenance, budget and subsidiary reports."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from app.dependencies import get_fetcher, get_scope, module_scope
from app.schemas.analytics import AnalyticsReport
from app.services.analytics_service import SECTIONS, build_section
from app.services.entity_fetcher import EntityFetcher
from app.services.scope_service import TenantScope

router = APIRouter()


@router.get("/analytics/{section}", response_model=AnalyticsReport,
            summary="Analytics section: kpis | vehicles | drivers | costs | maintenance | budgets | subsidiaries")
async def get_analytics(
    section: str,
    since: Optional[date] = None,
    until: Optional[date] = None,
    scope: TenantScope = Depends(get_scope),
    fetcher: EntityFetcher = Depends(get_fetcher),
):
    """Each section is gated on its own module (budgets → budget, subsidiaries → reports)."""
    if section not in SECTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown analytics section '{section}'")
    scope = module_scope(scope, SECTIONS[section].module)
    return await build_section(fetcher, scope, section, since, until)
