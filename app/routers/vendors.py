# app/routers/vendors.py
from fastapi import APIRouter, Depends
from app.dependencies import get_fetcher, require_module
from app.schemas.analytics import AnalyticsReport
from app.services.analytics_service import vendor_report
from app.services.entity_fetcher import EntityFetcher
from app.services.scope_service import TenantScope

router = APIRouter()


@router.get("/vendors", response_model=AnalyticsReport, summary="Vendors ranked by performance score")
async def list_vendors(
    scope: TenantScope = Depends(require_module("vendors")),
    fetcher: EntityFetcher = Depends(get_fetcher),
):
    return await vendor_report(fetcher, scope)
