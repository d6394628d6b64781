# app/services/entity_fetcher.py
"""
Scoped entity retrieval.

Every query is filtered by the caller's TenantScope: subsidiary_id == id for a single
subsidiary, subsidiary_id IN (ids) for the consolidated view. Rows come back as typed
pydantic records.

Each fetch opens its own session and runs in a worker thread, so independent entity
types can be fetched concurrently and joined with fetch_many(). A backend failure is
raised as FetchError — never returned as an empty list.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from app.database import SessionLocal
from app.exceptions import FetchError
from app.models.budget import Budget
from app.models.driver import Driver
from app.models.fuel_log import FuelLog
from app.models.fuel_tank import FuelTank
from app.models.maintenance_log import MaintenanceLog
from app.models.odometer_reading import OdometerReading
from app.models.vehicle import Vehicle
from app.models.vehicle_document import VehicleDocument
from app.models.vendor import Vendor, FuelPurchase
from app.schemas.budget import BudgetRecord
from app.schemas.fleet import VehicleRecord, DriverRecord, DocumentRecord, OdometerReadingRecord
from app.schemas.fuel import FuelLogRecord, FuelTankRecord, FuelPurchaseRecord
from app.schemas.maintenance import MaintenanceLogRecord
from app.schemas.vendor import VendorRecord
from app.services.scope_service import TenantScope
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EntitySpec:
    model: type
    record: type
    date_column: Optional[str] = None      # used for since/until filters and ordering
    category_column: Optional[str] = None
    eager: tuple = ()
    end_column: Optional[str] = None       # period rows: the window keeps rows overlapping it


ENTITY_REGISTRY: dict[str, EntitySpec] = {
    "vehicles":          EntitySpec(Vehicle, VehicleRecord),
    "drivers":           EntitySpec(Driver, DriverRecord),
    "documents":         EntitySpec(VehicleDocument, DocumentRecord, "expiry_date", "document_type"),
    "fuel_logs":         EntitySpec(FuelLog, FuelLogRecord, "date", "fuel_type"),
    "maintenance_logs":  EntitySpec(MaintenanceLog, MaintenanceLogRecord, "maintenance_date",
                                    "maintenance_type", eager=("parts_used",)),
    "odometer_readings": EntitySpec(OdometerReading, OdometerReadingRecord, "reading_date"),
    "fuel_tanks":        EntitySpec(FuelTank, FuelTankRecord, category_column="fuel_type"),
    "budgets":           EntitySpec(Budget, BudgetRecord, "period_start", category_column="category",
                                    end_column="period_end"),
    "vendors":           EntitySpec(Vendor, VendorRecord, category_column="category"),
    "fuel_purchases":    EntitySpec(FuelPurchase, FuelPurchaseRecord, "purchase_date", "fuel_type"),
}


class EntityFetcher:
    """Tenant-scoped reader over the fleet tables."""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def _query(self, entity: str, scope: TenantScope, since: Optional[date], until: Optional[date],
               category: Optional[str], newest_first: bool, vehicle_id: Optional[int]) -> list:
        spec = ENTITY_REGISTRY[entity]
        model = spec.model
        ids = scope.filter_ids()

        db = self.session_factory()
        try:
            q = db.query(model)
            if len(ids) == 1:
                q = q.filter(model.subsidiary_id == ids[0])
            else:
                q = q.filter(model.subsidiary_id.in_(ids))

            if spec.date_column:
                col = getattr(model, spec.date_column)
                end = getattr(model, spec.end_column) if spec.end_column else col
                if since is not None:
                    q = q.filter(end >= since)
                if until is not None:
                    q = q.filter(col <= until)
                q = q.order_by(col.desc() if newest_first else col.asc(), model.id.asc())
            else:
                q = q.order_by(model.id.asc())

            if category is not None and spec.category_column:
                q = q.filter(getattr(model, spec.category_column) == category)
            if vehicle_id is not None and hasattr(model, "vehicle_id"):
                q = q.filter(model.vehicle_id == vehicle_id)
            for rel in spec.eager:
                q = q.options(selectinload(getattr(model, rel)))

            return [spec.record.model_validate(row) for row in q.all()]
        finally:
            db.close()

    async def fetch(self, entity: str, scope: TenantScope, since: Optional[date] = None,
                    until: Optional[date] = None, category: Optional[str] = None,
                    newest_first: bool = False, vehicle_id: Optional[int] = None) -> list:
        if entity not in ENTITY_REGISTRY:
            raise ValueError(f"Unknown entity type: {entity}")
        if not scope.filter_ids():
            raise FetchError(entity, ValueError(f"{scope} grants no subsidiaries"))

        try:
            rows = await asyncio.to_thread(self._query, entity, scope, since, until,
                                           category, newest_first, vehicle_id)
        except SQLAlchemyError as e:
            logger.error(f"[FETCH] {entity} failed for {scope}: {e}")
            raise FetchError(entity, e) from e

        logger.debug(f"[FETCH] {entity}: {len(rows)} rows for {scope}")
        return rows

    async def fetch_many(self, entities: Iterable[str], scope: TenantScope,
                         filters: Optional[dict] = None) -> dict:
        """
        Fire one fetch per entity and wait for all of them.
        Returns entity → record list, or entity → FetchError for the ones that failed.
        filters maps an entity name to extra fetch() keyword arguments.
        """
        filters = filters or {}
        names = list(dict.fromkeys(entities))
        results = await asyncio.gather(
            *(self.fetch(name, scope, **filters.get(name, {})) for name in names),
            return_exceptions=True,
        )
        out = {}
        for name, result in zip(names, results):
            if isinstance(result, FetchError):
                out[name] = result
            elif isinstance(result, BaseException):
                logger.error(f"[FETCH] {name} raised {type(result).__name__}: {result}")
                out[name] = FetchError(name, result)
            else:
                out[name] = result
        return out
