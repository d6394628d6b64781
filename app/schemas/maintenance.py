# app/schemas/maintenance.py
from pydantic import BaseModel
from datetime import date
from typing import Optional


class MaintenancePartRecord(BaseModel):
    id: int
    part_name: str
    quantity: float = 0
    total_cost: float = 0

    class Config:
        from_attributes = True


class MaintenanceLogRecord(BaseModel):
    id: int
    maintenance_date: date
    vehicle_id: int
    vendor_id: Optional[int] = None
    maintenance_type: str
    description: Optional[str] = None
    total_cost: float = 0
    labor_cost: float = 0
    parts_used: list[MaintenancePartRecord] = []
    subsidiary_id: int

    class Config:
        from_attributes = True
