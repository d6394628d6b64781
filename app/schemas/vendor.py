# app/schemas/vendor.py
from pydantic import BaseModel
from datetime import date
from typing import Optional


class VendorRecord(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    subsidiary_id: int

    class Config:
        from_attributes = True


class VendorMetrics(BaseModel):
    fuel_transactions: int
    maintenance_transactions: int
    total_transactions: int
    total_spent: float
    avg_transaction: float
    last_transaction: Optional[date]
    performance_score: int


class VendorOut(VendorRecord):
    performance_metrics: VendorMetrics
