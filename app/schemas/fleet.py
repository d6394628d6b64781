# app/schemas/fleet.py
"""Typed records for vehicles, drivers, documents and odometer readings."""

from pydantic import BaseModel
from datetime import date
from typing import Optional


class VehicleRecord(BaseModel):
    id: int
    vehicle_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    fuel_type: Optional[str] = None
    status: str = "active"
    insurance_expiry: Optional[date] = None
    registration_expiry: Optional[date] = None
    pollution_cert_expiry: Optional[date] = None
    permit_expiry: Optional[date] = None
    subsidiary_id: int

    class Config:
        from_attributes = True


class DriverRecord(BaseModel):
    id: int
    name: str
    license_number: Optional[str] = None
    license_expiry: Optional[date] = None
    is_active: bool = True
    subsidiary_id: int

    class Config:
        from_attributes = True


class DocumentRecord(BaseModel):
    id: int
    vehicle_id: int
    document_type: Optional[str] = None
    document_name: str
    expiry_date: Optional[date] = None
    subsidiary_id: int

    class Config:
        from_attributes = True


class OdometerReadingRecord(BaseModel):
    id: int
    reading_date: date
    vehicle_id: int
    odometer_reading: float
    subsidiary_id: int

    class Config:
        from_attributes = True
