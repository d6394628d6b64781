# app/schemas/fuel.py
from pydantic import BaseModel, model_validator
from datetime import date
from typing import Optional

from app.utils.metrics import safe_ratio


class FuelLogRecord(BaseModel):
    id: int
    date: date
    vehicle_id: int
    driver_id: Optional[int] = None
    fuel_volume: float = 0
    rate_per_liter: Optional[float] = None
    total_cost: float = 0
    odometer_reading: Optional[float] = None
    km_driven: Optional[float] = None
    mileage: Optional[float] = None
    fuel_source: Optional[str] = None
    fuel_type: Optional[str] = None
    subsidiary_id: int

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def _derive_mileage(self):
        # km per litre; zero volume gives 0, never a division error
        if self.mileage is None and self.km_driven is not None:
            self.mileage = safe_ratio(self.km_driven, self.fuel_volume)
        return self


class FuelTankRecord(BaseModel):
    id: int
    fuel_type: str
    current_volume: float = 0
    capacity: float
    low_threshold: float = 0
    unit: str = "L"
    subsidiary_id: int

    class Config:
        from_attributes = True


class FuelPurchaseRecord(BaseModel):
    id: int
    vendor_id: int
    purchase_date: date
    fuel_type: Optional[str] = None
    quantity: float = 0
    total_cost: float = 0
    subsidiary_id: int

    class Config:
        from_attributes = True
