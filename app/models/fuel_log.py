# app/models/fuel_log.py
"""
Fuel log — one row per refuel of a vehicle.
mileage is stored as entered; the record schema derives it when missing.
"""

from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey
from app.database import Base


class FuelLog(Base):
    __tablename__ = "fuel_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"))
    fuel_volume = Column(Float, default=0, nullable=False)
    rate_per_liter = Column(Float)
    total_cost = Column(Float, default=0, nullable=False)
    odometer_reading = Column(Float)
    km_driven = Column(Float)
    mileage = Column(Float)
    fuel_source = Column(String(30))          # internal_tank | external_pump
    fuel_type = Column(String(30))
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<FuelLog {self.id} vehicle={self.vehicle_id} vol={self.fuel_volume}>"
