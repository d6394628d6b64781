# app/models/fuel_tank.py
"""
On-site fuel storage tanks.
low_threshold is an absolute volume; the alert rule converts it to a percentage of capacity.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from app.database import Base


class FuelTank(Base):
    __tablename__ = "fuel_tanks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fuel_type = Column(String(30), nullable=False)
    current_volume = Column(Float, default=0, nullable=False)
    capacity = Column(Float, nullable=False)
    low_threshold = Column(Float, default=0, nullable=False)
    unit = Column(String(10), default="L", nullable=False)
    last_updated = Column(DateTime)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<FuelTank {self.fuel_type} {self.current_volume}/{self.capacity}{self.unit}>"
