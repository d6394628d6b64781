# app/models/maintenance_log.py
"""
Maintenance log and the parts consumed by each maintenance job.
total_cost covers labour + parts; labor_cost is tracked separately for cost breakdowns.
"""

from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class MaintenanceLog(Base):
    __tablename__ = "maintenance_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    maintenance_date = Column(Date, nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"))
    maintenance_type = Column(String(30), nullable=False)   # breakdown | scheduled | preventive
    description = Column(String(500))
    total_cost = Column(Float, default=0, nullable=False)
    labor_cost = Column(Float, default=0, nullable=False)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    parts_used = relationship("MaintenancePartUsed", back_populates="maintenance",
                              cascade="all, delete-orphan")

    def __repr__(self):
        return f"<MaintenanceLog {self.id} vehicle={self.vehicle_id} type={self.maintenance_type}>"


class MaintenancePartUsed(Base):
    __tablename__ = "maintenance_parts_used"

    id = Column(Integer, primary_key=True, autoincrement=True)
    maintenance_id = Column(Integer, ForeignKey("maintenance_log.id"), nullable=False, index=True)
    part_name = Column(String(200), nullable=False)
    quantity = Column(Float, default=1, nullable=False)
    total_cost = Column(Float, default=0, nullable=False)

    maintenance = relationship("MaintenanceLog", back_populates="parts_used")
