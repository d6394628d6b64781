# app/models/vehicle.py
"""
Fleet vehicles, with the statutory document expiry dates kept on the row.
Read by the alert generator (document expiry, maintenance due) and analytics.
"""

from sqlalchemy import Column, Integer, String, Date, ForeignKey
from app.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_number = Column(String(50), nullable=False, index=True)
    make = Column(String(100))
    model = Column(String(100))
    year = Column(Integer)
    fuel_type = Column(String(30))                 # diesel | petrol | cng | electric
    status = Column(String(20), default="active", nullable=False)  # active | inactive | maintenance
    insurance_expiry = Column(Date)
    registration_expiry = Column(Date)
    pollution_cert_expiry = Column(Date)
    permit_expiry = Column(Date)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<Vehicle {self.vehicle_number} status={self.status}>"
