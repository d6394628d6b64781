# app/models/vendor.py
"""
Vendors (fuel pumps, workshops, parts suppliers) and direct fuel purchases from them.
Maintenance jobs reference vendors through maintenance_log.vendor_id.
"""

from sqlalchemy import Column, Integer, String, Date, Float, Boolean, ForeignKey
from app.database import Base


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    category = Column(String(50))              # fuel | maintenance | parts
    contact_person = Column(String(200))
    phone = Column(String(50))
    is_active = Column(Boolean, default=True, nullable=False)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<Vendor {self.name} category={self.category}>"


class FuelPurchase(Base):
    __tablename__ = "fuel_purchases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    purchase_date = Column(Date, nullable=False, index=True)
    fuel_type = Column(String(30))
    quantity = Column(Float, default=0, nullable=False)
    total_cost = Column(Float, default=0, nullable=False)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<FuelPurchase vendor={self.vendor_id} {self.purchase_date} {self.total_cost}>"
