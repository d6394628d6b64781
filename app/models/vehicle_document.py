# app/models/vehicle_document.py
"""Uploaded vehicle documents (insurance, RC, PUC, permits...) with their expiry date."""

from sqlalchemy import Column, Integer, String, Date, ForeignKey
from app.database import Base


class VehicleDocument(Base):
    __tablename__ = "vehicle_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    document_type = Column(String(50))
    document_name = Column(String(200), nullable=False)
    expiry_date = Column(Date, index=True)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<VehicleDocument {self.document_name} expires={self.expiry_date}>"
