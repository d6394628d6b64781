# app/models/driver.py
from sqlalchemy import Column, Integer, String, Date, Boolean, ForeignKey
from app.database import Base


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    license_number = Column(String(100))
    license_expiry = Column(Date)
    is_active = Column(Boolean, default=True, nullable=False)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<Driver {self.name} license={self.license_number}>"
