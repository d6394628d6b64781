# app/models/odometer_reading.py
from sqlalchemy import Column, Integer, Date, Float, ForeignKey
from app.database import Base


class OdometerReading(Base):
    __tablename__ = "odometer_readings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reading_date = Column(Date, nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    odometer_reading = Column(Float, nullable=False)   # cumulative
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<OdometerReading vehicle={self.vehicle_id} {self.reading_date}={self.odometer_reading}>"
