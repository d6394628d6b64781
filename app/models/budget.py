# app/models/budget.py
from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey
from app.database import Base


class Budget(Base):
    __tablename__ = "budget"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String(50), nullable=False, index=True)   # fuel | maintenance | ...
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    budgeted_amount = Column(Float, default=0, nullable=False)
    actual_amount = Column(Float, default=0, nullable=False)
    subsidiary_id = Column(Integer, ForeignKey("subsidiaries.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<Budget {self.category} {self.actual_amount}/{self.budgeted_amount}>"
