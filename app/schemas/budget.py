# app/schemas/budget.py
from pydantic import BaseModel
from datetime import date


class BudgetRecord(BaseModel):
    id: int
    category: str
    period_start: date
    period_end: date
    budgeted_amount: float = 0
    actual_amount: float = 0
    subsidiary_id: int

    class Config:
        from_attributes = True
