import datetime
from pydantic import BaseModel
from typing import Optional

class IncomeBase(BaseModel):
    date: datetime.date
    amount: float
    source: str
    notes: Optional[str] = None

class IncomeCreate(IncomeBase):
    pass

class Income(IncomeBase):
    id: int

    class Config:
        from_attributes = True
