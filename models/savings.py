import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

class TotalSavingsBase(BaseModel):
    date: datetime.date
    amount: float = Field(..., ge=0)
    description: str = ""
    category: str = ""

class TotalSavingsCreate(TotalSavingsBase):
    pass

class TotalSavings(TotalSavingsBase):
    id: int
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

class MonthlySavings(BaseModel):
    total_amount: float
    savings: List[TotalSavings]
    count: int
