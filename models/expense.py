import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

class ExpenseBase(BaseModel):
    date: datetime.date
    amount: float = Field(..., ge=0)
    category_id: int
    description: str = ""
    payment_method: Optional[str] = None
    location: Optional[str] = None
    tags: Optional[str] = None
    is_recurring: bool = False

class ExpenseCreate(ExpenseBase):
    pass

class ExpenseUpdate(ExpenseBase):
    pass

class Expense(ExpenseBase):
    id: int
    category_name: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

class CategoryBreakdown(BaseModel):
    category_id: int
    category_name: str
    total_amount: float
    transaction_count: int

class ExpenseAnalytics(BaseModel):
    total_amount: float = 0
    transaction_count: int = 0
    average_amount: float = 0
    category_breakdown: List[CategoryBreakdown] = []
    start_date: datetime.date
    end_date: datetime.date

class DailyExpense(BaseModel):
    date: datetime.date
    total_amount: float
    transaction_count: int
    expenses: List[Expense] = []

class CategorySummary(BaseModel):
    category_id: int
    category_name: str
    total_amount: float
    transaction_count: int
    percentage: float

class PaymentMethodSummary(BaseModel):
    payment_method: str
    total_amount: float
    transaction_count: int
    percentage: float
