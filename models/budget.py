import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from models.enums import AlertType, FinancialPeriodType, SavingsGoalType

class CategoryBudget(BaseModel):
    category_id: int
    category_name: str
    limit: float
    spent: float
    remaining: float
    percentage_used: float
    daily_recommendation: float
    is_essential: bool
    is_custom: bool
    icon: str
    status: str        # Great, Good, Caution, Watch
    status_color: str  # green, blue, yellow, orange

class SavingsProgress(BaseModel):
    type: SavingsGoalType
    name: str
    target: float
    actual: float
    progress: float
    is_achieved: bool
    motivational_message: str

class BudgetStatus(BaseModel):
    current_period: str
    period_description: str
    monthly_income: float
    total_budgeted: float
    total_spent: float
    remaining_budget: float
    savings_target: float
    actual_savings: float
    savings_rate: float
    days_left_in_month: int
    category_budgets: List[CategoryBudget] = []
    savings_progress: List[SavingsProgress] = []
    motivational_message: str

class CheckSpendingRequest(BaseModel):
    category_id: int
    amount: float = Field(..., ge=0)

class SpendingCheck(BaseModel):
    is_allowed: bool
    message: str
    alert_level: Optional[AlertType] = None
    remaining_budget: float = 0
    new_percentage_used: float = 0
    encouragement: str

class FinancialHealth(BaseModel):
    grade: str  # Excellent, Good, Fair, Improving
    savings_rate: float
    score: float  # 0-100
    message: str
    achievements: List[str] = []
    recommendations: List[str] = []
    is_on_track: bool

class SavingsCelebration(BaseModel):
    message: str
    savings_rate: float
    savings_amount: float
    achievements: List[str] = []
    encouragement: str

class BudgetLimit(BaseModel):
    category_id: int
    category_name: str
    monthly_limit: float
    is_essential: bool
    is_custom: bool
    icon: str

class SpendingCategory(BaseModel):
    id: int
    name: str
    icon: str
    is_custom: bool
    is_essential_default: bool

class CreateBudgetCategoryRequest(BaseModel):
    name: str = ""
    monthly_limit: float = Field(..., ge=0)
    is_essential: bool = False

class UpdateBudgetLimitRequest(BaseModel):
    new_limit: float = Field(..., ge=0)
    is_essential: Optional[bool] = None
    name: Optional[str] = None

class SpendingAlert(BaseModel):
    id: int
    category_id: int
    category_name: Optional[str] = None
    type: AlertType
    message: str
    current_spending: float
    budget_limit: float
    percentage_used: float
    created_at: datetime.datetime
    is_read: bool
    is_active: bool

    class Config:
        from_attributes = True

class FinancialPeriod(BaseModel):
    id: int
    name: str
    type: FinancialPeriodType
    start_date: datetime.date
    end_date: datetime.date
    is_active: bool
    description: str

    class Config:
        from_attributes = True

class SavingsGoalBase(BaseModel):
    type: SavingsGoalType
    name: str
    monthly_target: float = Field(..., ge=0)
    is_required: bool = False

class SavingsGoalCreate(SavingsGoalBase):
    pass

class SavingsGoal(SavingsGoalBase):
    id: int
    financial_period_id: int
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True
