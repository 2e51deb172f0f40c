from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from database.database import Base

class SpendingCategoryModel(Base):
    __tablename__ = "spending_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    icon = Column(String, default="category")
    is_system = Column(Boolean, default=False)
    is_essential_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

class ExpenseModel(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, index=True, nullable=False)
    amount = Column(Float, nullable=False)
    category_id = Column(Integer, ForeignKey("spending_categories.id"), index=True, nullable=False)
    description = Column(String, default="")
    payment_method = Column(String, nullable=True)
    location = Column(String, nullable=True)
    tags = Column(String, nullable=True)
    is_recurring = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    category = relationship("SpendingCategoryModel")

    @property
    def category_name(self):
        return self.category.name if self.category else None

class IncomeModel(Base):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, index=True, nullable=False)
    amount = Column(Float, nullable=False)
    source = Column(String, nullable=False)
    notes = Column(String, nullable=True)

class FinancialPeriodModel(Base):
    __tablename__ = "financial_periods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # DoubleHousingPeriod / NewHomePeriod
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=False)
    description = Column(String, default="")

class BudgetLimitModel(Base):
    __tablename__ = "budget_limits"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("spending_categories.id"), index=True, nullable=False)
    financial_period_id = Column(Integer, ForeignKey("financial_periods.id"), index=True, nullable=False)
    monthly_limit = Column(Float, nullable=False)
    is_essential = Column(Boolean, default=False)  # Mortgage, Rent, Utilities, Groceries, Transport...
    created_at = Column(DateTime, default=datetime.utcnow)

    category = relationship("SpendingCategoryModel")
    financial_period = relationship("FinancialPeriodModel")

    @property
    def category_name(self):
        return self.category.name if self.category else None

class SavingsGoalModel(Base):
    __tablename__ = "savings_goals"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False)  # EmergencyFund / Investments / HouseFuture
    name = Column(String, nullable=False)
    monthly_target = Column(Float, nullable=False)
    financial_period_id = Column(Integer, ForeignKey("financial_periods.id"), index=True, nullable=False)
    is_required = Column(Boolean, default=False)  # fonds d'urgence
    created_at = Column(DateTime, default=datetime.utcnow)

    financial_period = relationship("FinancialPeriodModel")

class SpendingAlertModel(Base):
    __tablename__ = "spending_alerts"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("spending_categories.id"), index=True, nullable=False)
    type = Column(String, nullable=False)  # Info / Warning / Critical / Exceeded / Achievement
    message = Column(String, default="")
    current_spending = Column(Float, default=0)
    budget_limit = Column(Float, default=0)
    percentage_used = Column(Float, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    is_read = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    category = relationship("SpendingCategoryModel")

    @property
    def category_name(self):
        return self.category.name if self.category else None

class TotalSavingsModel(Base):
    __tablename__ = "total_savings"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, index=True, nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String, default="")
    category = Column(String, default="")  # ex: "Emergency Fund", "Investment"
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)
