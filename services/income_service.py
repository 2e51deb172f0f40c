from typing import Optional

from sqlalchemy.orm import Session

from database import crud
from models.income import IncomeCreate
from services.expense_service import month_bounds

class IncomeService:
    def __init__(self, db: Session):
        self.db = db

    def get_incomes(self, month: Optional[int] = None, year: Optional[int] = None):
        if month and year:
            start, end = month_bounds(year, month)
            return crud.get_incomes(self.db, start, end)
        return crud.get_incomes(self.db)

    def get_income(self, income_id: int):
        return crud.get_income_by_id(self.db, income_id)

    @staticmethod
    def validate_income(income: IncomeCreate):
        """Règles métier : montant strictement positif et source renseignée"""
        if income.amount <= 0:
            raise ValueError("Income amount must be greater than zero")
        if not income.source or not income.source.strip():
            raise ValueError("Income source is required")

    def create_income(self, income: IncomeCreate):
        self.validate_income(income)
        return crud.create_income(self.db, income)

    def update_income(self, income_id: int, income: IncomeCreate):
        self.validate_income(income)
        return crud.update_income(self.db, income_id, income)

    def delete_income(self, income_id: int) -> bool:
        return crud.delete_income(self.db, income_id)
