from collections import defaultdict
from datetime import date
from typing import Dict, Optional

from sqlalchemy.orm import Session

from database import crud
from services.expense_service import month_bounds

class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def get_monthly_dashboard(self, month: Optional[int] = None, year: Optional[int] = None,
                              today: Optional[date] = None) -> Dict:
        """Revenus, dépenses, épargne nette et dépenses par catégorie d'un mois"""
        today = today or date.today()
        month = month or today.month
        year = year or today.year
        start, end = month_bounds(year, month)

        total_income = sum(i.amount for i in crud.get_incomes(self.db, start, end))
        expenses = crud.get_expenses(self.db, start, end)
        total_expenses = sum(e.amount for e in expenses)

        by_category = defaultdict(float)
        for expense in expenses:
            by_category[expense.category_name or 'Unknown'] += expense.amount

        net_savings = total_income - total_expenses
        return {
            'month': month,
            'year': year,
            'total_income': round(total_income, 2),
            'total_expenses': round(total_expenses, 2),
            'net_savings': round(net_savings, 2),
            'savings_rate': round(net_savings / total_income * 100, 2) if total_income > 0 else 0,
            'expenses_by_category': [
                {'category': name, 'amount': round(amount, 2)}
                for name, amount in by_category.items()
            ]
        }

    def get_yearly_dashboard(self, year: Optional[int] = None, today: Optional[date] = None) -> Dict:
        year = year or (today or date.today()).year
        start, end = date(year, 1, 1), date(year, 12, 31)

        total_income = sum(i.amount for i in crud.get_incomes(self.db, start, end))
        expenses = crud.get_expenses(self.db, start, end)
        total_expenses = sum(e.amount for e in expenses)

        by_month = defaultdict(float)
        for expense in expenses:
            by_month[expense.date.month] += expense.amount

        return {
            'year': year,
            'total_income': round(total_income, 2),
            'total_expenses': round(total_expenses, 2),
            'net_savings': round(total_income - total_expenses, 2),
            'monthly_expenses': [
                {'month': m, 'expenses': round(amount, 2)}
                for m, amount in sorted(by_month.items())
            ]
        }
