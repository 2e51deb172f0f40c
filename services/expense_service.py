import calendar
import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from database import crud
from models.expense import ExpenseCreate, ExpenseUpdate
from services.budget_service import BudgetService

logger = logging.getLogger(__name__)

def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Premier et dernier jour d'un mois"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)

def days_from_sunday(day: date) -> int:
    # weekday(): lundi = 0 ... dimanche = 6
    return (day.weekday() + 1) % 7

def weekly_date_range(month: Optional[int] = None, year: Optional[int] = None,
                      today: Optional[date] = None) -> Tuple[date, date]:
    """
    Semaine analysée : du dimanche au jour courant pour le mois en cours,
    sinon la dernière semaine (commençant un dimanche) du mois demandé.
    """
    today = today or date.today()
    if month and year and (month, year) != (today.month, today.year):
        _, last_day = month_bounds(year, month)
        return last_day - timedelta(days=days_from_sunday(last_day)), last_day
    return today - timedelta(days=days_from_sunday(today)), today

def monthly_date_range(month: Optional[int] = None, year: Optional[int] = None,
                       today: Optional[date] = None) -> Tuple[date, date]:
    """
    Mois analysé : jusqu'à aujourd'hui inclus si le mois contient aujourd'hui,
    sinon jusqu'au dernier jour du mois.
    """
    today = today or date.today()
    if month and year:
        start, last_day = month_bounds(year, month)
        if start <= today <= last_day:
            return start, today
        return start, last_day
    return date(today.year, today.month, 1), today

class ExpenseService:
    def __init__(self, db: Session):
        self.db = db

    def get_expenses(self, month: Optional[int] = None, year: Optional[int] = None):
        """Liste des dépenses, filtrée par mois/année si les deux sont fournis"""
        if month and year:
            start, end = month_bounds(year, month)
            return crud.get_expenses(self.db, start, end)
        return crud.get_expenses(self.db)

    def get_expense(self, expense_id: int):
        return crud.get_expense_by_id(self.db, expense_id)

    def _check_category(self, category_id: int):
        if not crud.get_category(self.db, category_id):
            raise ValueError(f"Catégorie introuvable: {category_id}")

    def create_expense(self, expense: ExpenseCreate, today: Optional[date] = None):
        """Crée une dépense puis enregistre une alerte si un palier de budget est franchi"""
        self._check_category(expense.category_id)
        db_expense = crud.create_expense(self.db, expense)
        alert = BudgetService(self.db).record_spending_alert(db_expense, today=today)
        if alert:
            logger.info(f"Alerte {alert.type} créée pour la catégorie {alert.category_id}")
        return db_expense

    def update_expense(self, expense_id: int, expense: ExpenseUpdate):
        if not crud.get_expense_by_id(self.db, expense_id):
            return None
        self._check_category(expense.category_id)
        return crud.update_expense(self.db, expense_id, expense)

    def delete_expense(self, expense_id: int) -> bool:
        return crud.delete_expense(self.db, expense_id)

    def get_daily_analytics(self, start_date: Optional[date] = None, end_date: Optional[date] = None,
                            today: Optional[date] = None) -> List[Dict]:
        """Dépenses regroupées par jour, du plus ancien au plus récent"""
        today = today or date.today()
        start = start_date or today - timedelta(days=30)
        end = end_date or today

        by_day = defaultdict(list)
        for expense in crud.get_expenses(self.db, start, end):
            by_day[expense.date].append(expense)

        return [
            {
                'date': day,
                'total_amount': round(sum(e.amount for e in expenses), 2),
                'transaction_count': len(expenses),
                'expenses': expenses
            }
            for day, expenses in sorted(by_day.items())
        ]

    def get_weekly_analytics(self, month: Optional[int] = None, year: Optional[int] = None,
                             today: Optional[date] = None) -> Dict:
        start, end = weekly_date_range(month, year, today)
        return self._analytics(start, end)

    def get_monthly_analytics(self, month: Optional[int] = None, year: Optional[int] = None,
                              today: Optional[date] = None) -> Dict:
        start, end = monthly_date_range(month, year, today)
        return self._analytics(start, end)

    def _analytics(self, start: date, end: date) -> Dict:
        expenses = crud.get_expenses(self.db, start, end)
        if not expenses:
            return {
                'total_amount': 0,
                'transaction_count': 0,
                'average_amount': 0,
                'category_breakdown': [],
                'start_date': start,
                'end_date': end
            }

        total = sum(e.amount for e in expenses)
        breakdown = [
            {
                'category_id': category_id,
                'category_name': name,
                'total_amount': round(amount, 2),
                'transaction_count': count
            }
            for category_id, name, amount, count in self._group_by_category(expenses)
        ]
        return {
            'total_amount': round(total, 2),
            'transaction_count': len(expenses),
            'average_amount': round(total / len(expenses), 2),
            'category_breakdown': breakdown,
            'start_date': start,
            'end_date': end
        }

    def get_category_summary(self, month: Optional[int] = None, year: Optional[int] = None,
                             today: Optional[date] = None) -> List[Dict]:
        """Total, nombre et part de chaque catégorie sur le mois"""
        start, end = monthly_date_range(month, year, today)
        expenses = crud.get_expenses(self.db, start, end)
        total = sum(e.amount for e in expenses)

        return [
            {
                'category_id': category_id,
                'category_name': name,
                'total_amount': round(amount, 2),
                'transaction_count': count,
                'percentage': round(amount / total * 100, 2) if total > 0 else 0
            }
            for category_id, name, amount, count in self._group_by_category(expenses)
        ]

    def get_payment_method_summary(self, month: Optional[int] = None, year: Optional[int] = None,
                                   today: Optional[date] = None) -> List[Dict]:
        """Répartition des dépenses du mois par moyen de paiement"""
        start, end = monthly_date_range(month, year, today)
        expenses = crud.get_expenses(self.db, start, end)
        total = sum(e.amount for e in expenses)

        by_method = defaultdict(float)
        method_count = defaultdict(int)
        for expense in expenses:
            method = (expense.payment_method or '').strip() or 'Unspecified'
            by_method[method] += expense.amount
            method_count[method] += 1

        summary = [
            {
                'payment_method': method,
                'total_amount': round(amount, 2),
                'transaction_count': method_count[method],
                'percentage': round(amount / total * 100, 2) if total > 0 else 0
            }
            for method, amount in by_method.items()
        ]
        return sorted(summary, key=lambda s: s['total_amount'], reverse=True)

    @staticmethod
    def _group_by_category(expenses):
        """(id, nom, total, nombre) par catégorie, du plus gros total au plus petit"""
        by_category = defaultdict(float)
        category_count = defaultdict(int)
        names = {}
        for expense in expenses:
            by_category[expense.category_id] += expense.amount
            category_count[expense.category_id] += 1
            names[expense.category_id] = expense.category_name or 'Unknown'

        grouped = [
            (category_id, names[category_id], amount, category_count[category_id])
            for category_id, amount in by_category.items()
        ]
        return sorted(grouped, key=lambda g: g[2], reverse=True)
