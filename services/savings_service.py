from typing import Dict

from sqlalchemy.orm import Session

from database import crud
from services.expense_service import month_bounds

class SavingsService:
    """Registre manuel de l'épargne totale"""

    def __init__(self, db: Session):
        self.db = db

    def get_monthly_savings(self, year: int, month: int) -> Dict:
        start, end = month_bounds(year, month)
        savings = crud.get_all_total_savings(self.db, start, end)
        return {
            'total_amount': round(sum(s.amount for s in savings), 2),
            'savings': savings,
            'count': len(savings)
        }
