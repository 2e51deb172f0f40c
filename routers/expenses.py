from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database.database import get_db
from models.expense import (
    CategorySummary, DailyExpense, Expense, ExpenseAnalytics, ExpenseCreate,
    ExpenseUpdate, PaymentMethodSummary
)
from routers.errors import http_error
from services.expense_service import ExpenseService

router = APIRouter(prefix="/api/expenses", tags=["expenses"])

def _expense_to_dict(expense):
    return Expense.model_validate(expense).model_dump(mode="json")

@router.get("")
async def get_expenses(month: Optional[int] = None, year: Optional[int] = None,
                       db: Session = Depends(get_db)):
    """
    Récupérer toutes les dépenses, optionnellement filtrées par mois/année
    """
    try:
        expenses = ExpenseService(db).get_expenses(month, year)
        return JSONResponse({
            "success": True,
            "expenses": [_expense_to_dict(e) for e in expenses]
        })
    except Exception as e:
        raise http_error(e, "la lecture des dépenses")

@router.get("/analytics/daily")
async def get_daily_analytics(start_date: Optional[date] = None, end_date: Optional[date] = None,
                              db: Session = Depends(get_db)):
    """
    Dépenses regroupées par jour (30 derniers jours par défaut)
    """
    try:
        days = ExpenseService(db).get_daily_analytics(start_date, end_date)
        return JSONResponse({
            "success": True,
            "days": [
                DailyExpense.model_validate(d, from_attributes=True).model_dump(mode="json")
                for d in days
            ]
        })
    except Exception as e:
        raise http_error(e, "l'analyse journalière")

@router.get("/analytics/weekly")
async def get_weekly_analytics(month: Optional[int] = None, year: Optional[int] = None,
                               db: Session = Depends(get_db)):
    try:
        analytics = ExpenseService(db).get_weekly_analytics(month, year)
        return JSONResponse({
            "success": True,
            "analytics": ExpenseAnalytics(**analytics).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "l'analyse hebdomadaire")

@router.get("/analytics/monthly")
async def get_monthly_analytics(month: Optional[int] = None, year: Optional[int] = None,
                                db: Session = Depends(get_db)):
    try:
        analytics = ExpenseService(db).get_monthly_analytics(month, year)
        return JSONResponse({
            "success": True,
            "analytics": ExpenseAnalytics(**analytics).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "l'analyse mensuelle")

@router.get("/categories/summary")
async def get_category_summary(month: Optional[int] = None, year: Optional[int] = None,
                               db: Session = Depends(get_db)):
    """
    Total et part de chaque catégorie sur le mois
    """
    try:
        summary = ExpenseService(db).get_category_summary(month, year)
        return JSONResponse({
            "success": True,
            "summary": [CategorySummary(**s).model_dump(mode="json") for s in summary]
        })
    except Exception as e:
        raise http_error(e, "le résumé par catégorie")

@router.get("/payment-methods/summary")
async def get_payment_method_summary(month: Optional[int] = None, year: Optional[int] = None,
                                     db: Session = Depends(get_db)):
    try:
        summary = ExpenseService(db).get_payment_method_summary(month, year)
        return JSONResponse({
            "success": True,
            "summary": [PaymentMethodSummary(**s).model_dump(mode="json") for s in summary]
        })
    except Exception as e:
        raise http_error(e, "le résumé par moyen de paiement")

@router.get("/{expense_id}")
async def get_expense(expense_id: int, db: Session = Depends(get_db)):
    try:
        expense = ExpenseService(db).get_expense(expense_id)
        if not expense:
            raise HTTPException(status_code=404, detail="Dépense non trouvée")
        return JSONResponse({"success": True, "expense": _expense_to_dict(expense)})
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la lecture de la dépense")

@router.post("")
async def create_expense(expense: ExpenseCreate, db: Session = Depends(get_db)):
    """
    Crée une dépense
    """
    try:
        db_expense = ExpenseService(db).create_expense(expense)
        return JSONResponse({"success": True, "expense": _expense_to_dict(db_expense)})
    except Exception as e:
        raise http_error(e, "la création de la dépense")

@router.put("/{expense_id}")
async def update_expense(expense_id: int, expense: ExpenseUpdate, db: Session = Depends(get_db)):
    """
    Met à jour une dépense
    """
    try:
        updated = ExpenseService(db).update_expense(expense_id, expense)
        if not updated:
            raise HTTPException(status_code=404, detail="Dépense non trouvée")
        return JSONResponse({"success": True, "expense": _expense_to_dict(updated)})
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la mise à jour de la dépense")

@router.delete("/{expense_id}")
async def delete_expense(expense_id: int, db: Session = Depends(get_db)):
    """
    Supprime une dépense
    """
    try:
        if not ExpenseService(db).delete_expense(expense_id):
            raise HTTPException(status_code=404, detail="Dépense non trouvée")
        return JSONResponse({
            "success": True,
            "message": "Dépense supprimée avec succès"
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la suppression de la dépense")
