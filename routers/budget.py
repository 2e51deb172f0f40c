from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import crud
from database.database import get_db
from models.budget import (
    BudgetLimit, BudgetStatus, CategoryBudget, CheckSpendingRequest, CreateBudgetCategoryRequest,
    FinancialHealth, FinancialPeriod, SavingsCelebration, SavingsGoal, SavingsGoalCreate,
    SpendingAlert, SpendingCategory, SpendingCheck, UpdateBudgetLimitRequest
)
from routers.errors import http_error
from services.budget_service import BudgetService

router = APIRouter(prefix="/api/budget", tags=["budget"])

@router.post("/initialize")
async def initialize_budget(db: Session = Depends(get_db)):
    """
    Crée les périodes, catégories et limites par défaut manquantes
    """
    try:
        BudgetService(db).initialize_default_budget()
        return JSONResponse({
            "success": True,
            "message": "Budget system initialized successfully! 🎉"
        })
    except Exception as e:
        raise http_error(e, "l'initialisation du budget")

@router.get("/status")
async def get_budget_status(db: Session = Depends(get_db)):
    """
    État du budget du mois courant pour la période active
    """
    try:
        status = BudgetService(db).get_current_budget_status()
        return JSONResponse({
            "success": True,
            "status": BudgetStatus(**status).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "la lecture de l'état du budget")

@router.post("/check-spending")
async def check_spending(request: CheckSpendingRequest, db: Session = Depends(get_db)):
    """
    Simule l'impact d'une dépense avant de l'enregistrer
    """
    try:
        result = BudgetService(db).check_spending(request.category_id, request.amount)
        return JSONResponse({
            "success": True,
            "check": SpendingCheck(**result).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "la vérification de la dépense")

@router.get("/financial-health")
async def get_financial_health(db: Session = Depends(get_db)):
    try:
        health = BudgetService(db).get_financial_health()
        return JSONResponse({
            "success": True,
            "health": FinancialHealth(**health).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "le calcul de la santé financière")

@router.get("/savings-celebration")
async def get_savings_celebration(db: Session = Depends(get_db)):
    try:
        celebration = BudgetService(db).get_savings_celebration()
        return JSONResponse({
            "success": True,
            "celebration": SavingsCelebration(**celebration).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "la lecture de l'épargne")

@router.get("/alerts")
async def get_alerts(db: Session = Depends(get_db)):
    """
    Alertes actives et non lues, les plus récentes d'abord
    """
    try:
        alerts = BudgetService(db).get_active_alerts()
        return JSONResponse({
            "success": True,
            "alerts": [SpendingAlert.model_validate(a).model_dump(mode="json") for a in alerts]
        })
    except Exception as e:
        raise http_error(e, "la lecture des alertes")

@router.post("/alerts/{alert_id}/read")
async def mark_alert_read(alert_id: int, db: Session = Depends(get_db)):
    try:
        alert = BudgetService(db).mark_alert_read(alert_id)
        if not alert:
            raise HTTPException(status_code=404, detail="Alerte non trouvée")
        return JSONResponse({
            "success": True,
            "alert": SpendingAlert.model_validate(alert).model_dump(mode="json")
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la mise à jour de l'alerte")

@router.get("/limits")
async def get_budget_limits(db: Session = Depends(get_db)):
    try:
        limits = BudgetService(db).get_budget_limits()
        return JSONResponse({
            "success": True,
            "limits": [BudgetLimit(**l).model_dump(mode="json") for l in limits]
        })
    except Exception as e:
        raise http_error(e, "la lecture des limites")

@router.get("/categories")
async def get_budget_categories(db: Session = Depends(get_db)):
    try:
        categories = BudgetService(db).get_spending_categories()
        return JSONResponse({
            "success": True,
            "categories": [SpendingCategory(**c).model_dump(mode="json") for c in categories]
        })
    except Exception as e:
        raise http_error(e, "la lecture des catégories")

@router.post("/categories")
async def create_budget_category(request: CreateBudgetCategoryRequest, db: Session = Depends(get_db)):
    """
    Crée une catégorie personnalisée avec sa limite pour la période active
    """
    try:
        category = BudgetService(db).create_custom_category(
            request.name, request.monthly_limit, request.is_essential
        )
        return JSONResponse({
            "success": True,
            "category": CategoryBudget(**category).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "la création de la catégorie")

@router.put("/category/{category_id}/limit")
async def update_category_limit(category_id: int, request: UpdateBudgetLimitRequest,
                                db: Session = Depends(get_db)):
    try:
        BudgetService(db).update_category_limit(
            category_id, request.new_limit, request.is_essential, request.name
        )
        return JSONResponse({
            "success": True,
            "message": "Budget limit updated successfully!"
        })
    except Exception as e:
        raise http_error(e, "la mise à jour de la limite")

# Objectifs d'épargne de la période active

@router.get("/savings-goals")
async def get_savings_goals(db: Session = Depends(get_db)):
    try:
        period = BudgetService(db).get_current_period()
        goals = crud.get_savings_goals(db, period.id)
        return JSONResponse({
            "success": True,
            "goals": [SavingsGoal.model_validate(g).model_dump(mode="json") for g in goals]
        })
    except Exception as e:
        raise http_error(e, "la lecture des objectifs d'épargne")

@router.post("/savings-goals")
async def create_savings_goal(goal: SavingsGoalCreate, db: Session = Depends(get_db)):
    try:
        period = BudgetService(db).get_current_period()
        db_goal = crud.create_savings_goal(db, goal, period.id)
        return JSONResponse({
            "success": True,
            "goal": SavingsGoal.model_validate(db_goal).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "la création de l'objectif d'épargne")

@router.put("/savings-goals/{goal_id}")
async def update_savings_goal(goal_id: int, goal: SavingsGoalCreate, db: Session = Depends(get_db)):
    try:
        updated = crud.update_savings_goal(db, goal_id, goal)
        if not updated:
            raise HTTPException(status_code=404, detail="Objectif d'épargne non trouvé")
        return JSONResponse({
            "success": True,
            "goal": SavingsGoal.model_validate(updated).model_dump(mode="json")
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la mise à jour de l'objectif d'épargne")

@router.delete("/savings-goals/{goal_id}")
async def delete_savings_goal(goal_id: int, db: Session = Depends(get_db)):
    try:
        if not crud.delete_savings_goal(db, goal_id):
            raise HTTPException(status_code=404, detail="Objectif d'épargne non trouvé")
        return JSONResponse({
            "success": True,
            "message": "Objectif d'épargne supprimé avec succès"
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la suppression de l'objectif d'épargne")

# Périodes financières

@router.get("/periods")
async def get_periods(db: Session = Depends(get_db)):
    try:
        periods = BudgetService(db).get_periods()
        return JSONResponse({
            "success": True,
            "periods": [FinancialPeriod.model_validate(p).model_dump(mode="json") for p in periods]
        })
    except Exception as e:
        raise http_error(e, "la lecture des périodes")

@router.post("/periods/{period_id}/activate")
async def activate_period(period_id: int, db: Session = Depends(get_db)):
    """
    Rend la période active (une seule période active à la fois)
    """
    try:
        period = BudgetService(db).activate_period(period_id)
        return JSONResponse({
            "success": True,
            "period": FinancialPeriod.model_validate(period).model_dump(mode="json")
        })
    except Exception as e:
        raise http_error(e, "l'activation de la période")
