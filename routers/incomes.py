from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database.database import get_db
from models.income import Income, IncomeCreate
from routers.errors import http_error
from services.income_service import IncomeService

router = APIRouter(prefix="/api/incomes", tags=["incomes"])

def _income_to_dict(income):
    return Income.model_validate(income).model_dump(mode="json")

@router.get("")
async def get_incomes(month: Optional[int] = None, year: Optional[int] = None,
                      db: Session = Depends(get_db)):
    """
    Récupérer tous les revenus, optionnellement filtrés par mois/année
    """
    try:
        incomes = IncomeService(db).get_incomes(month, year)
        return JSONResponse({
            "success": True,
            "incomes": [_income_to_dict(i) for i in incomes]
        })
    except Exception as e:
        raise http_error(e, "la lecture des revenus")

@router.get("/{income_id}")
async def get_income(income_id: int, db: Session = Depends(get_db)):
    try:
        income = IncomeService(db).get_income(income_id)
        if not income:
            raise HTTPException(status_code=404, detail=f"Income with ID {income_id} not found")
        return JSONResponse({"success": True, "income": _income_to_dict(income)})
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la lecture du revenu")

@router.post("")
async def create_income(income: IncomeCreate, db: Session = Depends(get_db)):
    try:
        db_income = IncomeService(db).create_income(income)
        return JSONResponse({"success": True, "income": _income_to_dict(db_income)})
    except Exception as e:
        raise http_error(e, "l'enregistrement du revenu")

@router.put("/{income_id}")
async def update_income(income_id: int, income: IncomeCreate, db: Session = Depends(get_db)):
    try:
        updated = IncomeService(db).update_income(income_id, income)
        if not updated:
            raise HTTPException(status_code=404, detail=f"Income with ID {income_id} not found")
        return JSONResponse({"success": True, "income": _income_to_dict(updated)})
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la mise à jour du revenu")

@router.delete("/{income_id}")
async def delete_income(income_id: int, db: Session = Depends(get_db)):
    try:
        if not IncomeService(db).delete_income(income_id):
            raise HTTPException(status_code=404, detail=f"Income with ID {income_id} not found")
        return JSONResponse({
            "success": True,
            "message": "Revenu supprimé avec succès"
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la suppression du revenu")
