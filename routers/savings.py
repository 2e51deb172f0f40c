from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import crud
from database.database import get_db
from models.savings import MonthlySavings, TotalSavings, TotalSavingsCreate
from routers.errors import http_error
from services.savings_service import SavingsService

router = APIRouter(prefix="/api/totalsavings", tags=["savings"])

def _savings_to_dict(savings):
    return TotalSavings.model_validate(savings).model_dump(mode="json")

@router.get("")
async def get_total_savings(db: Session = Depends(get_db)):
    """
    Toutes les entrées d'épargne, les plus récentes d'abord
    """
    try:
        return JSONResponse({
            "success": True,
            "savings": [_savings_to_dict(s) for s in crud.get_all_total_savings(db)]
        })
    except Exception as e:
        raise http_error(e, "la lecture de l'épargne")

@router.get("/monthly/{year}/{month}")
async def get_monthly_savings(year: int, month: int, db: Session = Depends(get_db)):
    try:
        if not 1 <= month <= 12:
            raise HTTPException(status_code=400, detail="Mois invalide")
        monthly = SavingsService(db).get_monthly_savings(year, month)
        return JSONResponse({
            "success": True,
            **MonthlySavings.model_validate(monthly, from_attributes=True).model_dump(mode="json")
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la lecture de l'épargne mensuelle")

@router.get("/{savings_id}")
async def get_total_savings_entry(savings_id: int, db: Session = Depends(get_db)):
    try:
        savings = crud.get_total_savings_by_id(db, savings_id)
        if not savings:
            raise HTTPException(status_code=404, detail="Épargne non trouvée")
        return JSONResponse({"success": True, "savings": _savings_to_dict(savings)})
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la lecture de l'épargne")

@router.post("")
async def create_total_savings(savings: TotalSavingsCreate, db: Session = Depends(get_db)):
    try:
        db_savings = crud.create_total_savings(db, savings)
        return JSONResponse({"success": True, "savings": _savings_to_dict(db_savings)})
    except Exception as e:
        raise http_error(e, "l'enregistrement de l'épargne")

@router.put("/{savings_id}")
async def update_total_savings(savings_id: int, savings: TotalSavingsCreate, db: Session = Depends(get_db)):
    try:
        updated = crud.update_total_savings(db, savings_id, savings)
        if not updated:
            raise HTTPException(status_code=404, detail="Épargne non trouvée")
        return JSONResponse({"success": True, "savings": _savings_to_dict(updated)})
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la mise à jour de l'épargne")

@router.delete("/{savings_id}")
async def delete_total_savings(savings_id: int, db: Session = Depends(get_db)):
    try:
        if not crud.delete_total_savings(db, savings_id):
            raise HTTPException(status_code=404, detail="Épargne non trouvée")
        return JSONResponse({
            "success": True,
            "message": "Épargne supprimée avec succès"
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la suppression de l'épargne")
