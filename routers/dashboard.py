from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database.database import get_db
from routers.errors import http_error
from services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

@router.get("")
async def get_dashboard(month: Optional[int] = None, year: Optional[int] = None,
                        db: Session = Depends(get_db)):
    """
    Tableau de bord du mois (mois courant par défaut)
    """
    try:
        return JSONResponse({
            "success": True,
            "dashboard": DashboardService(db).get_monthly_dashboard(month, year)
        })
    except Exception as e:
        raise http_error(e, "la lecture du tableau de bord")

@router.get("/yearly")
async def get_yearly_dashboard(year: Optional[int] = None, db: Session = Depends(get_db)):
    try:
        return JSONResponse({
            "success": True,
            "dashboard": DashboardService(db).get_yearly_dashboard(year)
        })
    except Exception as e:
        raise http_error(e, "la lecture du tableau de bord annuel")
