from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from config import (
    AUTO_BACKUP_ENABLED, AUTO_BACKUP_INTERVAL_HOURS, AUTO_BACKUP_KEEP,
    CORS_ORIGINS, HOST, LOG_LEVEL, PORT
)
from database.database import SessionLocal, init_db
from routers import backup, budget, dashboard, expenses, incomes, savings
from services.auto_backup_service import AutoBackupService
from services.budget_service import BudgetService

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

def seed_default_budget():
    """Crée les tables puis les périodes et catégories par défaut"""
    init_db()
    db = SessionLocal()
    try:
        BudgetService(db).initialize_default_budget()
    finally:
        db.close()

@asynccontextmanager
async def lifespan(app: FastAPI):
    seed_default_budget()

    auto_backup = None
    if AUTO_BACKUP_ENABLED:
        backup_service = backup.get_backup_service()
        try:
            backup_service.database_path
        except RuntimeError as e:
            # Base non fichier (ex: en mémoire) : pas de sauvegarde automatique
            logger.warning(f"Sauvegarde automatique désactivée: {e}")
        else:
            auto_backup = AutoBackupService(
                backup_service,
                interval_hours=AUTO_BACKUP_INTERVAL_HOURS,
                keep_count=AUTO_BACKUP_KEEP
            )
            auto_backup.start()

    yield

    if auto_backup is not None:
        await auto_backup.stop()

app = FastAPI(title="Finance Tracker API", version="1.0.0", lifespan=lifespan)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Les requêtes mal formées sont renvoyées en 400"""
    logger.info(f"Requête invalide {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "detail": jsonable_errors(exc)}
    )

app.include_router(expenses.router)
app.include_router(incomes.router)
app.include_router(budget.router)
app.include_router(savings.router)
app.include_router(dashboard.router)
app.include_router(backup.router)

@app.get("/")
async def root():
    return {"message": "Finance Tracker API"}

if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
