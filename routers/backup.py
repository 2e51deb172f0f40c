import os
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse, JSONResponse, Response

from config import BACKUP_DIR
from database.database import engine
from models.backup import BackupResponse, CleanupRequest, CreateBackupRequest
from routers.errors import http_error
from services.backup_service import BackupService

router = APIRouter(prefix="/api/backup", tags=["backup"])

_backup_service: Optional[BackupService] = None

def get_backup_service() -> BackupService:
    """Service de sauvegarde partagé, lié au moteur de l'application"""
    global _backup_service
    if _backup_service is None:
        _backup_service = BackupService(engine, BACKUP_DIR)
    return _backup_service

@router.post("/create")
async def create_backup(request: Optional[CreateBackupRequest] = None,
                        service: BackupService = Depends(get_backup_service)):
    try:
        file_name = service.create_backup(request.name if request else None)
        return JSONResponse(BackupResponse(
            success=True,
            message="Backup created successfully",
            backup_file_name=file_name
        ).model_dump())
    except Exception as e:
        raise http_error(e, "la création de la sauvegarde")

@router.get("/list")
async def list_backups(service: BackupService = Depends(get_backup_service)):
    try:
        return JSONResponse({
            "success": True,
            "backups": [b.model_dump(mode="json") for b in service.list_backups()]
        })
    except Exception as e:
        raise http_error(e, "la lecture des sauvegardes")

@router.post("/restore/{backup_file_name}")
async def restore_backup(backup_file_name: str, service: BackupService = Depends(get_backup_service)):
    """
    Restaure la base depuis une sauvegarde
    """
    try:
        if not service.restore_backup(backup_file_name):
            raise HTTPException(status_code=400, detail="Failed to restore backup: file not found")
        return JSONResponse(BackupResponse(
            success=True,
            message="Database restored successfully"
        ).model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "la restauration de la sauvegarde")

@router.get("/export")
async def export_data(service: BackupService = Depends(get_backup_service)):
    """
    Exporte toutes les données au format JSON (fichier téléchargeable)
    """
    try:
        file_name = f"finance_export_{datetime.utcnow():%Y%m%d_%H%M%S}.json"
        return Response(
            content=service.export_data().encode("utf-8"),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{file_name}"'}
        )
    except Exception as e:
        raise http_error(e, "l'export des données")

@router.post("/import")
async def import_data(file: UploadFile = File(...), service: BackupService = Depends(get_backup_service)):
    """
    Importe un export JSON et remplace toutes les données
    """
    try:
        contents = await file.read()
        if not contents:
            raise HTTPException(status_code=400, detail="No file provided")
        try:
            json_data = contents.decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="Le fichier doit être encodé en UTF-8")

        counts = service.import_data(json_data)
        return JSONResponse({
            **BackupResponse(success=True, message="Data imported successfully").model_dump(),
            "imported": counts
        })
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "l'import des données")

@router.post("/cleanup")
async def cleanup_old_backups(request: Optional[CleanupRequest] = None,
                              service: BackupService = Depends(get_backup_service)):
    try:
        keep_count = request.keep_count if request else 10
        deleted = service.cleanup_old_backups(keep_count)
        return JSONResponse({
            **BackupResponse(
                success=True,
                message=f"Old backups cleaned up, keeping {keep_count} most recent"
            ).model_dump(),
            "deleted": deleted
        })
    except Exception as e:
        raise http_error(e, "le nettoyage des sauvegardes")

@router.get("/download/{backup_file_name}")
async def download_backup(backup_file_name: str, service: BackupService = Depends(get_backup_service)):
    try:
        backup_path = service.backup_path(backup_file_name)
        if not os.path.exists(backup_path):
            raise HTTPException(status_code=404, detail="Backup file not found")
        return FileResponse(backup_path, media_type="application/octet-stream", filename=backup_file_name)
    except HTTPException:
        raise
    except Exception as e:
        raise http_error(e, "le téléchargement de la sauvegarde")
