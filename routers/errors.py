import logging

from fastapi import HTTPException

from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

def http_error(e: Exception, action: str) -> HTTPException:
    """Traduit une exception métier en erreur HTTP (400, 404 ou 500)"""
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    logger.error(f"Erreur lors de {action}: {str(e)}")
    return HTTPException(status_code=500, detail=f"Erreur: {str(e)}")
