import asyncio
import logging
from datetime import datetime
from typing import Optional

from services.backup_service import BackupService

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 30 * 60

class AutoBackupService:
    """Sauvegarde périodique : au démarrage, à intervalle fixe et à l'arrêt"""

    def __init__(self, backup_service: BackupService, interval_hours: float = 6, keep_count: int = 20,
                 retry_delay_seconds: float = RETRY_DELAY_SECONDS):
        self.backup_service = backup_service
        self.interval_seconds = interval_hours * 3600
        self.keep_count = keep_count
        self.retry_delay_seconds = retry_delay_seconds
        self._task: Optional[asyncio.Task] = None

    async def create_backup(self, prefix: str) -> Optional[str]:
        name = f"{prefix}_{datetime.utcnow():%Y%m%d_%H%M%S}"
        try:
            file_name = await asyncio.to_thread(self.backup_service.create_backup, name)
        except Exception as e:
            logger.error(f"Échec de la sauvegarde automatique: {e}")
            return None
        logger.info(f"Sauvegarde automatique créée: {file_name}")
        return file_name

    async def run(self):
        logger.info("Service de sauvegarde automatique démarré")
        await self.create_backup("startup")

        # Après un échec, nouvel essai au bout du délai de reprise
        delay = self.interval_seconds
        while True:
            try:
                await asyncio.sleep(delay)
                if await self.create_backup("auto") is None:
                    delay = self.retry_delay_seconds
                    continue
                delay = self.interval_seconds
                await asyncio.to_thread(self.backup_service.cleanup_old_backups, self.keep_count)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Erreur du service de sauvegarde automatique: {e}")
                delay = self.retry_delay_seconds

        logger.info("Service de sauvegarde automatique arrêté")

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self.run())

    async def stop(self):
        """Arrête la boucle puis crée une dernière sauvegarde"""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Arrêt du service de sauvegarde, sauvegarde finale...")
        await self.create_backup("shutdown")
