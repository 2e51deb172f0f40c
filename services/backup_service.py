"""
Sauvegarde et restauration de la base SQLite : copie du fichier, export et
import JSON de toutes les tables.
"""
import json
import logging
import os
import shutil
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy import Date, DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from database.database import Base
from models.backup import BackupInfo

logger = logging.getLogger(__name__)

def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Type non sérialisable: {type(value).__name__}")

def _check_file_name(file_name: str) -> str:
    if not file_name or file_name in (".", "..") or os.path.basename(file_name) != file_name:
        raise ValueError(f"Nom de fichier invalide: {file_name}")
    return file_name

class BackupService:
    def __init__(self, engine: Engine, backup_dir: str):
        self.engine = engine
        self.backup_dir = backup_dir
        os.makedirs(self.backup_dir, exist_ok=True)

    @property
    def database_path(self) -> str:
        path = self.engine.url.database
        if not path or path == ":memory:":
            raise RuntimeError("La base de données n'est pas un fichier SQLite")
        return path

    def backup_path(self, file_name: str) -> str:
        return os.path.join(self.backup_dir, _check_file_name(file_name))

    def create_backup(self, backup_name: Optional[str] = None) -> str:
        """Copie le fichier de base de données et écrit ses métadonnées"""
        backup_name = backup_name or f"backup_{datetime.utcnow():%Y%m%d_%H%M%S}"
        _check_file_name(backup_name)
        backup_file_name = f"{backup_name}.db"
        backup_path = os.path.join(self.backup_dir, backup_file_name)

        source_path = self.database_path
        if not os.path.exists(source_path):
            raise FileNotFoundError(f"Base de données introuvable: {source_path}")

        # Ferme les connexions inactives avant la copie
        self.engine.dispose()
        shutil.copyfile(source_path, backup_path)

        now = datetime.utcnow()
        metadata = BackupInfo(
            file_name=backup_file_name,
            created_at=now,
            description=f"Backup created at {now:%Y-%m-%d %H:%M:%S} UTC",
            file_size=os.path.getsize(backup_path)
        )
        with open(os.path.join(self.backup_dir, f"{backup_name}.json"), "w", encoding="utf-8") as f:
            f.write(metadata.model_dump_json(indent=2))

        logger.info(f"Sauvegarde créée: {backup_file_name}")
        return backup_file_name

    def list_backups(self) -> List[BackupInfo]:
        """Sauvegardes existantes, les plus récentes d'abord"""
        backups = []
        for entry in sorted(os.listdir(self.backup_dir)):
            if not entry.endswith(".json"):
                continue
            metadata_path = os.path.join(self.backup_dir, entry)
            try:
                with open(metadata_path, encoding="utf-8") as f:
                    backup = BackupInfo.model_validate_json(f.read())
            except (OSError, ValueError) as e:
                logger.warning(f"Métadonnées illisibles {metadata_path}: {e}")
                continue

            backup_file = os.path.join(self.backup_dir, backup.file_name)
            if os.path.exists(backup_file):
                backup.file_size = os.path.getsize(backup_file)
                backups.append(backup)

        return sorted(backups, key=lambda b: b.created_at, reverse=True)

    def restore_backup(self, backup_file_name: str) -> bool:
        """Remplace la base courante par une sauvegarde (après en avoir sauvegardé l'état actuel)"""
        if not backup_file_name.endswith(".db"):
            raise ValueError(f"Seuls les fichiers .db peuvent être restaurés: {backup_file_name}")
        backup_path = self.backup_path(backup_file_name)
        if not os.path.exists(backup_path):
            logger.error(f"Sauvegarde introuvable: {backup_file_name}")
            return False

        self.create_backup(f"before_restore_{datetime.utcnow():%Y%m%d_%H%M%S}")
        self.engine.dispose()
        shutil.copyfile(backup_path, self.database_path)

        logger.info(f"Base restaurée depuis: {backup_file_name}")
        return True

    def export_data(self) -> str:
        """Export JSON de toutes les tables"""
        export = {'exported_at': datetime.utcnow()}
        with self.engine.connect() as conn:
            for table in Base.metadata.sorted_tables:
                export[table.name] = [dict(row) for row in conn.execute(table.select()).mappings()]
        return json.dumps(export, default=_json_default, indent=2, ensure_ascii=False)

    def import_data(self, json_data: str) -> Dict[str, int]:
        """
        Remplace tout le contenu de la base par celui d'un export JSON.

        Les tables sont vidées (enfants d'abord) puis remplies (parents d'abord)
        dans une seule transaction : en cas d'erreur rien n'est modifié.
        """
        try:
            data = json.loads(json_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON invalide: {e}")
        if not isinstance(data, dict):
            raise ValueError("Le document d'import doit être un objet JSON")

        rows_by_table = {}
        for table in Base.metadata.sorted_tables:
            rows = data.get(table.name) or []
            if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
                raise ValueError(f"Section invalide: {table.name}")
            rows_by_table[table.name] = [self._convert_row(table, row) for row in rows]

        self.create_backup(f"before_import_{datetime.utcnow():%Y%m%d_%H%M%S}")

        try:
            with self.engine.begin() as conn:
                for table in reversed(Base.metadata.sorted_tables):
                    conn.execute(table.delete())
                for table in Base.metadata.sorted_tables:
                    if rows_by_table[table.name]:
                        conn.execute(table.insert(), rows_by_table[table.name])
        except IntegrityError as e:
            # Doublons ou clés étrangères sans cible : la transaction est annulée
            raise ValueError(f"Données incohérentes: {e.orig}") from e

        counts = {name: len(rows) for name, rows in rows_by_table.items()}
        logger.info(f"Données importées: {counts}")
        return counts

    @staticmethod
    def _convert_row(table, row: Dict) -> Dict:
        converted = {}
        for column in table.columns:
            if column.name not in row:
                continue
            value = row[column.name]
            if isinstance(value, str):
                try:
                    if isinstance(column.type, DateTime):
                        value = datetime.fromisoformat(value)
                    elif isinstance(column.type, Date):
                        value = date.fromisoformat(value[:10])
                except ValueError:
                    raise ValueError(f"Date invalide pour {table.name}.{column.name}: {value}")
            converted[column.name] = value
        return converted

    def cleanup_old_backups(self, keep_count: int = 10) -> List[str]:
        """Supprime les sauvegardes au-delà des `keep_count` plus récentes"""
        deleted = []
        for backup in self.list_backups()[max(0, keep_count):]:
            base_name = os.path.splitext(backup.file_name)[0]
            for path in (os.path.join(self.backup_dir, backup.file_name),
                         os.path.join(self.backup_dir, f"{base_name}.json")):
                if os.path.exists(path):
                    os.remove(path)
            deleted.append(backup.file_name)
            logger.info(f"Ancienne sauvegarde supprimée: {backup.file_name}")
        return deleted
