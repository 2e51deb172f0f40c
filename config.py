import os
from dotenv import load_dotenv

load_dotenv()

# Base de données SQLite par défaut
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./finance.db")

# Revenu mensuel utilisé quand aucun revenu n'est saisi pour le mois
MONTHLY_INCOME = float(os.getenv("MONTHLY_INCOME", "8000"))

BACKUP_DIR = os.getenv("BACKUP_DIR", "backups")
AUTO_BACKUP_ENABLED = os.getenv("AUTO_BACKUP_ENABLED", "true").lower() in ("1", "true", "yes")
AUTO_BACKUP_INTERVAL_HOURS = float(os.getenv("AUTO_BACKUP_INTERVAL_HOURS", "6"))
AUTO_BACKUP_KEEP = int(os.getenv("AUTO_BACKUP_KEEP", "20"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
