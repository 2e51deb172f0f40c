import datetime
from pydantic import BaseModel
from typing import Optional

class BackupInfo(BaseModel):
    file_name: str
    created_at: datetime.datetime
    description: str = ""
    file_size: int = 0

class BackupResponse(BaseModel):
    success: bool
    message: str = ""
    backup_file_name: Optional[str] = None

class CreateBackupRequest(BaseModel):
    name: Optional[str] = None

class CleanupRequest(BaseModel):
    keep_count: int = 10
