from __future__ import annotations
from datetime import datetime

from pydantic import BaseModel


class SyncRunOut(BaseModel):
    id: int
    sync_type: str
    started_at: datetime
    finished_at: datetime | None
    checked_count: int
    discovered_count: int
    created_count: int
    updated_count: int
    deactivated_count: int
    error_count: int
    status: str
    error_summary: str

    class Config:
        from_attributes = True
