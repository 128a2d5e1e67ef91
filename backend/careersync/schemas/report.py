from __future__ import annotations
from datetime import datetime

from pydantic import BaseModel


class CompanySyncDetailOut(BaseModel):
    company: str
    provider: str | None = None
    slug: str | None = None
    job_count: int = 0
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    unchanged: int = 0
    error: str | None = None


class SyncReportOut(BaseModel):
    checked: int = 0
    discovered: int = 0
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    errors: int = 0
    details: list[CompanySyncDetailOut] = []


class AtsAccountOut(BaseModel):
    company_domain: str
    provider: str
    slug: str
    job_count: int
    last_checked_at: datetime
    last_synced_at: datetime | None

    class Config:
        from_attributes = True
