from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from careersync.db.database import Base


class AtsAccount(Base):
    """Last confirmed ATS account per company domain."""

    __tablename__ = "ats_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    company_domain: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    provider: Mapped[str] = mapped_column(String(64), nullable=False)
    slug: Mapped[str] = mapped_column(String(512), nullable=False)
    job_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_checked_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
