from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from careersync.db.database import Base


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        # requisition ids such as Workday's R12345 repeat across companies
        UniqueConstraint("company_domain", "external_id", name="uq_jobs_company_external_id"),
        Index("ix_jobs_company_source_status", "company_domain", "source", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    external_id: Mapped[str] = mapped_column(String(512), nullable=False)
    source: Mapped[str] = mapped_column(String(64), nullable=False)
    company_domain: Mapped[str] = mapped_column(String(256), nullable=False)

    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    work_type: Mapped[str] = mapped_column(String(16), default="unknown", nullable=False)
    employment_type: Mapped[str] = mapped_column(String(16), default="full_time", nullable=False)
    apply_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    salary_min: Mapped[Optional[float]] = mapped_column(nullable=True)
    salary_max: Mapped[Optional[float]] = mapped_column(nullable=True)
    salary_currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)
    posted_by: Mapped[str] = mapped_column(String(64), default="system-job-sync", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
