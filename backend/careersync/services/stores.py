from __future__ import annotations
from datetime import datetime

from sqlalchemy.orm import Session

from careersync.crawlers.base import CanonicalJob
from careersync.models.ats_account import AtsAccount
from careersync.models.job import Job
from careersync.models.sync_run import SyncRun

MUTABLE_FIELDS = (
    "title",
    "description",
    "department",
    "location",
    "work_type",
    "employment_type",
    "apply_url",
    "salary_min",
    "salary_max",
    "salary_currency",
)


class JobStore:
    """Persisted jobs. Every write commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    def list_active(self, company_domain: str, source: str) -> list[Job]:
        return (
            self.db.query(Job)
            .filter(Job.company_domain == company_domain, Job.source == source, Job.status == "active")
            .all()
        )

    def get(self, company_domain: str, external_id: str) -> Job | None:
        return (
            self.db.query(Job)
            .filter(Job.company_domain == company_domain, Job.external_id == external_id)
            .first()
        )

    def create(self, job: CanonicalJob) -> Job:
        now = datetime.utcnow()
        record = Job(
            external_id=job.external_id,
            source=job.source,
            company_domain=job.company_domain,
            status="active",
            created_at=now,
            updated_at=now,
            **{name: getattr(job, name) for name in MUTABLE_FIELDS},
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def update(self, record: Job, job: CanonicalJob) -> bool:
        """Write the fresh fields and reactivate; False when nothing would change."""
        changes = {name: getattr(job, name) for name in MUTABLE_FIELDS if getattr(record, name) != getattr(job, name)}
        if not changes and record.status == "active":
            return False
        for name, value in changes.items():
            setattr(record, name, value)
        record.status = "active"
        record.closed_at = None
        record.updated_at = datetime.utcnow()
        self.db.commit()
        return True

    def mark_closed(self, record: Job) -> None:
        now = datetime.utcnow()
        record.status = "closed"
        record.closed_at = now
        record.updated_at = now
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


class AccountCache:
    """Which provider/slug was last confirmed for each company domain."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, company_domain: str) -> AtsAccount | None:
        return self.db.query(AtsAccount).filter(AtsAccount.company_domain == company_domain).first()

    def known_domains(self) -> set[str]:
        return {domain for (domain,) in self.db.query(AtsAccount.company_domain).all()}

    def all(self) -> list[AtsAccount]:
        return self.db.query(AtsAccount).order_by(AtsAccount.company_domain).all()

    def record_discovery(self, company_domain: str, provider: str, slug: str, job_count: int) -> AtsAccount:
        now = datetime.utcnow()
        row = self.get(company_domain)
        if row is None:
            row = AtsAccount(company_domain=company_domain)
            self.db.add(row)
        row.provider = provider
        row.slug = slug
        row.job_count = job_count
        row.last_checked_at = now
        row.last_synced_at = now
        self.db.commit()
        self.db.refresh(row)
        return row

    def record_refresh(self, company_domain: str, job_count: int) -> None:
        row = self.get(company_domain)
        if row is None:
            return
        now = datetime.utcnow()
        row.job_count = job_count
        row.last_checked_at = now
        row.last_synced_at = now
        self.db.commit()

    def touch_checked(self, company_domain: str) -> None:
        row = self.get(company_domain)
        if row is None:
            return
        row.last_checked_at = datetime.utcnow()
        self.db.commit()


class SyncRunLog:
    def __init__(self, db: Session):
        self.db = db

    def start(self, sync_type: str) -> SyncRun:
        run = SyncRun(sync_type=sync_type, started_at=datetime.utcnow(), status="running")
        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        return run

    def finish(self, run: SyncRun, counts: dict, error_summary: str = "") -> SyncRun:
        run.checked_count = counts.get("checked", 0)
        run.discovered_count = counts.get("discovered", 0)
        run.created_count = counts.get("created", 0)
        run.updated_count = counts.get("updated", 0)
        run.deactivated_count = counts.get("deactivated", 0)
        run.error_count = counts.get("errors", 0)
        run.status = "success" if not run.error_count else "partial"
        run.error_summary = error_summary[:2000]
        run.finished_at = datetime.utcnow()
        self.db.commit()
        return run

    def latest(self, limit: int = 20) -> list[SyncRun]:
        return self.db.query(SyncRun).order_by(SyncRun.started_at.desc()).limit(limit).all()
