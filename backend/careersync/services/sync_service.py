from __future__ import annotations
import logging
from dataclasses import asdict, dataclass, field

from sqlalchemy.exc import IntegrityError

from careersync.crawlers.base import CanonicalJob
from careersync.services.stores import JobStore

logger = logging.getLogger(__name__)


@dataclass
class SyncDelta:
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    unchanged: int = 0


@dataclass
class CompanySyncDetail:
    company: str
    provider: str | None = None
    slug: str | None = None
    job_count: int = 0
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    unchanged: int = 0
    error: str | None = None

    def apply(self, delta: SyncDelta) -> None:
        self.created += delta.created
        self.updated += delta.updated
        self.deactivated += delta.deactivated
        self.unchanged += delta.unchanged


@dataclass
class SyncReport:
    checked: int = 0
    discovered: int = 0
    created: int = 0
    updated: int = 0
    deactivated: int = 0
    errors: int = 0
    details: list[CompanySyncDetail] = field(default_factory=list)

    def add(self, detail: CompanySyncDetail, discovered: bool = False) -> None:
        self.checked += 1
        self.details.append(detail)
        if detail.error:
            self.errors += 1
            return
        if discovered:
            self.discovered += 1
        self.created += detail.created
        self.updated += detail.updated
        self.deactivated += detail.deactivated

    def merge(self, other: SyncReport) -> None:
        self.checked += other.checked
        self.discovered += other.discovered
        self.created += other.created
        self.updated += other.updated
        self.deactivated += other.deactivated
        self.errors += other.errors
        self.details.extend(other.details)

    def counts(self) -> dict[str, int]:
        data = self.as_dict()
        data.pop("details")
        return data

    def error_summary(self) -> str:
        return "\n".join(f"{d.company}: {d.error}" for d in self.details if d.error)

    def as_dict(self) -> dict:
        return asdict(self)


def sync_company_jobs(store: JobStore, company_domain: str, source: str, jobs: list[CanonicalJob]) -> SyncDelta:
    """Reconcile one company's fresh postings from ``source`` with what is stored.

    Upserts by external id, then closes every previously active posting the
    fetch no longer contains. Running it twice with the same input changes
    nothing the second time.
    """
    delta = SyncDelta()
    active = {record.external_id: record for record in store.list_active(company_domain, source)}
    seen: set[str] = set()

    for job in jobs:
        if job.external_id in seen:
            continue
        seen.add(job.external_id)

        record = active.get(job.external_id) or store.get(company_domain, job.external_id)
        if record is None:
            try:
                store.create(job)
                delta.created += 1
                continue
            except IntegrityError:
                # written concurrently under the same external id
                store.rollback()
                record = store.get(company_domain, job.external_id)
                if record is None:
                    raise
        if store.update(record, job):
            delta.updated += 1
        else:
            delta.unchanged += 1

    for external_id, record in active.items():
        if external_id not in seen:
            store.mark_closed(record)
            delta.deactivated += 1

    logger.info(
        "sync %s/%s: %d created, %d updated, %d deactivated, %d unchanged",
        company_domain,
        source,
        delta.created,
        delta.updated,
        delta.deactivated,
        delta.unchanged,
    )
    return delta
