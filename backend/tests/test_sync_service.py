from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from careersync.crawlers.base import CanonicalJob
from careersync.db.database import Base
from careersync.models import Job
from careersync.services.stores import JobStore, SyncRunLog
from careersync.services.sync_service import CompanySyncDetail, SyncReport, sync_company_jobs


def make_session():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    return TestingSession()


def job(native_id: str, title: str = "Engineer", domain: str = "acme.com", source: str = "greenhouse") -> CanonicalJob:
    return CanonicalJob(
        title=title,
        description=f"About {title}",
        company_domain=domain,
        source=source,
        external_id=f"{source}:{native_id}",
        location="Remote",
        work_type="remote",
    )


def test_sync_creates_updates_and_closes_missing_postings():
    db = make_session()
    store = JobStore(db)
    sync_company_jobs(store, "acme.com", "greenhouse", [job(str(i)) for i in range(1, 6)])

    fresh = [job("1", "Staff Engineer"), job("2", "Lead Engineer"), job("3", "Principal Engineer"), job("6")]
    delta = sync_company_jobs(store, "acme.com", "greenhouse", fresh)

    assert (delta.created, delta.updated, delta.deactivated, delta.unchanged) == (1, 3, 2, 0)
    closed = db.query(Job).filter(Job.status == "closed").all()
    assert sorted(r.external_id for r in closed) == ["greenhouse:4", "greenhouse:5"]
    assert all(r.closed_at is not None for r in closed)
    assert store.get("acme.com", "greenhouse:1").title == "Staff Engineer"


def test_sync_is_idempotent():
    db = make_session()
    store = JobStore(db)
    jobs = [job("1"), job("2")]

    first = sync_company_jobs(store, "acme.com", "greenhouse", jobs)
    second = sync_company_jobs(store, "acme.com", "greenhouse", jobs)

    assert first.created == 2
    assert (second.created, second.updated, second.deactivated, second.unchanged) == (0, 0, 0, 2)
    assert db.query(Job).count() == 2


def test_sync_dedupes_repeated_external_ids_within_a_fetch():
    db = make_session()

    delta = sync_company_jobs(JobStore(db), "acme.com", "greenhouse", [job("1"), job("1", "Duplicate")])

    assert delta.created == 1
    assert db.query(Job).one().title == "Engineer"


def test_reappearing_posting_is_reactivated_in_place():
    db = make_session()
    store = JobStore(db)
    sync_company_jobs(store, "acme.com", "greenhouse", [job("1"), job("2")])
    original_id = store.get("acme.com", "greenhouse:2").id

    sync_company_jobs(store, "acme.com", "greenhouse", [job("1")])
    assert store.get("acme.com", "greenhouse:2").status == "closed"

    delta = sync_company_jobs(store, "acme.com", "greenhouse", [job("1"), job("2")])

    record = store.get("acme.com", "greenhouse:2")
    assert delta.updated == 1
    assert record.id == original_id
    assert record.status == "active"
    assert record.closed_at is None
    assert db.query(Job).count() == 2


def test_sync_only_closes_postings_of_the_same_company_and_source():
    db = make_session()
    store = JobStore(db)
    sync_company_jobs(store, "acme.com", "greenhouse", [job("1")])
    sync_company_jobs(store, "beta.io", "greenhouse", [job("9", domain="beta.io")])
    sync_company_jobs(store, "acme.com", "lever", [job("x", source="lever")])

    delta = sync_company_jobs(store, "acme.com", "greenhouse", [])

    assert delta.deactivated == 1
    assert store.get("beta.io", "greenhouse:9").status == "active"
    assert store.get("acme.com", "lever:x").status == "active"


def test_same_requisition_id_at_two_companies_stays_separate():
    db = make_session()
    store = JobStore(db)
    sync_company_jobs(store, "acme.com", "workday", [job("R12345", "Analyst", source="workday")])

    delta = sync_company_jobs(
        store, "beta.io", "workday", [job("R12345", "Nurse", domain="beta.io", source="workday")]
    )

    assert delta.created == 1
    assert store.get("acme.com", "workday:R12345").title == "Analyst"
    assert store.get("beta.io", "workday:R12345").title == "Nurse"
    assert db.query(Job).count() == 2


def test_report_counts_errors_and_discoveries():
    report = SyncReport()
    ok = CompanySyncDetail(company="acme.com", provider="lever", created=2, updated=1)
    failed = CompanySyncDetail(company="beta.io", error="boom")

    report.add(ok, discovered=True)
    report.add(failed)

    assert report.counts() == {
        "checked": 2,
        "discovered": 1,
        "created": 2,
        "updated": 1,
        "deactivated": 0,
        "errors": 1,
    }
    assert report.error_summary() == "beta.io: boom"


def test_run_log_marks_partial_runs():
    db = make_session()
    log = SyncRunLog(db)

    clean_run = log.finish(log.start("refresh"), {"checked": 3})
    partial = log.finish(log.start("refresh"), {"checked": 3, "errors": 1}, "beta.io: boom")

    assert clean_run.status == "success"
    assert partial.status == "partial"
    assert partial.error_summary == "beta.io: boom"
    assert len(log.latest(limit=5)) == 2
