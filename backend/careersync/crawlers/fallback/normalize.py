from __future__ import annotations

from careersync.crawlers.adapters.common import fallback_description, map_employment_type, map_work_type
from careersync.crawlers.base import CanonicalJob, RawJob
from careersync.utils.hash import fallback_job_hash

SOURCE = "fallback"


def normalize_raw_job(raw: RawJob, company_domain: str) -> CanonicalJob:
    title = raw.title.strip()
    return CanonicalJob(
        title=title,
        description=fallback_description(title, company_domain),
        department=raw.department,
        location=raw.location,
        work_type=map_work_type(raw.location),
        employment_type=map_employment_type(title),
        apply_url=raw.url,
        company_domain=company_domain,
        source=SOURCE,
        external_id=f"{SOURCE}:{fallback_job_hash(raw.url, title, raw.location)}",
    )


def normalize_raw_jobs(raw_jobs: list[RawJob], company_domain: str) -> list[CanonicalJob]:
    return [normalize_raw_job(raw, company_domain) for raw in raw_jobs if raw.title and raw.title.strip()]
