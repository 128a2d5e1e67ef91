from __future__ import annotations

from typing import Any

from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    map_work_type,
)
from careersync.crawlers.base import CanonicalJob

EMPLOYMENT_TYPES = {
    "FullTime": "full_time",
    "PartTime": "part_time",
    "Intern": "internship",
    "Contract": "contract",
    "Temporary": "contract",
}


class AshbyAdapter(JsonBoardAdapter):
    source_name = "ashby"

    def board_url(self, slug: str) -> str:
        return f"https://api.ashbyhq.com/posting-api/job-board/{slug}?includeCompensation=true"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        if not isinstance(payload, dict):
            return []
        return [job for job in as_list(payload.get("jobs")) if job.get("isListed")]

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        plain = native.get("descriptionPlain") or ""
        return CanonicalJob(
            title=title,
            description=plain[:2000] if plain else fallback_description(title, company_domain),
            department=clean(native.get("department")),
            location=clean(native.get("location")),
            work_type="remote" if native.get("isRemote") else map_work_type(native.get("workplaceType")),
            employment_type=EMPLOYMENT_TYPES.get(str(native.get("employmentType") or ""), "full_time"),
            apply_url=clean(native.get("applyUrl")) or clean(native.get("jobUrl")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("id")),
        )
