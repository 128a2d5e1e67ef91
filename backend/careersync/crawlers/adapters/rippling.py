from __future__ import annotations

from typing import Any

from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    map_employment_type,
    map_work_type,
)
from careersync.crawlers.base import CanonicalJob
from careersync.crawlers.slugs import dedupe, slug_parts, standard_guesses


class RipplingAdapter(JsonBoardAdapter):
    source_name = "rippling"

    def guesses(self, company_domain: str) -> list[str]:
        parts = slug_parts(company_domain)
        # boards are commonly published as "<company>-jobs"
        return dedupe([
            f"{parts['base']}-jobs",
            f"{parts['hyphenated']}-jobs",
            *standard_guesses(company_domain),
        ])

    def board_url(self, slug: str) -> str:
        return f"https://api.rippling.com/platform/api/ats/v1/board/{slug}/jobs"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        if isinstance(payload, list):
            return as_list(payload)
        return as_list(payload.get("jobs")) if isinstance(payload, dict) else []

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("name") or native.get("title") or "").strip()
        department = native.get("department")
        if isinstance(department, dict):
            department = department.get("label") or department.get("name")
        location = native.get("workLocation")
        if isinstance(location, dict):
            location = location.get("label") or location.get("name")
        return CanonicalJob(
            title=title,
            description=native.get("description") or fallback_description(title, company_domain),
            department=clean(department),
            location=clean(location),
            work_type=map_work_type(location),
            employment_type=map_employment_type(native.get("employmentType")),
            apply_url=clean(native.get("url")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("uuid") or native.get("id")),
        )
