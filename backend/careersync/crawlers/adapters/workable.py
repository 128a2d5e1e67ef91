from __future__ import annotations

from typing import Any

from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    join_location,
)
from careersync.crawlers.base import CanonicalJob


class WorkableAdapter(JsonBoardAdapter):
    """Workable widget API: ``apply.workable.com/api/v1/widget/accounts/{slug}/``."""

    source_name = "workable"

    def board_url(self, slug: str) -> str:
        return f"https://apply.workable.com/api/v1/widget/accounts/{slug}/"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        return as_list(payload.get("jobs")) if isinstance(payload, dict) else []

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        location = native.get("location") or {}
        return CanonicalJob(
            title=title,
            description=fallback_description(title, company_domain),
            department=clean(native.get("department")),
            location=join_location(location.get("city"), location.get("region"), location.get("country")),
            work_type="remote" if location.get("telecommuting") else "onsite",
            employment_type="full_time",
            apply_url=clean(native.get("url")) or clean(native.get("application_url")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("shortcode")),
        )
