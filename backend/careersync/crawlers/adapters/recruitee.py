from __future__ import annotations

from typing import Any

from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    join_description,
    join_location,
    map_employment_type,
)
from careersync.crawlers.base import CanonicalJob


class RecruiteeAdapter(JsonBoardAdapter):
    source_name = "recruitee"

    def board_url(self, slug: str) -> str:
        return f"https://{slug}.recruitee.com/api/offers/"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        return as_list(payload.get("offers")) if isinstance(payload, dict) else []

    @staticmethod
    def _work_type(native: dict[str, Any]) -> str:
        if native.get("remote"):
            return "remote"
        if native.get("hybrid"):
            return "hybrid"
        if native.get("on_site"):
            return "onsite"
        return "unknown"

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        description = join_description(native.get("description"), native.get("requirements"))
        location = clean(native.get("location")) or join_location(native.get("city"), native.get("country"))
        return CanonicalJob(
            title=title,
            description=description or fallback_description(title, company_domain),
            department=clean(native.get("department")),
            location=location,
            work_type=self._work_type(native),
            employment_type=map_employment_type(native.get("employment_type_code")),
            apply_url=clean(native.get("careers_apply_url")) or clean(native.get("careers_url")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("id")),
        )
