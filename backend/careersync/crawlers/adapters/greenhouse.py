from __future__ import annotations

from typing import Any

from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    strip_html,
)
from careersync.crawlers.base import CanonicalJob


class GreenhouseAdapter(JsonBoardAdapter):
    source_name = "greenhouse"

    def board_url(self, slug: str) -> str:
        return f"https://boards-api.greenhouse.io/v1/boards/{slug}/jobs?content=true"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        return as_list(payload.get("jobs")) if isinstance(payload, dict) else []

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        content = native.get("content") or ""
        # content arrives entity-escaped HTML; BeautifulSoup unescapes while stripping
        description = strip_html(strip_html(content))[:2000] if content else fallback_description(title, company_domain)
        departments = as_list(native.get("departments"))
        location = native.get("location") or {}
        return CanonicalJob(
            title=title,
            description=description,
            department=clean(departments[0].get("name")) if departments else None,
            location=clean(location.get("name")) if isinstance(location, dict) else None,
            work_type="unknown",
            employment_type="full_time",
            apply_url=clean(native.get("absolute_url")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("id")),
        )
