from __future__ import annotations

from typing import Any

from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    join_location,
    map_employment_type,
    map_work_type,
)
from careersync.crawlers.base import CanonicalJob
from careersync.crawlers.slugs import dedupe, slug_parts, standard_guesses


class PinpointAdapter(JsonBoardAdapter):
    source_name = "pinpoint"

    def guesses(self, company_domain: str) -> list[str]:
        parts = slug_parts(company_domain)
        return dedupe([
            *standard_guesses(company_domain),
            "workwithus",
            f"{parts['hyphenated']}-careers",
        ])

    def board_url(self, slug: str) -> str:
        return f"https://{slug}.pinpointhq.com/postings.json"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        return as_list(payload.get("data")) if isinstance(payload, dict) else []

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        location = native.get("location") or {}
        if not isinstance(location, dict):
            location = {"name": location}
        workplace = native.get("workplace_type") or location.get("name")
        return CanonicalJob(
            title=title,
            description=native.get("description") or fallback_description(title, company_domain),
            department=clean((native.get("department") or {}).get("name")),
            location=join_location(location.get("city"), location.get("province") or location.get("region"), location.get("country"))
            or clean(location.get("name")),
            work_type=map_work_type(workplace),
            employment_type=map_employment_type(native.get("employment_type")),
            apply_url=clean(native.get("application_url")) or clean(native.get("url")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("id")),
        )
