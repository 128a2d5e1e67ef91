from __future__ import annotations

import re
from typing import Any

import httpx

from careersync.crawlers.adapters.common import (
    GUID,
    CareersPageAdapter,
    as_list,
    clean,
    fallback_description,
    first_match,
    join_description,
    map_employment_type,
    map_work_type,
)
from careersync.crawlers.base import CanonicalJob, ProviderFetchError
from careersync.crawlers.http_helpers import require_json

GUID_PATTERNS = [
    re.compile(rf"recruiting\.paylocity\.com/recruiting/[^\"'\s]*?/({GUID})", re.I),
    re.compile(rf"recruiting\.paylocity\.com/recruiting/v2/api/feed/jobs/({GUID})", re.I),
    re.compile(rf"paylocity[^\"']*?({GUID})", re.I),
]


def extract_guid(html: str) -> str | None:
    match = first_match(GUID_PATTERNS, html)
    return match.group(1).lower() if match else None


class PaylocityAdapter(CareersPageAdapter):
    """Paylocity job feed keyed by the company GUID found in careers-page embeds."""

    source_name = "paylocity"

    def extract_credential(self, html: str) -> str | None:
        return extract_guid(html)

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        url = f"https://recruiting.paylocity.com/recruiting/v2/api/feed/jobs/{slug}"
        try:
            payload = await require_json(client, url)
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderFetchError(f"paylocity fetch failed for {slug}: {exc}") from exc
        if isinstance(payload, list):
            return as_list(payload)
        if isinstance(payload, dict):
            return as_list(payload.get("jobs"))
        return []

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        description = join_description(native.get("description"), native.get("requirements"))
        location = clean(native.get("location"))
        return CanonicalJob(
            title=title,
            description=description or fallback_description(title, company_domain),
            department=clean(native.get("department")),
            location=location,
            work_type=map_work_type(location),
            employment_type=map_employment_type(native.get("employmentType")),
            apply_url=clean(native.get("url")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("requisitionId") or native.get("id")),
        )
