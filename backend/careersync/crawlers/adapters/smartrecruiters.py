from __future__ import annotations

import logging
from typing import Any

import httpx

from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    join_description,
    join_location,
    map_employment_type,
)
from careersync.crawlers.base import CanonicalJob, ProviderFetchError
from careersync.crawlers.http_helpers import require_json

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
PROBE_LIMIT = 10


class SmartRecruitersAdapter(JsonBoardAdapter):
    """SmartRecruiters public postings API.

    The probe reads only the first ``PROBE_LIMIT`` postings; a full fetch
    pages through ``offset``/``limit`` until ``totalFound`` is reached.
    """

    source_name = "smartrecruiters"
    partial_probe = True

    def board_url(self, slug: str) -> str:
        return f"https://api.smartrecruiters.com/v1/companies/{slug}/postings?limit={PROBE_LIMIT}"

    def page_url(self, slug: str, offset: int) -> str:
        return f"https://api.smartrecruiters.com/v1/companies/{slug}/postings?offset={offset}&limit={PAGE_SIZE}"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        return as_list(payload.get("content")) if isinstance(payload, dict) else []

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        jobs: list[dict[str, Any]] = []
        offset = 0
        while True:
            try:
                payload = await require_json(client, self.page_url(slug, offset))
            except (httpx.HTTPError, ValueError) as exc:
                raise ProviderFetchError(f"smartrecruiters fetch failed for {slug}: {exc}") from exc
            page = self.extract_jobs(payload)
            jobs.extend(page)
            total = int(payload.get("totalFound") or 0) if isinstance(payload, dict) else 0
            offset += PAGE_SIZE
            if not page or offset >= total:
                break
        logger.debug("smartrecruiters: %s returned %d postings", slug, len(jobs))
        return jobs

    @staticmethod
    def _description(native: dict[str, Any]) -> str:
        sections = ((native.get("jobAd") or {}).get("sections")) or {}
        parts = [
            (sections.get(name) or {}).get("text")
            for name in ("jobDescription", "qualifications", "additionalInformation")
        ]
        return join_description(*parts)

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("name") or "").strip()
        location = native.get("location") or {}
        employment = (native.get("typeOfEmployment") or {}).get("label")
        return CanonicalJob(
            title=title,
            description=self._description(native) or fallback_description(title, company_domain),
            department=clean((native.get("department") or {}).get("label")),
            location=join_location(location.get("city"), location.get("region"), location.get("country")),
            work_type="remote" if location.get("remote") else "unknown",
            employment_type=map_employment_type(employment),
            apply_url=clean(native.get("ref_url")) or clean(native.get("ref")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("id")),
        )
