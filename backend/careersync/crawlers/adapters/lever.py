from __future__ import annotations

from typing import Any

from careersync.core.config import settings
from careersync.crawlers.adapters.common import (
    JsonBoardAdapter,
    as_list,
    clean,
    fallback_description,
    map_employment_type,
    map_work_type,
)
from careersync.crawlers.base import CanonicalJob
from careersync.crawlers.http_helpers import MinIntervalLimiter


class LeverAdapter(JsonBoardAdapter):
    """Lever postings API. Lever allows 2 requests/second, enforced per adapter instance."""

    source_name = "lever"

    def __init__(self, min_interval: float | None = None):
        self.limiter = MinIntervalLimiter(settings.lever_min_interval_s if min_interval is None else min_interval)

    async def before_request(self) -> None:
        await self.limiter.wait()

    def board_url(self, slug: str) -> str:
        return f"https://api.lever.co/v0/postings/{slug}?mode=json"

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        # Lever answers with a bare array
        return as_list(payload)

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("text") or "").strip()
        categories = native.get("categories") or {}
        salary = native.get("salaryRange") or {}
        return CanonicalJob(
            title=title,
            description=native.get("description") or native.get("descriptionPlain") or fallback_description(title, company_domain),
            department=clean(categories.get("department")),
            location=clean(categories.get("location")),
            work_type=map_work_type(native.get("workplaceType")),
            employment_type=map_employment_type(categories.get("commitment")),
            apply_url=clean(native.get("applyUrl")) or clean(native.get("hostedUrl")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("id")),
            salary_min=salary.get("min"),
            salary_max=salary.get("max"),
            salary_currency=salary.get("currency") or ("USD" if salary else None),
        )
