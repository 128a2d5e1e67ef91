from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from careersync.core.config import settings
from careersync.crawlers.adapters.common import clean, fallback_description, map_work_type
from careersync.crawlers.base import CanonicalJob, ProbeHit, ProviderAdapter, ProviderFetchError
from careersync.crawlers.http_helpers import JSON_HEADERS, post_json
from careersync.crawlers.slugs import dedupe, slug_parts

logger = logging.getLogger(__name__)

DATACENTERS = ("wd1", "wd3", "wd5")
SITE_NAMES = ("External", "External_Career_Site", "Careers")
PAGE_SIZE = 20
PROBE_LIMIT = 5


def parse_slug(slug: str) -> tuple[str, str, str]:
    """``acme|wd5|External`` -> (company, datacenter, site)."""
    parts = slug.split("|")
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"invalid workday slug {slug!r}, expected 'company|datacenter|site'")
    return parts[0], parts[1], parts[2]


def search_url(company: str, datacenter: str, site: str) -> str:
    return f"https://{company}.{datacenter}.myworkdayjobs.com/wday/cxs/{company}/{site}/jobs"


class WorkdayAdapter(ProviderAdapter):
    """Workday career sites have no predictable slug.

    Discovery cross-probes datacenters x company guesses x common site names.
    Probes for one datacenter run concurrently under a semaphore; datacenters
    are tried one after another and the first with a hit wins.
    """

    source_name = "workday"
    partial_probe = True

    def __init__(self, max_jobs: int | None = None, concurrency: int | None = None):
        self.max_jobs = max_jobs or settings.workday_max_jobs
        self.concurrency = concurrency or settings.workday_probe_concurrency

    def company_guesses(self, company_domain: str) -> list[str]:
        parts = slug_parts(company_domain)
        stripped = parts["stripped"]
        return dedupe([stripped, parts["hyphenated"], parts["base"], stripped[:1].upper() + stripped[1:]])

    async def _probe_one(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        company: str,
        datacenter: str,
        site: str,
    ) -> ProbeHit | None:
        async with semaphore:
            payload = await post_json(
                client,
                search_url(company, datacenter, site),
                {"limit": PROBE_LIMIT, "offset": 0, "searchText": ""},
                timeout=settings.probe_timeout_s,
            )
        if not isinstance(payload, dict):
            return None
        jobs = [job for job in payload.get("jobPostings") or [] if isinstance(job, dict)]
        if not jobs:
            return None
        return ProbeHit(slug=f"{company}|{datacenter}|{site}", jobs=jobs)

    async def probe(self, company_domain: str, client: httpx.AsyncClient) -> ProbeHit | None:
        companies = self.company_guesses(company_domain)
        for datacenter in DATACENTERS:
            semaphore = asyncio.Semaphore(self.concurrency)
            results = await asyncio.gather(*(
                self._probe_one(client, semaphore, company, datacenter, site)
                for company in companies
                for site in SITE_NAMES
            ))
            for hit in results:
                if hit is not None:
                    logger.info("workday: %s found at %s", company_domain, hit.slug)
                    return hit
        return None

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        try:
            company, datacenter, site = parse_slug(slug)
        except ValueError as exc:
            raise ProviderFetchError(str(exc)) from exc
        url = search_url(company, datacenter, site)
        jobs: list[dict[str, Any]] = []
        offset = 0
        while True:
            try:
                resp = await client.post(
                    url,
                    json={"limit": PAGE_SIZE, "offset": offset, "searchText": ""},
                    headers=JSON_HEADERS,
                    timeout=settings.fetch_timeout_s,
                )
                resp.raise_for_status()
                payload = resp.json()
            except (httpx.HTTPError, ValueError) as exc:
                raise ProviderFetchError(f"workday fetch failed for {slug}: {exc}") from exc
            if not isinstance(payload, dict):
                raise ProviderFetchError(f"workday returned an unexpected payload for {slug}")
            page = [job for job in payload.get("jobPostings") or [] if isinstance(job, dict)]
            jobs.extend(page)
            total = int(payload.get("total") or 0)
            if not page or len(jobs) >= total:
                break
            if len(jobs) >= self.max_jobs:
                logger.warning("workday: capping %s at %d jobs (total %d)", slug, self.max_jobs, total)
                break
            offset += PAGE_SIZE
        return jobs[: self.max_jobs]

    @staticmethod
    def _department(native: dict[str, Any]) -> str | None:
        subtitles = native.get("subtitles") or []
        if subtitles and isinstance(subtitles[0], dict):
            instances = subtitles[0].get("instances") or []
            if instances and isinstance(instances[0], dict):
                return clean(instances[0].get("text"))
        return None

    @staticmethod
    def native_id(native: dict[str, Any]) -> str:
        bullets = native.get("bulletFields") or []
        if bullets and bullets[0]:
            # first bullet is usually the requisition id
            return str(bullets[0])
        return str(native.get("externalPath") or "").replace("/", "_")

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        apply_url = None
        if slug:
            company, datacenter, site = parse_slug(slug)
            apply_url = f"https://{company}.{datacenter}.myworkdayjobs.com/en-US/{site}{native.get('externalPath') or ''}"
        location = clean(native.get("locationsText"))
        return CanonicalJob(
            title=title,
            description=fallback_description(title, company_domain),
            department=self._department(native),
            location=location,
            work_type=map_work_type(location),
            employment_type="full_time",
            apply_url=apply_url,
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(self.native_id(native)),
        )
