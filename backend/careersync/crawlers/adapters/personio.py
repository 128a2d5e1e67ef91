from __future__ import annotations

import logging
from typing import Any

import httpx

from careersync.core.config import settings
from careersync.crawlers.adapters.common import (
    clean,
    fallback_description,
    map_employment_type,
    map_work_type,
    parse_xml,
    xml_text,
)
from careersync.crawlers.base import CanonicalJob, ProbeHit, ProviderAdapter, ProviderFetchError
from careersync.crawlers.http_helpers import get_text, soup_of
from careersync.crawlers.slugs import dedupe, slug_parts

logger = logging.getLogger(__name__)

# the same company feed may live under either TLD
PERSONIO_DOMAINS = ("personio.de", "personio.com")


def parse_positions_xml(text: str, slug: str, personio_domain: str) -> list[dict[str, Any]]:
    root = parse_xml(text)
    if root is None:
        return []
    jobs: list[dict[str, Any]] = []
    for position in root.iterfind(".//{*}position"):
        job_id = xml_text(position, "id")
        name = xml_text(position, "name")
        if not job_id or not name:
            continue
        descriptions = []
        for block in position.iterfind(".//{*}jobDescription"):
            value = xml_text(block, "value")
            if value:
                descriptions.append(value)
        jobs.append({
            "id": job_id,
            "name": name,
            "department": xml_text(position, "department"),
            "office": xml_text(position, "office"),
            "employment_type": xml_text(position, "employmentType"),
            "schedule": xml_text(position, "schedule"),
            "description": "\n".join(descriptions),
            "apply_url": f"https://{slug}.jobs.{personio_domain}/job/{job_id}",
        })
    return jobs


def parse_positions_html(html: str, slug: str, personio_domain: str) -> list[dict[str, Any]]:
    """Job boxes of the public careers page carry their fields as data attributes."""
    jobs: list[dict[str, Any]] = []
    seen: set[str] = set()
    for box in soup_of(html).select("[data-job-position-id]"):
        job_id = (box.get("data-job-position-id") or "").strip()
        name = (box.get("data-job-position-name") or "").strip()
        if not job_id or not name or job_id in seen:
            continue
        seen.add(job_id)
        jobs.append({
            "id": job_id,
            "name": name,
            "department": clean(box.get("data-job-position-department")),
            "office": clean(box.get("data-job-position-office")),
            "employment_type": clean(box.get("data-job-position-employment")),
            "schedule": None,
            "description": "",
            "apply_url": f"https://{slug}.jobs.{personio_domain}/job/{job_id}",
        })
    return jobs


class PersonioAdapter(ProviderAdapter):
    """Personio public XML feed with an HTML fallback for boards that disabled it."""

    source_name = "personio"

    def guesses(self, company_domain: str) -> list[str]:
        parts = slug_parts(company_domain)
        return dedupe([
            parts["base"],
            parts["stripped"],
            parts["hyphenated"],
            parts["domain_hyphenated"],
            f"{parts['hyphenated']}-gmbh",
            f"{parts['stripped']}-gmbh",
        ])

    async def read_board(self, slug: str, client: httpx.AsyncClient, timeout: float) -> list[dict[str, Any]]:
        for personio_domain in PERSONIO_DOMAINS:
            resp = await get_text(
                client,
                f"https://{slug}.jobs.{personio_domain}/xml?language=en",
                timeout=timeout,
                accept="application/xml,text/xml",
            )
            if resp is not None:
                jobs = parse_positions_xml(resp.text, slug, personio_domain)
                if jobs:
                    return jobs
            resp = await get_text(client, f"https://{slug}.jobs.{personio_domain}/?language=en", timeout=timeout)
            if resp is not None:
                jobs = parse_positions_html(resp.text, slug, personio_domain)
                if jobs:
                    return jobs
        return []

    async def probe(self, company_domain: str, client: httpx.AsyncClient) -> ProbeHit | None:
        for slug in self.guesses(company_domain):
            jobs = await self.read_board(slug, client, settings.probe_timeout_s)
            if jobs:
                logger.info("personio: %s has %d jobs under slug %r", company_domain, len(jobs), slug)
                return ProbeHit(slug=slug, jobs=jobs)
        return None

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        jobs = await self.read_board(slug, client, settings.fetch_timeout_s)
        if not jobs:
            raise ProviderFetchError(f"personio: no jobs found for {slug} on either .de or .com")
        return jobs

    @staticmethod
    def _employment_type(native: dict[str, Any]) -> str:
        kind = str(native.get("employment_type") or "").lower()
        if "trainee" in kind or "intern" in kind:
            return "internship"
        return map_employment_type(f"{kind} {native.get('schedule') or ''}")

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("name") or "").strip()
        office = clean(native.get("office"))
        return CanonicalJob(
            title=title,
            description=native.get("description") or fallback_description(title, company_domain),
            department=clean(native.get("department")),
            location=office,
            work_type=map_work_type(office),
            employment_type=self._employment_type(native),
            apply_url=clean(native.get("apply_url")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("id")),
        )
