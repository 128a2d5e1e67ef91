from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from careersync.core.config import settings
from careersync.crawlers.adapters.common import (
    clean,
    fallback_description,
    map_work_type,
    parse_xml,
    xml_text,
)
from careersync.crawlers.base import CanonicalJob, ProbeHit, ProviderAdapter, ProviderFetchError
from careersync.utils.hash import stable_digest

logger = logging.getLogger(__name__)

SUBDOMAIN_PREFIXES = ("jobs", "careers")
ACCEPTED_CONTENT = ("xml", "text", "html")


def parse_feed(text: str) -> list[dict[str, Any]]:
    """RSS 2.0 ``<item>`` entries, reading Google job extensions (``g:``) before plain tags."""
    root = parse_xml(text)
    if root is None:
        return []
    jobs: list[dict[str, Any]] = []
    for item in root.iterfind(".//{*}item"):
        title = xml_text(item, "title")
        if not title:
            continue
        link = xml_text(item, "link") or ""
        jobs.append({
            "title": title,
            "link": link,
            "description": xml_text(item, "description") or "",
            "guid": xml_text(item, "guid") or link,
            "location": xml_text(item, "location"),
            "department": xml_text(item, "job_functions", "category"),
            "pub_date": xml_text(item, "pubDate"),
        })
    return jobs


def native_id(native: dict[str, Any]) -> str:
    identifier = native.get("guid") or native.get("link") or ""
    if not identifier:
        return "unknown_" + "_".join(str(native.get("title") or "").split())[:50]
    if len(identifier) < 100 and not identifier.startswith("http"):
        return identifier
    segments = [part for part in urlparse(identifier).path.split("/") if part]
    if segments:
        return segments[-1]
    return stable_digest(identifier)


class SuccessFactorsAdapter(ProviderAdapter):
    """SAP SuccessFactors RSS feed at ``https://{jobs,careers}.{domain}/sitemal.xml``.

    The cached slug is the feed host, e.g. ``jobs.acme.com``.
    """

    source_name = "successfactors"

    async def _read_feed(self, feed_host: str, client: httpx.AsyncClient, timeout: float) -> list[dict[str, Any]]:
        resp = await client.get(
            f"https://{feed_host}/sitemal.xml",
            headers={"Accept": "application/rss+xml, application/xml, text/xml"},
            timeout=timeout,
        )
        resp.raise_for_status()
        content_type = resp.headers.get("content-type", "")
        if not any(kind in content_type for kind in ACCEPTED_CONTENT):
            raise ValueError(f"non-XML content type {content_type!r}")
        return parse_feed(resp.text)

    async def probe(self, company_domain: str, client: httpx.AsyncClient) -> ProbeHit | None:
        for prefix in SUBDOMAIN_PREFIXES:
            feed_host = f"{prefix}.{company_domain}"
            try:
                jobs = await self._read_feed(feed_host, client, settings.probe_timeout_s)
            except (httpx.HTTPError, ValueError) as exc:
                logger.debug("successfactors: %s: %s", feed_host, exc)
                continue
            if jobs:
                logger.info("successfactors: %s has %d jobs at %s", company_domain, len(jobs), feed_host)
                return ProbeHit(slug=feed_host, jobs=jobs)
        return None

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        try:
            return await self._read_feed(slug, client, settings.fetch_timeout_s)
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderFetchError(f"successfactors feed failed for {slug}: {exc}") from exc

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("title") or "").strip()
        location = clean(native.get("location"))
        return CanonicalJob(
            title=title,
            description=native.get("description") or fallback_description(title, company_domain),
            department=clean(native.get("department")),
            location=location,
            work_type=map_work_type(location),
            employment_type="full_time",
            apply_url=clean(native.get("link")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native_id(native)),
        )
