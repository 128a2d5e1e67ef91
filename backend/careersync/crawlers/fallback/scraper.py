from __future__ import annotations
import json
import logging

import httpx

from careersync.core.config import settings
from careersync.crawlers.base import RawJob, ScrapeStageError
from careersync.crawlers.fallback.browser import BrowserCapability, default_browser
from careersync.crawlers.fallback.extraction import (
    collapse,
    extract_jobs_from_html,
    extract_jobs_from_json,
    has_plausible_titles,
    is_soft_404,
    looks_like_job_array,
)
from careersync.crawlers.http_helpers import build_client

logger = logging.getLogger(__name__)

STATIC_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_degradation_logged = False


def _log_degradation_once() -> None:
    global _degradation_logged
    if not _degradation_logged:
        logger.warning("browser capability unavailable: fallback scraping is limited to static HTML")
        _degradation_logged = True


def dedupe_jobs(jobs: list[RawJob]) -> list[RawJob]:
    """First occurrence per (title, location), compared case- and whitespace-insensitively."""
    seen: set[str] = set()
    unique: list[RawJob] = []
    for job in jobs:
        title = (job.title or "").strip()
        if not title:
            continue
        key = f"{collapse(title).lower()}|{collapse(job.location).lower()}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(
            RawJob(
                title=title,
                location=(job.location or "").strip() or None,
                department=(job.department or "").strip() or None,
                url=job.url,
                raw_html=job.raw_html,
            )
        )
    return unique


async def fetch_static_html(url: str, client: httpx.AsyncClient) -> str:
    try:
        resp = await client.get(url, headers=STATIC_HEADERS, timeout=settings.fetch_timeout_s)
    except httpx.HTTPError as exc:
        raise ScrapeStageError(f"request failed: {exc}") from exc
    if not resp.is_success:
        raise ScrapeStageError(f"HTTP {resp.status_code} from {url}")

    content_type = resp.headers.get("content-type", "")
    if "html" not in content_type and "text" not in content_type:
        raise ScrapeStageError(f"unexpected content-type {content_type!r}")
    declared = resp.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > settings.max_html_bytes:
        raise ScrapeStageError(f"page too large ({declared} bytes)")

    html = resp.text
    if len(html) > settings.max_html_bytes:
        raise ScrapeStageError(f"page HTML too large ({len(html)} chars)")
    if is_soft_404(html):
        raise ScrapeStageError(f"soft 404 on {url}")
    return html


async def static_stage(url: str, client: httpx.AsyncClient) -> list[RawJob]:
    html = await fetch_static_html(url, client)
    return extract_jobs_from_html(html, url)


async def intercept_stage(url: str, browser: BrowserCapability) -> list[RawJob]:
    jobs: list[RawJob] = []
    for payload in await browser.intercept_json(url):
        if looks_like_job_array(payload):
            jobs.extend(extract_jobs_from_json(payload))
    return jobs


async def render_stage(url: str, browser: BrowserCapability) -> list[RawJob]:
    html = await browser.render_html(url)
    if is_soft_404(html):
        raise ScrapeStageError(f"soft 404 on rendered {url}")
    return extract_jobs_from_html(html, url)


async def scrape_with_fallback(
    careers_url: str,
    company_name: str,
    client: httpx.AsyncClient | None = None,
    browser: BrowserCapability | None = None,
) -> list[RawJob]:
    """Best-effort scrape of an arbitrary careers page. Never raises; empty on failure.

    Stages run in order and the first one whose output passes title
    validation wins: static HTML, intercepted JSON, rendered DOM.
    """
    browser = browser or default_browser()
    own_client = client is None
    client = client or build_client(timeout=settings.fetch_timeout_s)
    warnings: list[str] = []

    stages = [("static HTML", lambda: static_stage(careers_url, client))]
    if browser.available():
        stages.append(("network interception", lambda: intercept_stage(careers_url, browser)))
        stages.append(("rendered DOM", lambda: render_stage(careers_url, browser)))
    else:
        warnings.append("browser unavailable: skipped network interception and rendered DOM")
        _log_degradation_once()

    try:
        for name, run in stages:
            logger.info("fallback %s for %s (%s)", name, company_name, careers_url)
            try:
                jobs = await run()
            except Exception as exc:  # noqa: BLE001
                warnings.append(f"{name} failed: {exc}")
                logger.warning("fallback %s failed for %s: %s", name, company_name, exc)
                continue
            if not jobs:
                warnings.append(f"{name}: no jobs found")
                continue
            if not has_plausible_titles(jobs):
                warnings.append(f"{name}: {len(jobs)} items rejected, too few job-like titles")
                logger.warning("fallback %s for %s: %d items do not look like jobs", name, company_name, len(jobs))
                continue
            logger.info("fallback %s succeeded for %s with %d jobs", name, company_name, len(jobs))
            return dedupe_jobs(jobs)
    finally:
        if own_client:
            await client.aclose()

    logger.warning(
        json.dumps(
            {
                "level": "warn",
                "company": company_name,
                "url": careers_url,
                "reason": "fallback_scraper_no_results",
                "warnings": warnings,
            }
        )
    )
    return []
