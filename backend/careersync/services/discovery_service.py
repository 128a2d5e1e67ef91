from __future__ import annotations
import asyncio
import logging
from contextlib import asynccontextmanager

import httpx
from sqlalchemy.orm import Session

from careersync.core.config import settings
from careersync.crawlers.base import CanonicalJob, DiscoveryResult, ProviderFetchError
from careersync.crawlers.fallback.browser import BrowserCapability
from careersync.crawlers.fallback.normalize import SOURCE as FALLBACK_SOURCE, normalize_raw_jobs
from careersync.crawlers.fallback.scraper import scrape_with_fallback
from careersync.crawlers.http_helpers import build_client
from careersync.crawlers.registry import get_adapter, ordered_adapters
from careersync.crawlers.slugs import dedupe, normalize_domain
from careersync.services.stores import AccountCache, JobStore, SyncRunLog
from careersync.services.sync_service import CompanySyncDetail, SyncReport, sync_company_jobs

logger = logging.getLogger(__name__)


@asynccontextmanager
async def client_scope(client: httpx.AsyncClient | None):
    """Use the caller's client, or open one for the duration of the block."""
    if client is not None:
        yield client
        return
    async with build_client() as owned:
        yield owned


async def discover_ats_jobs(
    company_domain: str,
    client: httpx.AsyncClient | None = None,
    providers: list[str] | None = None,
) -> DiscoveryResult | None:
    """Probe every provider concurrently; the first hit in priority order wins.

    Selection follows the priority list, never completion order. Each probe is
    bounded by ``provider_probe_budget_s``; a timeout or error only removes
    that provider from consideration.
    """
    domain = normalize_domain(company_domain)
    adapters = ordered_adapters(providers)
    async with client_scope(client) as http:
        results = await asyncio.gather(
            *(asyncio.wait_for(adapter.probe(domain, http), settings.provider_probe_budget_s) for adapter in adapters),
            return_exceptions=True,
        )
        for adapter, result in zip(adapters, results):
            if isinstance(result, BaseException):
                logger.debug("%s probe for %s failed: %r", adapter.source_name, domain, result)
                continue
            if result is None or not result.jobs:
                continue
            natives = result.jobs
            if adapter.partial_probe:
                try:
                    natives = await adapter.fetch(result.slug, http) or natives
                except ProviderFetchError as exc:
                    logger.warning("%s: full fetch after probe failed for %s: %s", adapter.source_name, domain, exc)
            jobs = [adapter.normalize(native, domain, result.slug) for native in natives]
            logger.info("discovered %s on %s (%s) with %d jobs", domain, adapter.source_name, result.slug, len(jobs))
            return DiscoveryResult(provider=adapter.source_name, slug=result.slug, job_count=len(jobs), jobs=jobs)
    logger.info("no ATS found for %s", domain)
    return None


async def fetch_jobs_from_provider(
    provider: str,
    slug: str,
    company_domain: str,
    client: httpx.AsyncClient | None = None,
) -> list[CanonicalJob]:
    """Direct read of a known account. Raises ProviderFetchError when it cannot be read."""
    adapter = get_adapter(provider)
    async with client_scope(client) as http:
        natives = await adapter.fetch(slug, http)
    return [adapter.normalize(native, company_domain, slug) for native in natives]


def _sync_discovery(session: Session, domain: str, result: DiscoveryResult) -> CompanySyncDetail:
    delta = sync_company_jobs(JobStore(session), domain, result.provider, result.jobs)
    AccountCache(session).record_discovery(domain, result.provider, result.slug, result.job_count)
    detail = CompanySyncDetail(company=domain, provider=result.provider, slug=result.slug, job_count=result.job_count)
    detail.apply(delta)
    return detail


async def _refresh_account(
    session: Session,
    domain: str,
    provider: str,
    slug: str,
    http: httpx.AsyncClient,
) -> CompanySyncDetail:
    jobs = await fetch_jobs_from_provider(provider, slug, domain, http)
    delta = sync_company_jobs(JobStore(session), domain, provider, jobs)
    AccountCache(session).record_refresh(domain, len(jobs))
    detail = CompanySyncDetail(company=domain, provider=provider, slug=slug, job_count=len(jobs))
    detail.apply(delta)
    return detail


async def _scrape_careers_pages(
    domain: str,
    careers_url: str | None,
    http: httpx.AsyncClient,
    browser: BrowserCapability | None,
) -> list[CanonicalJob]:
    urls = [careers_url] if careers_url else [f"https://{domain}{path}" for path in settings.careers_paths]
    for url in urls:
        raw_jobs = await scrape_with_fallback(url, domain, client=http, browser=browser)
        if raw_jobs:
            return normalize_raw_jobs(raw_jobs, domain)
    return []


async def discover_and_sync_company(
    session: Session,
    company_domain: str,
    careers_url: str | None = None,
    client: httpx.AsyncClient | None = None,
    browser: BrowserCapability | None = None,
) -> CompanySyncDetail:
    """Cached account, else ATS discovery, else careers-page scraping; then sync."""
    domain = normalize_domain(company_domain)
    run_log = SyncRunLog(session)
    run = run_log.start("company")
    report = SyncReport()
    try:
        async with client_scope(client) as http:
            account = AccountCache(session).get(domain)
            if account is not None:
                detail = await _refresh_account(session, domain, account.provider, account.slug, http)
                discovered = False
            else:
                result = await discover_ats_jobs(domain, client=http)
                if result is not None:
                    detail = _sync_discovery(session, domain, result)
                    discovered = True
                else:
                    detail = CompanySyncDetail(company=domain)
                    discovered = False
                    jobs = await _scrape_careers_pages(domain, careers_url, http, browser)
                    # an empty scrape is not evidence that postings were taken down
                    if jobs:
                        detail.provider = FALLBACK_SOURCE
                        detail.job_count = len(jobs)
                        detail.apply(sync_company_jobs(JobStore(session), domain, FALLBACK_SOURCE, jobs))
    except Exception as exc:  # noqa: BLE001
        session.rollback()
        logger.warning("sync failed for %s: %s", domain, exc)
        detail = CompanySyncDetail(company=domain, error=str(exc)[:500])
        discovered = False
    report.add(detail, discovered=discovered)
    run_log.finish(run, report.counts(), report.error_summary())
    return detail


async def _discover_one(session: Session, domain: str, http: httpx.AsyncClient) -> tuple[CompanySyncDetail, bool]:
    try:
        result = await discover_ats_jobs(domain, client=http)
        if result is None:
            return CompanySyncDetail(company=domain), False
        return _sync_discovery(session, domain, result), True
    except Exception as exc:  # noqa: BLE001
        session.rollback()
        logger.warning("discovery failed for %s: %s", domain, exc)
        return CompanySyncDetail(company=domain, error=str(exc)[:500]), False


async def discover_new_ats_accounts(
    session: Session,
    company_domains: list[str],
    max_to_check: int | None = None,
    batch_size: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> SyncReport:
    """Discover domains not yet in the account cache, a fixed-size chunk at a time.

    At most ``max_to_check`` domains are processed per call. Every success is
    written to the cache before the next chunk starts.
    """
    known = AccountCache(session).known_domains()
    pending = [domain for domain in dedupe(normalize_domain(d) for d in company_domains) if domain not in known]
    pending = pending[: max_to_check or settings.max_domains_per_run]
    size = max(1, batch_size or settings.discovery_batch_size)

    run_log = SyncRunLog(session)
    run = run_log.start("discovery")
    report = SyncReport()
    logger.info("discovery: %d unchecked domains (%d already cached), batches of %d", len(pending), len(known), size)

    async with client_scope(client) as http:
        for start in range(0, len(pending), size):
            chunk = pending[start : start + size]
            outcomes = await asyncio.gather(*(_discover_one(session, domain, http) for domain in chunk))
            for detail, discovered in outcomes:
                report.add(detail, discovered=discovered)

    run_log.finish(run, report.counts(), report.error_summary())
    logger.info("discovery done: %s", report.counts())
    return report


async def sync_jobs_from_cache(
    session: Session,
    batch_size: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> SyncReport:
    """Refresh every cached account by direct fetch, without probing."""
    cache = AccountCache(session)
    accounts = [(row.company_domain, row.provider, row.slug) for row in cache.all()]
    size = max(1, batch_size or settings.refresh_batch_size)

    async def refresh(domain: str, provider: str, slug: str, http: httpx.AsyncClient) -> CompanySyncDetail:
        try:
            return await _refresh_account(session, domain, provider, slug, http)
        except Exception as exc:  # noqa: BLE001
            session.rollback()
            logger.warning("refresh failed for %s (%s): %s", domain, provider, exc)
            cache.touch_checked(domain)
            return CompanySyncDetail(company=domain, provider=provider, slug=slug, error=str(exc)[:500])

    run_log = SyncRunLog(session)
    run = run_log.start("refresh")
    report = SyncReport()
    async with client_scope(client) as http:
        for start in range(0, len(accounts), size):
            chunk = accounts[start : start + size]
            for detail in await asyncio.gather(*(refresh(*account, http) for account in chunk)):
                report.add(detail)

    run_log.finish(run, report.counts(), report.error_summary())
    logger.info("cache refresh done: %s", report.counts())
    return report


async def run_discovery_rounds(
    session: Session,
    company_domains: list[str],
    batch_size: int,
    max_rounds: int,
    client: httpx.AsyncClient | None = None,
) -> SyncReport:
    """Repeat batch discovery, ``batch_size`` domains per round, until all are checked."""
    known = AccountCache(session).known_domains()
    remaining = [domain for domain in dedupe(normalize_domain(d) for d in company_domains) if domain not in known]
    total = SyncReport()
    rounds = 0
    async with client_scope(client) as http:
        while remaining and rounds < max_rounds:
            rounds += 1
            current, remaining = remaining[:batch_size], remaining[batch_size:]
            logger.info("round %d: %d domains, %d left after this round", rounds, len(current), len(remaining))
            report = await discover_new_ats_accounts(session, current, max_to_check=len(current), client=http)
            total.merge(report)
    return total
