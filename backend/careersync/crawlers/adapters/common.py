from __future__ import annotations
import logging
import re
from typing import Any
import xml.etree.ElementTree as ET

import httpx

from careersync.core.config import settings
from careersync.crawlers.base import ProbeHit, ProviderAdapter, ProviderFetchError
from careersync.crawlers.http_helpers import get_json, require_json, soup_of
from careersync.crawlers.slugs import standard_guesses

logger = logging.getLogger(__name__)

BOT_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; careersync/1.0)"}


def map_employment_type(value: Any) -> str:
    lower = str(value or "").lower()
    if "intern" in lower:
        return "internship"
    if "contract" in lower or "freelance" in lower or "temporary" in lower:
        return "contract"
    if "part" in lower:
        return "part_time"
    return "full_time"


def map_work_type(value: Any) -> str:
    lower = str(value or "").lower()
    if "remote" in lower:
        return "remote"
    if "hybrid" in lower:
        return "hybrid"
    if "onsite" in lower or "on-site" in lower or "office" in lower:
        return "onsite"
    return "unknown"


def strip_html(html: str) -> str:
    text = soup_of(html).get_text(" ")
    return " ".join(text.split())


def clean(value: Any) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


def join_location(*parts: Any) -> str | None:
    values = [str(p).strip() for p in parts if p and str(p).strip()]
    return ", ".join(values) or None


def join_description(*parts: Any) -> str:
    return "\n".join(str(p) for p in parts if p)


def fallback_description(title: str, company_domain: str) -> str:
    return f"Apply for {title} at {company_domain}."


def as_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class JsonBoardAdapter(ProviderAdapter):
    """Provider whose public board is one GET returning JSON for a slug."""

    def guesses(self, company_domain: str) -> list[str]:
        return standard_guesses(company_domain)

    def board_url(self, slug: str) -> str:
        raise NotImplementedError

    def extract_jobs(self, payload: Any) -> list[dict[str, Any]]:
        raise NotImplementedError

    async def before_request(self) -> None:
        return None

    async def probe(self, company_domain: str, client: httpx.AsyncClient) -> ProbeHit | None:
        for slug in self.guesses(company_domain):
            await self.before_request()
            payload = await get_json(client, self.board_url(slug))
            if payload is None:
                continue
            jobs = self.extract_jobs(payload)
            if jobs:
                logger.info("%s: %s has %d jobs under slug %r", self.source_name, company_domain, len(jobs), slug)
                return ProbeHit(slug=slug, jobs=jobs)
        return None

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        await self.before_request()
        try:
            payload = await require_json(client, self.board_url(slug))
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderFetchError(f"{self.source_name} fetch failed for {slug}: {exc}") from exc
        return self.extract_jobs(payload)


# -- XML feeds ---------------------------------------------------------------


def parse_xml(text: str) -> ET.Element | None:
    try:
        return ET.fromstring(text.strip().encode("utf-8"))
    except ET.ParseError as exc:
        logger.debug("malformed XML feed: %s", exc)
        return None


def xml_text(element: ET.Element, *tags: str) -> str | None:
    """First non-empty text of any of ``tags`` (namespace agnostic) under ``element``."""
    for tag in tags:
        child = element.find(f"{{*}}{tag}")
        if child is not None and child.text and child.text.strip():
            return child.text.strip()
    return None


# -- careers-page credentials -------------------------------------------------


async def iter_careers_pages(company_domain: str, client: httpx.AsyncClient):
    """Yield the HTML of every reachable careers page, bare host first, then ``www.``."""
    for host in (company_domain, f"www.{company_domain}"):
        for path in settings.careers_paths:
            url = f"https://{host}{path}"
            try:
                resp = await client.get(
                    url,
                    headers={**BOT_HEADERS, "Accept": "text/html"},
                    timeout=settings.probe_timeout_s,
                )
            except httpx.HTTPError as exc:
                logger.debug("careers page %s unreachable: %s", url, exc)
                continue
            if not resp.is_success:
                continue
            yield url, resp.text


GUID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


def first_match(patterns: list[re.Pattern], text: str) -> re.Match | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None



class CareersPageAdapter(ProviderAdapter):
    """Provider whose account credential is embedded in the company's own careers page.

    A credential found in the HTML is accepted only once a real fetch with it
    returns jobs.
    """

    def extract_credential(self, html: str) -> str | None:
        raise NotImplementedError

    async def probe(self, company_domain: str, client: httpx.AsyncClient) -> ProbeHit | None:
        tried: set[str] = set()
        async for url, html in iter_careers_pages(company_domain, client):
            credential = self.extract_credential(html)
            if not credential or credential in tried:
                continue
            tried.add(credential)
            try:
                jobs = await self.fetch(credential, client)
            except ProviderFetchError as exc:
                logger.debug("%s: credential from %s rejected: %s", self.source_name, url, exc)
                continue
            if jobs:
                logger.info("%s: %s verified via %s", self.source_name, company_domain, url)
                return ProbeHit(slug=credential, jobs=jobs)
        return None
