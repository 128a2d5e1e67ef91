from __future__ import annotations

import re
from typing import Any

import httpx

from careersync.crawlers.adapters.common import (
    CareersPageAdapter,
    as_list,
    clean,
    fallback_description,
    first_match,
    join_description,
    join_location,
    map_employment_type,
    map_work_type,
)
from careersync.crawlers.base import CanonicalJob, ProviderFetchError
from careersync.crawlers.http_helpers import require_json

UID_VAR = re.compile(r"COMEET_COMPANY_UID\s*[=:]\s*[\"']([^\"']+)[\"']", re.I)
TOKEN_VAR = re.compile(r"COMEET_TOKEN\s*[=:]\s*[\"']([^\"']+)[\"']", re.I)
DATA_UID = re.compile(r"data-company-uid=[\"']([^\"']+)[\"']", re.I)
DATA_TOKEN = re.compile(r"data-token=[\"']([^\"']+)[\"']", re.I)
PAIRED = [
    re.compile(
        r"comeet_init\s*\(\s*\{[^}]*company_uid\s*:\s*[\"']([^\"']+)[\"'][^}]*token\s*:\s*[\"']([^\"']+)[\"']",
        re.I,
    ),
    re.compile(r"comeet\.co/[^\"']*[?&]company_uid=([^&\"']+)[^\"']*[?&]token=([^&\"']+)", re.I),
]


def extract_credentials(html: str) -> tuple[str, str] | None:
    """Company uid and token of a Comeet embed, in order of embed-style reliability."""
    uid, token = UID_VAR.search(html), TOKEN_VAR.search(html)
    if uid and token:
        return uid.group(1), token.group(1)
    match = first_match(PAIRED, html)
    if match:
        return match.group(1), match.group(2)
    uid, token = DATA_UID.search(html), DATA_TOKEN.search(html)
    if uid and token:
        return uid.group(1), token.group(1)
    return None


class ComeetAdapter(CareersPageAdapter):
    """Comeet careers API; the cached slug is ``uid|token``."""

    source_name = "comeet"

    def extract_credential(self, html: str) -> str | None:
        credentials = extract_credentials(html)
        return "|".join(credentials) if credentials else None

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        uid, _, token = slug.partition("|")
        if not uid or not token:
            raise ProviderFetchError(f"invalid comeet slug {slug!r}, expected 'uid|token'")
        url = f"https://www.comeet.co/careers-api/2.0/company/{uid}/positions"
        try:
            payload = await require_json(client, url, params={"token": token, "details": "true"})
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderFetchError(f"comeet fetch failed for company {uid}: {exc}") from exc
        if isinstance(payload, list):
            return as_list(payload)
        if isinstance(payload, dict):
            return as_list(payload.get("details") or payload.get("positions"))
        return []

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        title = str(native.get("name") or "").strip()
        location = native.get("location") or {}
        description = join_description(native.get("description"), native.get("requirements"))
        return CanonicalJob(
            title=title,
            description=description or fallback_description(title, company_domain),
            department=clean(native.get("department")),
            location=join_location(location.get("city") or location.get("name"), location.get("country")),
            work_type=map_work_type(native.get("workplace_type")),
            employment_type=map_employment_type(native.get("employment_type")),
            apply_url=clean(native.get("url_active_page")),
            company_domain=company_domain,
            source=self.source_name,
            external_id=self.external_id(native.get("uid")),
        )
