from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

import httpx

WORK_TYPES = ("remote", "hybrid", "onsite", "unknown")
EMPLOYMENT_TYPES = ("full_time", "part_time", "contract", "internship")


class ProviderFetchError(Exception):
    """A known ATS account could not be read."""


class ScrapeStageError(Exception):
    """One stage of the fallback scraper could not produce a result."""


@dataclass(frozen=True)
class CanonicalJob:
    title: str
    description: str
    company_domain: str
    source: str
    external_id: str
    department: str | None = None
    location: str | None = None
    work_type: str = "unknown"
    employment_type: str = "full_time"
    apply_url: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    salary_currency: str | None = None


@dataclass
class RawJob:
    title: str
    location: str | None = None
    department: str | None = None
    url: str | None = None
    raw_html: str | None = None


@dataclass
class ProbeHit:
    slug: str
    jobs: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class DiscoveryResult:
    provider: str
    slug: str
    job_count: int
    jobs: list[CanonicalJob] = field(default_factory=list)


class ProviderAdapter:
    """One ATS platform: slug probing, direct fetch and normalization."""

    source_name: str
    # probe reads only a first page; discovery refetches the winner in full
    partial_probe: bool = False

    async def probe(self, company_domain: str, client: httpx.AsyncClient) -> ProbeHit | None:
        raise NotImplementedError

    async def fetch(self, slug: str, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        raise NotImplementedError

    def normalize(self, native: dict[str, Any], company_domain: str, slug: str = "") -> CanonicalJob:
        raise NotImplementedError

    def external_id(self, native_id: Any) -> str:
        return f"{self.source_name}:{native_id}"
