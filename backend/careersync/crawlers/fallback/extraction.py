from __future__ import annotations
import json
import logging
import math
from dataclasses import dataclass
from typing import Any
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup, Tag

from careersync.core.config import settings
from careersync.crawlers.base import RawJob
from careersync.crawlers.http_helpers import soup_of

logger = logging.getLogger(__name__)

JOB_TITLE_SIGNALS = (
    "engineer", "developer", "designer", "manager", "analyst", "director",
    "lead", "senior", "junior", "intern", "head of", "vp ", "chief",
    "coordinator", "specialist", "consultant", "architect", "scientist",
    "recruiter", "operations", "marketing", "sales", "product", "data",
    "software", "frontend", "backend", "fullstack", "full-stack", "devops",
)

LOCATION_SIGNALS = (
    "remote", "hybrid", "on-site", "onsite", "new york", "san francisco",
    "london", "berlin", "worldwide", "usa", "europe", "apac",
)

SOFT_404_SIGNALS = (
    "404", "not found", "page not found", "page doesn't exist",
    "page does not exist", "no longer available", "couldn't find",
    "could not find", "doesn't exist", "does not exist",
)

ATTRIBUTE_SIGNALS = ("job", "career", "position", "opening", "vacancy", "posting", "listing")
EMPLOYMENT_SIGNALS = ("full-time", "full time", "part-time", "part time", "contract", "intern", "freelance")
HREF_SIGNALS = ("/job", "/position", "/opening", "/apply")

CONTAINER_SELECTORS = (
    '[class*="job"]', '[class*="career"]', '[class*="position"]',
    '[class*="opening"]', '[class*="vacancy"]', '[class*="posting"]',
    '[data-testid*="job"]', '[data-testid*="career"]',
    '[id*="job"]', '[id*="career"]', '[id*="position"]',
    "li", "article", 'div[role="listitem"]', "tr",
)

LINK_SELECTORS = (
    'a[href*="/job"]', 'a[href*="/career"]', 'a[href*="/position"]',
    'a[href*="/opening"]', 'a[href*="/apply"]', 'a[href*="lever.co"]',
    'a[href*="greenhouse.io"]', 'a[href*="workable.com"]',
    'a[href*="ashbyhq.com"]', 'a[href*="recruitee.com"]',
)

LOCATION_SELECTORS = (
    '[class*="location"]', '[class*="city"]', '[class*="region"]',
    '[data-testid*="location"]', '[aria-label*="location"]',
)
DEPARTMENT_SELECTORS = (
    '[class*="department"]', '[class*="team"]', '[class*="category"]',
    '[data-testid*="department"]', '[data-testid*="team"]',
)

HEADINGS = "h1,h2,h3,h4,h5,h6"
MIN_ELEMENTS, MAX_ELEMENTS = 2, 500
MIN_TEXT, MAX_TEXT = 10, 2000
MAX_SNIPPET = 5000

# conventional keys under which JSON APIs wrap their job arrays
WRAPPER_KEYS = (
    "jobs", "data", "results", "items", "postings", "positions",
    "openings", "records", "content", "offers", "vacancies",
)
TITLE_KEYS = ("title", "name", "job_title", "jobTitle", "position")
URL_KEYS = ("url", "apply_url", "applyUrl", "absolute_url", "hostedUrl", "jobUrl")
SAMPLE_SIZE = 10


def collapse(text: str | None) -> str:
    return " ".join((text or "").split())


def posting_url(base_url: str, href: str | None) -> str | None:
    """Absolute link of a posting; None for fragments, script links and links back to the listing page."""
    href = (href or "").strip()
    if not href or href.startswith("#") or href.lower().startswith("javascript:"):
        return None
    url = urldefrag(urljoin(base_url, href)).url
    if url.rstrip("/") == urldefrag(base_url).url.rstrip("/"):
        return None
    return url


def looks_like_job_title(text: str) -> bool:
    lower = (text or "").lower()
    return any(signal in lower for signal in JOB_TITLE_SIGNALS)


def has_plausible_titles(jobs: list[RawJob], min_ratio: float | None = None) -> bool:
    """At least ``min_ratio`` of the titles must contain a job-title keyword."""
    if not jobs:
        return False
    ratio = settings.min_job_title_ratio if min_ratio is None else min_ratio
    matches = sum(1 for job in jobs if looks_like_job_title(job.title))
    return matches / len(jobs) >= ratio


def is_soft_404(html: str) -> bool:
    """HTTP 200 pages whose title, headings or short body say "not found"."""
    soup = soup_of(html)

    def signalled(text: str) -> bool:
        lower = text.lower()
        return any(signal in lower for signal in SOFT_404_SIGNALS)

    title = soup.find("title")
    if title and signalled(title.get_text(strip=True)):
        return True
    if any(signalled(h.get_text(" ", strip=True)) for h in soup.select("h1, h2")):
        return True
    body = soup.body or soup
    body_text = collapse(body.get_text(" "))
    return len(body_text) < 500 and signalled(body_text)


# -- JSON-LD -------------------------------------------------------------------


def _is_job_posting(item: dict[str, Any]) -> bool:
    kind = item.get("@type")
    if isinstance(kind, list):
        return "JobPosting" in kind
    return kind == "JobPosting"


def _json_ld_location(value: Any) -> str | None:
    if isinstance(value, list):
        value = value[0] if value else None
    if not isinstance(value, dict):
        return None
    address = value.get("address")
    if isinstance(address, dict) and address.get("addressLocality"):
        return str(address["addressLocality"])
    return value.get("name")


def _walk_json_ld(item: Any, jobs: list[RawJob]) -> None:
    if isinstance(item, list):
        for entry in item:
            _walk_json_ld(entry, jobs)
        return
    if not isinstance(item, dict):
        return
    if _is_job_posting(item) and item.get("title"):
        jobs.append(
            RawJob(
                title=str(item["title"]),
                location=_json_ld_location(item.get("jobLocation")),
                department=item.get("occupationalCategory"),
                url=item.get("url"),
                raw_html=item.get("description"),
            )
        )
    if isinstance(item.get("@graph"), list):
        _walk_json_ld(item["@graph"], jobs)


def extract_json_ld(soup: BeautifulSoup) -> list[RawJob]:
    jobs: list[RawJob] = []
    for script in soup.select('script[type="application/ld+json"]'):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("skipping malformed JSON-LD block")
            continue
        _walk_json_ld(data, jobs)
    return jobs


# -- scored DOM elements -----------------------------------------------------------


@dataclass
class ScoredElement:
    score: int
    title: str
    location: str | None = None
    department: str | None = None
    url: str | None = None
    raw_html: str | None = None


def _first_text(element: Tag, selectors: tuple[str, ...]) -> str | None:
    for selector in selectors:
        found = element.select_one(selector)
        if found is None:
            continue
        text = found.get_text(" ", strip=True)
        if text and len(text) < 100:
            return text
    return None


def _nearby_text(element: Tag, keyword: str) -> str | None:
    for candidate in element.find_all(["span", "p", "div", "small"]):
        text = candidate.get_text(" ", strip=True)
        if keyword in text.lower() and len(text) < 100:
            return text
    return None


def _fallback_title(element: Tag) -> str:
    for selector in (HEADINGS, "a", "b,strong"):
        found = element.select_one(selector)
        if found is not None:
            text = found.get_text(" ", strip=True)
            if text:
                return text
    lines = element.get_text("\n", strip=True).split("\n")
    return lines[0][:200] if lines else ""


def score_element(element: Tag, base_url: str) -> ScoredElement:
    text = element.get_text(" ", strip=True)
    if len(text) < MIN_TEXT or len(text) > MAX_TEXT:
        return ScoredElement(score=-1, title="")

    score = 0
    link = element.find("a")
    href = link.get("href") if link is not None else None
    if link is not None:
        score += 2

    primary = link.get_text(" ", strip=True) if link is not None else ""
    if not primary:
        heading = element.select_one(HEADINGS)
        primary = heading.get_text(" ", strip=True) if heading is not None else ""
    if looks_like_job_title(primary):
        score += 3

    lower = text.lower()
    location = None
    for signal in LOCATION_SIGNALS:
        if signal in lower:
            score += 1
            location = _nearby_text(element, signal)
            break

    classes = element.get("class") or []
    attrs = f"{' '.join(classes)} {element.get('id') or ''}".lower()
    if any(signal in attrs for signal in ATTRIBUTE_SIGNALS):
        score += 2

    if element.select_one(HEADINGS) is not None and element.find("span") is not None:
        score += 1

    if any(keyword in lower for keyword in EMPLOYMENT_SIGNALS):
        score += 2

    if href and any(signal in href.lower() for signal in HREF_SIGNALS):
        score += 3

    snippet = str(element)
    return ScoredElement(
        score=score,
        title=primary or _fallback_title(element),
        location=location or _first_text(element, LOCATION_SELECTORS),
        department=_first_text(element, DEPARTMENT_SELECTORS),
        url=posting_url(base_url, href),
        raw_html=snippet if len(snippet) < MAX_SNIPPET else None,
    )


def extract_scored_elements(soup: BeautifulSoup, base_url: str) -> list[RawJob]:
    """Jobs from the first selector whose repeating elements score positively at least twice."""
    for selector in CONTAINER_SELECTORS:
        elements = soup.select(selector)
        if len(elements) < MIN_ELEMENTS or len(elements) > MAX_ELEMENTS:
            continue
        scored = [result for result in (score_element(el, base_url) for el in elements) if result.score > 0]
        if len(scored) < MIN_ELEMENTS:
            continue
        jobs = [
            RawJob(
                title=item.title.strip(),
                location=item.location,
                department=item.department,
                url=item.url,
                raw_html=item.raw_html,
            )
            for item in scored
            if item.title and item.title.strip()
        ]
        if jobs:
            logger.debug("selector %s yielded %d scored elements", selector, len(jobs))
            return jobs
    return []


def extract_links(soup: BeautifulSoup, base_url: str) -> list[RawJob]:
    for selector in LINK_SELECTORS:
        jobs: list[RawJob] = []
        for anchor in soup.select(selector):
            text = anchor.get_text(" ", strip=True)
            if not (5 < len(text) < 200) or not looks_like_job_title(text):
                continue
            href = anchor.get("href")
            jobs.append(RawJob(title=text, url=posting_url(base_url, href)))
        if jobs:
            return jobs
    return []


def extract_jobs_from_html(html: str, base_url: str) -> list[RawJob]:
    """JSON-LD first, then scored repeating elements, then job-looking links."""
    soup = soup_of(html)
    return extract_json_ld(soup) or extract_scored_elements(soup, base_url) or extract_links(soup, base_url)


# -- intercepted JSON ----------------------------------------------------------------


def find_job_array(data: Any) -> list[Any] | None:
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return None
    for key in WRAPPER_KEYS:
        value = data.get(key)
        if isinstance(value, list) and value:
            return value
    for value in data.values():
        if isinstance(value, list) and len(value) >= 2:
            return value
    return None


def looks_like_job_array(data: Any) -> bool:
    """Half of a small sample must carry a title-like key."""
    items = find_job_array(data)
    if not items:
        return False
    sample = items[:SAMPLE_SIZE]
    titled = sum(1 for item in sample if isinstance(item, dict) and any(key in item for key in TITLE_KEYS))
    return titled >= math.ceil(len(sample) * 0.5)


def _location_of(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        parts = [value.get(key) for key in ("city", "name", "region", "country")]
        text = ", ".join(part.strip() for part in parts if isinstance(part, str) and part.strip())
        return text or None
    return None


def extract_jobs_from_json(data: Any) -> list[RawJob]:
    jobs: list[RawJob] = []
    for item in find_job_array(data) or []:
        if not isinstance(item, dict):
            continue
        title = next((item[key] for key in TITLE_KEYS if item.get(key)), None)
        if not isinstance(title, str) or not title.strip():
            continue
        location = next((item[key] for key in ("location", "city", "office") if item.get(key)), None)
        department = next(
            (item[key] for key in ("department", "team", "category") if isinstance(item.get(key), str)),
            None,
        )
        url = next((item[key] for key in URL_KEYS if item.get(key)), None)
        jobs.append(
            RawJob(
                title=title.strip(),
                location=_location_of(location),
                department=(department or "").strip() or None,
                url=url if isinstance(url, str) else None,
            )
        )
    return jobs
