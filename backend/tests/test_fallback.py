from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from careersync.crawlers.base import RawJob, ScrapeStageError
from careersync.crawlers.fallback.browser import BrowserCapability, NullBrowser
from careersync.crawlers.fallback.extraction import (
    extract_jobs_from_html,
    extract_jobs_from_json,
    has_plausible_titles,
    is_soft_404,
    looks_like_job_array,
)
from careersync.crawlers.fallback.normalize import normalize_raw_jobs
from careersync.crawlers.fallback.scraper import dedupe_jobs, scrape_with_fallback
from careersync.utils.hash import stable_digest

CAREERS_URL = "https://acme.com/careers"

JOB_CARDS = """
<html><body>
<nav><a href="/">Home</a></nav>
<ul class="openings">
  <li class="job-card"><h3><a href="/jobs/1">Senior Backend Engineer</a></h3>
      <span class="location">Berlin</span><span>Full-time</span></li>
  <li class="job-card"><h3><a href="/jobs/2">Product Designer</a></h3>
      <span class="location">Remote</span><span>Full-time</span></li>
  <li class="job-card"><h3><a href="/jobs/3">Data Analyst</a></h3>
      <span class="location">London</span><span>Contract</span></li>
</ul>
</body></html>
"""

MENU_ONLY = """
<html><body><ul>
  <li><a href="/about">About our company</a></li>
  <li><a href="/blog">Read our blog</a></li>
  <li><a href="/support">Contact support</a></li>
  <li><a href="/press">Press and media</a></li>
</ul></body></html>
"""

EMPTY_SHELL = "<html><body><div id='app'>Loading</div></body></html>"


class FakeBrowser(BrowserCapability):
    def __init__(self, payloads=None, html=None, intercept_error=None):
        self.payloads = payloads or []
        self.html = html or EMPTY_SHELL
        self.intercept_error = intercept_error
        self.calls: list[str] = []

    def available(self) -> bool:
        return True

    async def intercept_json(self, url):
        self.calls.append("intercept")
        if self.intercept_error:
            raise self.intercept_error
        return self.payloads

    async def render_html(self, url):
        self.calls.append("render")
        return self.html


def scrape(page_response: httpx.Response, browser: BrowserCapability):
    async def main():
        transport = httpx.MockTransport(lambda request: page_response)
        async with httpx.AsyncClient(transport=transport) as client:
            return await scrape_with_fallback(CAREERS_URL, "Acme", client=client, browser=browser)

    return asyncio.run(main())


def test_soft_404_detection():
    assert is_soft_404("<html><head><title>Page Not Found</title></head><body>x</body></html>")
    assert is_soft_404("<html><body><h1>Oops</h1><p>We couldn't find that page.</p></body></html>")
    assert not is_soft_404(JOB_CARDS)


def test_title_ratio_threshold():
    jobs = [RawJob(title="Engineer"), RawJob(title="About us"), RawJob(title="Blog"), RawJob(title="Contact")]

    assert has_plausible_titles(jobs)
    assert not has_plausible_titles(jobs + [RawJob(title="Press")])
    assert not has_plausible_titles([])


def test_json_ld_graph_postings():
    graph = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "Organization", "name": "Acme"},
            {
                "@type": ["JobPosting"],
                "title": "Site Reliability Engineer",
                "url": "https://acme.com/jobs/sre",
                "jobLocation": {"@type": "Place", "address": {"addressLocality": "Denver"}},
            },
        ],
    }
    html = f'<html><head><script type="application/ld+json">{json.dumps(graph)}</script></head><body></body></html>'

    jobs = extract_jobs_from_html(html, CAREERS_URL)

    assert [(j.title, j.location, j.url) for j in jobs] == [
        ("Site Reliability Engineer", "Denver", "https://acme.com/jobs/sre")
    ]


def test_scored_job_cards():
    jobs = extract_jobs_from_html(JOB_CARDS, CAREERS_URL)

    assert [j.title for j in jobs] == ["Senior Backend Engineer", "Product Designer", "Data Analyst"]
    assert jobs[0].url == "https://acme.com/jobs/1"
    assert jobs[0].location == "Berlin"
    assert jobs[1].location == "Remote"


def test_job_links_are_last_resort():
    html = """<html><body>
      <p><a href="/jobs/42">Customer Success Manager</a> <a href="/jobs/privacy">Privacy</a></p>
    </body></html>"""

    jobs = extract_jobs_from_html(html, CAREERS_URL)

    assert [(j.title, j.url) for j in jobs] == [("Customer Success Manager", "https://acme.com/jobs/42")]


def test_intercepted_json_shapes():
    wrapped = {"jobs": [{"title": "Backend Engineer", "location": {"city": "Austin"}}, {"name": "Data Scientist"}]}

    assert looks_like_job_array(wrapped)
    assert not looks_like_job_array({"consent": "ok"})
    assert not looks_like_job_array([{"id": 1}, {"id": 2}, {"title": "x"}])
    jobs = extract_jobs_from_json(wrapped)
    assert [(j.title, j.location) for j in jobs] == [("Backend Engineer", "Austin"), ("Data Scientist", None)]


def test_dedupe_ignores_case_and_whitespace():
    jobs = [
        RawJob(title="Engineer", location="Berlin "),
        RawJob(title=" engineer ", location="berlin"),
        RawJob(title="Engineer", location="Paris"),
        RawJob(title="   "),
    ]

    unique = dedupe_jobs(jobs)

    assert [(j.title, j.location) for j in unique] == [("Engineer", "Berlin"), ("Engineer", "Paris")]


def test_static_stage_wins_without_touching_the_browser():
    browser = FakeBrowser()

    jobs = scrape(httpx.Response(200, html=JOB_CARDS), browser)

    assert len(jobs) == 3
    assert browser.calls == []


def test_network_interception_after_empty_static_page():
    browser = FakeBrowser(
        payloads=[
            {"consent": "ok"},
            {"jobs": [{"title": "Backend Engineer", "location": "Austin"}, {"title": "Data Scientist"}]},
        ]
    )

    jobs = scrape(httpx.Response(200, html=EMPTY_SHELL), browser)

    assert [j.title for j in jobs] == ["Backend Engineer", "Data Scientist"]
    assert browser.calls == ["intercept"]


def test_rendered_dom_after_static_error_and_empty_interception():
    browser = FakeBrowser(payloads=[], html=JOB_CARDS)

    jobs = scrape(httpx.Response(500), browser)

    assert len(jobs) == 3
    assert browser.calls == ["intercept", "render"]


def test_all_stages_failing_returns_empty_and_logs(caplog):
    browser = FakeBrowser(
        intercept_error=ScrapeStageError("browser crashed"),
        html="<html><head><title>404 Not Found</title></head><body></body></html>",
    )

    with caplog.at_level(logging.WARNING):
        jobs = scrape(httpx.Response(404), browser)

    assert jobs == []
    assert "fallback_scraper_no_results" in caplog.text


def test_menu_items_are_rejected_as_jobs():
    assert scrape(httpx.Response(200, html=MENU_ONLY), NullBrowser()) == []


def test_null_browser_is_unavailable():
    browser = NullBrowser()

    assert not browser.available()
    with pytest.raises(ScrapeStageError):
        asyncio.run(browser.render_html(CAREERS_URL))


def test_raw_jobs_normalize_to_stable_fallback_ids():
    raws = [
        RawJob(title="Engineer", url="https://acme.com/jobs/1"),
        RawJob(title="Engineer", location="Remote"),
        RawJob(title="  "),
    ]

    jobs = normalize_raw_jobs(raws, "acme.com")

    assert len(jobs) == 2
    assert jobs[0].external_id == f"fallback:{stable_digest('https://acme.com/jobs/1', 'Engineer', None)}"
    assert jobs[1].external_id == f"fallback:{stable_digest(None, 'Engineer', 'Remote')}"
    assert jobs[1].work_type == "remote"
    assert all(job.source == "fallback" for job in jobs)


def test_cards_sharing_one_link_keep_distinct_ids():
    html = """
    <html><body><ul>
      <li class="job-card"><a href="#">Platform Engineer</a><span>Berlin</span></li>
      <li class="job-card"><a href="#apply">Product Designer</a><span>London</span></li>
      <li class="job-card"><a href="/careers">Data Analyst</a><span>Remote</span></li>
    </ul></body></html>
    """

    raws = scrape(httpx.Response(200, html=html), NullBrowser())
    jobs = normalize_raw_jobs(raws, "acme.com")

    assert [job.title for job in jobs] == ["Platform Engineer", "Product Designer", "Data Analyst"]
    assert all(job.apply_url is None for job in jobs)
    assert len({job.external_id for job in jobs}) == 3


def test_shared_apply_page_does_not_merge_postings():
    same_url = "https://acme.com/apply"
    raws = [RawJob(title="Engineer", location="Berlin", url=same_url), RawJob(title="Designer", location="Berlin", url=same_url)]

    jobs = normalize_raw_jobs(raws, "acme.com")

    assert jobs[0].external_id != jobs[1].external_id
    assert {job.apply_url for job in jobs} == {same_url}
