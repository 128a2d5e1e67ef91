from __future__ import annotations

import pytest

from careersync.crawlers.adapters.ashby import AshbyAdapter
from careersync.crawlers.adapters.comeet import ComeetAdapter
from careersync.crawlers.adapters.common import map_employment_type, map_work_type
from careersync.crawlers.adapters.greenhouse import GreenhouseAdapter
from careersync.crawlers.adapters.lever import LeverAdapter
from careersync.crawlers.adapters.paylocity import PaylocityAdapter
from careersync.crawlers.adapters.pinpoint import PinpointAdapter
from careersync.crawlers.adapters.recruitee import RecruiteeAdapter
from careersync.crawlers.adapters.rippling import RipplingAdapter
from careersync.crawlers.adapters.smartrecruiters import SmartRecruitersAdapter
from careersync.crawlers.adapters.workable import WorkableAdapter
from careersync.crawlers.adapters.workday import WorkdayAdapter
from careersync.crawlers.base import EMPLOYMENT_TYPES, WORK_TYPES


def test_workable_normalize_uses_shortcode_and_telecommuting():
    native = {
        "shortcode": "AB12CD",
        "title": "Backend Engineer",
        "department": "Engineering",
        "url": "https://apply.workable.com/acme/j/AB12CD/",
        "location": {"city": "Berlin", "region": "", "country": "Germany", "telecommuting": True},
    }

    job = WorkableAdapter().normalize(native, "acme.com")

    assert job.external_id == "workable:AB12CD"
    assert job.work_type == "remote"
    assert job.location == "Berlin, Germany"
    assert job.description == "Apply for Backend Engineer at acme.com."
    assert job.apply_url == "https://apply.workable.com/acme/j/AB12CD/"


def test_greenhouse_normalize_strips_escaped_html_content():
    native = {
        "id": 4012345,
        "title": "Data Analyst",
        "content": "&lt;p&gt;Own our &lt;strong&gt;metrics&lt;/strong&gt;&lt;/p&gt;",
        "departments": [{"name": "Analytics"}, {"name": "Finance"}],
        "location": {"name": "London"},
        "absolute_url": "https://boards.greenhouse.io/acme/jobs/4012345",
    }

    job = GreenhouseAdapter().normalize(native, "acme.com")

    assert job.external_id == "greenhouse:4012345"
    assert job.description == "Own our metrics"
    assert job.department == "Analytics"
    assert job.location == "London"


def test_lever_normalize_maps_commitment_workplace_and_salary():
    native = {
        "id": "5f1d-aa",
        "text": "Product Designer",
        "categories": {"commitment": "Part-time", "department": "Design", "location": "Lisbon"},
        "workplaceType": "hybrid",
        "hostedUrl": "https://jobs.lever.co/acme/5f1d-aa",
        "salaryRange": {"min": 50000, "max": 70000},
        "descriptionPlain": "Design things",
    }

    job = LeverAdapter(min_interval=0).normalize(native, "acme.com")

    assert job.employment_type == "part_time"
    assert job.work_type == "hybrid"
    assert job.apply_url == "https://jobs.lever.co/acme/5f1d-aa"
    assert (job.salary_min, job.salary_max, job.salary_currency) == (50000, 70000, "USD")


def test_ashby_filters_unlisted_and_remote_flag_wins():
    adapter = AshbyAdapter()
    jobs = adapter.extract_jobs(
        {
            "jobs": [
                {"id": "a1", "title": "Senior Engineer", "isListed": True, "isRemote": True, "workplaceType": "OnSite",
                 "employmentType": "Intern", "jobUrl": "https://jobs.ashbyhq.com/acme/a1"},
                {"id": "a2", "title": "Hidden", "isListed": False},
            ]
        }
    )

    assert [j["id"] for j in jobs] == ["a1"]
    job = adapter.normalize(jobs[0], "acme.com")
    assert job.work_type == "remote"
    assert job.employment_type == "internship"
    assert job.apply_url == "https://jobs.ashbyhq.com/acme/a1"


def test_recruitee_combines_description_and_requirements():
    native = {
        "id": 77,
        "title": "Sales Manager",
        "description": "<p>Sell</p>",
        "requirements": "<p>Experience</p>",
        "hybrid": True,
        "city": "Amsterdam",
        "country": "Netherlands",
        "careers_url": "https://acme.recruitee.com/o/sales-manager",
    }

    job = RecruiteeAdapter().normalize(native, "acme.com")

    assert job.description == "<p>Sell</p>\n<p>Experience</p>"
    assert job.work_type == "hybrid"
    assert job.location == "Amsterdam, Netherlands"
    assert job.external_id == "recruitee:77"


def test_smartrecruiters_reads_job_ad_sections():
    native = {
        "id": "744000012345",
        "name": "Marketing Lead",
        "ref_url": "https://jobs.smartrecruiters.com/Acme/744000012345",
        "typeOfEmployment": {"label": "Contract"},
        "department": {"label": "Marketing"},
        "location": {"city": "Paris", "country": "fr", "remote": False},
        "jobAd": {"sections": {"jobDescription": {"text": "Lead"}, "qualifications": {"text": "Skills"}}},
    }

    job = SmartRecruitersAdapter().normalize(native, "acme.com")

    assert job.employment_type == "contract"
    assert job.description == "Lead\nSkills"
    assert job.location == "Paris, fr"


def test_pinpoint_and_rippling_guess_orders():
    assert PinpointAdapter().guesses("acme.com")[-2:] == ["workwithus", "acme-careers"]
    assert RipplingAdapter().guesses("acme.com")[:2] == ["acme-jobs", "acme"]


def test_workday_external_id_prefers_requisition_bullet():
    adapter = WorkdayAdapter()
    with_bullet = {"title": "Analyst", "externalPath": "/job/Berlin/Analyst_R-100", "bulletFields": ["R-100"]}
    without = {"title": "Analyst", "externalPath": "/job/Berlin/Analyst_R-100", "bulletFields": []}

    a = adapter.normalize(with_bullet, "acme.com", "acme|wd5|External")
    b = adapter.normalize(without, "acme.com", "acme|wd5|External")

    assert a.external_id == "workday:R-100"
    assert b.external_id == "workday:_job_Berlin_Analyst_R-100"
    assert a.apply_url == "https://acme.wd5.myworkdayjobs.com/en-US/External/job/Berlin/Analyst_R-100"


def test_comeet_and_paylocity_normalize():
    comeet = ComeetAdapter().normalize(
        {
            "uid": "D1.2A3",
            "name": "QA Engineer",
            "location": {"name": "Tel Aviv Office", "city": "", "country": "IL"},
            "workplace_type": "On-site",
            "employment_type": "Full-time",
            "url_active_page": "https://acme.com/careers/?pos=D1.2A3",
        },
        "acme.com",
    )
    paylocity = PaylocityAdapter().normalize(
        {"id": 991, "requisitionId": "REQ-7", "title": "Nurse", "employmentType": "Temporary"}, "acme.com"
    )

    assert comeet.external_id == "comeet:D1.2A3"
    assert comeet.location == "Tel Aviv Office, IL"
    assert comeet.work_type == "onsite"
    assert paylocity.external_id == "paylocity:REQ-7"
    assert paylocity.employment_type == "contract"


def test_normalize_is_deterministic():
    native = {"shortcode": "XYZ", "title": "Engineer", "location": {}}

    first = WorkableAdapter().normalize(native, "acme.com")
    second = WorkableAdapter().normalize(dict(native), "acme.com")

    assert first == second
    assert first.external_id == second.external_id


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Internship", "internship"),
        ("Summer Intern", "internship"),
        ("Contractor", "contract"),
        ("Freelance", "contract"),
        ("Temporary", "contract"),
        ("Part-time", "part_time"),
        ("FULL_TIME", "full_time"),
        ("Permanent", "full_time"),
        ("", "full_time"),
        (None, "full_time"),
    ],
)
def test_employment_type_mapping_is_total(value, expected):
    assert map_employment_type(value) == expected
    assert map_employment_type(value) in EMPLOYMENT_TYPES


def test_work_type_mapping():
    assert map_work_type("Remote - EU") == "remote"
    assert map_work_type("Hybrid") == "hybrid"
    assert map_work_type("In office") == "onsite"
    assert map_work_type(None) == "unknown"
    assert all(map_work_type(v) in WORK_TYPES for v in ("x", "on-site", ""))
