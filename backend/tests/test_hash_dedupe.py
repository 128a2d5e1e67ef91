from __future__ import annotations
import pytest

from careersync.crawlers.registry import ADAPTERS, get_adapter, provider_order
from careersync.crawlers.slugs import normalize_domain, standard_guesses
from careersync.utils.hash import fallback_job_hash, stable_digest


def test_fallback_hash_is_stable_and_case_insensitive():
    a = fallback_job_hash("https://x.com/job/1", "Senior Engineer", "Berlin")
    b = fallback_job_hash(" https://X.com/job/1 ", "senior engineer", "berlin")
    c = fallback_job_hash("https://x.com/job/2", "senior engineer", "berlin")

    assert a == b
    assert a != c


def test_fallback_hash_always_includes_title_and_location():
    assert fallback_job_hash(None, "Engineer", "Berlin") == stable_digest("", "engineer", "berlin")
    assert fallback_job_hash("https://x.com/apply", "Engineer", "Berlin") != fallback_job_hash(
        "https://x.com/apply", "Designer", "Berlin"
    )
    assert fallback_job_hash("", "Engineer", "Berlin") != fallback_job_hash("", "Engineer", "Paris")
    assert len(stable_digest("anything")) == 24


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("acme.com", "acme.com"),
        ("https://www.Acme.com/careers", "acme.com"),
        ("  WWW.acme.co.uk ", "acme.co.uk"),
        ("", ""),
    ],
)
def test_normalize_domain(raw, expected):
    assert normalize_domain(raw) == expected


def test_standard_guesses_order():
    assert standard_guesses("acme.com") == ["acme", "acmecom", "acme-com", "acme-inc", "acmehq"]
    assert standard_guesses("my-company.io") == [
        "my-company",
        "mycompany",
        "mycompanyio",
        "my-company-io",
        "my-company-inc",
        "mycompanyhq",
    ]
    assert standard_guesses("acme.com", alternates=False) == ["acme", "acmecom", "acme-com"]


def test_provider_order_and_adapter_cache():
    order = provider_order(["lever", "bogus"])

    assert order[:2] == ["lever", "workable"]
    assert sorted(order) == sorted(ADAPTERS)
    assert get_adapter("lever") is get_adapter("lever")
    with pytest.raises(KeyError):
        get_adapter("taleo")
