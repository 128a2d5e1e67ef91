from __future__ import annotations
import re
from urllib.parse import urlparse

_NON_ALNUM = re.compile(r"[^a-z0-9]+", re.I)
_TLD = re.compile(r"\.\w+$")

ALTERNATE_FORMS = ("{hyphenated}-inc", "{stripped}hq")


def normalize_domain(value: str) -> str:
    """``https://www.Acme.com/careers`` -> ``acme.com``."""
    raw = (value or "").strip().lower()
    if not raw:
        return ""
    if "//" not in raw:
        raw = f"//{raw}"
    host = urlparse(raw).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return host.strip(".")


def base_name(company_domain: str) -> str:
    return _TLD.sub("", company_domain)


def dedupe(values) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for value in values:
        value = (value or "").strip("-")
        if not value or value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


def slug_parts(company_domain: str) -> dict[str, str]:
    base = base_name(company_domain)
    return {
        "base": base,
        "stripped": _NON_ALNUM.sub("", base),
        "hyphenated": _NON_ALNUM.sub("-", base),
        "domain_stripped": _NON_ALNUM.sub("", company_domain),
        "domain_hyphenated": company_domain.replace(".", "-"),
    }


def standard_guesses(company_domain: str, alternates: bool = True) -> list[str]:
    """Slug guesses in probing order.

    ``acme.com`` -> acme, acmecom, acme-com, acme-inc, acmehq
    ``lemon.markets`` -> lemon, lemonmarkets, lemon-markets, lemon-inc, lemonhq
    """
    parts = slug_parts(company_domain)
    guesses = [
        parts["base"],
        parts["stripped"],
        parts["hyphenated"],
        parts["domain_stripped"],
        parts["domain_hyphenated"],
    ]
    if alternates:
        guesses.extend(form.format(**parts) for form in ALTERNATE_FORMS)
    return dedupe(guesses)
