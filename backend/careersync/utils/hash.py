from __future__ import annotations
import hashlib


def stable_digest(*parts: str | None, length: int = 24) -> str:
    raw = "|".join((part or "").strip().lower() for part in parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:length]


def fallback_job_hash(url: str | None, title: str, location: str | None) -> str:
    """Identity of a scraped posting. Cards often share one apply link, so title and location always count."""
    return stable_digest(url, title, location)
