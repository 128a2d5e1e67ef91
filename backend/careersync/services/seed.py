from __future__ import annotations

from sqlalchemy.orm import Session

from careersync.db.database import SessionLocal
from careersync.models.ats_account import AtsAccount

# Accounts confirmed by hand. Their slugs don't follow the domain, so discovery would miss them.
KNOWN_ACCOUNTS = [
    ("quantive.com", "workable", "quantive"),
    ("beesandbears.com", "personio", "bees-bears-gmbh"),
    ("lemon.markets", "ashby", "lemon-markets"),
    ("getguru.ai", "ashby", "strange-loop-labs"),
    ("getivy.io", "ashby", "get-ivy"),
    ("cello.so", "personio", "cello"),
    ("penzilla.de", "personio", "penzilla-gmbh"),
    ("fides.technology", "personio", "fides-technology-gmbh"),
    ("rouvia.com", "personio", "rouvia"),
    ("tradelink.co", "lever", "tradelink"),
    ("dagshub.com", "workable", "dagshub"),
    ("datamilk.ai", "workable", "datamilk"),
    ("dlthub.com", "workable", "dlthub"),
    ("graphyapp.com", "workable", "graphy"),
    ("opna.earth", "workable", "opna"),
    ("stakester.com", "workable", "stakester"),
    ("symmetrical.ai", "workable", "symmetrical"),
    ("mindsdb.com", "greenhouse", "mindsdb"),
]


def seed_known_accounts(db: Session | None = None) -> None:
    """Put the hand-confirmed accounts into the cache so refreshes fetch them directly."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        existing = {row.company_domain: row for row in db.query(AtsAccount).all()}
        for domain, provider, slug in KNOWN_ACCOUNTS:
            row = existing.get(domain)
            if row is None:
                db.add(AtsAccount(company_domain=domain, provider=provider, slug=slug))
            else:
                row.provider = provider
                row.slug = slug
                db.add(row)
        db.commit()
    finally:
        if own_session:
            db.close()
