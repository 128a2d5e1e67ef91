from __future__ import annotations
from careersync.db.database import Base, engine
from careersync.models import ats_account, job, sync_run  # noqa: F401
from careersync.services.seed import seed_known_accounts


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    seed_known_accounts()
