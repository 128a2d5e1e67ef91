from __future__ import annotations
from careersync.models.ats_account import AtsAccount
from careersync.models.job import Job
from careersync.models.sync_run import SyncRun

__all__ = ["AtsAccount", "Job", "SyncRun"]
