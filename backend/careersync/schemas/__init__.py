from __future__ import annotations
from careersync.schemas.report import AtsAccountOut, CompanySyncDetailOut, SyncReportOut
from careersync.schemas.run import SyncRunOut

__all__ = [
    "AtsAccountOut",
    "CompanySyncDetailOut",
    "SyncReportOut",
    "SyncRunOut",
]
