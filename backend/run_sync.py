from __future__ import annotations
import argparse
import asyncio
import logging
import sys

from pydantic import TypeAdapter

from careersync.db.database import SessionLocal
from careersync.db.init_db import init_db
from careersync.crawlers.fallback.browser import default_browser
from careersync.schemas import AtsAccountOut, CompanySyncDetailOut, SyncReportOut, SyncRunOut
from careersync.services.discovery_service import (
    discover_and_sync_company,
    run_discovery_rounds,
    sync_jobs_from_cache,
)
from careersync.services.stores import AccountCache, SyncRunLog

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger("run_sync")


def read_domains(path: str) -> list[str]:
    """One domain per line; blank lines and ``#`` comments are ignored. ``-`` reads stdin."""
    handle = sys.stdin if path == "-" else open(path, encoding="utf-8")
    try:
        lines = [line.split("#", 1)[0].strip() for line in handle]
    finally:
        if handle is not sys.stdin:
            handle.close()
    return [line for line in lines if line]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover ATS accounts and sync their job postings.")
    sub = parser.add_subparsers(dest="command", required=True)

    domain = sub.add_parser("domain", help="discover and sync one company domain")
    domain.add_argument("company_domain")
    domain.add_argument("--careers-url", default=None, help="careers page to scrape when no ATS is found")

    discover = sub.add_parser("discover", help="batch discovery over domains not yet cached")
    discover.add_argument("domains_file", help="file with one domain per line, or - for stdin")
    discover.add_argument("--batch-size", type=int, default=50, help="domains per round")
    discover.add_argument("--max-rounds", type=int, default=200)

    sub.add_parser("refresh", help="re-fetch every cached ATS account")

    sub.add_parser("accounts", help="list cached ATS accounts")

    runs = sub.add_parser("runs", help="list recent sync runs")
    runs.add_argument("--limit", type=int, default=20)
    return parser


async def run(args: argparse.Namespace) -> str:
    db = SessionLocal()
    try:
        if args.command == "domain":
            detail = await discover_and_sync_company(
                db,
                args.company_domain,
                careers_url=args.careers_url,
                browser=default_browser(),
            )
            return CompanySyncDetailOut.model_validate(detail, from_attributes=True).model_dump_json(indent=2)
        if args.command == "discover":
            domains = read_domains(args.domains_file)
            report = await run_discovery_rounds(db, domains, args.batch_size, args.max_rounds)
            return SyncReportOut.model_validate(report.as_dict()).model_dump_json(indent=2)
        if args.command == "refresh":
            report = await sync_jobs_from_cache(db)
            return SyncReportOut.model_validate(report.as_dict()).model_dump_json(indent=2)
        if args.command == "accounts":
            return dump_rows(list[AtsAccountOut], AccountCache(db).all())
        return dump_rows(list[SyncRunOut], SyncRunLog(db).latest(args.limit))
    finally:
        db.close()


def dump_rows(schema, rows) -> str:
    adapter = TypeAdapter(schema)
    return adapter.dump_json(adapter.validate_python(rows, from_attributes=True), indent=2).decode()


if __name__ == "__main__":
    arguments = build_parser().parse_args()
    init_db()
    print(asyncio.run(run(arguments)))
