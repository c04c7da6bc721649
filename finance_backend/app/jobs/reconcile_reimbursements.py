"""
Reconciliation batch entry point.

Posts every approved-but-unposted reimbursement to the ledger and prints a
summary. Exit code is 1 when any reimbursement failed to post.

    python -m finance_backend.app.jobs.reconcile_reimbursements
    finance-reconcile --database-url postgresql+asyncpg://...
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from finance_backend.app.core.config import settings
from finance_backend.app.core.observability import configure_logging
from finance_backend.app.db.session import Database
from finance_backend.app.domain.ledger.reconciliation import ReconciliationJob, ReconciliationReport

logger = logging.getLogger("finance.reconciliation")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Post approved reimbursements missing from the ledger.")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="SQLAlchemy async URL (defaults to DATABASE_URL / .env)",
    )
    parser.add_argument("--log-level", default=settings.log_level)
    return parser.parse_args(argv)


def format_report(report: ReconciliationReport) -> str:
    lines = [
        "--- Reconciliation Complete ---",
        f"Total Approved: {report.total_approved}",
        f"Already Posted: {report.already_posted}",
        f"Newly Posted: {report.newly_posted}",
        f"Errors: {report.errors}",
    ]
    lines.extend(f"  {failure.id}: {failure.message}" for failure in report.failures)
    return "\n".join(lines)


async def reconcile(database_url: str) -> ReconciliationReport:
    database = Database(
        database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
    try:
        return await ReconciliationJob(database).run()
    finally:
        await database.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        report = asyncio.run(reconcile(args.database_url))
    except Exception:
        logger.exception("Reconciliation aborted")
        return 2

    print(format_report(report))
    return 0 if report.errors == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
