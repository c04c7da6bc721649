"""
Tests for the reimbursement reconciliation job, its admin endpoint and the
command line summary.
"""

import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from finance_backend.app.domain.ledger.posting_engine import PostingEngine
from finance_backend.app.domain.ledger.reconciliation import (
    ReconciliationFailure,
    ReconciliationJob,
    ReconciliationReport,
)
from finance_backend.app.jobs import reconcile_reimbursements
from finance_backend.app.models.finance_enums import ExpenseType, ReimbursementStatus, TransactionType
from finance_backend.app.models.reimbursement import Reimbursement, ReimbursementItem
from finance_backend.app.models.transaction import Transaction, TransactionItem


def _reimbursement(reimbursement_id, company_id, status, item_id=None):
    item_id = item_id or f"{reimbursement_id}-I1"
    return Reimbursement(
        id=reimbursement_id,
        date=dt.date(2024, 3, 1),
        requestor_name="Budi",
        category="Transportasi",
        company_id=company_id,
        description=f"Perjalanan {reimbursement_id}",
        grand_total=Decimal("50000"),
        status=status,
        items=[ReimbursementItem(id=item_id, position=0, name="Taxi", qty=1, price=Decimal("50000"), total=Decimal("50000"))],
    )


@pytest.fixture
async def approved_backlog(db_session, company):
    """
    Five BERHASIL reimbursements, two of them already in the ledger, plus
    requests in other statuses.
    """
    for reimbursement_id in ("A1", "A2", "A3", "A4", "A5"):
        db_session.add(_reimbursement(reimbursement_id, company.id, ReimbursementStatus.BERHASIL))
    db_session.add(_reimbursement("P1", company.id, ReimbursementStatus.PENDING))
    db_session.add(_reimbursement("D1", company.id, ReimbursementStatus.DITOLAK))
    await db_session.commit()

    for reimbursement_id in ("A1", "A2"):
        await PostingEngine.post(db_session, reimbursement_id)
    await db_session.commit()
    return company


async def _ledger_ids(database):
    async with database.session() as session:
        result = await session.execute(select(Transaction.id).order_by(Transaction.id))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_reconciliation_posts_missing_entries(database, approved_backlog):
    report = await ReconciliationJob(database).run()

    assert report.total_approved == 5
    assert report.already_posted == 2
    assert report.newly_posted == 3
    assert report.errors == 0
    assert await _ledger_ids(database) == ["A1", "A2", "A3", "A4", "A5"]

    async with database.session() as session:
        entry = (await session.execute(select(Transaction).where(Transaction.id == "A4"))).scalar_one()
    assert entry.type == TransactionType.PENGELUARAN
    assert entry.expense_type == ExpenseType.REIMBURSE
    assert entry.description == "Reimburse oleh: Budi - Perjalanan A4"


@pytest.mark.asyncio
async def test_second_run_posts_nothing(database, approved_backlog):
    await ReconciliationJob(database).run()
    report = await ReconciliationJob(database).run()

    assert report.total_approved == 5
    assert report.already_posted == 5
    assert report.newly_posted == 0
    assert report.errors == 0

    async with database.session() as session:
        count = (await session.execute(select(func.count()).select_from(TransactionItem))).scalar_one()
    assert count == 5


@pytest.mark.asyncio
async def test_failure_is_isolated(database, db_session, approved_backlog):
    """One reimbursement that cannot be posted does not stop the batch."""
    db_session.add(Transaction(
        id="MANUAL-1",
        date=dt.date(2024, 2, 1),
        type=TransactionType.PENGELUARAN,
        expense_type=ExpenseType.NORMAL,
        category="Operasional",
        company_id=approved_backlog.id,
        grand_total=Decimal("50000"),
        items=[TransactionItem(id="A3-I1", position=0, name="Printer", qty=1, price=Decimal("50000"), total=Decimal("50000"))],
    ))
    await db_session.commit()

    report = await ReconciliationJob(database).run()

    assert report.newly_posted == 2
    assert report.already_posted == 2
    assert report.errors == 1
    assert report.failures[0].id == "A3"
    assert report.failures[0].message
    assert "A3" not in await _ledger_ids(database)
    assert {"A4", "A5"} <= set(await _ledger_ids(database))


def _stale_first_check(mocker, target_id, recheck_error=None):
    """
    Make the first existence check for ``target_id`` miss. The second check
    either raises ``recheck_error`` or sees the real ledger.
    """
    original = PostingEngine.is_posted
    calls = {"count": 0}

    async def stale_check(db, reimbursement_id):
        if reimbursement_id != target_id:
            return await original(db, reimbursement_id)
        calls["count"] += 1
        if calls["count"] == 1:
            return False
        if recheck_error is not None:
            raise recheck_error
        return await original(db, reimbursement_id)

    mocker.patch.object(PostingEngine, "is_posted", side_effect=stale_check)


@pytest.mark.asyncio
async def test_lost_race_counts_as_already_posted(database, db_session, approved_backlog, mocker):
    """An entry posted between the check and the insert is reported, not duplicated."""
    await PostingEngine.post(db_session, "A3")
    await db_session.commit()
    _stale_first_check(mocker, "A3")

    report = await ReconciliationJob(database).run()

    assert report.already_posted == 3
    assert report.newly_posted == 2
    assert report.errors == 0
    async with database.session() as session:
        count = (await session.execute(
            select(func.count()).select_from(Transaction).where(Transaction.id == "A3")
        )).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_failed_recheck_is_isolated(database, approved_backlog, mocker):
    """A storage error while re-checking a lost race fails only that reimbursement."""
    _stale_first_check(mocker, "A1", recheck_error=OperationalError("SELECT", {}, ConnectionError("blip")))

    report = await ReconciliationJob(database).run()

    assert report.total_approved == 5
    assert report.errors == 1
    assert report.failures[0].id == "A1"
    assert report.already_posted == 1
    assert report.newly_posted == 3
    assert await _ledger_ids(database) == ["A1", "A2", "A3", "A4", "A5"]


@pytest.mark.asyncio
async def test_empty_backlog(database):
    report = await ReconciliationJob(database).run()

    assert report.as_dict() == {
        "total_approved": 0,
        "already_posted": 0,
        "newly_posted": 0,
        "errors": 0,
        "failures": [],
    }


@pytest.mark.asyncio
async def test_reconcile_endpoint(client, admin_headers, approved_backlog):
    response = await client.post("/v1/admin/ops/reconcile-reimbursements", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "totalApproved": 5,
        "alreadyPosted": 2,
        "newlyPosted": 3,
        "errors": 0,
        "failures": [],
    }


@pytest.mark.asyncio
async def test_reconcile_endpoint_requires_admin(client, employee_headers):
    response = await client.post("/v1/admin/ops/reconcile-reimbursements", headers=employee_headers)
    assert response.status_code == 403


def test_format_report():
    report = ReconciliationReport(
        total_approved=4,
        already_posted=1,
        newly_posted=2,
        failures=[ReconciliationFailure(id="R9", message="ledger rejected the entry")],
    )

    assert reconcile_reimbursements.format_report(report).splitlines() == [
        "--- Reconciliation Complete ---",
        "Total Approved: 4",
        "Already Posted: 1",
        "Newly Posted: 2",
        "Errors: 1",
        "  R9: ledger rejected the entry",
    ]


def test_cli_exit_codes(mocker, capsys):
    clean = ReconciliationReport(total_approved=1, newly_posted=1)
    mocker.patch.object(reconcile_reimbursements, "reconcile", mocker.AsyncMock(return_value=clean))
    mocker.patch.object(reconcile_reimbursements, "configure_logging")

    assert reconcile_reimbursements.main(["--database-url", "sqlite+aiosqlite:///:memory:"]) == 0
    assert "Newly Posted: 1" in capsys.readouterr().out

    failed = ReconciliationReport(total_approved=1, failures=[ReconciliationFailure(id="R1", message="boom")])
    reconcile_reimbursements.reconcile.return_value = failed
    assert reconcile_reimbursements.main([]) == 1

    reconcile_reimbursements.reconcile.side_effect = ConnectionError("refused")
    assert reconcile_reimbursements.main([]) == 2
