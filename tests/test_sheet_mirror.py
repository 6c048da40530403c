import threading
import time
from datetime import date
from decimal import Decimal

import pytest

from fintrack.db.core import MirrorTarget, ValidationError
from fintrack.models.account import ReconcileRequest, RealBalanceUpdate
from fintrack.models.budget import BudgetUpsert
from fintrack.models.debt import DebtCreate
from fintrack.models.expense import ExpenseCreate
from fintrack.models.income import IncomeCreate
from fintrack.models.investment import InvestmentMovementCreate
from fintrack.models.mirror_config import MirrorConfigUpsert, MirrorTargetEnum
from fintrack.services.ledger import Ledger
from fintrack.services.sheet_mirror import (
    MirrorEvent,
    SheetMirror,
    capital_cell,
    monthly_cell,
    offset_cell,
    qualified_range,
)
from tests.conftest import RecordingSheetSink

POSTED = date(2026, 3, 14)


class TestCellHelpers:
    """Tests for A1 reference helpers"""

    def test_qualified_range(self):
        assert qualified_range("Expenses", "A:I") == "Expenses!A:I"
        assert qualified_range("Expenses!", "A:I") == "Expenses!A:I"
        assert qualified_range("", "A:I") == "A:I"

    def test_offset_cell(self):
        assert offset_cell("l3", 2) == "L5"

    def test_offset_rejects_ranges(self):
        with pytest.raises(ValueError):
            offset_cell("A1:B2", 1)

    def test_monthly_cell_starts_at_january(self):
        assert monthly_cell("Summary", "C3", 1) == "Summary!C3"
        assert monthly_cell("Summary", "C3", 12) == "Summary!C14"

    def test_capital_cell_indexed_by_account(self):
        assert capital_cell("Accounting", "L3", 1) == "Accounting!L3"
        assert capital_cell("Accounting", "L3", 4) == "Accounting!L6"


class TestMirrorDelivery:
    """Tests for copying committed postings into the sheet"""

    def test_expense_appended_after_commit(self, mirrored_ledger, sink, seeded):
        mirrored_ledger.record_expense(ExpenseCreate(
            transaction_date=POSTED, amount=Decimal("12.30"), account_id=seeded.bank, category_id=seeded.food,
        ))
        mirrored_ledger.mirror.flush()

        sheet_range, values = sink.appended[0]
        assert sheet_range == "Expenses!A:I"
        assert values[0] == "2026-03-14"
        assert values[1] == "TestFood"
        assert values[2] == 12.3

    def test_income_updates_monthly_total(self, mirrored_ledger, sink, seeded):
        for amount in ("100.00", "50.00"):
            mirrored_ledger.record_income(IncomeCreate(
                transaction_date=POSTED, amount=Decimal(amount), account_id=seeded.bank,
            ))
        mirrored_ledger.mirror.flush()

        assert [r for r, _ in sink.appended] == ["Incomes!A:E", "Incomes!A:E"]
        assert sink.appended[0][1][2] == "TestBank"
        assert sink.cells[-1] == ("Summary!C5", 150.0)

    def test_investment_movement_updates_capital_cell(self, mirrored_ledger, sink, seeded):
        mirrored_ledger.record_investment_movement(InvestmentMovementCreate(
            transaction_date=POSTED, amount=Decimal("200.00"), investment_account_id=seeded.broker, kind="deposit",
        ))
        mirrored_ledger.mirror.flush()

        assert sink.appended[0][0] == "Investments!A:F"
        assert sink.cells == [("Accounting!L4", 4200.0)]

    def test_debt_row_marks_direction(self, mirrored_ledger, sink, seeded):
        mirrored_ledger.record_debt(DebtCreate(
            transaction_date=POSTED, amount=Decimal("25.00"), debtor_id=seeded.jane,
        ))
        mirrored_ledger.mirror.flush()

        values = sink.appended[0][1]
        assert values[2] == "TestJane"
        assert values[5] == "Lent"

    def test_budgets_written_as_range(self, mirrored_ledger, sink, seeded):
        mirrored_ledger.upsert_budgets([
            BudgetUpsert(category_id=seeded.food, amount=Decimal("400")),
            BudgetUpsert(category_id=seeded.transport, amount=Decimal("120")),
        ])
        mirrored_ledger.mirror.flush()

        assert sink.ranges == [("Budget!B2:B20", [[400.0], [120.0]])]

    def test_reconciled_balances_written_in_id_order(self, mirrored_ledger, sink, seeded):
        mirrored_ledger.set_real_balances(ReconcileRequest(
            accounts=[RealBalanceUpdate(id=seeded.savings, balance=Decimal("510"))],
        ))
        mirrored_ledger.mirror.flush()

        assert sink.ranges == [("Accounting!C3:C20", [[1000.0], [510.0], [2000000.0]])]

    def test_rejected_posting_publishes_nothing(self, mirrored_ledger, sink, seeded):
        with pytest.raises(ValidationError):
            mirrored_ledger.record_expense(ExpenseCreate(
                transaction_date=POSTED, amount=Decimal("0"), account_id=seeded.bank,
            ))
        mirrored_ledger.mirror.flush()

        assert sink.appended == []
        assert mirrored_ledger.mirror.failures == []

    def test_unconfigured_target_recorded_as_failure(self, mirrored_ledger, sink, seeded):
        """Investment account balances have no sheet configured in the fixture"""
        mirrored_ledger.set_real_balances(ReconcileRequest(
            investment_accounts=[RealBalanceUpdate(id=seeded.crypto, balance=Decimal("1250"))],
        ))
        mirrored_ledger.mirror.flush()

        failures = mirrored_ledger.mirror.failures
        assert [f.target for f in failures] == [MirrorTarget.ACCOUNTING_INVESTMENT_ACCOUNTS]
        assert "no mirror config" in failures[0].error


class TestMirrorFailures:
    """A broken sheet never affects the ledger"""

    def test_failing_sink_does_not_fail_posting(self, store, seeded):
        failing = RecordingSheetSink(fail=True)
        ledger = Ledger(store, failing)
        ledger.start()
        try:
            ledger.set_mirror_config(MirrorConfigUpsert(target=MirrorTargetEnum.EXPENSE, sheet="Expenses", a1_range="A:I"))

            expense = ledger.record_expense(ExpenseCreate(
                transaction_date=POSTED, amount=Decimal("10.00"), account_id=seeded.bank,
            ))
            ledger.mirror.flush()
        finally:
            ledger.mirror.stop()

        assert expense.id is not None
        assert ledger.get_expected_balance(seeded.bank) == Decimal("990.00")
        failures = ledger.mirror.failures
        assert len(failures) == 1
        assert failures[0].target is MirrorTarget.EXPENSE
        assert "sheets api unavailable" in failures[0].error

    def test_full_queue_recorded_as_failure(self):
        mirror = SheetMirror(RecordingSheetSink(), lambda: {}, queue_size=1)
        mirror.publish(MirrorEvent(MirrorTarget.EXPENSE, values=["a"]))
        mirror.publish(MirrorEvent(MirrorTarget.EXPENSE, values=["b"]))

        assert [f.error for f in mirror.failures] == ["mirror queue is full"]

    def test_stop_returns_when_queue_stays_full(self):
        """A worker stuck on a slow sheet must not hang shutdown"""
        entered = threading.Event()
        release = threading.Event()

        class StuckSink(RecordingSheetSink):
            def append_row(self, sheet_range, values):
                entered.set()
                release.wait(5)
                super().append_row(sheet_range, values)

        sink = StuckSink()
        mirror = SheetMirror(sink, lambda: {MirrorTarget.EXPENSE: ("Expenses", "A:I")}, queue_size=1)
        mirror.start()
        try:
            mirror.publish(MirrorEvent(MirrorTarget.EXPENSE, values=["a"]))
            assert entered.wait(5)
            mirror.publish(MirrorEvent(MirrorTarget.EXPENSE, values=["b"]))

            started = time.monotonic()
            mirror.stop(timeout=0.1)
            assert time.monotonic() - started < 2
        finally:
            release.set()

        assert mirror.failures == []
