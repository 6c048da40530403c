"""
Spreadsheet Mirror

Copies committed ledger activity into a Google spreadsheet. Events are queued
after the ledger transaction commits and delivered by a single worker thread,
at most once each. A failed delivery is logged and kept in the failure log;
it never reaches the caller that recorded the posting.
"""
import enum
import queue
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

import gspread
from google.oauth2.service_account import Credentials
from typing_extensions import assert_never

from fintrack.db.core import MirrorTarget, utcnow
from fintrack.logging_config import get_logger

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

MirrorConfig = Dict[MirrorTarget, Tuple[str, str]]


# ===== SINKS =====

class SheetSink(ABC):
    """Where mirrored rows end up."""

    @abstractmethod
    def append_row(self, sheet_range: str, values: List[Any]) -> None:
        ...

    @abstractmethod
    def update_cell(self, cell_ref: str, value: Any) -> None:
        ...

    @abstractmethod
    def update_range(self, sheet_range: str, rows: List[List[Any]]) -> None:
        ...


class NullSheetSink(SheetSink):
    """Used when no spreadsheet is configured."""

    def append_row(self, sheet_range: str, values: List[Any]) -> None:
        logger.debug(f"Mirror disabled, dropping row for {sheet_range}")

    def update_cell(self, cell_ref: str, value: Any) -> None:
        logger.debug(f"Mirror disabled, dropping update of {cell_ref}")

    def update_range(self, sheet_range: str, rows: List[List[Any]]) -> None:
        logger.debug(f"Mirror disabled, dropping {len(rows)} row(s) for {sheet_range}")


class GoogleSheetSink(SheetSink):
    """Writes through the Sheets values API with a service account."""

    def __init__(self, spreadsheet_id: str, credentials_file: str):
        self.spreadsheet_id = spreadsheet_id
        self.credentials_file = credentials_file
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    def _get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            credentials = Credentials.from_service_account_file(self.credentials_file, scopes=SCOPES)
            client = gspread.authorize(credentials)
            self._spreadsheet = client.open_by_key(self.spreadsheet_id)
        return self._spreadsheet

    def append_row(self, sheet_range: str, values: List[Any]) -> None:
        self._get_spreadsheet().values_append(
            sheet_range,
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": [values]},
        )

    def update_cell(self, cell_ref: str, value: Any) -> None:
        self._get_spreadsheet().values_update(
            cell_ref,
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": [[value]]},
        )

    def update_range(self, sheet_range: str, rows: List[List[Any]]) -> None:
        self._get_spreadsheet().values_update(
            sheet_range,
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": rows},
        )


# ===== EVENTS =====

@dataclass(frozen=True)
class MirrorEvent:
    """
    One thing to copy into the sheet.

    values: a single row for append targets.
    rows: ordered rows for range targets (account balances, budgets).
    value/key: a single cell for cell targets. key is the month for
    INCOME_MONTHLY and the investment account id for INVESTMENT_CAPITAL.
    """
    target: MirrorTarget
    values: List[Any] = field(default_factory=list)
    rows: List[List[Any]] = field(default_factory=list)
    value: Any = None
    key: Optional[int] = None


@dataclass(frozen=True)
class MirrorFailure:
    target: MirrorTarget
    error: str
    failed_at: datetime


def cell_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def qualified_range(sheet: str, a1_range: str) -> str:
    if not sheet:
        return a1_range
    if sheet.endswith("!"):
        return f"{sheet}{a1_range}"
    return f"{sheet}!{a1_range}"


_CELL = re.compile(r"^([A-Za-z]+)(\d+)$")


def offset_cell(a1_cell: str, rows_down: int) -> str:
    """'L3', 2 -> 'L5'. The base must be a single cell reference."""
    match = _CELL.match(a1_cell.strip())
    if match is None:
        raise ValueError(f"Expected a single cell reference, got '{a1_cell}'")
    column, row = match.groups()
    return f"{column.upper()}{int(row) + rows_down}"


def monthly_cell(sheet: str, a1_cell: str, month: int) -> str:
    """Cell for a month in a column of twelve monthly cells starting at a1_cell (January)."""
    return qualified_range(sheet, offset_cell(a1_cell, month - 1))


def capital_cell(sheet: str, a1_cell: str, investment_account_id: int) -> str:
    """Capital cell of an investment account in a column indexed by id, a1_cell being id 1."""
    return qualified_range(sheet, offset_cell(a1_cell, investment_account_id - 1))


# ===== ROW BUILDERS =====

def expense_row(expense) -> List[Any]:
    return [cell_value(v) for v in (
        expense.transaction_date, expense.category, expense.amount, expense.description,
        expense.method, expense.original_amount, expense.category_id, expense.account_id,
        expense.account_type,
    )]


def income_row(income, account_name: str) -> List[Any]:
    return [cell_value(v) for v in (
        income.transaction_date, income.account_id, account_name, income.description, income.amount,
    )]


def investment_row(movement, investment_account_name: str) -> List[Any]:
    return [cell_value(v) for v in (
        movement.transaction_date, movement.investment_account_id, investment_account_name,
        movement.description, movement.amount, movement.kind,
    )]


def debt_row(debt) -> List[Any]:
    return [cell_value(v) for v in (
        debt.transaction_date, debt.debtor_id, debt.debtor_name, debt.description, debt.amount,
        "Lent" if debt.outbound else "Borrowed", debt.outbound,
    )]


def balance_rows(accounts) -> List[List[Any]]:
    """One single-cell row per account, ordered by id."""
    return [[cell_value(account.balance)] for account in sorted(accounts, key=lambda a: a.id)]


# ===== MIRROR =====

class SheetMirror:
    """
    Background delivery of MirrorEvents to a SheetSink.

    config_loader returns the (sheet, range) per target; it is called for every
    event so configuration changes apply without a restart.
    """

    def __init__(
        self,
        sink: SheetSink,
        config_loader: Callable[[], MirrorConfig],
        queue_size: int = 1000,
    ):
        self.sink = sink
        self.config_loader = config_loader
        self._queue: "queue.Queue[Optional[MirrorEvent]]" = queue.Queue(maxsize=queue_size)
        self._failures: List[MirrorFailure] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    # ----- lifecycle -----

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name="sheet-mirror", daemon=True)
        self._thread.start()
        logger.info(f"Sheet mirror started with {type(self.sink).__name__}")

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        try:
            self._queue.put(None, timeout=timeout)
        except queue.Full:
            logger.warning(f"Sheet mirror queue still full after {timeout}s, leaving the worker running")
        self._thread.join(timeout)
        self._thread = None
        logger.info("Sheet mirror stopped")

    def flush(self) -> None:
        """Block until every queued event has been handled."""
        self._queue.join()

    # ----- producer side -----

    def publish(self, event: MirrorEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._record_failure(event.target, "mirror queue is full")

    @property
    def failures(self) -> List[MirrorFailure]:
        with self._lock:
            return list(self._failures)

    # ----- worker side -----

    def _record_failure(self, target: MirrorTarget, error: str) -> None:
        logger.error(f"Sheet mirror failed for {target.value}: {error}")
        with self._lock:
            self._failures.append(MirrorFailure(target=target, error=error, failed_at=utcnow()))

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is None:
                    return
                self._deliver(event)
            except Exception as e:
                # Mirror problems stay here; the ledger already committed
                self._record_failure(event.target, str(e))
            finally:
                self._queue.task_done()

    def _deliver(self, event: MirrorEvent) -> None:
        config = self.config_loader()
        if event.target not in config:
            self._record_failure(event.target, "no mirror config for target")
            return
        sheet, a1_range = config[event.target]
        target = event.target

        if target is MirrorTarget.EXPENSE:
            self.sink.append_row(qualified_range(sheet, a1_range), event.values)
        elif target is MirrorTarget.INCOME:
            self.sink.append_row(qualified_range(sheet, a1_range), event.values)
        elif target is MirrorTarget.INVESTMENT:
            self.sink.append_row(qualified_range(sheet, a1_range), event.values)
        elif target is MirrorTarget.DEBT:
            self.sink.append_row(qualified_range(sheet, a1_range), event.values)
        elif target is MirrorTarget.INCOME_MONTHLY:
            self.sink.update_cell(monthly_cell(sheet, a1_range, event.key), cell_value(event.value))
        elif target is MirrorTarget.INVESTMENT_CAPITAL:
            self.sink.update_cell(capital_cell(sheet, a1_range, event.key), cell_value(event.value))
        elif target is MirrorTarget.BUDGET:
            self.sink.update_range(qualified_range(sheet, a1_range), event.rows)
        elif target is MirrorTarget.ACCOUNTING_ACCOUNTS:
            self.sink.update_range(qualified_range(sheet, a1_range), event.rows)
        elif target is MirrorTarget.ACCOUNTING_INVESTMENT_ACCOUNTS:
            self.sink.update_range(qualified_range(sheet, a1_range), event.rows)
        else:
            assert_never(target)

        logger.debug(f"Mirrored {target.value} to {sheet}")


def build_sink(spreadsheet_id: Optional[str], credentials_file: str) -> SheetSink:
    if not spreadsheet_id:
        return NullSheetSink()
    return GoogleSheetSink(spreadsheet_id, credentials_file)
