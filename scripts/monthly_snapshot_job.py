#!/usr/bin/env python
"""
Monthly Net Worth Snapshot Job

Computes the net worth snapshot for a month from the current real balances
and the expected balances replayed from the transaction log, then stores it
(replacing any earlier snapshot of the same month).

Usage:
    python scripts/monthly_snapshot_job.py [--year YYYY] [--month MM] [--dry-run]

Options:
    --year: Snapshot year (default: current year)
    --month: Snapshot month 1-12 (default: current month)
    --dry-run: Print the computed snapshot without storing it
"""
import sys
from pathlib import Path
from datetime import date
from argparse import ArgumentParser

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fintrack.config import load_settings
from fintrack.db.core import LedgerStore, LedgerError
from fintrack.logging_config import setup_logging
from fintrack.services.ledger import Ledger


def run_monthly_snapshot(ledger: Ledger, year: int, month: int, dry_run: bool = False):
    print("=" * 60)
    print(f"Running Net Worth Snapshot Job - {year}-{month:02d}")
    print("=" * 60)

    snapshot = ledger.compute_snapshot(year, month)

    print(f"  Fiat (real):        {snapshot.total_fiat_balance}")
    print(f"  Fiat (expected):    {snapshot.expected_fiat_balance}")
    print(f"  Crypto:             {snapshot.crypto_balance} (capital {snapshot.crypto_capital})")
    print(f"  Broker:             {snapshot.broker_balance} (capital {snapshot.broker_capital})")
    print(f"  Real net worth:     {snapshot.total_real_net_worth}")
    print(f"  Expected net worth: {snapshot.expected_net_worth}")
    print(f"  Discrepancy:        {snapshot.total_discrepancy}")

    if dry_run:
        print("\nDry run, snapshot not stored")
        return snapshot

    stored = ledger.upsert_snapshot(snapshot)
    print("\n" + "=" * 60)
    print(f"Job Complete! Snapshot {stored.id} stored for {stored.year}-{stored.month:02d}")
    print("=" * 60)
    return stored


def main():
    parser = ArgumentParser(description="Compute and store the monthly net worth snapshot")

    parser.add_argument(
        '--year',
        type=int,
        help='Snapshot year, defaults to the current year'
    )

    parser.add_argument(
        '--month',
        type=int,
        help='Snapshot month (1-12), defaults to the current month'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Compute and print without storing'
    )

    args = parser.parse_args()

    setup_logging()
    today = date.today()
    settings = load_settings()
    store = LedgerStore(settings)
    store.create_all()
    ledger = Ledger(store)

    try:
        run_monthly_snapshot(
            ledger,
            year=args.year or today.year,
            month=args.month or today.month,
            dry_run=args.dry_run
        )
    except LedgerError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    finally:
        ledger.close()


if __name__ == "__main__":
    main()
