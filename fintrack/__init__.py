"""Personal-finance ledger: expected balances, reconciliation and net worth snapshots."""
