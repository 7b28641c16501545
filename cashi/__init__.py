"""
Cashi - Ledger Engine Package

The state engine behind a personal budget tracker: income/expense
entries, per-category spending goals, on-demand filtering and the
aggregate summaries (totals, category breakdowns, time series) a UI
renders.

DESIGN PRINCIPLES:
1. Mutate, then sync - every successful change is written through
2. Invalid input is a no-op, never a partial update
3. Persistence failures surface to the caller
4. Every mutation is logged
5. Storage medium is swappable
"""

__version__ = "1.0.0"
__author__ = "Cashi Team"
