"""
BudgetPulse - Ledger Core

The state and persistence engine behind the BudgetPulse personal budget
tracker: transactions, monthly spending limits, and the summary numbers
derived from them.

DESIGN PRINCIPLES:
1. Memory and durable storage never disagree after a successful call
2. Expected outcomes (bad input, unknown id) are returned as data
3. Storage faults are surfaced, never swallowed
4. Corrupted stored data degrades to empty, visibly
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "BudgetPulse Team"
