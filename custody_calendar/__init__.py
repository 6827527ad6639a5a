"""
Custody Calendar - Source Package

The calendar core behind a co-parenting app: a month grid that merges
one-off scheduled activities with recurring weekly custody assignments,
kept consistent with a remote record store.

DESIGN PRINCIPLES:
1. Grid, week numbers and recurrence are pure functions of their inputs
2. Persist first, then mutate local state
3. Failures are surfaced to the caller, never retried or hidden
4. Every mutation is audited
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Custody Calendar Team"
