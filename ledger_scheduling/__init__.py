"""
ledger_scheduling -- recurrence engine for scheduled financial items.

Projects past and future occurrences of recurring obligations
(subscriptions, installments, recurring income and transfers) from a
compact pattern, and lets a single occurrence be edited, completed or
cancelled without rewriting the series.

Architecture:
    domain/    Pure core: frequency grammar, termination, pattern,
               generator, modification overlay, projector, revisions.
    models/    SQLAlchemy ORM rows for series and their modifications.
    services/  Repository contract + SQLAlchemy implementation, and the
               occurrence service (the outward interface).

Invariants enforced:
    - Occurrence n is start_date with the offset applied n times.
    - At most one modification per occurrence index.
    - Projections exclude deleted occurrences and are ordered by effective
      date, then index.
    - Generation is always bounded.
"""
