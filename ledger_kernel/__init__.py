"""
ledger_kernel -- shared infrastructure for the ledger packages.

Architecture:
    exceptions      Typed exception hierarchy with machine-readable codes.
    logging_config  Structured JSON logging and request-scoped context.
    domain.clock    Injectable time source.
    db              SQLAlchemy declarative base and engine/session helpers.

Invariants enforced:
    - No module-level imports from ledger_scheduling or ledger_config.
      ``db.engine.create_tables`` imports the scheduling ORM models lazily.
"""
