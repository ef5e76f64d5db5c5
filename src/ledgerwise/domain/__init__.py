"""Domain layer for ledgerwise: entities, engine functions and services."""

import importlib

# Services import ledgerwise.database.base, which imports domain.entities,
# so they are resolved on first attribute access instead of at import time
_SERVICES = {
    "AccountService": "ledgerwise.domain.account",
    "CategoryService": "ledgerwise.domain.category",
    "TransactionService": "ledgerwise.domain.transaction",
    "LedgerService": "ledgerwise.domain.ledger",
    "LoanService": "ledgerwise.domain.loan",
    "InsuranceService": "ledgerwise.domain.insurance",
    "BillTrackerService": "ledgerwise.domain.obligations",
    "ReconciliationService": "ledgerwise.domain.reconciliation",
    "SnapshotService": "ledgerwise.domain.snapshot",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
