"""Use-case layer for guarded ledger operations.

Each module checks advisory preconditions, calls the ledger through
``LedgerPort`` and hands refreshes to ``RefreshCaches``; none performs
transport I/O directly.
"""
