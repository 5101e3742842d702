"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports (the HTTP ledger
    gateway and in-memory test doubles) used by use cases.

Dependencies:
    ``ledger_rpc`` and ``http_client`` depend on ``httpx``; the in-memory
    ledger and identity provider depend on domain types only.

Call context:
    Imported by app composition modules (for runtime wiring) and by tests (for
    mocks and transport-level behavior verification).
"""
