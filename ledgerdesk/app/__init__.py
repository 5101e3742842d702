"""Application composition layer for the ledger client.

``LedgerApp`` wires the session manager, client factory, principal-scoped
cache, role resolver and transaction orchestrator so presentation code only
talks to explicit, constructor-injected services.
"""
