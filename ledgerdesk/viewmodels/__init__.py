"""ViewModel package for settings, escrow and governance state.

Dependencies:
    Modules in this package depend on domain types and the ledger cache only.
    I/O adapters and use-case orchestration remain outside.

Responsibilities:
    - Hold and validate connection settings.
    - Turn cached ledger answers into view-facing rows and labels.
    - Never compute a balance that the ledger did not return.
"""
