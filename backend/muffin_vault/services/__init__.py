# Services package init
"""
Muffin Vault Backend — Services Package
========================================

What:  Business logic independent of HTTP.

Service Inventory:
    - balance_service.py: BalanceService (read/update the balance record,
                          row lock and guarded debit for purchases)
    - note_service.py:    NoteService (availability count, purchase, vault)

Services receive the request's AsyncSession on every call and keep no
per-request state, so each module exposes a singleton instance.
"""
