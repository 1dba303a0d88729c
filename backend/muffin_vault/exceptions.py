"""
Muffin Vault Backend — Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for store failures and purchase rules.
How:   Each exception carries a client-safe message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       JSON error responses with the matching HTTP status code.
Who:   Raised by services and by the lifespan; caught by global handlers.

Exception Hierarchy:
    MuffinVaultError (base)
    ├── StoreError                   → 500 Internal Server Error
    │   ├── StoreReadError
    │   │   └── NotFoundError        (singleton balance record missing)
    │   └── StoreWriteError
    ├── PurchaseError                → 400 Bad Request
    │   ├── InsufficientFundsError
    │   └── NoNotesAvailableError
    └── ConfigurationError           (startup only, never reaches a client)

Store errors always carry the static message of the endpoint that failed
("Failed to fetch muffin data", ...). Driver messages, SQL and constraint
names go into `context`, which is logged and never returned.
"""

from typing import Any, Dict, Optional


class MuffinVaultError(Exception):
    """
    Base exception for all Muffin Vault application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
        code:     Machine-readable error code used in the response body
    """

    code = "internal_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


# ══════════════════════════════════════════════════════════════════════════
# Store Errors — anything that went wrong talking to the database
# ══════════════════════════════════════════════════════════════════════════


class StoreError(MuffinVaultError):
    """
    Raised when the external database fails or returns an unusable result.

    HTTP:    500 Internal Server Error
    Nothing is retried; the failure is terminal for the request.
    """

    code = "store_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreReadError(StoreError):
    """A select or count against the database failed."""

    code = "store_read_error"


class StoreWriteError(StoreError):
    """An update against the database failed or affected an unexpected row count."""

    code = "store_write_error"


class NotFoundError(StoreReadError):
    """
    Raised when the singleton balance record does not exist.

    HTTP:    500 — the record is provisioned by the migration; its absence is
             a deployment fault, not something the client asked for.
    """

    code = "not_found"

    def __init__(
        self,
        message: str = "Failed to fetch muffin data",
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


# ══════════════════════════════════════════════════════════════════════════
# Purchase Errors — domain preconditions of POST /api/notes/buy
# ══════════════════════════════════════════════════════════════════════════


class PurchaseError(MuffinVaultError):
    """
    Raised when a purchase precondition does not hold.

    HTTP:    400 Bad Request
    Nothing has been written when one of these propagates (the request
    transaction is rolled back).
    """

    code = "purchase_error"


class InsufficientFundsError(PurchaseError):
    """The balance is below the price of a note."""

    code = "insufficient_funds"

    def __init__(
        self,
        balance: Optional[int] = None,
        price: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if balance is not None:
            ctx["balance"] = balance
        if price is not None:
            ctx["price"] = price
        super().__init__(message="Not enough muffins", context=ctx)
        self.balance = balance
        self.price = price


class NoNotesAvailableError(PurchaseError):
    """Every note has already been bought."""

    code = "no_notes_available"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="No notes available", context=context)


# ══════════════════════════════════════════════════════════════════════════
# Startup
# ══════════════════════════════════════════════════════════════════════════


class ConfigurationError(MuffinVaultError):
    """
    Raised by Settings.validate_required() when required values are missing.

    Raised from the lifespan, so uvicorn aborts startup instead of serving
    requests that could never reach the database.
    """

    code = "configuration_error"
