"""Domain errors raised by the ledger services.

Each error carries the HTTP status the API layer answers with, so endpoints
can translate any of them with a single ``except POSError`` clause.
"""

from __future__ import annotations


class POSError(Exception):
    http_status: int = 400


class ValidationError(POSError, ValueError):
    """Malformed input, rejected before any write."""

    http_status = 400


class NotFoundError(POSError):
    http_status = 404


class StockError(POSError):
    """Requested quantity exceeds the jewel's available stock."""

    http_status = 409


class OverpaymentError(POSError):
    """Abono larger than the receivable's pending balance."""

    http_status = 400


class RetryableError(POSError):
    """Cash register is locked by a closing in progress; resubmit later."""

    http_status = 409


class FatalError(POSError):
    """Database failure; every write of the operation was rolled back."""

    http_status = 500
