# backend/reliefdb/errors.py
"""
Error taxonomy shared by the inventory, ledger and distribution services.

Services raise these; routers translate them to HTTP responses.
"""

from __future__ import annotations


class ReliefError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(ReliefError):
    """Raised when a referenced entity does not exist."""


class ValidationError(ReliefError):
    """Raised for non-positive quantities, missing references or empty required fields."""


class StorageError(ReliefError):
    """Raised when a transaction or commit fails in the persistence layer."""


class ConflictError(ReliefError):
    """Reserved for concurrent-void races."""


def http_status_for(exc: ReliefError) -> int:
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, StorageError):
        return 503
    return 500
