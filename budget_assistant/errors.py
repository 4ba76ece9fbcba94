"""Exception types raised across the Budget Assistant.

Every error derives from :class:`BudgetError` so that pages can catch a
single base class and surface the message with ``st.error``.
"""

from __future__ import annotations


class BudgetError(Exception):
    """Base class for all Budget Assistant errors."""


class InvalidAllocationInput(BudgetError, ValueError):
    """Raised when bucket percentages or allocation amounts are unusable."""


class UnparseableDate(BudgetError, ValueError):
    """Raised when a value cannot be read as a calendar date."""


class ValidationError(BudgetError, ValueError):
    """Raised when user-entered bill, debt or goal details are invalid."""


class RecordNotFound(BudgetError, KeyError):
    """Raised when no record with the requested id exists."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message for the UI.
        return str(self.args[0]) if self.args else ''


class RecordError(BudgetError, ValueError):
    """Raised when a stored or imported row cannot be mapped to a record."""


class BackupFormatError(BudgetError, ValueError):
    """Raised when a backup or history file cannot be read."""


class CloudSyncError(BudgetError):
    """Raised when the hosted datastore cannot be read."""


class AuthenticationError(BudgetError):
    """Raised when sign-in, sign-up or sign-out fails."""
