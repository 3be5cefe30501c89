"""Errors raised by the ledger and settlement services."""


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    pass


class ValidationError(LedgerError):
    """Raised when an amount or a selection is missing or invalid."""

    pass


class NotFoundError(LedgerError):
    """Raised when a plan, person, record or transaction does not exist."""

    pass


class PermissionDeniedError(LedgerError):
    """Raised when the caller may not perform a mutation."""

    pass


class StoreError(LedgerError):
    """Raised when the document store fails; nothing was written."""

    pass


class RaceConditionError(LedgerError):
    """Raised when a precondition changed while an operation was running."""

    def __init__(self, plan_id: str, message: str | None = None):
        self.plan_id = plan_id
        super().__init__(
            message
            or f"Plan {plan_id} changed while the operation was running; reload and try again"
        )
