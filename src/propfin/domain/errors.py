"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidAmountError(ValidationError):
    """Amount is not a positive money value."""


class InvalidTransactionTypeError(ValidationError):
    """Transaction type is neither income nor expense."""


class NotFoundError(DomainError):
    """Requested entity does not exist or is not owned by the user."""


class AccountNotFoundError(NotFoundError):
    """Bank account id does not resolve."""


class TransactionNotFoundError(NotFoundError):
    """Transaction id does not resolve."""


class UnauthorizedError(DomainError):
    """Ownership mismatch on a mutating call."""


class BusinessRuleError(DomainError):
    """Expected rejection of a well-formed request. Nothing was written."""


class InsufficientBalanceError(BusinessRuleError):
    """Transfer exceeds the source account balance."""


class AmountExceedsRentDueError(BusinessRuleError):
    """Payment would overpay a rent period."""


class BackupError(DomainError):
    """Problem with a backup document or a restore run."""


class InvalidBackupError(BackupError):
    """Backup document is structurally invalid."""


class MissingFieldError(BackupError):
    """A record in a backup document lacks a required field."""

    def __init__(self, field: str, record: str):
        self.field = field
        self.record = record
        super().__init__(f"Invalid backup: missing required property '{field}' in {record}")


class InvalidDateError(BackupError):
    """A date-typed field in a backup document does not parse."""

    def __init__(self, table: str, field: str, value: object = None):
        self.table = table
        self.field = field
        self.value = value
        super().__init__(f"Invalid date in {table}.{field}: {value!r}")


class RestoreError(BackupError):
    """Restore failed; reports the import error and any rollback error.

    ``rolled_back`` is True when the user's previous data was re-imported,
    so nothing changed. When it is False, ``rollback_error`` holds the second
    failure and the stored data must be verified.
    """

    def __init__(self, import_error: Exception, rollback_error: Optional[Exception] = None):
        self.import_error = import_error
        self.rollback_error = rollback_error
        self.rolled_back = rollback_error is None
        if self.rolled_back:
            message = f"Import failed, previous data has been restored: {import_error}"
        else:
            message = (
                f"Import failed and data restoration failed, please verify your data. "
                f"Import error: {import_error}; restore error: {rollback_error}"
            )
        super().__init__(message)


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def entity_not_found(kind: str, entity_id: int) -> str:
    """Return message for a missing or foreign-owned entity."""
    return f"{kind} {entity_id} not found or not owned by user"


def insufficient_balance(account_id: int, balance, amount) -> str:
    """Return message for a transfer the source account cannot cover."""
    return (
        f"Insufficient balance in account {account_id}: "
        f"balance {balance}, transfer amount {amount}"
    )


def amount_exceeds_rent_due(month: int, year: int, due, already_paid, amount) -> str:
    """Return message for an overpayment of a rent period."""
    return (
        f"Payment of {amount} exceeds rent due for {month:02d}/{year}: "
        f"due {due}, already paid {already_paid}"
    )
