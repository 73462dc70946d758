"""
Ledger Error Module

Every failure raised by the core carries a stable ``code`` so the boundary
layer can translate it without inspecting message text. Messages come from
a single catalogue to keep wording consistent.
"""

from typing import Optional


ACCOUNT_ERRORS = {
    "NOT_FOUND": "Account with ID {account_id} not found",
    "INSUFFICIENT_FUNDS": "Insufficient funds for withdrawal",
}

TRANSACTION_ERRORS = {
    "INVALID_AMOUNT": "Transaction amount must be greater than zero",
    "NOT_FOUND": "Transaction with ID {transaction_id} not found",
}

DATABASE_ERRORS = {
    "CONNECTION_FAILED": "Failed to connect to database",
    "TRANSACTION_FAILED": "Database transaction failed",
    "CONSTRAINT_VIOLATION": "Database constraint violation",
    "SERIALIZATION_FAILURE": "Could not serialize access due to concurrent update",
}


class LedgerError(Exception):
    """Base class for all core ledger failures"""

    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    code = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    def __init__(self, account_id: str):
        super().__init__(ACCOUNT_ERRORS["NOT_FOUND"].format(account_id=account_id))
        self.account_id = account_id


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: str):
        super().__init__(TRANSACTION_ERRORS["NOT_FOUND"].format(transaction_id=transaction_id))
        self.transaction_id = transaction_id


class InsufficientFundsError(LedgerError):
    """Raised when a balance update would drive the balance below zero"""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, account_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__(message or ACCOUNT_ERRORS["INSUFFICIENT_FUNDS"])
        self.account_id = account_id


class ValidationError(LedgerError, ValueError):
    """Malformed request data, rejected before any store interaction"""

    code = "INVALID_REQUEST"


class InvalidAmountError(ValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or TRANSACTION_ERRORS["INVALID_AMOUNT"])


class ConstraintViolationError(LedgerError):
    """Store-level integrity failure (FK, non-null, enum, length, precision)"""

    code = "CONSTRAINT_VIOLATION"

    def __init__(self, message: Optional[str] = None, constraint: Optional[str] = None):
        super().__init__(message or DATABASE_ERRORS["CONSTRAINT_VIOLATION"])
        self.constraint = constraint


class TransactionAbortedError(LedgerError):
    """A unit of work could not be completed and was rolled back"""

    code = "TRANSACTION_ABORTED"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or DATABASE_ERRORS["TRANSACTION_FAILED"])


class SerializationFailure(TransactionAbortedError):
    """Write-write conflict detected by the store at commit or update time"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or DATABASE_ERRORS["SERIALIZATION_FAILURE"])
