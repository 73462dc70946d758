"""
Account Management Module

Manages account creation, lookups restricted to active accounts, and the
balance mutation rule: a balance is adjusted by a signed delta and may never
become negative. Balance updates run inside the caller's unit of work when
given a session, otherwise inside one of their own.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional
import uuid

from .amounts import ZERO, AmountLike, fits_precision, format_amount, parse_delta, quantize
from .context import RequestContext
from .errors import (
    AccountNotFoundError, ConstraintViolationError, InsufficientFundsError, ValidationError
)
from .logging_config import get_logger, log_action
from .storage import StorageInterface, StorageRecord, StorageSession
from .transaction_manager import TransactionManager


NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 255


@dataclass
class Account(StorageRecord):
    """
    Ledger account. The balance only changes through
    AccountManager.update_balance; inactive accounts are soft-deleted.
    """
    name: str
    balance: Decimal = ZERO
    description: Optional[str] = None
    is_active: bool = True
    deleted_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Account':
        return cls(
            id=row["id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            name=row["name"],
            balance=quantize(row["balance"]),
            description=row.get("description"),
            is_active=row["is_active"],
            deleted_at=row.get("deleted_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "balance": self.balance,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted_at": self.deleted_at,
        }


@dataclass(frozen=True)
class AccountBalance:
    """Read-only balance projection"""
    account_id: str
    balance: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {"account_id": self.account_id, "balance": format_amount(self.balance)}


def validate_description(description: Optional[str]) -> Optional[str]:
    """Optional free text, at most 255 characters"""
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"description must not exceed {DESCRIPTION_MAX_LENGTH} characters")
    return description


class AccountManager:
    """
    Manages account lifecycle and balance mutation
    """

    def __init__(self, storage: StorageInterface,
                 transaction_manager: Optional[TransactionManager] = None):
        self.storage = storage
        self.transaction_manager = transaction_manager or TransactionManager(storage)
        self.table_name = "accounts"
        self.logger = get_logger("core_ledger.accounts")

    @contextmanager
    def _session_scope(self, session: Optional[StorageSession]) -> Iterator[StorageSession]:
        """Use the caller's session, or an autocommit session released on exit"""
        if session is not None:
            yield session
            return
        with self.storage.connect() as own_session:
            yield own_session

    def create_account(
        self,
        name: str,
        description: Optional[str] = None,
        context: Optional[RequestContext] = None
    ) -> Account:
        """
        Create a new account with a zero balance

        Args:
            name: Account name, 2-100 characters
            description: Optional description, at most 255 characters
            context: Request context for log correlation

        Returns:
            Created Account object

        Raises:
            ValidationError: If name or description is invalid
        """
        if not isinstance(name, str):
            raise ValidationError("name must be a string")
        name = name.strip()
        if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
            raise ValidationError(
                f"name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
            )
        description = validate_description(description)

        now = datetime.now(timezone.utc)
        account = Account(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            name=name,
            description=description,
        )

        with self.storage.connect() as session:
            session.insert(self.table_name, account.to_row())

        log_action(
            self.logger, "info", "Account created",
            action="create_account", resource=f"account:{account.id}", context=context,
            extra={"account_id": account.id, "name": account.name}
        )
        return account

    def get_account(
        self,
        account_id: str,
        session: Optional[StorageSession] = None,
        context: Optional[RequestContext] = None
    ) -> Account:
        """
        Get an active account by ID

        Raises:
            AccountNotFoundError: If the account is missing or inactive
        """
        with self._session_scope(session) as active_session:
            account = self._find_active(active_session, account_id)

        if account is None:
            log_action(
                self.logger, "warning", "Account not found",
                action="get_account", resource=f"account:{account_id}", context=context
            )
            raise AccountNotFoundError(account_id)
        return account

    def list_accounts(self, session: Optional[StorageSession] = None) -> List[Account]:
        """All active accounts, newest first"""
        with self._session_scope(session) as active_session:
            rows = active_session.find(
                self.table_name, {"is_active": True}, order_by="created_at", descending=True
            )
        return [Account.from_row(row) for row in rows]

    def get_balance(
        self,
        account_id: str,
        session: Optional[StorageSession] = None,
        context: Optional[RequestContext] = None
    ) -> AccountBalance:
        """Get the balance of an active account"""
        account = self.get_account(account_id, session=session, context=context)
        return AccountBalance(account_id=account.id, balance=account.balance)

    def update_balance(
        self,
        account_id: str,
        signed_delta: AmountLike,
        session: Optional[StorageSession] = None,
        context: Optional[RequestContext] = None
    ) -> Account:
        """
        Apply a signed delta to an account balance

        With ``session`` the update joins the caller's unit of work; without
        one it runs in its own REPEATABLE READ transaction. The account is
        read through the same session that writes it.

        Args:
            account_id: Account to adjust
            signed_delta: Positive to credit, negative to debit
            session: Session bound to an open transaction, if any
            context: Request context for log correlation

        Returns:
            Updated Account object

        Raises:
            InvalidAmountError: If the delta has more than two decimal places
            AccountNotFoundError: If the account is missing or inactive
            InsufficientFundsError: If the new balance would be negative
        """
        delta = parse_delta(signed_delta)

        if session is None:
            return self.transaction_manager.execute_transaction(
                lambda own_session: self._apply_delta(own_session, account_id, delta, context),
                context=context
            )
        return self._apply_delta(session, account_id, delta, context)

    def _apply_delta(
        self,
        session: StorageSession,
        account_id: str,
        delta: Decimal,
        context: Optional[RequestContext]
    ) -> Account:
        account = self._find_active(session, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        new_balance = account.balance + delta
        if new_balance < 0:
            log_action(
                self.logger, "warning", "Insufficient funds",
                action="update_balance", resource=f"account:{account_id}", context=context,
                extra={"balance": format_amount(account.balance), "delta": str(delta)}
            )
            raise InsufficientFundsError(account_id)

        if not fits_precision(new_balance):
            raise ConstraintViolationError(
                f"Balance of account {account_id} exceeds decimal(20,2)", constraint="precision"
            )

        row = session.update(self.table_name, account_id, {
            "balance": new_balance,
            "updated_at": datetime.now(timezone.utc),
        })
        if row is None:
            raise AccountNotFoundError(account_id)

        log_action(
            self.logger, "debug", "Account balance updated",
            action="update_balance", resource=f"account:{account_id}", context=context,
            extra={
                "previous_balance": format_amount(account.balance),
                "new_balance": format_amount(new_balance),
                "delta": str(delta)
            }
        )
        return Account.from_row(row)

    def _find_active(self, session: StorageSession, account_id: str) -> Optional[Account]:
        rows = session.find(self.table_name, {"id": account_id, "is_active": True}, limit=1)
        return Account.from_row(rows[0]) if rows else None
