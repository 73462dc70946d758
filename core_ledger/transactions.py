"""
Transaction Processing Module

Handles deposits and withdrawals. Each request runs one unit of work at
REPEATABLE READ: verify the account, record the transaction row, apply the
signed delta to the account balance. A failure at any step rolls back both
the transaction row and the balance change.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import uuid

from .accounts import AccountManager, validate_description
from .amounts import AmountLike, format_amount, parse_amount, quantize
from .context import RequestContext
from .errors import LedgerError, TransactionNotFoundError
from .logging_config import get_logger, log_action
from .pagination import Page, PaginationParams, resolve_sort_field
from .storage import IsolationLevel, StorageInterface, StorageRecord, StorageSession
from .transaction_manager import TransactionManager


class TransactionType(Enum):
    """Types of ledger transactions"""
    DEPOSIT = "DEPOSIT"          # Credits the account
    WITHDRAWAL = "WITHDRAWAL"    # Debits the account

    def signed(self, amount: Decimal) -> Decimal:
        """Apply the sign carried by the type to a positive amount"""
        return amount if self == TransactionType.DEPOSIT else -amount


# caller-facing sort field -> column
SORTABLE_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "updated_at": "updated_at",
    "updatedAt": "updated_at",
    "amount": "amount",
    "type": "type",
}


@dataclass
class Transaction(StorageRecord):
    """
    Immutable record of a deposit or withdrawal; amount is always positive
    """
    type: TransactionType
    amount: Decimal
    account_id: str
    description: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @property
    def signed_amount(self) -> Decimal:
        return self.type.signed(self.amount)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=row["id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            type=TransactionType(row["type"]),
            amount=quantize(row["amount"]),
            account_id=row["account_id"],
            description=row.get("description"),
            deleted_at=row.get("deleted_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "amount": self.amount,
            "description": self.description,
            "account_id": self.account_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted_at": self.deleted_at,
        }


class TransactionProcessor:
    """
    Records deposits and withdrawals atomically with their balance updates
    """

    def __init__(
        self,
        storage: StorageInterface,
        account_manager: AccountManager,
        transaction_manager: Optional[TransactionManager] = None
    ):
        self.storage = storage
        self.account_manager = account_manager
        self.transaction_manager = transaction_manager or account_manager.transaction_manager
        self.table_name = "transactions"
        self.logger = get_logger("core_ledger.transactions")

    def deposit(
        self,
        account_id: str,
        amount: AmountLike,
        description: Optional[str] = None,
        context: Optional[RequestContext] = None
    ) -> Transaction:
        """Deposit funds to an account"""
        return self._create(TransactionType.DEPOSIT, account_id, amount, description, context)

    def withdraw(
        self,
        account_id: str,
        amount: AmountLike,
        description: Optional[str] = None,
        context: Optional[RequestContext] = None
    ) -> Transaction:
        """Withdraw funds from an account"""
        return self._create(TransactionType.WITHDRAWAL, account_id, amount, description, context)

    def _create(
        self,
        transaction_type: TransactionType,
        account_id: str,
        amount: AmountLike,
        description: Optional[str],
        context: Optional[RequestContext]
    ) -> Transaction:
        """
        Create a transaction and apply it to the account balance

        Args:
            transaction_type: DEPOSIT or WITHDRAWAL
            account_id: Target account
            amount: Positive amount with at most two decimal places
            description: Optional description
            context: Request context for log correlation

        Returns:
            The persisted Transaction

        Raises:
            InvalidAmountError: Before any store interaction
            AccountNotFoundError: Account missing or inactive; rolled back
            InsufficientFundsError: Balance would go negative; rolled back
        """
        # Validation happens before the unit of work is entered
        value = parse_amount(amount)
        description = validate_description(description)

        metadata = {
            "account_id": account_id,
            "amount": format_amount(value),
            "transaction_type": transaction_type.value,
        }
        log_action(
            self.logger, "debug", "Starting transaction with REPEATABLE READ isolation level",
            action="create_transaction", context=context, extra=metadata
        )

        def unit_of_work(session: StorageSession) -> Transaction:
            # Verify
            self.account_manager.get_account(account_id, session=session, context=context)

            # Record
            now = datetime.now(timezone.utc)
            transaction = Transaction(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                type=transaction_type,
                amount=value,
                account_id=account_id,
                description=description,
            )
            session.insert(self.table_name, transaction.to_row())
            log_action(
                self.logger, "debug", "Transaction record created",
                action="create_transaction", resource=f"transaction:{transaction.id}",
                context=context, extra=metadata
            )

            # Apply
            balance_change = transaction.signed_amount
            try:
                self.account_manager.update_balance(
                    account_id, balance_change, session=session, context=context
                )
            except LedgerError as e:
                log_action(
                    self.logger, "error", "Failed to update account balance",
                    action="update_balance", resource=f"account:{account_id}", context=context,
                    extra={**metadata, "balance_change": str(balance_change), "error": e.code}
                )
                raise

            return transaction

        # Settle: commit both writes or neither
        transaction = self.transaction_manager.execute_transaction(
            unit_of_work, IsolationLevel.REPEATABLE_READ, context=context
        )

        log_action(
            self.logger, "info", "Transaction completed",
            action="create_transaction", resource=f"transaction:{transaction.id}",
            context=context, extra=metadata
        )
        return transaction

    def get_transaction(
        self,
        transaction_id: str,
        context: Optional[RequestContext] = None
    ) -> Transaction:
        """
        Get transaction by ID

        Raises:
            TransactionNotFoundError: If no such transaction exists
        """
        with self.storage.connect() as session:
            row = session.load(self.table_name, transaction_id)
        if row is None:
            log_action(
                self.logger, "warning", "Transaction not found",
                action="get_transaction", resource=f"transaction:{transaction_id}",
                context=context
            )
            raise TransactionNotFoundError(transaction_id)
        return Transaction.from_row(row)

    def find_by_account_id(
        self,
        account_id: str,
        pagination: Optional[PaginationParams] = None,
        context: Optional[RequestContext] = None
    ) -> Tuple[List[Transaction], int]:
        """
        Transactions of one account, ordered and paged, plus the total count

        Read-only and outside the atomic protocol.
        """
        params = pagination or PaginationParams()
        order_by = resolve_sort_field(params.sort_by, SORTABLE_FIELDS)
        filters = {"account_id": account_id}

        with self.storage.connect() as session:
            rows = session.find(
                self.table_name, filters,
                order_by=order_by, descending=params.descending,
                offset=params.offset, limit=params.limit
            )
            total = session.count(self.table_name, filters)

        log_action(
            self.logger, "debug", "Found transactions",
            action="find_by_account_id", resource=f"account:{account_id}", context=context,
            extra={"result_count": len(rows), "total_count": total}
        )
        return [Transaction.from_row(row) for row in rows], total

    def list_account_transactions(
        self,
        account_id: str,
        pagination: Optional[PaginationParams] = None,
        context: Optional[RequestContext] = None
    ) -> Page[Transaction]:
        """Page of transactions with pagination metadata"""
        params = pagination or PaginationParams()
        items, total = self.find_by_account_id(account_id, params, context=context)
        return Page.build(items, total, params)
