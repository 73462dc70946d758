"""
Test suite for transaction processing

Tests deposits and withdrawals end to end: validation before any store
interaction, atomicity of the transaction row and balance update, the
non-negative balance rule under concurrency, and paged history.
"""

import threading
from decimal import Decimal

import pytest

from core_ledger.accounts import AccountManager
from core_ledger.errors import (
    AccountNotFoundError, InsufficientFundsError, InvalidAmountError, LedgerError,
    SerializationFailure, TransactionNotFoundError, ValidationError
)
from core_ledger.pagination import PaginationParams, SortOrder
from core_ledger.storage import InMemoryStorage, IsolationLevel, SQLiteStorage
from core_ledger.transaction_manager import TransactionManager
from core_ledger.transactions import Transaction, TransactionProcessor, TransactionType


def build_ledger(storage):
    storage.create_schema()
    account_manager = AccountManager(storage)
    processor = TransactionProcessor(storage, account_manager)
    return account_manager, processor


def transaction_count(storage, account_id):
    with storage.connect() as session:
        return session.count("transactions", {"account_id": account_id})


class TestTransactionType:

    def test_signed_amounts(self):
        assert TransactionType.DEPOSIT.signed(Decimal("5.00")) == Decimal("5.00")
        assert TransactionType.WITHDRAWAL.signed(Decimal("5.00")) == Decimal("-5.00")


class TestTransactionProcessor:
    """Deposits and withdrawals on the in-memory store"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.account_manager, self.processor = build_ledger(self.storage)
        self.account = self.account_manager.create_account("John Doe")

    def balance(self):
        return self.account_manager.get_balance(self.account.id).balance

    def test_deposit(self):
        transaction = self.processor.deposit(self.account.id, "100.50", "Salary")

        assert isinstance(transaction, Transaction)
        assert transaction.type == TransactionType.DEPOSIT
        assert transaction.amount == Decimal("100.50")
        assert transaction.account_id == self.account.id
        assert transaction.description == "Salary"
        assert self.balance() == Decimal("100.50")

    def test_withdraw(self):
        self.processor.deposit(self.account.id, 100)
        transaction = self.processor.withdraw(self.account.id, 30.25)

        assert transaction.type == TransactionType.WITHDRAWAL
        assert transaction.amount == Decimal("30.25")
        assert transaction.signed_amount == Decimal("-30.25")
        assert self.balance() == Decimal("69.75")

    def test_deposit_withdraw_scenario(self):
        self.processor.deposit(self.account.id, "1000")
        self.processor.withdraw(self.account.id, "200")
        self.processor.deposit(self.account.id, "200")

        assert self.balance() == Decimal("1000.00")
        assert transaction_count(self.storage, self.account.id) == 3

    def test_withdraw_entire_balance(self):
        self.processor.deposit(self.account.id, "50.00")
        self.processor.withdraw(self.account.id, "50.00")
        assert self.balance() == Decimal("0.00")

    def test_insufficient_funds_rolls_back_transaction_row(self):
        self.processor.deposit(self.account.id, "100.00")

        with pytest.raises(InsufficientFundsError):
            self.processor.withdraw(self.account.id, "100.01")

        assert self.balance() == Decimal("100.00")
        assert transaction_count(self.storage, self.account.id) == 1

    def test_unknown_account(self):
        with pytest.raises(AccountNotFoundError):
            self.processor.deposit("missing", "10.00")

        with self.storage.connect() as session:
            assert session.count("transactions") == 0

    def test_inactive_account(self):
        with self.storage.connect() as session:
            session.update("accounts", self.account.id, {"is_active": False})

        with pytest.raises(AccountNotFoundError):
            self.processor.deposit(self.account.id, "10.00")
        assert transaction_count(self.storage, self.account.id) == 0

    @pytest.mark.parametrize("amount", [0, "0.00", -5, "-0.01", "1.001", "abc", "NaN",
                                        "Infinity", True, None, "1000000000000000000"])
    def test_invalid_amount_rejected_before_store(self, amount):
        connections = []
        original_connect = self.storage.connect

        def counting_connect():
            connections.append(1)
            return original_connect()

        self.storage.connect = counting_connect
        try:
            with pytest.raises(InvalidAmountError) as exc_info:
                self.processor.deposit(self.account.id, amount)
        finally:
            self.storage.connect = original_connect

        assert exc_info.value.code == "INVALID_AMOUNT"
        assert connections == []
        assert self.balance() == Decimal("0.00")

    def test_invalid_description_rejected(self):
        with pytest.raises(ValidationError):
            self.processor.deposit(self.account.id, "1.00", "x" * 256)
        assert transaction_count(self.storage, self.account.id) == 0

    def test_float_amounts_are_exact(self):
        for _ in range(10):
            self.processor.deposit(self.account.id, 0.1)
        assert self.balance() == Decimal("1.00")

    def test_failure_during_apply_rolls_back_record(self):
        original = self.account_manager.update_balance

        def failing_update(*args, **kwargs):
            raise SerializationFailure()

        self.account_manager.update_balance = failing_update
        try:
            with pytest.raises(SerializationFailure):
                self.processor.deposit(self.account.id, "10.00")
        finally:
            self.account_manager.update_balance = original

        assert transaction_count(self.storage, self.account.id) == 0
        assert self.balance() == Decimal("0.00")

    def test_runs_at_repeatable_read(self):
        levels = []
        manager = self.processor.transaction_manager
        original = manager.execute_transaction

        def recording(unit_of_work, isolation_level=None, context=None):
            levels.append(isolation_level)
            return original(unit_of_work, isolation_level, context)

        manager.execute_transaction = recording
        try:
            self.processor.deposit(self.account.id, "1.00")
        finally:
            manager.execute_transaction = original

        assert levels == [IsolationLevel.REPEATABLE_READ]

    def test_get_transaction(self):
        created = self.processor.deposit(self.account.id, "12.00", "Gift")

        loaded = self.processor.get_transaction(created.id)
        assert loaded == created

    def test_get_transaction_not_found(self):
        with pytest.raises(TransactionNotFoundError) as exc_info:
            self.processor.get_transaction("missing")
        assert exc_info.value.code == "NOT_FOUND"


class TestConservation:
    """Balance always equals the signed sum of recorded transactions"""

    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    def test_balance_matches_history(self, backend, tmp_path):
        storage = InMemoryStorage() if backend == "memory" else SQLiteStorage(tmp_path / "l.db")
        account_manager, processor = build_ledger(storage)
        account = account_manager.create_account("Conservation")

        operations = [
            ("deposit", "500.00"), ("withdraw", "120.35"), ("withdraw", "400.00"),
            ("deposit", "0.01"), ("withdraw", "379.66"), ("withdraw", "0.01"),
        ]
        for operation, amount in operations:
            try:
                getattr(processor, operation)(account.id, amount)
            except InsufficientFundsError:
                pass

        items, total = processor.find_by_account_id(
            account.id, PaginationParams(limit=100)
        )
        expected = sum((t.signed_amount for t in items), Decimal("0.00"))
        balance = account_manager.get_balance(account.id).balance

        assert total == 4
        assert balance == expected == Decimal("0.00")
        storage.close()


class TestConcurrentWithdrawals:
    """Exactly one of two competing withdrawals succeeds"""

    def _race(self, storage, amount="600.00", workers=2):
        account_manager, processor = build_ledger(storage)
        account = account_manager.create_account("Contended")
        processor.deposit(account.id, "1000.00")

        barrier = threading.Barrier(workers)
        outcomes = []
        lock = threading.Lock()

        def withdraw():
            barrier.wait()
            try:
                processor.withdraw(account.id, amount)
                result = "ok"
            except LedgerError as e:
                result = e.code
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=withdraw) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        return account_manager, account, outcomes

    def test_in_memory(self):
        storage = InMemoryStorage()
        account_manager, account, outcomes = self._race(storage)

        assert outcomes.count("ok") == 1
        assert len(outcomes) == 2
        assert set(outcomes) - {"ok"} <= {"INSUFFICIENT_FUNDS", "TRANSACTION_ABORTED"}
        assert account_manager.get_balance(account.id).balance == Decimal("400.00")
        assert transaction_count(storage, account.id) == 2

    def test_sqlite(self, tmp_path):
        storage = SQLiteStorage(tmp_path / "ledger.db")
        account_manager, account, outcomes = self._race(storage)

        assert outcomes.count("ok") == 1
        assert len(outcomes) == 2
        assert set(outcomes) - {"ok"} <= {"INSUFFICIENT_FUNDS", "TRANSACTION_ABORTED"}
        assert account_manager.get_balance(account.id).balance == Decimal("400.00")
        assert transaction_count(storage, account.id) == 2
        storage.close()

    def test_many_small_withdrawals_never_overdraw(self, tmp_path):
        storage = SQLiteStorage(tmp_path / "ledger.db")
        account_manager, account, outcomes = self._race(storage, amount="300.00", workers=5)

        successes = outcomes.count("ok")
        assert successes == 3
        assert account_manager.get_balance(account.id).balance == Decimal("100.00")
        storage.close()


class TestTransactionHistory:
    """Paged listing of an account's transactions"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.account_manager, self.processor = build_ledger(self.storage)
        self.account = self.account_manager.create_account("History")
        for i in range(1, 16):
            self.processor.deposit(self.account.id, Decimal(i))

    def test_second_page(self):
        page = self.processor.list_account_transactions(
            self.account.id, PaginationParams(page=2, limit=10)
        )

        assert len(page.items) == 5
        assert page.meta.total_items == 15
        assert page.meta.total_pages == 2
        assert page.meta.current_page == 2
        assert page.meta.items_per_page == 10
        assert not page.meta.has_next_page
        assert page.meta.has_previous_page

    def test_default_parameters(self):
        page = self.processor.list_account_transactions(self.account.id)
        assert len(page.items) == 10
        assert page.meta.has_next_page
        assert not page.meta.has_previous_page

    def test_sort_by_amount(self):
        page = self.processor.list_account_transactions(
            self.account.id,
            PaginationParams(limit=3, sort_by="amount", sort_order=SortOrder.ASC)
        )
        assert [t.amount for t in page.items] == [Decimal("1.00"), Decimal("2.00"), Decimal("3.00")]

        page = self.processor.list_account_transactions(
            self.account.id, PaginationParams(limit=2, sort_by="amount", sort_order="DESC")
        )
        assert [t.amount for t in page.items] == [Decimal("15.00"), Decimal("14.00")]

    def test_camel_case_sort_field(self):
        page = self.processor.list_account_transactions(
            self.account.id, PaginationParams(sort_by="createdAt")
        )
        assert len(page.items) == 10

    def test_unknown_sort_field(self):
        with pytest.raises(ValidationError):
            self.processor.list_account_transactions(
                self.account.id, PaginationParams(sort_by="account_id")
            )

    def test_page_past_end_is_empty(self):
        page = self.processor.list_account_transactions(
            self.account.id, PaginationParams(page=5, limit=10)
        )
        assert page.items == []
        assert page.meta.total_items == 15
        assert not page.meta.has_next_page

    def test_unknown_account_has_empty_history(self):
        items, total = self.processor.find_by_account_id("missing")
        assert items == []
        assert total == 0

    def test_history_only_includes_own_account(self):
        other = self.account_manager.create_account("Other")
        self.processor.deposit(other.id, "1.00")

        page = self.processor.list_account_transactions(other.id)
        assert page.meta.total_items == 1
        assert page.items[0].account_id == other.id


class TestTransactionManagerInjection:

    def test_processor_shares_account_manager_executor(self):
        storage = InMemoryStorage()
        manager = TransactionManager(storage)
        account_manager = AccountManager(storage, manager)
        processor = TransactionProcessor(storage, account_manager)
        assert processor.transaction_manager is manager
