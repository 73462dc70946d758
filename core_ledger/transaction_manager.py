"""
Transaction Manager Module

Runs a unit of work inside one database transaction: acquire a dedicated
session, begin at the requested isolation level, invoke the unit of work
with the bound session, commit on success, roll back on any failure, and
release the session on every exit path.
"""

from typing import Callable, Optional, TypeVar, Union

from .context import RequestContext
from .logging_config import get_logger, log_action
from .storage import IsolationLevel, StorageInterface, StorageSession


T = TypeVar("T")

DEFAULT_ISOLATION_LEVEL = IsolationLevel.REPEATABLE_READ

UnitOfWork = Callable[[StorageSession], T]


class TransactionManager:
    """Scoped executor for units of work against a storage backend"""

    def __init__(self, storage: StorageInterface,
                 default_isolation_level: Union[IsolationLevel, str] = DEFAULT_ISOLATION_LEVEL):
        self.storage = storage
        self.default_isolation_level = IsolationLevel.parse(default_isolation_level)
        self.logger = get_logger("core_ledger.transaction_manager")

    def execute_transaction(
        self,
        unit_of_work: UnitOfWork,
        isolation_level: Optional[Union[IsolationLevel, str]] = None,
        context: Optional[RequestContext] = None
    ) -> T:
        """
        Execute ``unit_of_work`` exactly once inside a database transaction.

        Args:
            unit_of_work: Callable receiving the session bound to the open
                transaction; every write must go through that session
            isolation_level: Isolation level for the transaction; the
                manager default (REPEATABLE READ unless configured) when omitted
            context: Request context for log correlation

        Returns:
            Whatever the unit of work returns

        Raises:
            Whatever the unit of work, begin or commit raises, unchanged.
            Nothing is retried.
        """
        level = self.default_isolation_level if isolation_level is None \
            else IsolationLevel.parse(isolation_level)

        # Failing here leaves nothing to roll back or release
        session = self.storage.connect()
        try:
            session.begin(level)
            log_action(
                self.logger, "debug", "Transaction started",
                action="begin_transaction", context=context,
                extra={"isolation_level": level.value, "session_id": session.session_id}
            )

            try:
                result = unit_of_work(session)
                session.commit()
            except Exception as error:
                self._rollback(session, error, context)
                raise

            log_action(
                self.logger, "debug", "Transaction committed",
                action="commit_transaction", context=context,
                extra={"session_id": session.session_id}
            )
            return result
        finally:
            session.close()

    def _rollback(self, session: StorageSession, error: Exception,
                  context: Optional[RequestContext]) -> None:
        """Roll back after a failure; a failing rollback never masks the original error"""
        try:
            session.rollback()
        except Exception:
            log_action(
                self.logger, "error", "Rollback failed",
                action="rollback_transaction", context=context,
                extra={"session_id": session.session_id, "original_error": repr(error)},
                exc_info=True
            )
            return

        log_action(
            self.logger, "debug", "Transaction rolled back",
            action="rollback_transaction", context=context,
            extra={
                "session_id": session.session_id,
                "error_type": type(error).__name__,
                "error": str(error)
            }
        )
