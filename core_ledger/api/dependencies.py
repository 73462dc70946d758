"""
Ledger system wiring and request dependencies
"""

import threading
from typing import Optional

from fastapi import Request

from ..accounts import AccountManager
from ..config import LedgerConfig, get_config
from ..context import RequestContext
from ..storage import StorageInterface, create_storage
from ..transaction_manager import TransactionManager
from ..transactions import TransactionProcessor


class LedgerSystem:
    """Core ledger with all components initialized over one storage backend"""

    def __init__(self, storage: StorageInterface, config: Optional[LedgerConfig] = None):
        self.config = config or get_config()
        self.storage = storage
        if self.config.auto_migrate:
            self.storage.create_schema()

        self.transaction_manager = TransactionManager(
            self.storage, self.config.default_isolation_level
        )
        self.account_manager = AccountManager(self.storage, self.transaction_manager)
        self.transaction_processor = TransactionProcessor(
            self.storage, self.account_manager, self.transaction_manager
        )

    @classmethod
    def from_config(cls, config: Optional[LedgerConfig] = None) -> 'LedgerSystem':
        config = config or get_config()
        storage = create_storage(config.database_url, busy_timeout=config.sqlite_busy_timeout)
        return cls(storage, config)

    def close(self) -> None:
        self.storage.close()


_system: Optional[LedgerSystem] = None
_system_lock = threading.Lock()


def get_ledger_system(request: Request) -> LedgerSystem:
    """The system bound to the app, or a process-wide one built from config"""
    system = getattr(request.app.state, "ledger_system", None)
    if system is not None:
        return system

    global _system
    with _system_lock:
        if _system is None:
            _system = LedgerSystem.from_config()
        return _system


def get_request_context(request: Request) -> RequestContext:
    """Context created by the correlation id middleware for this request"""
    context = getattr(request.state, "context", None)
    return context or RequestContext.new()
