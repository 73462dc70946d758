"""
Database Migration System

Simple migration system for managing the ledger schema without external
dependencies. Every backend applies the same migrations; SQL backends render
DDL from the logical schema for their dialect.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging

from .schema import ACCOUNTS, TRANSACTIONS, SCHEMA_MIGRATIONS, TableSchema
from .storage import IsolationLevel, StorageInterface


logger = logging.getLogger(__name__)


class Migration:
    """Represents a single schema migration"""

    def __init__(self, version: int, name: str, tables: List[TableSchema]):
        self.version = version
        self.name = name
        self.tables = tables
        self.applied_at: Optional[datetime] = None

    def __str__(self) -> str:
        return f"Migration v{self.version:03d}: {self.name}"

    def __repr__(self) -> str:
        return f"Migration(version={self.version}, name='{self.name}')"


class MigrationManager:
    """Manages schema migrations"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.migrations: List[Migration] = []
        self._migration_table = SCHEMA_MIGRATIONS.name
        self._init_migrations()
        self._ensure_migration_table()

    def _init_migrations(self) -> None:
        """Initialize built-in migrations"""
        self.add_migration(1, "Create accounts table", [ACCOUNTS])
        # transactions.account_id references accounts(id) and is indexed
        self.add_migration(2, "Create transactions table", [TRANSACTIONS])

    def _ensure_migration_table(self) -> None:
        """Ensure the migration tracking table exists"""
        with self.storage.connect() as session:
            session.create_table(SCHEMA_MIGRATIONS)

    def add_migration(self, version: int, name: str, tables: List[TableSchema]) -> None:
        """Add a migration to the manager"""
        if any(m.version == version for m in self.migrations):
            raise ValueError(f"Migration version {version} already registered")
        self.migrations.append(Migration(version, name, tables))
        # Keep migrations sorted by version
        self.migrations.sort(key=lambda m: m.version)

    def get_applied_migrations(self) -> List[Dict[str, Any]]:
        """Get list of applied migrations"""
        with self.storage.connect() as session:
            return session.find(self._migration_table, order_by="version")

    def get_current_version(self) -> int:
        """Get the current schema version"""
        versions = [m["version"] for m in self.get_applied_migrations()]
        return max(versions) if versions else 0

    def get_pending_migrations(self, target_version: Optional[int] = None) -> List[Migration]:
        """Get list of pending migrations"""
        current_version = self.get_current_version()
        max_version = target_version or max((m.version for m in self.migrations), default=0)

        return [
            migration for migration in self.migrations
            if current_version < migration.version <= max_version
        ]

    def migrate_up(self, target_version: Optional[int] = None) -> List[Migration]:
        """Apply pending migrations up to target version"""
        pending = self.get_pending_migrations(target_version)
        applied = []

        if not pending:
            logger.info("No pending migrations to apply")
            return applied

        logger.info(f"Applying {len(pending)} pending migrations")

        for migration in pending:
            logger.info(f"Applying {migration}")
            now = datetime.now(timezone.utc)
            with self.storage.connect() as session:
                session.begin(IsolationLevel.SERIALIZABLE)
                try:
                    for table in migration.tables:
                        session.create_table(table)
                    session.insert(self._migration_table, {
                        "id": str(migration.version),
                        "version": migration.version,
                        "name": migration.name,
                        "applied_at": now,
                    })
                    session.commit()
                except Exception:
                    session.rollback()
                    logger.error(f"Failed to apply {migration}")
                    raise

            migration.applied_at = now
            applied.append(migration)

        logger.info(f"Applied {len(applied)} migrations")
        return applied

    def get_migration_status(self) -> Dict[str, Any]:
        """Get current migration status"""
        current = self.get_current_version()
        pending = self.get_pending_migrations()
        return {
            "current_version": current,
            "latest_version": max((m.version for m in self.migrations), default=0),
            "pending_migrations": [str(m) for m in pending],
            "applied_migrations": len(self.get_applied_migrations()),
        }
