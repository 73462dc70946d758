"""
Ledger Schema Module

Logical schema of the ledger tables. Backends use it to validate rows
before writing (non-null, enum, length, decimal precision) and to render
DDL for their SQL dialect.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from .amounts import fits_precision
from .errors import ConstraintViolationError


# Column kinds
ID = "id"
TEXT = "text"
DECIMAL = "decimal"
BOOLEAN = "boolean"
INTEGER = "integer"
TIMESTAMP = "timestamp"
ENUM = "enum"


@dataclass(frozen=True)
class Column:
    """A single column definition"""
    name: str
    kind: str
    nullable: bool = False
    max_length: Optional[int] = None
    choices: Optional[Tuple[str, ...]] = None
    references: Optional[str] = None  # referenced table (its "id" column)
    default: Any = None
    indexed: bool = False


@dataclass(frozen=True)
class TableSchema:
    """A table definition; every table is keyed by an "id" column"""
    name: str
    columns: Tuple[Column, ...]

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise ConstraintViolationError(f"Unknown column {self.name}.{name}", constraint="column")

    def has_column(self, name: str) -> bool:
        return any(column.name == name for column in self.columns)

    @property
    def foreign_keys(self) -> List[Column]:
        return [column for column in self.columns if column.references]


TRANSACTION_TYPES = ("DEPOSIT", "WITHDRAWAL")

ACCOUNTS = TableSchema("accounts", (
    Column("id", ID),
    Column("name", TEXT, max_length=100),
    Column("balance", DECIMAL, default=Decimal("0.00")),
    Column("description", TEXT, nullable=True, max_length=255),
    Column("is_active", BOOLEAN, default=True),
    Column("created_at", TIMESTAMP),
    Column("updated_at", TIMESTAMP),
    Column("deleted_at", TIMESTAMP, nullable=True),
))

TRANSACTIONS = TableSchema("transactions", (
    Column("id", ID),
    Column("type", ENUM, choices=TRANSACTION_TYPES),
    Column("amount", DECIMAL),
    Column("description", TEXT, nullable=True, max_length=255),
    Column("account_id", ID, references="accounts", indexed=True),
    Column("created_at", TIMESTAMP),
    Column("updated_at", TIMESTAMP),
    Column("deleted_at", TIMESTAMP, nullable=True),
))

SCHEMA_MIGRATIONS = TableSchema("schema_migrations", (
    Column("id", ID),
    Column("version", INTEGER),
    Column("name", TEXT, max_length=255),
    Column("applied_at", TIMESTAMP),
))

TABLES: Dict[str, TableSchema] = {
    table.name: table for table in (ACCOUNTS, TRANSACTIONS, SCHEMA_MIGRATIONS)
}


def get_table(name: str) -> TableSchema:
    """Look up a table definition by name"""
    table = TABLES.get(name)
    if table is None:
        raise ConstraintViolationError(f"Unknown table {name}", constraint="table")
    return table


def apply_defaults(table: TableSchema, row: Dict[str, Any]) -> Dict[str, Any]:
    """Fill column defaults for missing keys (insert only)"""
    result = dict(row)
    for column in table.columns:
        if column.name not in result:
            result[column.name] = column.default
    return result


def validate_row(table: TableSchema, row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a full row against the table definition.

    Raises:
        ConstraintViolationError: on unknown columns, NULL in a non-null
            column, enum mismatch, over-long text or decimal overflow
    """
    for key in row:
        if not table.has_column(key):
            raise ConstraintViolationError(
                f"Column {table.name}.{key} does not exist", constraint="column"
            )

    for column in table.columns:
        value = row.get(column.name)
        if value is None:
            if not column.nullable:
                raise ConstraintViolationError(
                    f"Null value in column {table.name}.{column.name} violates not-null constraint",
                    constraint="not_null"
                )
            continue

        if column.kind == ENUM and value not in column.choices:
            raise ConstraintViolationError(
                f"Invalid value {value!r} for enum column {table.name}.{column.name}",
                constraint="enum"
            )

        if column.max_length is not None and len(str(value)) > column.max_length:
            raise ConstraintViolationError(
                f"Value too long for {table.name}.{column.name} (max {column.max_length})",
                constraint="length"
            )

        if column.kind == DECIMAL:
            if not isinstance(value, Decimal) or not fits_precision(value):
                raise ConstraintViolationError(
                    f"Numeric field overflow in {table.name}.{column.name}",
                    constraint="precision"
                )

        if column.kind == BOOLEAN and not isinstance(value, bool):
            raise ConstraintViolationError(
                f"Column {table.name}.{column.name} requires a boolean", constraint="type"
            )

        if column.kind == TIMESTAMP and not isinstance(value, datetime):
            raise ConstraintViolationError(
                f"Column {table.name}.{column.name} requires a timestamp", constraint="type"
            )

    return row


# DDL rendering

_SQLITE_TYPES: Dict[str, Callable[[Column], str]] = {
    ID: lambda c: "TEXT",
    TEXT: lambda c: "TEXT",
    DECIMAL: lambda c: "TEXT",  # exact decimal text, converted back to Decimal
    BOOLEAN: lambda c: "INTEGER",
    INTEGER: lambda c: "INTEGER",
    TIMESTAMP: lambda c: "TEXT",
    ENUM: lambda c: "TEXT",
}

_POSTGRES_TYPES: Dict[str, Callable[[Column], str]] = {
    ID: lambda c: "VARCHAR(36)",
    TEXT: lambda c: f"VARCHAR({c.max_length})" if c.max_length else "TEXT",
    DECIMAL: lambda c: "DECIMAL(20, 2)",
    BOOLEAN: lambda c: "BOOLEAN",
    INTEGER: lambda c: "INTEGER",
    TIMESTAMP: lambda c: "TIMESTAMPTZ",
    ENUM: lambda c: "VARCHAR(20)",
}


def _sql_default(column: Column, dialect: str) -> Optional[str]:
    if column.default is None:
        return None
    if column.kind == BOOLEAN:
        if dialect == "sqlite":
            return "1" if column.default else "0"
        return "TRUE" if column.default else "FALSE"
    if column.kind == DECIMAL and dialect == "sqlite":
        return f"'{column.default}'"
    return str(column.default)


def create_table_sql(table: TableSchema, dialect: str) -> List[str]:
    """Render CREATE TABLE / CREATE INDEX statements for a dialect"""
    types = _SQLITE_TYPES if dialect == "sqlite" else _POSTGRES_TYPES
    lines = []
    for column in table.columns:
        parts = [column.name, types[column.kind](column)]
        if column.name == "id":
            parts.append("PRIMARY KEY")
        elif not column.nullable:
            parts.append("NOT NULL")
        default = _sql_default(column, dialect)
        if default is not None:
            parts.append(f"DEFAULT {default}")
        if column.references:
            parts.append(f"REFERENCES {column.references}(id)")
        if column.choices:
            allowed = ", ".join(f"'{choice}'" for choice in column.choices)
            parts.append(f"CHECK ({column.name} IN ({allowed}))")
        if column.max_length and dialect == "sqlite":
            parts.append(f"CHECK (length({column.name}) <= {column.max_length})")
        lines.append(" ".join(parts))

    statements = [
        f"CREATE TABLE IF NOT EXISTS {table.name} (\n    " + ",\n    ".join(lines) + "\n)"
    ]
    for column in table.columns:
        if column.indexed:
            statements.append(
                f"CREATE INDEX IF NOT EXISTS idx_{table.name}_{column.name} "
                f"ON {table.name}({column.name})"
            )
    return statements
