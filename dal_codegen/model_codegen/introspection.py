"""
Schema sources for the model generator.

A schema source lists the tables of a schema and describes their columns.
Two sources exist:

- DatabaseSource reflects a live database through a SQLAlchemy inspector.
- SqlDirectorySource reads ``CREATE TABLE`` statements from SQL files.

Both are opened once per run and shared read-only by every table.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Final, Protocol
from urllib.parse import parse_qs, urlsplit

import sqlparse
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import CompileError, SQLAlchemyError

from ..shared import DialectError, SchemaIntrospectionError
from .arguments import GenerationRequest

logger = logging.getLogger(__name__)

# Go DSN forms, e.g. user:pass@tcp(127.0.0.1:3306)/db?charset=utf8mb4
_MYSQL_DSN_RE: Final = re.compile(
    r"^(?P<user>[^:@/]*)(?::(?P<password>[^@]*))?@"
    r"(?:(?P<net>\w+)\((?P<addr>[^)]*)\))?"
    r"/(?P<database>[^?]*)(?:\?(?P<params>.*))?$"
)
_TYPE_ARGS_RE: Final = re.compile(r"\([^)]*\)")
_TYPE_SUFFIX_RE: Final = re.compile(r"\s+(unsigned|zerofill|collate|character set|charset)\b.*$")

_CREATE_TABLE_RE: Final = re.compile(
    r"CREATE\s+(?:TEMPORARY\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
    r"(?:[\"`\[]?\w+[\"`\]]?\.)?[\"`\[]?(\w+)[\"`\]]?\s*\((.*)\)",
    re.IGNORECASE | re.DOTALL,
)
_CREATE_INDEX_RE: Final = re.compile(
    r"CREATE\s+(?:UNIQUE\s+)?INDEX\s+(?:IF\s+NOT\s+EXISTS\s+)?[\"`]?(\w+)[\"`]?\s+"
    r"ON\s+(?:[\"`]?\w+[\"`]?\.)?[\"`]?(\w+)[\"`]?\s*\(([^)]*)\)",
    re.IGNORECASE,
)
_COLUMN_RE: Final = re.compile(
    r"^[\"`\[]?(\w+)[\"`\]]?\s+"
    r"(\w+(?:\s+(?:precision|varying))?(?:\s*\([^)]*\))?)\s*(.*)$",
    re.IGNORECASE | re.DOTALL,
)
_INLINE_INDEX_RE: Final = re.compile(
    r"^(?:UNIQUE\s+)?(?:KEY|INDEX)\s+[\"`]?(\w+)[\"`]?\s*\(([^)]*)\)",
    re.IGNORECASE,
)
_COMMENT_RE: Final = re.compile(r"COMMENT\s+'((?:[^']|'')*)'", re.IGNORECASE)
_PRIMARY_KEY_RE: Final = re.compile(r"PRIMARY\s+KEY\s*\(([^)]*)\)", re.IGNORECASE)
_CONSTRAINT_RE: Final = re.compile(
    r"^(?:PRIMARY\s+KEY|FOREIGN\s+KEY|UNIQUE|KEY|INDEX|CONSTRAINT|CHECK|FULLTEXT|SPATIAL)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """Metadata of one column as seen by the model generator."""

    name: str
    data_type: str
    column_type: str | None
    nullable: bool = True
    primary_key: bool = False
    auto_increment: bool = False
    unsigned: bool = False
    comment: str | None = None
    indexes: tuple[str, ...] = ()


class SchemaSource(Protocol):
    """What the model generator needs from a schema."""

    def list_tables(self) -> list[str]: ...

    def inspect_columns(self, table_name: str) -> list[ColumnInfo]: ...

    def close(self) -> None: ...


def split_type_text(type_text: str) -> tuple[str, bool]:
    """Split ``int(10) unsigned`` into the SQL type name and the unsigned flag."""
    text = type_text.strip().lower()
    unsigned = bool(re.search(r"\bunsigned\b", text))
    data_type = _TYPE_SUFFIX_RE.sub("", _TYPE_ARGS_RE.sub("", text))
    return " ".join(data_type.split()), unsigned


class DatabaseSource:
    """Schema source backed by a live database connection."""

    def __init__(self, engine: Engine, dialect: str | None = None) -> None:
        self.engine = engine
        self.dialect = dialect or engine.dialect.name
        self._inspector: Any = None

    def __enter__(self) -> DatabaseSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def inspector(self) -> Any:
        if self._inspector is None:
            self._inspector = inspect(self.engine)
        return self._inspector

    def list_tables(self) -> list[str]:
        try:
            return list(self.inspector.get_table_names())
        except SQLAlchemyError as e:
            raise SchemaIntrospectionError(f"list tables failed: {e}", self.dialect) from e

    def _type_text(self, column_type: Any) -> str | None:
        try:
            return str(column_type.compile(dialect=self.engine.dialect)).lower()
        except CompileError as e:
            logger.debug("Cannot compile column type %r: %s", column_type, e)
            return None

    def inspect_columns(self, table_name: str) -> list[ColumnInfo]:
        try:
            if not self.inspector.has_table(table_name):
                raise SchemaIntrospectionError(f"table '{table_name}' not found", self.dialect)
            raw_columns = self.inspector.get_columns(table_name)
            pk = self.inspector.get_pk_constraint(table_name) or {}
            raw_indexes = self.inspector.get_indexes(table_name)
        except SQLAlchemyError as e:
            raise SchemaIntrospectionError(
                f"inspect table '{table_name}' failed: {e}", self.dialect
            ) from e

        primary_keys = set(pk.get("constrained_columns") or ())
        indexes_by_column: dict[str, list[str]] = {}
        for index in raw_indexes:
            for column_name in index.get("column_names") or ():
                if column_name and index.get("name"):
                    indexes_by_column.setdefault(column_name, []).append(index["name"])

        columns: list[ColumnInfo] = []
        for raw in raw_columns:
            type_text = self._type_text(raw["type"])
            if type_text is not None:
                data_type, unsigned = split_type_text(type_text)
            else:
                data_type = type(raw["type"]).__name__.lower()
                unsigned = False
            unsigned = unsigned or bool(getattr(raw["type"], "unsigned", False))

            columns.append(
                ColumnInfo(
                    name=raw["name"],
                    data_type=data_type,
                    column_type=type_text,
                    nullable=bool(raw.get("nullable", True)),
                    primary_key=raw["name"] in primary_keys,
                    auto_increment=raw.get("autoincrement") is True,
                    unsigned=unsigned,
                    comment=raw.get("comment") or None,
                    indexes=tuple(indexes_by_column.get(raw["name"], ())),
                )
            )
        return columns

    def close(self) -> None:
        self.engine.dispose()


class SqlDirectorySource:
    """Schema source parsed from ``CREATE TABLE`` statements in SQL files."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._tables: dict[str, list[ColumnInfo]] | None = None

    def __enter__(self) -> SqlDirectorySource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def sql_files(self) -> list[Path]:
        if not self.path.exists():
            raise SchemaIntrospectionError("SQL path does not exist", path=str(self.path))
        if self.path.is_dir():
            return sorted(p for p in self.path.iterdir() if p.is_file() and p.suffix.lower() == ".sql")
        return [self.path]

    @property
    def tables(self) -> dict[str, list[ColumnInfo]]:
        if self._tables is None:
            self._tables = self._load()
        return self._tables

    def _load(self) -> dict[str, list[ColumnInfo]]:
        tables: dict[str, list[ColumnInfo]] = {}
        extra_indexes: list[tuple[str, str, list[str]]] = []

        for sql_file in self.sql_files():
            try:
                content = sql_file.read_text(encoding="utf-8")
            except OSError as e:
                raise SchemaIntrospectionError(f"read SQL file failed: {e}", path=str(sql_file)) from e

            for statement in sqlparse.parse(content):
                if statement.get_type() != "CREATE":
                    continue
                text = sqlparse.format(str(statement), strip_comments=True).strip().rstrip(";")
                index_match = _CREATE_INDEX_RE.match(text)
                if index_match:
                    extra_indexes.append(
                        (index_match.group(2), index_match.group(1), _column_list(index_match.group(3)))
                    )
                    continue
                parsed = parse_create_table(text)
                if parsed is not None:
                    name, columns = parsed
                    tables[name] = columns
                    logger.debug("Parsed table %s from %s", name, sql_file.name)

        for table_name, index_name, column_names in extra_indexes:
            if table_name in tables:
                tables[table_name] = _with_index(tables[table_name], index_name, column_names)

        return tables

    def list_tables(self) -> list[str]:
        return list(self.tables)

    def inspect_columns(self, table_name: str) -> list[ColumnInfo]:
        try:
            return list(self.tables[table_name])
        except KeyError:
            raise SchemaIntrospectionError(
                f"table '{table_name}' not found", path=str(self.path)
            ) from None

    def close(self) -> None:
        self._tables = None


def _split_definitions(body: str) -> list[str]:
    """Split a column list on commas that are not inside parentheses or quotes."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None

    for char in body:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    if "".join(current).strip():
        parts.append("".join(current).strip())
    return parts


def _column_list(raw: str) -> list[str]:
    # Drop prefix lengths such as name(20)
    return [re.sub(r"\(.*$", "", c.strip().strip("`\"[]")).strip("`\"[]") for c in raw.split(",") if c.strip()]


def _with_index(columns: list[ColumnInfo], index_name: str, column_names: list[str]) -> list[ColumnInfo]:
    updated = []
    for column in columns:
        if column.name in column_names and index_name not in column.indexes:
            column = replace(column, indexes=column.indexes + (index_name,))
        updated.append(column)
    return updated


def parse_create_table(statement: str) -> tuple[str, list[ColumnInfo]] | None:
    """Parse one ``CREATE TABLE`` statement into its name and columns."""
    match = _CREATE_TABLE_RE.match(statement.strip())
    if not match:
        return None

    table_name = match.group(1)
    columns: list[ColumnInfo] = []
    primary_keys: list[str] = []
    indexes: list[tuple[str, list[str]]] = []

    for definition in _split_definitions(match.group(2)):
        if _CONSTRAINT_RE.match(definition):
            pk_match = _PRIMARY_KEY_RE.search(definition)
            if pk_match:
                primary_keys.extend(_column_list(pk_match.group(1)))
            index_match = _INLINE_INDEX_RE.match(definition)
            if index_match:
                indexes.append((index_match.group(1), _column_list(index_match.group(2))))
            continue

        column = _parse_column(definition)
        if column is not None:
            columns.append(column)

    resolved: list[ColumnInfo] = []
    for column in columns:
        if column.name in primary_keys and not column.primary_key:
            column = replace(column, nullable=False, primary_key=True)
        resolved.append(column)

    for index_name, column_names in indexes:
        resolved = _with_index(resolved, index_name, column_names)

    return table_name, resolved


def _parse_column(definition: str) -> ColumnInfo | None:
    match = _COLUMN_RE.match(definition.strip())
    if not match:
        return None

    name = match.group(1)
    raw_type = " ".join(match.group(2).split())
    flags = match.group(3)
    upper_flags = flags.upper()

    column_type = raw_type.lower().replace(" (", "(")
    if re.search(r"\bUNSIGNED\b", upper_flags):
        column_type = f"{column_type} unsigned"
    data_type, unsigned = split_type_text(column_type)

    primary_key = "PRIMARY KEY" in upper_flags
    comment_match = _COMMENT_RE.search(flags)

    return ColumnInfo(
        name=name,
        data_type=data_type,
        column_type=column_type,
        nullable=not primary_key and "NOT NULL" not in upper_flags,
        primary_key=primary_key,
        auto_increment=(
            "AUTO_INCREMENT" in upper_flags
            or "AUTOINCREMENT" in upper_flags
            or "IDENTITY" in upper_flags
            or data_type in ("serial", "bigserial", "smallserial")
        ),
        unsigned=unsigned,
        comment=comment_match.group(1).replace("''", "'") if comment_match else None,
    )


def _mysql_url(dsn: str) -> URL:
    match = _MYSQL_DSN_RE.match(dsn)
    if not match:
        raise DialectError(f"cannot parse DSN '{dsn}'", "mysql")

    host, port = "127.0.0.1", 3306
    addr = match.group("addr")
    if addr:
        host, _, raw_port = addr.partition(":")
        port = int(raw_port) if raw_port else 3306

    query = {}
    params = parse_qs(match.group("params") or "")
    if "charset" in params:
        query["charset"] = params["charset"][0]

    return URL.create(
        "mysql+pymysql",
        username=match.group("user") or None,
        password=match.group("password"),
        host=host,
        port=port,
        database=match.group("database") or None,
        query=query,
    )


def _postgres_url(dsn: str) -> URL:
    values = dict(item.split("=", 1) for item in dsn.split() if "=" in item)
    if not values:
        raise DialectError(f"cannot parse DSN '{dsn}'", "postgres")
    query = {"sslmode": values["sslmode"]} if "sslmode" in values else {}
    return URL.create(
        "postgresql+psycopg",
        username=values.get("user"),
        password=values.get("password"),
        host=values.get("host"),
        port=int(values["port"]) if "port" in values else None,
        database=values.get("dbname"),
        query=query,
    )


def _sqlserver_url(dsn: str) -> URL:
    parts = urlsplit(dsn)
    params = parse_qs(parts.query)
    return URL.create(
        "mssql+pymssql",
        username=parts.username,
        password=parts.password,
        host=parts.hostname,
        port=parts.port,
        database=params.get("database", [None])[0],
    )


def to_sqlalchemy_url(db_type: str, dsn: str) -> str | URL:
    """Convert a Go driver DSN into something ``create_engine`` accepts.

    SQLAlchemy URLs pass through unchanged.

    Raises:
        DialectError: If the dialect is unknown or the DSN cannot be parsed.
    """
    if db_type == "sqlserver" and dsn.startswith("sqlserver://"):
        return _sqlserver_url(dsn)
    if dsn.startswith("postgres://"):
        return "postgresql+psycopg://" + dsn[len("postgres://"):]
    if "://" in dsn:
        return dsn

    if db_type == "sqlite":
        path = dsn.removeprefix("file:").split("?", 1)[0]
        return f"sqlite:///{path}"
    if db_type == "mysql":
        return _mysql_url(dsn)
    if db_type == "postgres":
        return _postgres_url(dsn)
    if db_type == "sqlserver":
        raise DialectError(f"cannot parse DSN '{dsn}'", db_type)
    raise DialectError("unsupported database type", db_type)


def open_source(request: GenerationRequest) -> DatabaseSource | SqlDirectorySource:
    """Open the schema source for a generation request.

    A SQL directory takes precedence over a DSN.

    Raises:
        SchemaIntrospectionError: If the database cannot be reached.
        DialectError: If the DSN cannot be converted.
    """
    if request.uses_sql_dir:
        logger.info("Reading schema from SQL files in %s", request.sql_dir)
        return SqlDirectorySource(Path(request.sql_dir))

    if not request.dsn:
        raise SchemaIntrospectionError("a DSN or a SQL directory is required", request.db_type)

    url = to_sqlalchemy_url(request.db_type, request.dsn)
    try:
        engine = create_engine(url)
        with engine.connect():
            pass
    except (SQLAlchemyError, ImportError) as e:
        raise SchemaIntrospectionError(f"open database failed: {e}", request.db_type) from e

    logger.info("Connected to %s database", request.db_type)
    return DatabaseSource(engine, request.db_type)
