"""
Column type overrides applied on top of the model generator's type inference.

Two kinds of rule exist:

- FieldKeyRule targets one column through its ``<table>.<column>`` key and
  comes from the ``fieldMapping`` section of the config file.
- SqlTypeRule targets every column of a SQL type, e.g. all ``decimal``
  columns.

Field-key rules are always consulted before SQL-type rules, so a single
``tinyint(1)`` column can be forced to ``bool`` while every other tinyint
keeps the built-in mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final, Iterable, Sequence

from ..shared import FieldMapping
from .introspection import ColumnInfo

DECIMAL_IMPORT: Final[str] = "github.com/shopspring/decimal"


@dataclass(frozen=True, slots=True)
class TypeOverride:
    """Target Go type for a column and the package it needs."""

    type_name: str
    import_path: str | None = None


@dataclass(frozen=True, slots=True)
class FieldKeyRule:
    """Override for exactly one table-qualified column."""

    field_key: str
    override: TypeOverride

    def apply(self, field_key: str) -> TypeOverride | None:
        if field_key == self.field_key:
            return self.override
        return None


@dataclass(frozen=True, slots=True)
class SqlTypeRule:
    """Override for every column of a SQL type name.

    ``resolve`` receives the full column type text (``tinyint(4)``), or
    None when it could not be determined.
    """

    sql_type: str
    resolve: Callable[[str | None], TypeOverride]

    def apply(self, data_type: str, column_type: str | None) -> TypeOverride | None:
        if data_type != self.sql_type:
            return None
        return self.resolve(column_type)


def _decimal(column_type: str | None) -> TypeOverride:
    return TypeOverride("decimal.Decimal", DECIMAL_IMPORT)


def _tinyint(column_type: str | None) -> TypeOverride:
    # MySQL reports booleans as tinyint(1); any other width is a real integer
    if isinstance(column_type, str) and column_type == "tinyint(1)":
        return TypeOverride("int8")
    return TypeOverride("int32")


DEFAULT_TYPE_RULES: Final[tuple[SqlTypeRule, ...]] = (
    SqlTypeRule("decimal", _decimal),
    SqlTypeRule("tinyint", _tinyint),
)


class TypeOverrideResolver:
    """Resolve the override for a column, field-key rules first."""

    __slots__ = ("_field_rules", "_type_rules")

    def __init__(
        self,
        field_rules: Sequence[FieldKeyRule] = (),
        type_rules: Sequence[SqlTypeRule] = DEFAULT_TYPE_RULES,
    ) -> None:
        self._field_rules = tuple(field_rules)
        self._type_rules = tuple(type_rules)

    @classmethod
    def from_field_mappings(
        cls,
        mappings: Iterable[FieldMapping],
        type_rules: Sequence[SqlTypeRule] = DEFAULT_TYPE_RULES,
    ) -> TypeOverrideResolver:
        field_rules = [
            FieldKeyRule(
                field_key=mapping.field_key,
                override=TypeOverride(mapping.type, mapping.import_path),
            )
            for mapping in mappings
        ]
        return cls(field_rules, type_rules)

    @property
    def field_rules(self) -> tuple[FieldKeyRule, ...]:
        return self._field_rules

    @property
    def type_rules(self) -> tuple[SqlTypeRule, ...]:
        return self._type_rules

    def resolve(
        self,
        data_type: str,
        column_type: str | None,
        field_key: str,
    ) -> TypeOverride | None:
        """Return the override for a column, or None to keep the default type.

        Args:
            data_type: SQL type name such as ``tinyint``.
            column_type: Full type text such as ``tinyint(4)``, if known.
            field_key: Table-qualified column key, ``<table>.<column>``.
        """
        for field_rule in self._field_rules:
            override = field_rule.apply(field_key)
            if override is not None:
                return override

        normalized = (data_type or "").lower()
        for type_rule in self._type_rules:
            override = type_rule.apply(normalized, column_type)
            if override is not None:
                return override

        return None

    def for_table(self, table_name: str) -> Callable[[ColumnInfo], TypeOverride | None]:
        """Bind the resolver to one table for the model generator."""

        def override(column: ColumnInfo) -> TypeOverride | None:
            return self.resolve(
                column.data_type,
                column.column_type,
                f"{table_name}.{column.name}",
            )

        return override
