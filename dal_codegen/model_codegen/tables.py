"""Resolution of the table set to generate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Final, Sequence

from ..shared import SchemaIntrospectionError, to_lower_camel_case, to_pascal_case
from .arguments import GenerationRequest

logger = logging.getLogger(__name__)

# Tables SQLite keeps for itself, e.g. sqlite_sequence and sqlite_stat1
SQLITE_INTERNAL_PREFIX: Final[str] = "sqlite"

TableNameStrategy = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class TableSpec:
    """A table to generate; names are always derived from the table name."""

    name: str

    @property
    def model_name(self) -> str:
        return to_pascal_case(self.name)

    @property
    def variable_name(self) -> str:
        return to_lower_camel_case(self.name)


def table_name_strategy(request: GenerationRequest) -> TableNameStrategy | None:
    """Build the filter applied to introspected table names.

    Returns None when nothing can be filtered out. The returned callable
    maps a table name to itself, or to an empty string for a dropped table.
    """
    if not request.exclude_tables and not request.is_sqlite:
        return None

    excluded = frozenset(request.exclude_tables)
    is_sqlite = request.is_sqlite

    def strategy(table_name: str) -> str:
        if is_sqlite and table_name.startswith(SQLITE_INTERNAL_PREFIX):
            return ""
        if table_name in excluded:
            return ""
        return table_name

    return strategy


def filter_table_names(names: Sequence[str], request: GenerationRequest) -> list[str]:
    """Apply exclusion and dialect filtering, keeping the input order."""
    strategy = table_name_strategy(request)
    if strategy is None:
        return list(names)
    return [name for name in names if strategy(name)]


def resolve_tables(
    request: GenerationRequest,
    list_tables: Callable[[], Sequence[str]],
) -> list[TableSpec]:
    """Determine the ordered tables to generate.

    An explicit table list is used as given; unknown names are reported
    later by the model generator. Otherwise every table from
    ``list_tables`` is taken, minus excluded and dialect-internal tables.

    Raises:
        SchemaIntrospectionError: If listing the tables fails.
    """
    if request.tables:
        return [TableSpec(name) for name in request.tables]

    try:
        names = list(list_tables())
    except SchemaIntrospectionError:
        raise
    except Exception as e:
        raise SchemaIntrospectionError(
            f"migrator get all tables fail: {e}",
            request.db_type,
        ) from e

    kept = filter_table_names(names, request)
    logger.info("Resolved %d of %d table(s)", len(kept), len(names))
    return [TableSpec(name) for name in kept]
