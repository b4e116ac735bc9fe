"""Generation request construction from CLI flags and the YAML config file."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Iterable

from ..shared import ConfigFileError, FieldMapping, load_field_mappings

logger = logging.getLogger(__name__)

DEFAULT_OUT_DIR: Final[str] = "biz/dal/query"
DEFAULT_OUT_FILE: Final[str] = "gen.go"
DEFAULT_MODEL_PKG: Final[str] = "model"
DEFAULT_REPO_DIR: Final[str] = "biz/dal/repo"
DEFAULT_DB_TYPE: Final[str] = "mysql"

SUPPORTED_DB_TYPES: Final[tuple[str, ...]] = ("mysql", "postgres", "sqlite", "sqlserver")
SQLITE: Final[str] = "sqlite"


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Fully merged configuration for one generation run."""

    dsn: str = ""
    db_type: str = DEFAULT_DB_TYPE
    tables: tuple[str, ...] = ()
    exclude_tables: tuple[str, ...] = ()
    only_model: bool = False
    out_path: str = DEFAULT_OUT_DIR
    out_file: str = DEFAULT_OUT_FILE
    with_unit_test: bool = False
    model_pkg_name: str = DEFAULT_MODEL_PKG
    field_nullable: bool = False
    field_signable: bool = False
    field_with_index_tag: bool = False
    field_with_type_tag: bool = False
    sql_dir: str = ""
    config_file: str = ""
    field_mappings: tuple[FieldMapping, ...] = ()

    @property
    def uses_sql_dir(self) -> bool:
        """SQL files take precedence over a DSN when both are configured."""
        return bool(self.sql_dir)

    @property
    def is_sqlite(self) -> bool:
        return self.db_type == SQLITE


def _split_names(values: Iterable[str] | None) -> tuple[str, ...]:
    """Flatten repeated and comma separated table flags."""
    if not values:
        return ()
    names: list[str] = []
    for value in values:
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return tuple(names)


def add_model_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Declare the model generation flags on a parser."""
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--dsn",
        default="",
        help="Database connection string (SQLAlchemy URL or Go driver DSN)",
    )
    source.add_argument(
        "--sql-dir",
        default="",
        help="Directory (or single file) of SQL files to read CREATE TABLE statements from",
    )
    parser.add_argument(
        "--db-type",
        default=DEFAULT_DB_TYPE,
        help=f"Database type, case-insensitive ({', '.join(SUPPORTED_DB_TYPES)})",
    )
    parser.add_argument(
        "--tables",
        action="append",
        metavar="TABLE",
        help="Table to generate; repeat or comma separate. Defaults to every table",
    )
    parser.add_argument(
        "--exclude-tables",
        action="append",
        metavar="TABLE",
        help="Table to skip when generating every table",
    )
    parser.add_argument(
        "--only-model",
        action="store_true",
        help="Only generate models, skip query index and repositories",
    )
    parser.add_argument("--out-dir", default=None, help=f"Query output directory (default: {DEFAULT_OUT_DIR})")
    parser.add_argument("--out-file", default=None, help=f"Query output file name (default: {DEFAULT_OUT_FILE})")
    parser.add_argument("--model-pkg", default=None, help=f"Model package name or path (default: {DEFAULT_MODEL_PKG})")
    parser.add_argument(
        "--repo-dir",
        type=Path,
        default=Path(DEFAULT_REPO_DIR),
        help=f"Repository output directory (default: {DEFAULT_REPO_DIR})",
    )
    parser.add_argument("--unittest", action="store_true", help="Generate unit tests for models")
    parser.add_argument("--nullable", action="store_true", help="Generate pointer fields for nullable columns")
    parser.add_argument("--signable", action="store_true", help="Generate unsigned Go types for unsigned columns")
    parser.add_argument("--index-tag", action="store_true", help="Add index names to gorm tags")
    parser.add_argument("--type-tag", action="store_true", help="Add column types to gorm tags")
    parser.add_argument("--config", default="", help="YAML file with fieldMapping overrides")
    return parser


def build_request(args: argparse.Namespace) -> GenerationRequest:
    """Merge parsed CLI flags and the optional config file into a request.

    Raises:
        ConfigReadError: If the config file cannot be read.
        ConfigParseError: If the config file is malformed.
    """
    config_file = getattr(args, "config", "") or ""
    field_mappings: list[FieldMapping] = []

    if config_file:
        try:
            field_mappings.extend(load_field_mappings(Path(config_file)))
        except ConfigFileError as e:
            raise e.with_context("parse config file failed") from e
        logger.info("Loaded %d field mapping(s) from %s", len(field_mappings), config_file)

    return GenerationRequest(
        dsn=args.dsn or "",
        db_type=(args.db_type or DEFAULT_DB_TYPE).lower(),
        tables=_split_names(args.tables),
        exclude_tables=_split_names(args.exclude_tables),
        only_model=bool(args.only_model),
        out_path=args.out_dir or DEFAULT_OUT_DIR,
        out_file=args.out_file or DEFAULT_OUT_FILE,
        with_unit_test=bool(args.unittest),
        model_pkg_name=args.model_pkg or DEFAULT_MODEL_PKG,
        field_nullable=bool(args.nullable),
        field_signable=bool(args.signable),
        field_with_index_tag=bool(args.index_tag),
        field_with_type_tag=bool(args.type_tag),
        sql_dir=args.sql_dir or "",
        config_file=config_file,
        field_mappings=tuple(field_mappings),
    )

