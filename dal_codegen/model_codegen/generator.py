"""
Model generator - Renders GORM model structs from introspected tables.

Models are accumulated by ``generate_model`` and only written to disk by
``execute``, so a run that fails while inspecting a table leaves no model
files behind. A failure while writing is not rolled back.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Final, Sequence

from jinja2 import TemplateError

from ..shared import (
    ModelGenerationError,
    SchemaIntrospectionError,
    sanitize_go_identifier,
    to_go_field_name,
    to_pascal_case,
)
from .arguments import GenerationRequest
from .context import MODEL_TEMPLATE, MODEL_TEST_TEMPLATE, QUERY_TEMPLATE, GeneratorContext
from .introspection import ColumnInfo, SchemaSource
from .type_overrides import TypeOverride

logger = logging.getLogger(__name__)

ColumnOverride = Callable[[ColumnInfo], "TypeOverride | None"]

# Default Go types by SQL type name
DEFAULT_GO_TYPES: Final[dict[str, str]] = {
    "bit": "bool",
    "bool": "bool",
    "boolean": "bool",
    "tinyint": "int32",
    "smallint": "int32",
    "mediumint": "int32",
    "int": "int32",
    "integer": "int32",
    "numeric": "int32",
    "serial": "int32",
    "smallserial": "int32",
    "bigint": "int64",
    "bigserial": "int64",
    "float": "float32",
    "real": "float64",
    "double": "float64",
    "double precision": "float64",
    "decimal": "float64",
    "money": "float64",
    "char": "string",
    "varchar": "string",
    "character": "string",
    "character varying": "string",
    "nchar": "string",
    "nvarchar": "string",
    "tinytext": "string",
    "text": "string",
    "mediumtext": "string",
    "longtext": "string",
    "enum": "string",
    "set": "string",
    "json": "string",
    "jsonb": "string",
    "uuid": "string",
    "binary": "[]byte",
    "varbinary": "[]byte",
    "tinyblob": "[]byte",
    "blob": "[]byte",
    "mediumblob": "[]byte",
    "longblob": "[]byte",
    "bytea": "[]byte",
    "date": "time.Time",
    "datetime": "time.Time",
    "datetime2": "time.Time",
    "timestamp": "time.Time",
    "timestamptz": "time.Time",
    "time": "time.Time",
    "year": "int32",
}

UNSIGNED_GO_TYPES: Final[dict[str, str]] = {
    "int8": "uint8",
    "int16": "uint16",
    "int32": "uint32",
    "int64": "uint64",
}

# Imports implied by a Go type
TYPE_IMPORTS: Final[dict[str, str]] = {
    "time.Time": "time",
    "gorm.DeletedAt": "gorm.io/gorm",
}

SOFT_DELETE_COLUMN: Final[str] = "deleted_at"
GENERATED_HEADER: Final[str] = "// Code generated by dal-codegen. DO NOT EDIT."


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Settings of the model generator taken from a generation request."""

    out_path: str
    out_file: str
    model_pkg_path: str
    with_unit_test: bool = False
    only_model: bool = False
    field_nullable: bool = False
    field_signable: bool = False
    field_with_index_tag: bool = False
    field_with_type_tag: bool = False

    @classmethod
    def from_request(cls, request: GenerationRequest) -> GeneratorConfig:
        return cls(
            out_path=request.out_path,
            out_file=request.out_file,
            model_pkg_path=request.model_pkg_name,
            with_unit_test=request.with_unit_test,
            only_model=request.only_model,
            field_nullable=request.field_nullable,
            field_signable=request.field_signable,
            field_with_index_tag=request.field_with_index_tag,
            field_with_type_tag=request.field_with_type_tag,
        )


@dataclass(frozen=True, slots=True)
class ModelField:
    """One field of a generated struct."""

    name: str
    go_type: str
    tag: str
    comment: str | None
    column: ColumnInfo


@dataclass(frozen=True, slots=True)
class ModelArtifact:
    """A rendered model waiting to be written."""

    table_name: str
    struct_name: str
    path: Path
    source: str
    field_names: tuple[str, ...]
    primary_key_type: str | None
    field_types: tuple[str, ...] = ()

    @property
    def test_path(self) -> Path:
        return self.path.with_name(self.path.name.replace(".gen.go", ".gen_test.go"))

    def field_type(self, field_name: str) -> str | None:
        """Go type of a field, or None if the model has no such field."""
        types = dict(zip(self.field_names, self.field_types))
        return types.get(field_name)


def go_package_name(path: str | Path) -> str:
    """Derive a Go package name from the last element of a directory path."""
    name = re.sub(r"[^0-9a-zA-Z_]", "_", Path(path).name).lower() or "model"
    return sanitize_go_identifier(name)


def _escape_tag_value(value: str) -> str:
    value = " ".join(value.split())
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("`", "'")
        .replace(";", "\\;")
    )


def default_go_type(column: ColumnInfo) -> str:
    """Go type inferred from the column's SQL type name."""
    data_type = column.data_type
    if data_type in DEFAULT_GO_TYPES:
        return DEFAULT_GO_TYPES[data_type]
    # e.g. "timestamp with time zone", "int identity"
    for sql_type, go_type in DEFAULT_GO_TYPES.items():
        if data_type.startswith(f"{sql_type} "):
            return go_type
    return "string"


class ModelGenerator:
    """Accumulates GORM models for tables and writes them on ``execute``."""

    def __init__(
        self,
        config: GeneratorConfig,
        source: SchemaSource,
        ctx: GeneratorContext | None = None,
    ) -> None:
        self.config = config
        self.source = source
        self.ctx = ctx or GeneratorContext()
        self._artifacts: list[ModelArtifact] = []

    @property
    def artifacts(self) -> list[ModelArtifact]:
        return list(self._artifacts)

    @property
    def model_output_dir(self) -> Path:
        """Directory the model files are written to.

        A package given as a path is used as-is, otherwise the package sits
        next to the query output directory.
        """
        pkg_path = self.config.model_pkg_path
        if os.sep in pkg_path or "/" in pkg_path:
            return Path(pkg_path).resolve()
        return Path(os.path.dirname(self.config.out_path)) / pkg_path

    @property
    def model_package(self) -> str:
        return go_package_name(self.config.model_pkg_path)

    @property
    def query_file(self) -> Path:
        return Path(self.config.out_path) / self.config.out_file

    def list_tables(self) -> list[str]:
        return self.source.list_tables()

    def inspect_columns(self, table_name: str) -> list[ColumnInfo]:
        return self.source.inspect_columns(table_name)

    def _go_type(self, column: ColumnInfo, override: ColumnOverride | None) -> tuple[str, str | None]:
        resolved = override(column) if override is not None else None
        if resolved is not None:
            return resolved.type_name, resolved.import_path

        go_type = default_go_type(column)
        if go_type == "time.Time" and column.name == SOFT_DELETE_COLUMN:
            return "gorm.DeletedAt", None
        if self.config.field_signable and column.unsigned:
            go_type = UNSIGNED_GO_TYPES.get(go_type, go_type)
        return go_type, None

    def _gorm_tag(self, column: ColumnInfo) -> str:
        parts = [f"column:{column.name}"]
        if self.config.field_with_type_tag and column.column_type:
            parts.append(f"type:{_escape_tag_value(column.column_type)}")
        if column.primary_key:
            parts.append("primaryKey")
        if column.auto_increment:
            parts.append("autoIncrement:true")
        if not column.nullable and not column.primary_key:
            parts.append("not null")
        if self.config.field_with_index_tag:
            parts.extend(f"index:{name}" for name in column.indexes)
        if column.comment:
            parts.append(f"comment:{_escape_tag_value(column.comment)}")
        return f'gorm:"{";".join(parts)}" json:"{column.name}"'

    def _build_fields(
        self,
        columns: Sequence[ColumnInfo],
        override: ColumnOverride | None,
    ) -> tuple[list[ModelField], list[str]]:
        fields: list[ModelField] = []
        imports: list[str] = []

        for column in columns:
            go_type, import_path = self._go_type(column, override)
            if import_path:
                imports.append(import_path)
            if go_type in TYPE_IMPORTS:
                imports.append(TYPE_IMPORTS[go_type])

            if (
                self.config.field_nullable
                and column.nullable
                and not column.primary_key
                and go_type != "gorm.DeletedAt"
                and not go_type.startswith(("*", "[]"))
            ):
                go_type = f"*{go_type}"

            fields.append(
                ModelField(
                    name=to_go_field_name(column.name),
                    go_type=go_type,
                    tag=self._gorm_tag(column),
                    comment=" ".join(column.comment.split()) if column.comment else None,
                    column=column,
                )
            )

        return fields, sorted(set(imports))

    def generate_model(
        self,
        table_name: str,
        override: ColumnOverride | None = None,
    ) -> ModelArtifact:
        """Inspect a table and render its model.

        Raises:
            SchemaIntrospectionError: If the table cannot be inspected.
            ModelGenerationError: If the model template fails to render.
        """
        columns = self.inspect_columns(table_name)
        if not columns:
            raise SchemaIntrospectionError(f"table '{table_name}' has no columns")

        struct_name = to_pascal_case(table_name)
        fields, imports = self._build_fields(columns, override)

        name_width = max(len(f.name) for f in fields)
        type_width = max(len(f.go_type) for f in fields)
        declarations = []
        for f in fields:
            line = f"{f.name.ljust(name_width)} {f.go_type.ljust(type_width)} `{f.tag}`"
            if f.comment:
                line = f"{line} // {f.comment}"
            declarations.append(line)

        try:
            source = self.ctx.template(MODEL_TEMPLATE).render(
                header=GENERATED_HEADER,
                package_name=self.model_package,
                imports=imports,
                table_name=table_name,
                struct_name=struct_name,
                declarations=declarations,
            )
        except TemplateError as e:
            raise ModelGenerationError(
                f"render model for table '{table_name}' failed: {e}",
                MODEL_TEMPLATE,
            ) from e

        pk_types = [f.go_type.lstrip("*") for f in fields if f.column.primary_key]
        artifact = ModelArtifact(
            table_name=table_name,
            struct_name=struct_name,
            path=self.model_output_dir / f"{table_name}.gen.go",
            source=source,
            field_names=tuple(f.name for f in fields),
            primary_key_type=pk_types[0] if len(pk_types) == 1 else None,
            field_types=tuple(f.go_type for f in fields),
        )
        self._artifacts.append(artifact)
        logger.debug("Generated model %s for table %s", struct_name, table_name)
        return artifact

    def _render_model_test(self, artifact: ModelArtifact) -> str:
        return self.ctx.template(MODEL_TEST_TEMPLATE).render(
            header=GENERATED_HEADER,
            package_name=self.model_package,
            table_name=artifact.table_name,
            struct_name=artifact.struct_name,
        )

    def _render_query(self, model_pkg_path: str) -> str:
        return self.ctx.template(QUERY_TEMPLATE).render(
            header=GENERATED_HEADER,
            package_name=go_package_name(self.config.out_path),
            model_package=self.model_package,
            model_pkg_path=model_pkg_path,
            struct_names=[a.struct_name for a in self._artifacts],
        )

    def execute(self) -> list[Path]:
        """Write every accumulated model to disk.

        Returns:
            The paths written, in order.

        Raises:
            ModelGenerationError: On rendering or I/O failure.
        """
        written: list[Path] = []
        output_dir = self.model_output_dir
        current = str(output_dir)

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            for artifact in self._artifacts:
                current = str(artifact.path)
                artifact.path.write_text(artifact.source, encoding="utf-8")
                written.append(artifact.path)

                if self.config.with_unit_test:
                    current = str(artifact.test_path)
                    artifact.test_path.write_text(self._render_model_test(artifact), encoding="utf-8")
                    written.append(artifact.test_path)

            if not self.config.only_model and self._artifacts:
                query_file = self.query_file
                current = str(query_file)
                query_file.parent.mkdir(parents=True, exist_ok=True)
                query_file.write_text(
                    self._render_query(resolve_model_pkg_path(output_dir)),
                    encoding="utf-8",
                )
                written.append(query_file)
        except (OSError, TemplateError) as e:
            raise ModelGenerationError(f"write models failed: {e}", current) from e

        logger.info("Wrote %d model file(s) to %s", len(written), output_dir)
        return written


def _read_go_module(go_mod: Path) -> str | None:
    for line in go_mod.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("module "):
            return line.split(None, 1)[1].strip().strip('"')
    return None


def resolve_model_pkg_path(model_dir: Path) -> str:
    """Go import path of the model directory.

    Uses the module path of the nearest ``go.mod`` above the directory;
    without one the directory name is returned.
    """
    model_dir = Path(model_dir).resolve()
    for parent in (model_dir, *model_dir.parents):
        go_mod = parent / "go.mod"
        if go_mod.is_file():
            try:
                module = _read_go_module(go_mod)
            except OSError as e:
                logger.warning("Cannot read %s: %s", go_mod, e)
                continue
            if module:
                relative = model_dir.relative_to(parent).as_posix()
                return module if relative == "." else f"{module}/{relative}"
    return model_dir.name
