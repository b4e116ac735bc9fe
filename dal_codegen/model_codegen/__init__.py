"""Model Code Generator - Generates GORM models and repositories from a database schema."""

from .arguments import GenerationRequest, add_model_arguments, build_request
from .generator import ModelArtifact, ModelGenerator, GeneratorConfig, DEFAULT_GO_TYPES
from .introspection import ColumnInfo, DatabaseSource, SqlDirectorySource, open_source
from .main import GenerationResult, GenerationSession, emit_models, generate
from .repositories import RepositoryRenderer
from .tables import TableSpec, resolve_tables
from .type_overrides import TypeOverride, TypeOverrideResolver

__all__ = [
    "GenerationRequest",
    "add_model_arguments",
    "build_request",
    "ModelArtifact",
    "ModelGenerator",
    "GeneratorConfig",
    "DEFAULT_GO_TYPES",
    "ColumnInfo",
    "DatabaseSource",
    "SqlDirectorySource",
    "open_source",
    "GenerationResult",
    "GenerationSession",
    "emit_models",
    "generate",
    "RepositoryRenderer",
    "TableSpec",
    "resolve_tables",
    "TypeOverride",
    "TypeOverrideResolver",
]
