"""Shared utilities for the code generators."""

from .config_loader import (
    FieldMapping,
    dump_field_mappings,
    load_field_mappings,
)
from .naming import (
    to_pascal_case,
    to_lower_camel_case,
    to_go_field_name,
    sanitize_go_identifier,
    GO_KEYWORDS,
)
from .errors import (
    CodegenError,
    ConfigFileError,
    ConfigReadError,
    ConfigParseError,
    SchemaIntrospectionError,
    DialectError,
    ModelGenerationError,
    OutputError,
    DirectoryCreationError,
    TemplateRenderError,
    FileWriteError,
)

__all__ = [
    # Config loading
    "FieldMapping",
    "dump_field_mappings",
    "load_field_mappings",
    # Naming utilities
    "to_pascal_case",
    "to_lower_camel_case",
    "to_go_field_name",
    "sanitize_go_identifier",
    "GO_KEYWORDS",
    # Errors
    "CodegenError",
    "ConfigFileError",
    "ConfigReadError",
    "ConfigParseError",
    "SchemaIntrospectionError",
    "DialectError",
    "ModelGenerationError",
    "OutputError",
    "DirectoryCreationError",
    "TemplateRenderError",
    "FileWriteError",
]
