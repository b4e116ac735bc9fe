"""Custom exceptions for the data-access code generator."""

from __future__ import annotations


class CodegenError(Exception):
    """Base exception for code generation errors."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        self.reason = message
        full_message = f"{message}" if not path else f"[{path}] {message}"
        super().__init__(full_message)


class ConfigFileError(CodegenError):
    """Base exception for field-mapping config file errors."""

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        super().__init__(message, config_path)

    def with_context(self, context: str) -> ConfigFileError:
        """Return a copy of this error with a stage prefix on the message."""
        return type(self)(f"{context}: {self.reason}", self.config_path)


class ConfigReadError(ConfigFileError):
    """Raised when the config file cannot be read."""


class ConfigParseError(ConfigFileError):
    """Raised when the config file is not valid YAML or has the wrong shape."""


class SchemaIntrospectionError(CodegenError):
    """Raised when connecting to or listing the schema fails."""

    def __init__(
        self,
        message: str,
        dialect: str | None = None,
        path: str | None = None,
    ) -> None:
        self.dialect = dialect
        if dialect:
            message = f"Dialect '{dialect}': {message}"
        super().__init__(message, path)


class DialectError(CodegenError):
    """Raised for unsupported or misconfigured dialects."""

    def __init__(self, message: str, dialect: str) -> None:
        self.dialect = dialect
        super().__init__(f"Dialect '{dialect}': {message}")


class ModelGenerationError(CodegenError):
    """Raised when the model generator fails to render or write models."""


class OutputError(CodegenError):
    """Base exception for errors while writing generated files."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        table: str | None = None,
    ) -> None:
        self.table = table
        if table:
            message = f"Table '{table}': {message}"
        super().__init__(message, path)


class DirectoryCreationError(OutputError):
    """Raised when an output directory cannot be created."""


class TemplateRenderError(OutputError):
    """Raised when a template cannot be parsed or rendered."""


class FileWriteError(OutputError):
    """Raised when a generated file cannot be written."""
