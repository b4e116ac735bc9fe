"""
Model Code Generator - Generates GORM models and repositories from a database schema.

The schema is read from a live database or from a directory of SQL files.
For every resolved table this writes:
- a model struct under the model package
- a repository with Create/GetByID/Update/Delete/List/Count
- a repository test, plus one shared test utility
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..shared import CodegenError, ModelGenerationError
from .arguments import DEFAULT_REPO_DIR, GenerationRequest, add_model_arguments, build_request
from .context import GeneratorContext
from .generator import GeneratorConfig, ModelArtifact, ModelGenerator, resolve_model_pkg_path
from .introspection import SchemaSource, open_source
from .repositories import RepositoryRenderer
from .tables import TableSpec, resolve_tables
from .type_overrides import TypeOverrideResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Files produced by one generation run."""

    tables: tuple[TableSpec, ...]
    model_files: tuple[Path, ...]
    repo_files: tuple[Path, ...]


def emit_models(
    generator: ModelGenerator,
    tables: Sequence[TableSpec],
    resolver: TypeOverrideResolver,
) -> list[ModelArtifact]:
    """Generate a model per table in order, then write them all.

    Raises:
        SchemaIntrospectionError: If a table cannot be inspected.
        ModelGenerationError: If writing the models fails.
    """
    artifacts = [
        generator.generate_model(table.name, resolver.for_table(table.name))
        for table in tables
    ]

    try:
        generator.execute()
    except ModelGenerationError as e:
        raise ModelGenerationError(f"execute model generator failed: {e.reason}", e.path) from e

    return artifacts


class GenerationSession:
    """State of one run: the request, its schema source and the generator."""

    def __init__(
        self,
        request: GenerationRequest,
        source: SchemaSource,
        ctx: GeneratorContext | None = None,
    ) -> None:
        self.request = request
        self.source = source
        self.ctx = ctx or GeneratorContext()
        self.generator = ModelGenerator(GeneratorConfig.from_request(request), source, self.ctx)
        self.resolver = TypeOverrideResolver.from_field_mappings(request.field_mappings)

    def resolve_tables(self) -> list[TableSpec]:
        return resolve_tables(self.request, self.generator.list_tables)

    def run(self, repo_dir: Path) -> GenerationResult:
        tables = self.resolve_tables()
        logger.info("Generating %d table(s)", len(tables))
        artifacts = emit_models(self.generator, tables, self.resolver)

        repo_files: list[Path] = []
        if not self.request.only_model:
            renderer = RepositoryRenderer(
                repo_dir,
                resolve_model_pkg_path(self.generator.model_output_dir),
                self.request.db_type,
                self.ctx,
            )
            repo_files = renderer.render_all(
                tables,
                {artifact.table_name: artifact for artifact in artifacts},
            )

        return GenerationResult(
            tables=tuple(tables),
            model_files=tuple(artifact.path for artifact in artifacts),
            repo_files=tuple(repo_files),
        )


def generate(
    request: GenerationRequest,
    repo_dir: Path = Path(DEFAULT_REPO_DIR),
    source: SchemaSource | None = None,
) -> GenerationResult:
    """Run the whole pipeline for a request.

    The schema source is opened from the request unless one is given; a
    source opened here is closed before returning.
    """
    owned = source is None
    if source is None:
        source = open_source(request)
    try:
        return GenerationSession(request, source).run(repo_dir)
    finally:
        if owned:
            source.close()


def _setup_logging(verbosity: int) -> None:
    """Configure the package logger: 0 = WARNING, 1 = INFO, 2+ = DEBUG."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s", "%H:%M:%S"))

    root_logger = logging.getLogger("dal_codegen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="dal-codegen model",
        description="Generate GORM models and repositories from a database schema",
    )
    add_model_arguments(parser)
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        request = build_request(args)
        result = generate(request, args.repo_dir)
    except CodegenError as e:
        raise SystemExit(f"Error: {e}") from e

    print(
        f"Generated {len(result.model_files)} model(s) and "
        f"{len(result.repo_files)} repository file(s) for "
        f"{len(result.tables)} table(s)"
    )


if __name__ == "__main__":
    main()
