"""Jinja2 environment shared by the model and repository renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"

MODEL_TEMPLATE: Final[str] = "model.go.j2"
MODEL_TEST_TEMPLATE: Final[str] = "model_test.go.j2"
QUERY_TEMPLATE: Final[str] = "query.go.j2"
REPO_TEMPLATE: Final[str] = "repo.go.j2"
REPO_TEST_TEMPLATE: Final[str] = "repo_test.go.j2"
TEST_UTIL_TEMPLATE: Final[str] = "test_util_test.go.j2"


@dataclass
class GeneratorContext:
    """Template environment with compiled templates cached by name."""

    template_dir: Path = TEMPLATE_DIR
    template_env: Environment = field(init=False)
    _templates: dict[str, Template] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )

    def template(self, name: str) -> Template:
        """Return a compiled template, compiling it on first use.

        Raises:
            jinja2.TemplateError: If the template is missing or invalid.
        """
        cached = self._templates.get(name)
        if cached is None:
            cached = self.template_env.get_template(name)
            self._templates[name] = cached
        return cached
