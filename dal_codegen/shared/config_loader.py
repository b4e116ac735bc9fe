"""Field-mapping config loading."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml

from .errors import ConfigParseError, ConfigReadError

FIELD_MAPPING_KEY = "fieldMapping"


@dataclass(frozen=True, slots=True)
class FieldMapping:
    """One type override rule for a table-qualified column."""

    field_key: str
    type: str
    import_path: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"type": self.type}
        if self.import_path:
            data["import"] = self.import_path
        return data


class _UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that refuses duplicate mapping keys."""


def _construct_unique_mapping(
    loader: _UniqueKeyLoader,
    node: yaml.MappingNode,
    deep: bool = False,
) -> dict[Any, Any]:
    loader.flatten_mapping(node)
    seen: set[Any] = set()
    for key_node, _ in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if not isinstance(key, Hashable):
            continue
        if key in seen:
            raise yaml.constructor.ConstructorError(
                "while constructing a mapping",
                node.start_mark,
                f"found duplicate key {key!r}",
                key_node.start_mark,
            )
        seen.add(key)
    return loader.construct_mapping(node, deep=deep)


_UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_unique_mapping,
)


def _parse_entry(field_key: Any, entry: Any, config_path: str) -> FieldMapping:
    if not isinstance(field_key, str) or not field_key:
        raise ConfigParseError(f"Field key {field_key!r} must be a non-empty string", config_path)
    if not isinstance(entry, dict):
        raise ConfigParseError(f"Field '{field_key}': entry must be a mapping", config_path)

    type_name = entry.get("type")
    if not isinstance(type_name, str) or not type_name:
        raise ConfigParseError(f"Field '{field_key}': 'type' must be a non-empty string", config_path)

    import_path = entry.get("import")
    if import_path is not None and not isinstance(import_path, str):
        raise ConfigParseError(f"Field '{field_key}': 'import' must be a string", config_path)

    return FieldMapping(field_key=field_key, type=type_name, import_path=import_path or None)


def load_field_mappings(config_path: Path) -> list[FieldMapping]:
    """Load field mappings from a YAML config file.

    The document is shaped as ``{fieldMapping: {<table>.<column>: {type, import}}}``.
    Entries are returned in document order.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        The field mappings, empty if the section is missing.

    Raises:
        ConfigReadError: If the file cannot be read.
        ConfigParseError: If the content is not valid YAML or has the wrong shape.
    """
    path_str = str(config_path)
    try:
        content = Path(config_path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigReadError(f"read config file failed: {e}", path_str) from e

    try:
        data = yaml.load(content, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"unmarshal config file failed: {e}", path_str) from e

    if data is None:
        return []
    if not isinstance(data, dict):
        raise ConfigParseError("Config root must be a mapping", path_str)

    section = data.get(FIELD_MAPPING_KEY)
    if section is None:
        return []
    if not isinstance(section, dict):
        raise ConfigParseError(f"'{FIELD_MAPPING_KEY}' must be a mapping", path_str)

    return [_parse_entry(key, entry, path_str) for key, entry in section.items()]


def dump_field_mappings(mappings: Iterable[FieldMapping]) -> str:
    """Serialize field mappings back into the config file format."""
    section = {mapping.field_key: mapping.to_dict() for mapping in mappings}
    return yaml.safe_dump({FIELD_MAPPING_KEY: section}, sort_keys=False, allow_unicode=True)
