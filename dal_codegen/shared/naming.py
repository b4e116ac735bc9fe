"""Naming utilities for Go code generation."""

from __future__ import annotations

from functools import lru_cache

GO_KEYWORDS: frozenset[str] = frozenset({
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
})

# Initialisms that golint expects to keep a consistent case
COMMON_INITIALISMS: frozenset[str] = frozenset({
    "API",
    "ASCII",
    "CPU",
    "CSS",
    "DNS",
    "EOF",
    "GUID",
    "HTML",
    "HTTP",
    "HTTPS",
    "ID",
    "IP",
    "JSON",
    "LHS",
    "QPS",
    "RAM",
    "RHS",
    "RPC",
    "SLA",
    "SMTP",
    "SSH",
    "TLS",
    "TTL",
    "UID",
    "UI",
    "UUID",
    "URI",
    "URL",
    "UTF8",
    "VM",
    "XML",
    "XSRF",
    "XSS",
})


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a table name to a Go struct name.

    Segments are split on underscores; empty segments are skipped and only
    the first character of each segment is uppercased.

    Examples:
        >>> to_pascal_case("wallets")
        'Wallets'
        >>> to_pascal_case("user_profiles")
        'UserProfiles'
        >>> to_pascal_case("user__profiles")
        'UserProfiles'
    """
    return "".join(part[:1].upper() + part[1:] for part in value.split("_") if part)


@lru_cache(maxsize=1024)
def to_lower_camel_case(value: str) -> str:
    """Convert a table name to a Go variable name.

    Examples:
        >>> to_lower_camel_case("user_profiles")
        'userProfiles'
    """
    camel = to_pascal_case(value)
    return camel[:1].lower() + camel[1:]


@lru_cache(maxsize=1024)
def to_go_field_name(column_name: str) -> str:
    """Convert a column name to an exported Go field name.

    Known initialisms are upper-cased as a whole segment.

    Examples:
        >>> to_go_field_name("user_id")
        'UserID'
        >>> to_go_field_name("created_at")
        'CreatedAt'
    """
    parts = []
    for part in column_name.replace("-", "_").split("_"):
        if not part:
            continue
        if part.upper() in COMMON_INITIALISMS:
            parts.append(part.upper())
        else:
            parts.append(part[:1].upper() + part[1:])
    name = "".join(parts)
    if name and name[0].isdigit():
        name = f"Col{name}"
    return name


@lru_cache(maxsize=1024)
def sanitize_go_identifier(value: str) -> str:
    """Sanitize a value for use as a Go local identifier."""
    if value in GO_KEYWORDS:
        return f"{value}_"
    return value
