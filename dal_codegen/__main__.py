#!/usr/bin/env python3
"""
Unified CLI for the Go data access layer code generators.

Usage:
    python -m dal_codegen <command> [options]

Commands:
    model       Generate GORM models, repositories and repository tests

Examples:
    python -m dal_codegen model --dsn "user:pass@tcp(127.0.0.1:3306)/app"
    python -m dal_codegen model --db-type sqlite --dsn app.db --exclude-tables audit_log
    python -m dal_codegen model --sql-dir schema/ --config codegen.yaml
"""

from __future__ import annotations

import sys


def cmd_model(args: list[str]) -> int:
    """Generate models and repositories."""
    from dal_codegen.model_codegen.main import main as model_main
    try:
        model_main(args)
        return 0
    except SystemExit as e:
        if e.code is None:
            return 0
        if isinstance(e.code, int):
            return e.code
        if e.code:
            print(e.code, file=sys.stderr)
        return 1


COMMANDS = {
    "model": (cmd_model, "Generate GORM models, repositories and repository tests"),
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = argv[0]
    args = argv[1:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
