import pytest

from dal_codegen.model_codegen.arguments import GenerationRequest
from dal_codegen.model_codegen.tables import (
    TableSpec,
    filter_table_names,
    resolve_tables,
    table_name_strategy,
)
from dal_codegen.shared import SchemaIntrospectionError


def names(tables):
    return [t.name for t in tables]


class TestTableSpec:
    def test_derived_names(self):
        table = TableSpec("user_profiles")
        assert table.model_name == "UserProfiles"
        assert table.variable_name == "userProfiles"


class TestTableNameStrategy:
    def test_no_filter_needed(self):
        assert table_name_strategy(GenerationRequest(db_type="mysql")) is None

    def test_sqlite_drops_internal_tables(self):
        strategy = table_name_strategy(GenerationRequest(db_type="sqlite"))
        assert strategy("sqlite_sequence") == ""
        assert strategy("users") == "users"

    def test_excluded_tables_dropped(self):
        strategy = table_name_strategy(GenerationRequest(exclude_tables=("audit_log",)))
        assert strategy("audit_log") == ""
        assert strategy("users") == "users"

    def test_sqlite_prefix_only_applies_to_sqlite(self):
        strategy = table_name_strategy(GenerationRequest(db_type="mysql", exclude_tables=("x",)))
        assert strategy("sqlite_sequence") == "sqlite_sequence"


class TestFilterTableNames:
    def test_sqlite_with_excludes(self):
        request = GenerationRequest(db_type="sqlite", exclude_tables=("audit_log",))
        result = filter_table_names(["users", "sqlite_sequence", "audit_log", "orders"], request)
        assert result == ["users", "orders"]

    def test_fast_path_matches_filter_path(self):
        tables = ["users", "orders", "wallets"]
        fast = filter_table_names(tables, GenerationRequest(db_type="mysql"))
        filtered = filter_table_names(tables, GenerationRequest(db_type="mysql", exclude_tables=("absent",)))
        assert fast == filtered == tables

    def test_idempotent(self):
        request = GenerationRequest(db_type="sqlite", exclude_tables=("orders",))
        once = filter_table_names(["users", "orders", "sqlite_stat1"], request)
        assert filter_table_names(once, request) == once

    def test_excluding_everything(self):
        request = GenerationRequest(exclude_tables=("users",))
        assert filter_table_names(["users"], request) == []


class TestResolveTables:
    def test_explicit_tables_used_verbatim(self):
        def list_tables():
            raise AssertionError("should not introspect")

        request = GenerationRequest(
            db_type="sqlite",
            tables=("orders", "sqlite_sequence", "users"),
            exclude_tables=("users",),
        )
        assert names(resolve_tables(request, list_tables)) == ["orders", "sqlite_sequence", "users"]

    def test_all_tables_filtered(self):
        request = GenerationRequest(db_type="sqlite", exclude_tables=("audit_log",))
        result = resolve_tables(request, lambda: ["users", "sqlite_sequence", "audit_log", "orders"])
        assert names(result) == ["users", "orders"]

    def test_repeated_resolution_is_identical(self):
        listed = ["users", "sqlite_sequence", "audit_log", "orders"]
        request = GenerationRequest(db_type="sqlite", exclude_tables=("audit_log",))
        first = resolve_tables(request, lambda: list(listed))
        second = resolve_tables(request, lambda: list(listed))
        assert first == second
        assert names(first) == ["users", "orders"]

    def test_sqlite_internal_tables_without_excludes(self):
        request = GenerationRequest(db_type="sqlite")
        result = resolve_tables(request, lambda: ["users", "sqlite_sequence", "orders"])
        assert names(result) == ["users", "orders"]

    def test_introspection_failure_wrapped(self):
        def list_tables():
            raise RuntimeError("connection lost")

        with pytest.raises(SchemaIntrospectionError, match="migrator get all tables fail: connection lost") as exc_info:
            resolve_tables(GenerationRequest(db_type="postgres"), list_tables)
        assert exc_info.value.dialect == "postgres"

    def test_introspection_error_propagates(self):
        error = SchemaIntrospectionError("list tables failed", "mysql")

        def list_tables():
            raise error

        with pytest.raises(SchemaIntrospectionError) as exc_info:
            resolve_tables(GenerationRequest(), list_tables)
        assert exc_info.value is error
