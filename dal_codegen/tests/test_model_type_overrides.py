import pytest

from dal_codegen.model_codegen.introspection import ColumnInfo
from dal_codegen.model_codegen.type_overrides import (
    DECIMAL_IMPORT,
    DEFAULT_TYPE_RULES,
    FieldKeyRule,
    SqlTypeRule,
    TypeOverride,
    TypeOverrideResolver,
)
from dal_codegen.shared import FieldMapping


class TestFieldKeyRule:
    def test_matches_exact_key(self):
        rule = FieldKeyRule("orders.status", TypeOverride("bool"))
        assert rule.apply("orders.status") == TypeOverride("bool")
        assert rule.apply("orders.state") is None
        assert rule.apply("status") is None


class TestSqlTypeRule:
    def test_only_matching_type(self):
        rule = SqlTypeRule("json", lambda column_type: TypeOverride("datatypes.JSON"))
        assert rule.apply("json", "json") == TypeOverride("datatypes.JSON")
        assert rule.apply("text", "text") is None


class TestDefaultTypeRules:
    def setup_method(self):
        self.resolver = TypeOverrideResolver()

    def test_rules_present(self):
        assert [rule.sql_type for rule in DEFAULT_TYPE_RULES] == ["decimal", "tinyint"]

    @pytest.mark.parametrize(
        "column_type,expected",
        [
            ("tinyint(1)", "int8"),
            ("tinyint(4)", "int32"),
            ("tinyint", "int32"),
            ("tinyint(1) unsigned", "int32"),
            (None, "int32"),
        ],
    )
    def test_tinyint(self, column_type, expected):
        assert self.resolver.resolve("tinyint", column_type, "t.c") == TypeOverride(expected)

    def test_decimal(self):
        override = self.resolver.resolve("decimal", "decimal(10,2)", "orders.amount")
        assert override == TypeOverride("decimal.Decimal", DECIMAL_IMPORT)

    def test_decimal_without_column_type(self):
        assert self.resolver.resolve("decimal", None, "orders.amount").type_name == "decimal.Decimal"

    def test_type_name_is_case_insensitive(self):
        assert self.resolver.resolve("DECIMAL", "DECIMAL(10,2)", "t.c").type_name == "decimal.Decimal"

    def test_other_types_untouched(self):
        assert self.resolver.resolve("varchar", "varchar(255)", "users.name") is None


class TestTypeOverrideResolver:
    def test_field_key_beats_type_rule(self):
        resolver = TypeOverrideResolver.from_field_mappings([FieldMapping("orders.status", "bool")])
        assert resolver.resolve("tinyint", "tinyint(1)", "orders.status") == TypeOverride("bool")
        assert resolver.resolve("tinyint", "tinyint(1)", "orders.flag") == TypeOverride("int8")

    def test_field_key_on_plain_column(self):
        resolver = TypeOverrideResolver.from_field_mappings(
            [FieldMapping("users.meta", "datatypes.JSON", "gorm.io/datatypes")]
        )
        assert resolver.resolve("text", "text", "users.meta") == TypeOverride("datatypes.JSON", "gorm.io/datatypes")

    def test_field_key_is_table_qualified(self):
        resolver = TypeOverrideResolver.from_field_mappings([FieldMapping("orders.status", "bool")])
        assert resolver.resolve("varchar", "varchar(10)", "users.status") is None

    def test_first_matching_field_rule_wins(self):
        resolver = TypeOverrideResolver(
            [
                FieldKeyRule("orders.status", TypeOverride("bool")),
                FieldKeyRule("orders.status", TypeOverride("string")),
            ]
        )
        assert resolver.resolve("int", "int", "orders.status") == TypeOverride("bool")

    def test_without_type_rules(self):
        resolver = TypeOverrideResolver(type_rules=())
        assert resolver.resolve("decimal", "decimal(10,2)", "orders.amount") is None

    def test_rule_properties(self):
        resolver = TypeOverrideResolver.from_field_mappings([FieldMapping("a.b", "bool")])
        assert resolver.field_rules == (FieldKeyRule("a.b", TypeOverride("bool")),)
        assert resolver.type_rules == DEFAULT_TYPE_RULES

    def test_for_table_builds_field_key(self):
        resolver = TypeOverrideResolver.from_field_mappings([FieldMapping("orders.status", "bool")])
        override = resolver.for_table("orders")
        status = ColumnInfo("status", "tinyint", "tinyint(1)")
        level = ColumnInfo("level", "tinyint", "tinyint(4)")
        assert override(status) == TypeOverride("bool")
        assert override(level) == TypeOverride("int32")
        assert resolver.for_table("users")(status) == TypeOverride("int8")
