import pytest

from dal_codegen.shared.naming import (
    GO_KEYWORDS,
    sanitize_go_identifier,
    to_go_field_name,
    to_lower_camel_case,
    to_pascal_case,
)


class TestToPascalCase:
    @pytest.mark.parametrize(
        "table_name,expected",
        [
            ("wallets", "Wallets"),
            ("user_profiles", "UserProfiles"),
            ("order_item_details", "OrderItemDetails"),
            ("user__profiles", "UserProfiles"),
            ("_leading", "Leading"),
            ("trailing_", "Trailing"),
            ("userProfiles", "UserProfiles"),
            ("a", "A"),
            ("", ""),
        ],
    )
    def test_to_pascal_case(self, table_name, expected):
        assert to_pascal_case(table_name) == expected

    def test_only_first_character_is_uppercased(self):
        assert to_pascal_case("api_KEYS") == "ApiKEYS"


class TestToLowerCamelCase:
    @pytest.mark.parametrize(
        "table_name,expected",
        [
            ("wallets", "wallets"),
            ("user_profiles", "userProfiles"),
            ("Accounts", "accounts"),
            ("order_items", "orderItems"),
            ("", ""),
        ],
    )
    def test_to_lower_camel_case(self, table_name, expected):
        assert to_lower_camel_case(table_name) == expected

    def test_matches_pascal_case_apart_from_first_letter(self):
        for name in ("user_profiles", "wallets", "a_b_c"):
            pascal = to_pascal_case(name)
            camel = to_lower_camel_case(name)
            assert camel[1:] == pascal[1:]
            assert camel[0] == pascal[0].lower()


class TestToGoFieldName:
    @pytest.mark.parametrize(
        "column_name,expected",
        [
            ("id", "ID"),
            ("user_id", "UserID"),
            ("created_at", "CreatedAt"),
            ("api_url", "APIURL"),
            ("uuid", "UUID"),
            ("display-name", "DisplayName"),
            ("1st_place", "Col1stPlace"),
            ("balance", "Balance"),
        ],
    )
    def test_to_go_field_name(self, column_name, expected):
        assert to_go_field_name(column_name) == expected


class TestSanitizeGoIdentifier:
    @pytest.mark.parametrize("keyword", ["type", "func", "range", "map", "select"])
    def test_keywords_get_suffix(self, keyword):
        assert sanitize_go_identifier(keyword) == f"{keyword}_"

    def test_non_keyword_unchanged(self):
        assert sanitize_go_identifier("wallets") == "wallets"

    def test_keyword_set_contains_core_keywords(self):
        assert {"package", "import", "struct", "interface"} <= GO_KEYWORDS
