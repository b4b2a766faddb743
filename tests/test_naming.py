import pytest

from linkgen.config import make_config
from linkgen.naming.case import CaseStyle, recase, sanitize_identifier, split_words
from linkgen.naming.routes import field_name, route_tokens, variant_name
from linkgen.routes.specs import HttpMethod


def name_for(method, path, **options):
    config = make_config(**options)
    return variant_name(route_tokens(method, path, config), config)


def test_split_words_on_separators_and_case_boundaries():
    assert split_words("user-profile", "-") == ["user", "profile"]
    assert split_words("userId") == ["user", "Id"]
    assert split_words("HTTPServer") == ["HTTP", "Server"]
    assert split_words("v2beta") == ["v2", "beta"]
    assert split_words("v2beta", preserve_numbers=True) == ["v", "2", "beta"]
    assert split_words("a.b:c", ".:") == ["a", "b", "c"]


WORDS = ["get", "users", "by", "user", "id"]


@pytest.mark.parametrize(
    "style,expected",
    [
        (CaseStyle.PASCAL, "GetUsersByUserId"),
        (CaseStyle.CAMEL, "getUsersByUserId"),
        (CaseStyle.SNAKE, "get_users_by_user_id"),
        (CaseStyle.KEBAB, "get-users-by-user-id"),
        (CaseStyle.TITLE, "Get Users By User Id"),
        (CaseStyle.SCREAMING_SNAKE, "GET_USERS_BY_USER_ID"),
    ],
)
def test_case_styles(style, expected):
    assert style.convert(WORDS) == expected


def test_case_style_parse_aliases():
    assert CaseStyle.parse("pascal") is CaseStyle.PASCAL
    assert CaseStyle.parse("PascalCase") is CaseStyle.PASCAL
    assert CaseStyle.parse("snake_case") is CaseStyle.SNAKE
    assert CaseStyle.parse("kebab-case") is CaseStyle.KEBAB
    assert CaseStyle.parse("Title Case") is CaseStyle.TITLE
    assert CaseStyle.parse("UPPER") is CaseStyle.SCREAMING_SNAKE
    with pytest.raises(ValueError):
        CaseStyle.parse("bogus")


def test_route_tokens_with_method_first():
    config = make_config()
    assert route_tokens(HttpMethod.GET, "/api/users/{user_id}", config) == [
        "get", "api", "users", "by", "user", "id",
    ]


def test_variant_names_default_config():
    assert name_for(HttpMethod.GET, "/api/users") == "GetApiUsers"
    assert name_for(HttpMethod.DELETE, "/api/users/{user_id}") == "DeleteApiUsersByUserId"
    assert name_for(HttpMethod.GET, "/user-profile/settings") == "GetUserProfileSettings"


def test_prefix_removal_and_method_toggle():
    assert name_for(HttpMethod.GET, "/api/users/{user_id}", path_prefix_to_remove="/api") == "GetUsersByUserId"
    assert (
        name_for(HttpMethod.GET, "/api/users/{user_id}", path_prefix_to_remove="/api", include_method_in_names=False)
        == "UsersByUserId"
    )


def test_root_path_is_named_root():
    assert name_for(HttpMethod.GET, "/") == "GetRoot"
    assert name_for(HttpMethod.GET, "/api", path_prefix_to_remove="/api") == "GetRoot"
    assert name_for(HttpMethod.GET, "/", include_method_in_names=False) == "Root"


def test_affixes_are_applied_verbatim():
    assert name_for(HttpMethod.GET, "/users", variant_prefix="Api", variant_suffix="Route") == "ApiGetUsersRoute"
    assert name_for(HttpMethod.GET, "/users", variant_case="snake", variant_prefix="X") == "Xget_users"


def test_preserve_numbers_splits_digit_runs():
    assert name_for(HttpMethod.GET, "/v2/items") == "GetV2Items"
    assert name_for(HttpMethod.GET, "/v2/items", variant_case="snake", preserve_numbers=True) == "get_v_2_items"


def test_invalid_characters_are_sanitized():
    assert sanitize_identifier("2fa") == "_2fa"
    assert sanitize_identifier("a-b") == "a_b"
    assert name_for(HttpMethod.GET, "/users", variant_case="title") == "Get_Users"


def test_field_names_follow_field_case():
    assert field_name("userId", make_config()) == "user_id"
    assert field_name("user_id", make_config(field_case="camel")) == "userId"
    assert field_name("type", make_config()) == "type"


def test_recase_generated_identifier():
    assert recase("GetUsersByUserId", CaseStyle.CAMEL) == "getUsersByUserId"
    assert recase("get_users_by_user_id", CaseStyle.PASCAL) == "GetUsersByUserId"


def test_naming_is_deterministic():
    a = name_for(HttpMethod.PATCH, "/api/orgs/{orgId}/members/{member_id}")
    b = name_for(HttpMethod.PATCH, "/api/orgs/{orgId}/members/{member_id}")
    assert a == b == "PatchApiOrgsByOrgIdMembersByMemberId"
