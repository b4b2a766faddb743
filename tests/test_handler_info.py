import textwrap

from linkgen.extractors.loco.chunker import extract_routes_from_source
from linkgen.extractors.loco.handlers import importable_types, rust_type_to_ts
from linkgen.extractors.loco.lexer import tokenize
from linkgen.routes.specs import HandlerInfo

SRC = textwrap.dedent(
    """
    use loco_rs::prelude::*;

    pub async fn create(
        auth: auth::JWT,
        State(ctx): State<AppContext>,
        Json(params): Json<CreateUser>,
    ) -> Result<Response> {
        let item = Model::create(&ctx.db, &params).await?;
        format::json(UserResponse::from(item))
    }

    pub async fn list(State(ctx): State<AppContext>) -> Result<Response> {
        format::json(Vec::<UserResponse>::new())
    }

    pub async fn count(State(ctx): State<AppContext>) -> Result<Response> {
        let total = 3;
        format::json(total)
    }

    pub fn routes() -> Routes {
        Routes::new()
            .prefix("users")
            .add("/", get(list).post(create))
            .add("/count", get(count))
    }
    """
)


def test_handler_signatures_are_summarized():
    scan = extract_routes_from_source(SRC, rel_path="users.rs", module="users")
    assert scan.error is None

    assert scan.handlers["create"] == HandlerInfo(
        body_type="CreateUser",
        requires_auth=True,
        return_type="UserResponse",
    )
    assert scan.handlers["list"].return_type == "Array<UserResponse>"
    assert scan.handlers["list"].requires_auth is False
    assert scan.handlers["count"].return_type is None
    assert scan.handlers["count"].body_type is None


def test_rust_types_map_to_typescript():
    assert rust_type_to_ts(tokenize("String")) == "string"
    assert rust_type_to_ts(tokenize("Option<Vec<u64>>")) == "Array<number> | null"
    assert rust_type_to_ts(tokenize("&'a str")) == "string"
    assert rust_type_to_ts(tokenize("models::users::User")) == "User"
    assert rust_type_to_ts(tokenize("serde_json::Value")) == "unknown"
    assert rust_type_to_ts(tokenize("()")) == "void"


def test_importable_types_skip_builtins():
    assert importable_types("Array<User> | null") == ["User"]
    assert importable_types("Record<string, Item>") == ["Item"]
    assert importable_types("number") == []
