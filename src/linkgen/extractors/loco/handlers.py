from __future__ import annotations

from typing import Iterable, Optional, Sequence

from linkgen.extractors.loco.items import FunctionItem, matching_close, split_top_level
from linkgen.extractors.loco.lexer import Token
from linkgen.routes.specs import HandlerInfo

_BODY_EXTRACTORS = {"Json", "JsonValidate", "JsonValidateWithMessage"}

_RUST_TO_TS = {
    "String": "string",
    "str": "string",
    "char": "string",
    "bool": "boolean",
    "Value": "unknown",
    "Uuid": "string",
}
_NUMBERS = {
    "i8", "i16", "i32", "i64", "i128", "isize",
    "u8", "u16", "u32", "u64", "u128", "usize",
    "f32", "f64",
}
TS_BUILTINS = {
    "string", "number", "boolean", "any", "void", "unknown",
    "null", "undefined", "Array", "Promise", "Record",
}


def extract_handler_info(functions: Iterable[FunctionItem]) -> dict[str, HandlerInfo]:
    """
    Map handler name -> HandlerInfo for the functions of one file.

    - body_type: T from an argument typed Json<T>, JsonValidate<T> or JsonValidateWithMessage<T>
    - requires_auth: an argument typed JWT (e.g. `auth: auth::JWT`)
    - return_type: first `format::json(T::from(..))`, `format::json(T(..))`
      or `format::json(Vec::<T>::new())` found in the body
    """
    out: dict[str, HandlerInfo] = {}
    for fn in functions:
        body_type: Optional[str] = None
        requires_auth = False

        for param in split_top_level(fn.params):
            ty = _param_type(param)
            if not ty:
                continue
            outer = _outer_name(ty)
            if outer in _BODY_EXTRACTORS and body_type is None:
                inner = _first_generic_arg(ty)
                if inner:
                    body_type = rust_type_to_ts(inner)
            elif outer is not None and outer.startswith("JWT"):
                requires_auth = True

        return_type = _json_return_type(fn.body)
        out[fn.name] = HandlerInfo(
            body_type=body_type,
            requires_auth=requires_auth,
            return_type=return_type,
        )
    return out


def _param_type(param: Sequence[Token]) -> list[Token]:
    # `pattern: Type` -> Type tokens; self receivers have no type
    depth = 0
    for i, t in enumerate(param):
        if t.kind == "punct" and t.value in "([{":
            depth += 1
        elif t.kind == "punct" and t.value in ")]}":
            depth -= 1
        elif t.is_punct(":") and depth == 0:
            return list(param[i + 1 :])
    return []


def _outer_name(ty: Sequence[Token]) -> Optional[str]:
    # last path segment before any generic args: axum::Json<T> -> Json
    name = None
    for t in ty:
        if t.kind == "ident":
            name = t.value
        elif t.is_punct("::") or t.is_punct("&"):
            continue
        else:
            break
    return name


def _first_generic_arg(ty: Sequence[Token]) -> list[Token]:
    for i, t in enumerate(ty):
        if t.is_punct("<"):
            inner = _angle_body(ty, i)
            args = split_top_level(inner)
            return args[0] if args else []
    return []


def _angle_body(ty: Sequence[Token], open_idx: int) -> list[Token]:
    depth = 0
    for j in range(open_idx, len(ty)):
        if ty[j].is_punct("<"):
            depth += 1
        elif ty[j].is_punct(">"):
            depth -= 1
            if depth == 0:
                return list(ty[open_idx + 1 : j])
    return list(ty[open_idx + 1 :])


def rust_type_to_ts(ty: Sequence[Token]) -> str:
    """
    Render a Rust type as the TypeScript type the client should use.

      Vec<Item>      -> Array<Item>
      Option<String> -> string | null
      u64            -> number
      models::User   -> User
    """
    ty = [t for t in ty if not t.is_punct("&") and not t.is_ident("mut") and t.kind != "lifetime"]
    if not ty:
        return "unknown"
    if ty[0].is_punct("(") and len(ty) >= 2 and ty[1].is_punct(")"):
        return "void"

    name = _outer_name(ty)
    if name is None:
        return "unknown"
    inner = _first_generic_arg(ty)

    if name == "Vec" and inner:
        return f"Array<{rust_type_to_ts(inner)}>"
    if name == "Option" and inner:
        return f"{rust_type_to_ts(inner)} | null"
    if name in _NUMBERS:
        return "number"
    return _RUST_TO_TS.get(name, name)


def importable_types(ts_type: str) -> list[str]:
    """Named types in a rendered TypeScript type that must be imported."""
    out: list[str] = []
    word = ""
    for c in ts_type + " ":
        if c.isalnum() or c == "_":
            word += c
            continue
        if word and word not in TS_BUILTINS and not word[0].isdigit() and word not in out:
            out.append(word)
        word = ""
    return out


def _json_return_type(body: Sequence[Token]) -> Optional[str]:
    for i in range(len(body) - 3):
        if not (
            body[i].is_ident("format")
            and body[i + 1].is_punct("::")
            and body[i + 2].is_ident("json")
            and body[i + 3].is_punct("(")
        ):
            continue
        close = matching_close(body, i + 3)
        args = split_top_level(body[i + 4 : close])
        if args:
            found = _conversion_type(args[0])
            if found:
                return found
    return None


def _conversion_type(arg: Sequence[Token]) -> Optional[str]:
    # Vec::<T>::new()
    if (
        len(arg) >= 4
        and arg[0].is_ident("Vec")
        and arg[1].is_punct("::")
        and arg[2].is_punct("<")
    ):
        inner = _angle_body(arg, 2)
        return f"Array<{rust_type_to_ts(inner)}>"

    # Type::from(..) / module::Type::from(..) / Type(..)
    path: list[str] = []
    for t in arg:
        if t.kind == "ident":
            path.append(t.value)
        elif t.is_punct("::"):
            continue
        elif t.is_punct("("):
            break
        else:
            return None
    else:
        return None

    if len(path) >= 2:
        candidate = path[-2]
    elif path:
        candidate = path[0]
    else:
        return None
    if not candidate[:1].isupper():
        return None
    return rust_type_to_ts([Token("ident", candidate, 0)])
