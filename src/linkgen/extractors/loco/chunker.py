from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from linkgen.errors import ScanError
from linkgen.extractors.loco.handlers import extract_handler_info
from linkgen.extractors.loco.items import FunctionItem, iter_functions, matching_close, split_top_level
from linkgen.extractors.loco.lexer import Token, tokenize
from linkgen.routes.paths import InvalidPathError, validate_path_literal
from linkgen.routes.specs import HandlerInfo, HttpMethod

ROUTER_TYPES = ("Routes",)


@dataclass(frozen=True)
class RouteDecl:
    method: HttpMethod
    path: str
    handler_name: str
    line: int
    index: int          # declaration order within the file


@dataclass(frozen=True)
class NestRef:
    """`.nest(users::routes())` or `.nest("/v1", users::routes())`."""

    module_path: tuple[str, ...]
    function: str
    prefix: str
    line: int


@dataclass(frozen=True)
class RouterDecl:
    file: str
    module: str
    function: str
    prefix: str
    routes: tuple[RouteDecl, ...]
    nests: tuple[NestRef, ...]
    line: int


@dataclass(frozen=True)
class FileScan:
    rel_path: str
    routers: tuple[RouterDecl, ...] = ()
    handlers: dict[str, HandlerInfo] = field(default_factory=dict)
    error: Optional[ScanError] = None


class ChainError(ValueError):
    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.line = line


def extract_routes_from_source(source: str, rel_path: str = "<memory>", module: str = "") -> FileScan:
    """
    Parse Rust controller source and extract router builder chains like:

        pub fn routes() -> Routes {
            Routes::new()
                .prefix("api/users")
                .add("/", get(list).post(add))
                .add("/{id}", get(get_one))
                .nest(admin::routes())
        }

    Uses a tokenizer only; nothing is compiled. A file without any router chain
    yields an empty FileScan. A malformed chain yields a FileScan carrying a
    ScanError and no routers.
    """
    try:
        tokens = tokenize(source)
        functions = list(iter_functions(tokens))
    except ValueError as e:
        return FileScan(rel_path=rel_path, error=ScanError(rel_path, str(e), getattr(e, "line", None)))

    routers: list[RouterDecl] = []
    counter = [0]
    try:
        for fn in functions:
            for start in _find_router_constructors(fn.body):
                routers.append(_parse_chain(fn, start, rel_path, module, counter))
    except ChainError as e:
        return FileScan(rel_path=rel_path, error=ScanError(rel_path, str(e), e.line))

    if not routers:
        return FileScan(rel_path=rel_path)

    try:
        handlers = extract_handler_info(functions)
    except ValueError as e:
        return FileScan(rel_path=rel_path, error=ScanError(rel_path, str(e), getattr(e, "line", None)))

    return FileScan(rel_path=rel_path, routers=tuple(routers), handlers=handlers)


def _find_router_constructors(body: Sequence[Token]) -> list[int]:
    """Indexes just past each `Routes::new()` in a function body."""
    out: list[int] = []
    for i in range(len(body) - 4):
        if (
            body[i].kind == "ident"
            and body[i].value in ROUTER_TYPES
            and body[i + 1].is_punct("::")
            and body[i + 2].is_ident("new")
            and body[i + 3].is_punct("(")
            and body[i + 4].is_punct(")")
        ):
            out.append(i + 5)
    return out


def _call_args(tokens: Sequence[Token], open_idx: int) -> tuple[list[list[Token]], int]:
    try:
        close = matching_close(tokens, open_idx)
    except ValueError as e:
        raise ChainError(str(e), tokens[open_idx].line) from e
    return split_top_level(tokens[open_idx + 1 : close]), close + 1


def _string_arg(arg: Sequence[Token]) -> Optional[str]:
    if len(arg) == 1 and arg[0].kind == "string":
        return arg[0].value
    return None


def _path_expr(tokens: Sequence[Token], start: int) -> tuple[list[str], int]:
    """Read `a::b::c` starting at start. Returns (segments, index after)."""
    segments: list[str] = []
    i = start
    while i < len(tokens):
        if tokens[i].kind == "ident":
            segments.append(tokens[i].value)
            i += 1
            if i < len(tokens) and tokens[i].is_punct("::"):
                i += 1
                continue
        break
    return segments, i


def _parse_chain(fn: FunctionItem, start: int, rel_path: str, module: str, counter: list[int]) -> RouterDecl:
    body = fn.body
    prefix: Optional[str] = None
    routes: list[RouteDecl] = []
    nests: list[NestRef] = []

    i = start
    while i + 2 < len(body) and body[i].is_punct(".") and body[i + 1].kind == "ident" and body[i + 2].is_punct("("):
        call = body[i + 1]
        args, i = _call_args(body, i + 2)

        if call.value == "prefix":
            if prefix is not None:
                raise ChainError("router prefix declared more than once", call.line)
            value = _string_arg(args[0]) if len(args) == 1 else None
            if value is None:
                raise ChainError("prefix() expects a single string literal", call.line)
            _check_path(value, call.line)
            prefix = value if value.startswith("/") else "/" + value

        elif call.value == "add":
            if len(args) != 2:
                raise ChainError("add() expects a path and a method router", call.line)
            path = _string_arg(args[0])
            if path is None:
                raise ChainError("route path is not a string literal", call.line)
            _check_path(path, call.line)
            for method, handler, line in _method_router(args[1], call.line):
                routes.append(RouteDecl(method=method, path=path, handler_name=handler, line=line, index=counter[0]))
                counter[0] += 1

        elif call.value == "nest":
            nests.append(_nest_ref(args, call.line))

    return RouterDecl(
        file=rel_path,
        module=module,
        function=fn.name,
        prefix=prefix or "",
        routes=tuple(routes),
        nests=tuple(nests),
        line=fn.line,
    )


def _check_path(path: str, line: int) -> None:
    try:
        validate_path_literal(path)
    except InvalidPathError as e:
        raise ChainError(str(e), line) from e


def _method_router(arg: Sequence[Token], line: int) -> list[tuple[HttpMethod, str, int]]:
    """
    `get(list)`, `routing::get(list)`, `get(list).post(add)`.
    The first call must name an HTTP method; later chained calls that are not
    methods (`.layer(..)`) are ignored.
    """
    segments, i = _path_expr(arg, 0)
    if not segments or i >= len(arg) or not arg[i].is_punct("("):
        raise ChainError("expected a method router such as get(handler)", line)

    out: list[tuple[HttpMethod, str, int]] = []
    method_tok = segments[-1]
    first = True
    while True:
        method = HttpMethod.from_token(method_tok) if method_tok.islower() else None
        call_line = arg[i].line
        args, i = _call_args(arg, i)
        if method is None:
            if first:
                raise ChainError(f"unknown HTTP method {method_tok!r}", call_line)
        else:
            out.append((method, _handler_name(args, call_line), call_line))
        first = False

        if i + 2 < len(arg) and arg[i].is_punct(".") and arg[i + 1].kind == "ident" and arg[i + 2].is_punct("("):
            method_tok = arg[i + 1].value
            i += 2
            continue
        break
    return out


def _handler_name(args: list[list[Token]], line: int) -> str:
    if len(args) != 1:
        raise ChainError("method router expects exactly one handler", line)
    segments, _ = _path_expr(args[0], 0)
    if not segments:
        raise ChainError("missing handler reference", line)
    return segments[-1]


def _nest_ref(args: list[list[Token]], line: int) -> NestRef:
    prefix = ""
    if len(args) == 2:
        value = _string_arg(args[0])
        if value is None:
            raise ChainError("nest() prefix is not a string literal", line)
        _check_path(value, line)
        prefix = value
        target = args[1]
    elif len(args) == 1:
        target = args[0]
    else:
        raise ChainError("nest() expects a route function call", line)

    segments, i = _path_expr(target, 0)
    if not segments or i >= len(target) or not target[i].is_punct("("):
        raise ChainError("nest() target is not a route function call", line)
    return NestRef(module_path=tuple(segments[:-1]), function=segments[-1], prefix=prefix, line=line)
