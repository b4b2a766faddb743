from __future__ import annotations

from typing import Sequence

from linkgen.config import GeneratorConfig
from linkgen.routes.paths import param_name
from linkgen.routes.specs import RouteInfo

HEADER = "// @generated by linkgen. Do not edit by hand; changes are overwritten on the next build."

RUST_KEYWORDS = {
    "as", "async", "await", "break", "const", "continue", "crate", "dyn", "else", "enum",
    "extern", "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
    "move", "mut", "pub", "ref", "return", "self", "Self", "static", "struct", "super",
    "trait", "true", "type", "unsafe", "use", "where", "while", "abstract", "become",
    "box", "do", "final", "gen", "macro", "override", "priv", "try", "typeof", "unsized",
    "virtual", "yield",
}
# keywords that cannot be written as raw identifiers
_NO_RAW = {"crate", "self", "Self", "super"}

INDENT = "    "


def rust_ident(name: str) -> str:
    if name in _NO_RAW:
        return name + "_"
    if name in RUST_KEYWORDS:
        return "r#" + name
    return name


def _rust_str(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _path_expr(route: RouteInfo, fields: Sequence[str]) -> str:
    if not fields:
        return f"{_rust_str(route.final_path)}.to_string()"

    by_param = {p.name: f for p, f in zip(route.parameters, fields)}
    template: list[str] = []
    args: list[str] = []
    for seg in route.final_path.split("/"):
        name = param_name(seg)
        if name is None:
            template.append(seg.replace("{", "{{").replace("}", "}}"))
        else:
            template.append("{}")
            args.append(by_param[name])
    return f"format!({_rust_str('/'.join(template))}, {', '.join(args)})"


def generate_rust(routes: Sequence[RouteInfo], config: GeneratorConfig) -> str:
    """
    Render the route enum with `to_path()` and `method()`.

    Routes are emitted in source_order_index order. Parameterless routes are unit
    variants; parameterized routes get one `String` field per path parameter, in
    path order.
    """
    enum = config.enum_name
    ordered = sorted(routes, key=lambda r: r.source_order_index)

    variants: list[str] = []
    path_arms: list[str] = []
    method_arms: list[str] = []

    for route in ordered:
        name = rust_ident(route.variant_name)
        fields = [rust_ident(f) for f in route.field_names]
        doc = f"{INDENT}/// `{route.method.value} {route.final_path}`"

        if fields:
            decls = ", ".join(f"{f}: String" for f in fields)
            variants.append(f"{doc}\n{INDENT}{name} {{ {decls} }},")
            pattern = f"{enum}::{name} {{ {', '.join(fields)} }}"
            method_pattern = f"{enum}::{name} {{ .. }}"
        else:
            variants.append(f"{doc}\n{INDENT}{name},")
            pattern = method_pattern = f"{enum}::{name}"

        path_arms.append(f"{INDENT * 3}{pattern} => {_path_expr(route, fields)},")
        method_arms.append(f"{INDENT * 3}{method_pattern} => {_rust_str(route.method.value)},")

    lines: list[str] = [
        HEADER,
        "",
        "/// Every route of the application, one variant per (method, path).",
        "#[derive(Debug, Clone, PartialEq, Eq, Hash)]",
        "#[allow(non_camel_case_types, non_snake_case)]",
        f"pub enum {enum} {{",
        *variants,
        "}",
        "",
        f"impl {enum} {{",
        f"{INDENT}/// Convert the link to a URL path string.",
        f"{INDENT}pub fn to_path(&self) -> String {{",
    ]
    lines += _match_block(path_arms)
    lines += [
        f"{INDENT}}}",
        "",
        f"{INDENT}/// HTTP method of the route.",
        f"{INDENT}pub fn method(&self) -> &'static str {{",
    ]
    lines += _match_block(method_arms)
    lines += [f"{INDENT}}}", "}"]

    if config.rust_display_impl:
        lines += [
            "",
            f"impl ::std::fmt::Display for {enum} {{",
            f"{INDENT}fn fmt(&self, f: &mut ::std::fmt::Formatter<'_>) -> ::std::fmt::Result {{",
            f"{INDENT * 2}f.write_str(&self.to_path())",
            f"{INDENT}}}",
            "}",
        ]

    return "\n".join(lines) + "\n"


def _match_block(arms: list[str]) -> list[str]:
    if not arms:
        # uninhabited enum: an empty match on the dereferenced value is total
        return [f"{INDENT * 2}match *self {{}}"]
    return [f"{INDENT * 2}match self {{", *arms, f"{INDENT * 2}}}"]
