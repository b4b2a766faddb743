from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from linkgen.errors import ScanError
from linkgen.extractors.loco.chunker import FileScan, NestRef, RouterDecl
from linkgen.routes.specs import HandlerInfo, RouteRecord

# a nested `crate::controllers::...` path is rooted at the controllers module
CONTROLLERS_MODULE = "controllers"

RouterKey = tuple[str, str]  # (module path, function)


@dataclass
class RouterNode:
    decl: RouterDecl
    # (nest prefix, child) in declaration order
    children: list[tuple[str, "RouterNode"]] = field(default_factory=list)


@dataclass(frozen=True)
class RouterTree:
    roots: tuple[RouterNode, ...]
    errors: tuple[ScanError, ...]


def _candidate_keys(decl: RouterDecl, ref: NestRef) -> list[RouterKey]:
    """
    Modules a nest() target may live in, most specific first.

    `self::`/`super::` are relative to the declaring module, `crate::` is
    absolute. A bare `users::routes()` is tried as a child of the declaring
    module, then from the controllers root, then as a sibling.
    """
    here = tuple(decl.module.split("::")) if decl.module else ()
    path = list(ref.module_path)

    if not path:
        bases = [here]
    elif path[0] == "crate":
        path = path[1:]
        if path[:1] == [CONTROLLERS_MODULE]:
            path = path[1:]
        bases = [()]
    elif path[0] in ("self", "super"):
        base = here
        while path and path[0] in ("self", "super"):
            if path.pop(0) == "super":
                base = base[:-1]
        bases = [base]
    else:
        bases = [here, (), here[:-1]]

    keys: list[RouterKey] = []
    for base in bases:
        key = ("::".join((*base, *path)), ref.function)
        if key not in keys:
            keys.append(key)
    return keys


def _describe(ref: NestRef) -> str:
    return "::".join((*ref.module_path, ref.function)) + "()"


def build_router_tree(scans: Iterable[FileScan]) -> RouterTree:
    """
    Link nest() references into an explicit tree.

    A router nested by another router is not a root: its routes only appear
    under the parent's prefix. A nest() whose target cannot be resolved (or
    that would close a cycle) is reported against the declaring file and
    skipped; the declaring router keeps its own routes.
    """
    scans = sorted(scans, key=lambda s: s.rel_path)
    errors: list[ScanError] = [s.error for s in scans if s.error is not None]

    routers = [r for s in scans if s.error is None for r in s.routers]
    index: dict[RouterKey, list[RouterDecl]] = {}
    for r in routers:
        index.setdefault((r.module, r.function), []).append(r)

    edges: dict[int, list[tuple[NestRef, RouterDecl]]] = {}
    for decl in routers:
        out = edges.setdefault(id(decl), [])
        for ref in decl.nests:
            key = next((k for k in _candidate_keys(decl, ref) if k in index), None)
            if key is None:
                errors.append(ScanError(decl.file, f"cannot resolve nested router {_describe(ref)}", ref.line))
                continue
            out.extend((ref, child) for child in index[key])

    # drop the edges that close a cycle, walking routers in file order
    state: dict[int, int] = {}  # id(decl) -> 1 visiting, 2 done

    def visit(decl: RouterDecl) -> None:
        state[id(decl)] = 1
        kept: list[tuple[NestRef, RouterDecl]] = []
        for ref, child in edges[id(decl)]:
            s = state.get(id(child))
            if s == 1:
                errors.append(ScanError(decl.file, f"nested router {_describe(ref)} forms a cycle", ref.line))
                continue
            if s is None:
                visit(child)
            kept.append((ref, child))
        edges[id(decl)] = kept
        state[id(decl)] = 2

    for decl in routers:
        if id(decl) not in state:
            visit(decl)

    nested = {id(child) for out in edges.values() for _, child in out}

    def make(decl: RouterDecl) -> RouterNode:
        node = RouterNode(decl=decl)
        for ref, child in edges[id(decl)]:
            node.children.append((ref.prefix, make(child)))
        return node

    roots = tuple(make(r) for r in routers if id(r) not in nested)
    errors.sort(key=lambda e: (e.file, e.line or 0))
    return RouterTree(roots=roots, errors=tuple(errors))


def collect_route_records(tree: RouterTree, scans: Iterable[FileScan]) -> list[RouteRecord]:
    """
    One top-down traversal accumulating the prefix chain (root to leaf).
    Records come back sorted by (declaring_file, declaration_index).
    """
    handlers = {s.rel_path: s.handlers for s in scans}
    out: list[RouteRecord] = []

    def walk(node: RouterNode, chain: tuple[str, ...]) -> None:
        decl = node.decl
        if decl.prefix:
            chain = (*chain, decl.prefix)
        file_handlers = handlers.get(decl.file, {})
        for route in decl.routes:
            out.append(
                RouteRecord(
                    http_method=route.method,
                    raw_path_segment=route.path,
                    handler_identifier=route.handler_name,
                    declaring_file=decl.file,
                    declared_prefix_chain=chain,
                    declaration_index=route.index,
                    line=route.line,
                    handler_info=file_handlers.get(route.handler_name, HandlerInfo()),
                )
            )
        for nest_prefix, child in node.children:
            walk(child, (*chain, nest_prefix) if nest_prefix else chain)

    for root in tree.roots:
        walk(root, ())

    # stable: a router nested twice keeps traversal order for equal keys
    out.sort(key=lambda r: r.sort_key)
    return out
