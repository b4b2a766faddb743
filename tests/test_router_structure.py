import textwrap

from linkgen.extractors.loco.chunker import extract_routes_from_source
from linkgen.extractors.loco.structure import build_router_tree, collect_route_records
from linkgen.repo.scanner import module_name_for


def scan(rel_path: str, src: str):
    return extract_routes_from_source(textwrap.dedent(src), rel_path=rel_path, module=module_name_for(rel_path))


def test_nested_router_prefixes_compose_root_to_leaf():
    scans = [
        scan(
            "users.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("users").add("/", get(list))
            }
            """,
        ),
        scan(
            "api.rs",
            """
            pub fn routes() -> Routes {
                Routes::new()
                    .prefix("/api/")
                    .nest(users::routes())
                    .add("/health", get(health))
            }
            """,
        ),
    ]
    tree = build_router_tree(scans)
    assert tree.errors == ()
    assert [r.decl.file for r in tree.roots] == ["api.rs"]
    assert [c.decl.file for _, c in tree.roots[0].children] == ["users.rs"]

    records = collect_route_records(tree, scans)
    assert [(r.declaring_file, r.declared_prefix_chain, r.raw_path_segment) for r in records] == [
        ("api.rs", ("/api/",), "/health"),
        ("users.rs", ("/api/", "/users"), "/"),
    ]


def test_nest_with_own_prefix_adds_a_chain_level():
    scans = [
        scan(
            "api.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("api").nest("/v1", v1())
            }

            fn v1() -> Routes {
                Routes::new().add("/ping", get(ping))
            }
            """,
        )
    ]
    tree = build_router_tree(scans)
    records = collect_route_records(tree, scans)
    assert [(r.declared_prefix_chain, r.raw_path_segment) for r in records] == [(("/api", "/v1"), "/ping")]


def test_unresolved_nest_is_reported_and_parent_routes_kept():
    scans = [
        scan(
            "api.rs",
            """
            pub fn routes() -> Routes {
                Routes::new()
                    .prefix("api")
                    .add("/health", get(health))
                    .nest(users::routes())
                    .nest(missing::routes())
            }
            """,
        ),
        scan(
            "users.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("users").add("/", get(list))
            }
            """,
        ),
    ]
    tree = build_router_tree(scans)
    assert [e.file for e in tree.errors] == ["api.rs"]
    assert "missing::routes()" in str(tree.errors[0])

    records = collect_route_records(tree, scans)
    assert [(r.declaring_file, r.declared_prefix_chain, r.raw_path_segment) for r in records] == [
        ("api.rs", ("/api",), "/health"),
        ("users.rs", ("/api", "/users"), "/"),
    ]


def test_malformed_nested_file_does_not_drop_its_parent():
    scans = [
        scan(
            "mod.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("api").add("/health", get(health)).nest(users::routes())
            }
            """,
        ),
        scan(
            "users.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().add(PATH, get(list))
            }
            """,
        ),
    ]
    tree = build_router_tree(scans)
    assert [e.file for e in tree.errors] == ["mod.rs", "users.rs"]

    records = collect_route_records(tree, scans)
    assert [(r.declaring_file, r.declared_prefix_chain, r.raw_path_segment) for r in records] == [
        ("mod.rs", ("/api",), "/health"),
    ]


def test_same_module_name_in_different_directories():
    scans = [
        scan(
            "admin/mod.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("admin").nest(users::routes())
            }
            """,
        ),
        scan(
            "admin/users.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().add("/ban", post(ban))
            }
            """,
        ),
        scan(
            "api/users.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("api").add("/me", get(me))
            }
            """,
        ),
    ]
    tree = build_router_tree(scans)
    assert tree.errors == ()
    assert [r.decl.file for r in tree.roots] == ["admin/mod.rs", "api/users.rs"]

    records = collect_route_records(tree, scans)
    assert [(r.declaring_file, r.declared_prefix_chain, r.raw_path_segment) for r in records] == [
        ("admin/users.rs", ("/admin",), "/ban"),
        ("api/users.rs", ("/api",), "/me"),
    ]


def test_relative_and_absolute_nest_paths():
    scans = [
        scan(
            "admin/settings.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("settings").nest(super::audit::routes())
            }
            """,
        ),
        scan(
            "admin/audit.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().add("/log", get(log))
            }
            """,
        ),
        scan(
            "mod.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("api").nest(crate::controllers::admin::settings::routes())
            }
            """,
        ),
    ]
    tree = build_router_tree(scans)
    assert tree.errors == ()

    records = collect_route_records(tree, scans)
    assert [(r.declaring_file, r.declared_prefix_chain) for r in records] == [
        ("admin/audit.rs", ("/api", "/settings")),
    ]


def test_nest_cycle_is_reported_and_broken():
    scans = [
        scan(
            "a.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("a").nest(b::routes())
            }
            """,
        ),
        scan(
            "b.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().prefix("b").nest(a::routes()).add("/x", get(x))
            }
            """,
        ),
    ]
    tree = build_router_tree(scans)
    assert [e.file for e in tree.errors] == ["b.rs"]
    assert "cycle" in str(tree.errors[0])

    records = collect_route_records(tree, scans)
    assert [(r.declaring_file, r.declared_prefix_chain) for r in records] == [("b.rs", ("/a", "/b"))]


def test_scan_errors_are_carried_into_the_tree():
    scans = [
        scan(
            "bad.rs",
            """
            pub fn routes() -> Routes {
                Routes::new().add("/x", teleport(x))
            }
            """,
        )
    ]
    tree = build_router_tree(scans)
    assert [e.file for e in tree.errors] == ["bad.rs"]
    assert tree.roots == ()
