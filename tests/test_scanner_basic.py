from pathlib import Path

import pytest

from linkgen.errors import GenerationIOError
from linkgen.repo.scanner import module_name_for, read_sources, scan_controller_files


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(s, encoding="utf-8")


def test_scanner_finds_rust_files_and_ignores_build_dirs(tmp_path: Path):
    ctrl = tmp_path / "controllers"
    write(ctrl / "users.rs", "pub fn routes() -> Routes { Routes::new() }\n")
    write(ctrl / "admin" / "mod.rs", "")
    write(ctrl / "notes.md", "# notes\n")
    write(ctrl / "target" / "gen.rs", "")
    write(ctrl / ".hidden" / "x.rs", "")

    files = scan_controller_files(ctrl)
    rel = [Path(f).relative_to(ctrl.resolve()).as_posix() for f in files]
    assert rel == ["admin/mod.rs", "users.rs"]

    sources = list(read_sources(files, ctrl))
    assert [s.rel_path for s in sources] == ["admin/mod.rs", "users.rs"]
    assert [s.module for s in sources] == ["admin", "users"]
    assert sources[1].text.startswith("pub fn routes()")


def test_scanner_max_files(tmp_path: Path):
    for name in ("a.rs", "b.rs", "c.rs"):
        write(tmp_path / name, "")
    assert len(scan_controller_files(tmp_path, max_files=2)) == 2


def test_missing_controllers_dir_is_an_io_error(tmp_path: Path):
    with pytest.raises(GenerationIOError):
        scan_controller_files(tmp_path / "missing")


def test_unreadable_source_is_an_io_error(tmp_path: Path):
    bad = tmp_path / "bad.rs"
    bad.write_bytes(b"\xff\xfe\x00broken")
    with pytest.raises(GenerationIOError) as exc:
        list(read_sources([str(bad)], tmp_path))
    assert "UTF-8" in str(exc.value)


def test_module_names():
    assert module_name_for("users.rs") == "users"
    assert module_name_for("admin/mod.rs") == "admin"
    assert module_name_for("admin/settings.rs") == "admin::settings"
    assert module_name_for("mod.rs") == ""
