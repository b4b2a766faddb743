from pathlib import Path

import pytest

from linkgen.errors import GenerationIOError
from linkgen.store.artifacts import Artifact, is_up_to_date, write_artifacts


def test_writes_all_artifacts_with_trailing_newline(tmp_path: Path):
    rs = tmp_path / "out" / "links.rs"
    ts = tmp_path / "web" / "client.ts"
    outcomes = write_artifacts([Artifact(rs, "enum"), Artifact(ts, "client\n")])

    assert [(o.path, o.written) for o in outcomes] == [(rs, True), (ts, True)]
    assert rs.read_text(encoding="utf-8") == "enum\n"
    assert ts.read_text(encoding="utf-8") == "client\n"
    assert is_up_to_date(Artifact(rs, "enum"))


def test_unchanged_files_are_not_rewritten(tmp_path: Path):
    rs = tmp_path / "links.rs"
    write_artifacts([Artifact(rs, "a\n")])
    mtime = rs.stat().st_mtime_ns

    outcomes = write_artifacts([Artifact(rs, "a\n")])
    assert outcomes[0].written is False
    assert rs.stat().st_mtime_ns == mtime

    outcomes = write_artifacts([Artifact(rs, "b\n")])
    assert outcomes[0].written is True
    assert rs.read_text(encoding="utf-8") == "b\n"


def test_failure_leaves_every_target_untouched(tmp_path: Path):
    good = tmp_path / "out" / "links.rs"
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")

    with pytest.raises(GenerationIOError):
        write_artifacts([Artifact(good, "enum\n"), Artifact(blocker / "client.ts", "client\n")])

    assert not good.exists()
    assert list((tmp_path / "out").iterdir()) == []
