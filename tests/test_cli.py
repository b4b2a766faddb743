import textwrap
from pathlib import Path

from typer.testing import CliRunner

from linkgen.cli import app

runner = CliRunner()


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(s), encoding="utf-8")


def project(tmp_path: Path, **naming: str) -> Path:
    write(
        tmp_path / "controllers" / "users.rs",
        """
        pub fn routes() -> Routes {
            Routes::new()
                .prefix("/api")
                .add("/users", get(list).post(create))
        }
        """,
    )
    extra = "".join(f"{k} = {v}\n" for k, v in naming.items())
    write(
        tmp_path / "linkgen.toml",
        'controllers_path = "controllers"\noutput_file = "links.rs"\n' + extra,
    )
    return tmp_path / "linkgen.toml"


def test_generate_writes_output(tmp_path: Path):
    cfg = project(tmp_path)
    result = runner.invoke(app, ["generate", "--config", str(cfg), "--cargo"])

    assert result.exit_code == 0
    assert f"cargo:warning=generated: {tmp_path.resolve() / 'links.rs'}" in result.stdout
    assert "PostApiUsers," in (tmp_path / "links.rs").read_text(encoding="utf-8")


def test_generate_with_ts_output_enables_client(tmp_path: Path):
    cfg = project(tmp_path)
    ts = tmp_path / "web" / "client.ts"
    result = runner.invoke(app, ["generate", "--config", str(cfg), "--ts-output", str(ts)])

    assert result.exit_code == 0
    assert "useGetApiUsers" in ts.read_text(encoding="utf-8")


def test_name_collision_exits_nonzero(tmp_path: Path):
    cfg = project(tmp_path, include_method_in_names="false")
    result = runner.invoke(app, ["generate", "--config", str(cfg), "--cargo"])

    assert result.exit_code == 1
    assert "cargo:warning=name-collision: " in result.stdout
    assert not (tmp_path / "links.rs").exists()


def test_check_mode_exit_codes(tmp_path: Path):
    cfg = project(tmp_path)
    assert runner.invoke(app, ["generate", "--config", str(cfg), "--check"]).exit_code == 1
    assert runner.invoke(app, ["generate", "--config", str(cfg)]).exit_code == 0
    assert runner.invoke(app, ["generate", "--config", str(cfg), "--check"]).exit_code == 0


def test_invalid_config_exits_nonzero(tmp_path: Path):
    cfg = project(tmp_path, variant_case='"wavy"')
    result = runner.invoke(app, ["generate", "--config", str(cfg)])
    assert result.exit_code == 1


def test_routes_list_json(tmp_path: Path):
    cfg = project(tmp_path)
    result = runner.invoke(app, ["routes", "list", "--config", str(cfg), "--format", "json"])

    assert result.exit_code == 0
    assert '"variant": "GetApiUsers"' in result.stdout
    assert '"method": "POST"' in result.stdout


def test_routes_list_rejects_unknown_format(tmp_path: Path):
    cfg = project(tmp_path)
    result = runner.invoke(app, ["routes", "list", "--config", str(cfg), "--format", "xml"])
    assert result.exit_code != 0
