from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from linkgen.config import GeneratorConfig, find_config_file, load_config
from linkgen.errors import LinkgenError
from linkgen.orchestrator.pipeline import collect_routes, load_sources, run_generate


app = typer.Typer(no_args_is_help=True, add_completion=False)

routes_app = typer.Typer(no_args_is_help=True)
app.add_typer(routes_app, name="routes")

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _load(
    config: Optional[str],
    controllers: Optional[str] = None,
    output: Optional[str] = None,
    ts_output: Optional[str] = None,
) -> GeneratorConfig:
    config_path = Path(config).expanduser() if config else find_config_file(Path.cwd())
    overrides = {
        "controllers_path": controllers,
        "output_file": output,
        "typescript_client_output": ts_output,
    }
    if ts_output:
        overrides["generate_typescript_client"] = True
    return load_config(config_path, **overrides)


def _fail(e: LinkgenError) -> None:
    err_console.print(f"[bold red]{e.category}[/bold red]: {escape(str(e))}")
    raise typer.Exit(code=1)


@app.command()
def generate(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="linkgen.toml, pyproject.toml or Cargo.toml"),
    controllers: Optional[str] = typer.Option(None, help="Controllers directory (overrides config)"),
    output: Optional[str] = typer.Option(None, help="Rust output file (overrides config)"),
    ts_output: Optional[str] = typer.Option(None, help="TypeScript output file; enables the client"),
    check: bool = typer.Option(False, help="Do not write; exit 1 if generated files are out of date"),
    cargo: bool = typer.Option(False, help="Print diagnostics as cargo:warning= lines (for build.rs)"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Scan controllers and generate the route enum (and TypeScript client)."""
    _setup_logging(verbose)
    try:
        cfg = _load(config, controllers, output, ts_output)
        result = run_generate(cfg, check=check)
    except LinkgenError as e:
        if cargo:
            print(f"cargo:warning={e.category}: {e}")
        _fail(e)
        return

    for d in result.diagnostics:
        if cargo:
            print(f"cargo:warning={d}")
        elif d.is_warning:
            console.print(f"[yellow]{d.category}[/yellow]: {escape(d.message)}")
        else:
            console.print(f"[green]{d.category}[/green]: {escape(d.message)}")

    if not cargo:
        console.print(f"Routes: [bold]{len(result.generation.routes)}[/bold]")

    if not result.ok:
        raise typer.Exit(code=1)


@routes_app.command("list")
def routes_list(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="linkgen.toml, pyproject.toml or Cargo.toml"),
    controllers: Optional[str] = typer.Option(None, help="Controllers directory (overrides config)"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    """List the routes that would be generated, in emission order."""
    fmt = format.lower().strip()
    if fmt not in ("table", "json"):
        raise typer.BadParameter("format must be one of: table, json")

    _setup_logging(False)
    try:
        cfg = _load(config, controllers)
        collected = collect_routes(load_sources(cfg), cfg)
    except LinkgenError as e:
        _fail(e)
        return

    if fmt == "json":
        rows = [
            {
                "method": r.method.value,
                "path": r.final_path,
                "variant": r.variant_name,
                "fields": list(r.field_names),
                "handler": r.handler,
                "file": r.declaring_file,
            }
            for r in collected.routes
        ]
        console.print_json(json.dumps(rows))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("VARIANT")
    table.add_column("FIELDS")
    table.add_column("HANDLER")
    table.add_column("FILE", no_wrap=True)

    for r in collected.routes:
        table.add_row(
            r.method.value,
            r.final_path,
            r.variant_name,
            ", ".join(r.field_names),
            r.handler,
            r.declaring_file,
        )

    console.print(table)
    for e in collected.scan_errors:
        err_console.print(f"[yellow]{e.category}[/yellow]: {escape(str(e))}")
    for w in collected.duplicates:
        err_console.print(f"[yellow]{w.category}[/yellow]: {escape(str(w))}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
