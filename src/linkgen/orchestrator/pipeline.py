from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence

from linkgen.config import GeneratorConfig
from linkgen.emitters.rust import generate_rust
from linkgen.emitters.typescript import (
    RESERVED_NAMES,
    declared_names,
    function_name,
    generate_typescript,
    imported_type_names,
)
from linkgen.errors import DuplicateRouteWarning, ScanError
from linkgen.extractors.loco.chunker import FileScan, extract_routes_from_source
from linkgen.extractors.loco.structure import build_router_tree, collect_route_records
from linkgen.repo.scanner import SourceFile, read_sources, scan_controller_files
from linkgen.routes.builder import build_route_infos
from linkgen.routes.detect import check_name_collisions, check_reserved_names, detect
from linkgen.routes.specs import RouteInfo
from linkgen.store.artifacts import Artifact, WriteOutcome, is_up_to_date, write_artifacts

logger = logging.getLogger("linkgen")

_WARNING_CATEGORIES = {ScanError.category, DuplicateRouteWarning.category, "stale"}


@dataclass(frozen=True)
class Diagnostic:
    """One build-time line, rendered as "<category>: <message>"."""

    category: str
    message: str

    def __str__(self) -> str:
        return f"{self.category}: {self.message}"

    @property
    def is_warning(self) -> bool:
        return self.category in _WARNING_CATEGORIES


@dataclass(frozen=True)
class CollectResult:
    routes: tuple[RouteInfo, ...]
    scan_errors: tuple[ScanError, ...]
    duplicates: tuple[DuplicateRouteWarning, ...]


@dataclass(frozen=True)
class GenerationResult:
    routes: tuple[RouteInfo, ...]
    rust_code: str
    typescript_code: Optional[str]
    diagnostics: tuple[Diagnostic, ...]


@dataclass(frozen=True)
class RunResult:
    generation: GenerationResult
    outcomes: tuple[WriteOutcome, ...] = ()
    stale: tuple[Path, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.stale


def scan_sources(sources: Iterable[SourceFile], workers: int = 1) -> list[FileScan]:
    """
    Scan every file. Files are independent, so with workers > 1 they are
    scanned on a thread pool; results are re-sorted by path either way so
    parallelism never changes ordering.
    """
    sources = list(sources)

    def scan(src: SourceFile) -> FileScan:
        return extract_routes_from_source(src.text, rel_path=src.rel_path, module=src.module)

    if workers > 1 and len(sources) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            scans = list(pool.map(scan, sources))
    else:
        scans = [scan(s) for s in sources]

    scans.sort(key=lambda s: s.rel_path)
    return scans


def collect_routes(sources: Iterable[SourceFile], config: GeneratorConfig) -> CollectResult:
    """
    Scanner -> path resolver -> model builder -> duplicate/collision detector.

    Raises NameCollisionError when two distinct routes end up with the same
    variant name. With the TypeScript client enabled, function names must be
    distinct too and hooks or params types may not shadow a name the client
    module already imports or declares.
    """
    scans = scan_sources(sources, workers=config.workers)
    tree = build_router_tree(scans)
    records = collect_route_records(tree, scans)
    built = build_route_infos(records, config)

    detected = detect(built.routes)
    if config.generate_typescript_client:
        check_name_collisions(detected.accepted, derive=function_name, kind="TypeScript function name")
        reserved = RESERVED_NAMES | imported_type_names(detected.accepted)
        check_reserved_names(detected.accepted, declared_names, reserved, kind="TypeScript name")

    errors = sorted((*tree.errors, *built.errors), key=lambda e: (e.file, e.line or 0))
    return CollectResult(routes=detected.accepted, scan_errors=tuple(errors), duplicates=detected.warnings)


def generate(config: GeneratorConfig, sources: Iterable[SourceFile]) -> GenerationResult:
    """
    Pure function from (sources, config) to generated code and diagnostics.
    Nothing is read from or written to disk here.
    """
    collected = collect_routes(sources, config)

    diagnostics = [Diagnostic(e.category, str(e)) for e in collected.scan_errors]
    diagnostics += [Diagnostic(w.category, str(w)) for w in collected.duplicates]

    rust_code = generate_rust(collected.routes, config)
    ts_code = generate_typescript(collected.routes, config) if config.generate_typescript_client else None

    return GenerationResult(
        routes=collected.routes,
        rust_code=rust_code,
        typescript_code=ts_code,
        diagnostics=tuple(diagnostics),
    )


def load_sources(config: GeneratorConfig, max_files: int | None = None) -> list[SourceFile]:
    paths = scan_controller_files(config.controllers_path, max_files=max_files)
    return list(read_sources(paths, config.controllers_path))


def artifacts_for(result: GenerationResult, config: GeneratorConfig) -> list[Artifact]:
    out = [Artifact(path=config.output_file, content=result.rust_code)]
    if result.typescript_code is not None:
        out.append(Artifact(path=config.typescript_client_output, content=result.typescript_code))
    return out


def run_generate(
    config: GeneratorConfig,
    check: bool = False,
    max_files: int | None = None,
) -> RunResult:
    """
    Read the controllers directory, generate, then write both artifacts atomically.

    Any fatal error (ConfigError, GenerationIOError, NameCollisionError) is
    raised before a single output file is touched. With check=True nothing is
    written; stale artifacts are reported instead.
    """
    logger.debug("scanning %s", config.controllers_path)
    sources = load_sources(config, max_files=max_files)
    result = generate(config, sources)
    artifacts = artifacts_for(result, config)

    diagnostics = list(result.diagnostics)
    outcomes: Sequence[WriteOutcome] = ()
    stale: list[Path] = []

    if check:
        for artifact in artifacts:
            if not is_up_to_date(artifact):
                stale.append(artifact.path)
                diagnostics.append(Diagnostic("stale", f"{artifact.path} is out of date"))
    else:
        outcomes = write_artifacts(artifacts)
        for o in outcomes:
            category = "generated" if o.written else "unchanged"
            diagnostics.append(Diagnostic(category, str(o.path)))

    for d in diagnostics:
        log_diagnostic(d)

    return RunResult(
        generation=result,
        outcomes=tuple(outcomes),
        stale=tuple(stale),
        diagnostics=tuple(diagnostics),
    )


def log_diagnostic(d: Diagnostic) -> None:
    if d.is_warning:
        logger.warning("%s", d)
    else:
        logger.info("%s", d)
