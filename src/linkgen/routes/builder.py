from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Iterable

from linkgen.config import GeneratorConfig
from linkgen.errors import ScanError
from linkgen.naming.routes import field_name, route_tokens, variant_name
from linkgen.routes.paths import path_parameters, resolve_path
from linkgen.routes.specs import RouteInfo, RouteRecord


@dataclass(frozen=True)
class BuildResult:
    routes: tuple[RouteInfo, ...]
    errors: tuple[ScanError, ...]


class _InvalidRoute(ValueError):
    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.line = line


def build_route_info(record: RouteRecord, config: GeneratorConfig, source_order_index: int) -> RouteInfo:
    final_path = resolve_path(record.declared_prefix_chain, record.raw_path_segment)
    params = path_parameters(final_path)

    seen: dict[str, str] = {}
    fields: list[str] = []
    for p in params:
        if p.name in seen:
            raise _InvalidRoute(f"parameter {p.name!r} appears more than once in {final_path}", record.line)
        f = field_name(p.name, config)
        if f in fields:
            other = next(k for k, v in seen.items() if v == f)
            raise _InvalidRoute(
                f"parameters {other!r} and {p.name!r} in {final_path} both map to field {f!r}", record.line
            )
        seen[p.name] = f
        fields.append(f)

    return RouteInfo(
        method=record.http_method,
        final_path=final_path,
        variant_name=variant_name(route_tokens(record.http_method, final_path, config), config),
        field_names=tuple(fields),
        source_order_index=source_order_index,
        parameters=tuple(params),
        handler=record.handler_identifier,
        declaring_file=record.declaring_file,
        handler_info=record.handler_info,
    )


def build_route_infos(records: Iterable[RouteRecord], config: GeneratorConfig) -> BuildResult:
    """
    Fold raw records into RouteInfos.

    source_order_index follows (declaring_file, declaration_index), which is the
    emission order of every generator. A record that cannot be represented
    (repeated parameter, two parameters with the same field name) invalidates
    its whole file, like any other scan problem.
    """
    ordered = sorted(records, key=lambda r: r.sort_key)
    routes: list[RouteInfo] = []
    errors: list[ScanError] = []

    for rel_path, group in groupby(ordered, key=lambda r: r.declaring_file):
        built: list[RouteInfo] = []
        try:
            for record in group:
                built.append(build_route_info(record, config, len(routes) + len(built)))
        except _InvalidRoute as e:
            errors.append(ScanError(rel_path, str(e), e.line))
            continue
        routes.extend(built)

    return BuildResult(routes=tuple(routes), errors=tuple(errors))
